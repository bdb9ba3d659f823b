"""Persistence boundary consumed by the ingestion pipeline."""

from __future__ import annotations

from typing import AsyncContextManager, List, Optional, Protocol

from vocal_clerk.models import AIProcessingResult, Category, RawInput, Tag, Task, User


class ReferenceUnit(Protocol):
    """Per-owner categories and tags.

    Every create is committed on its own, outside any ingestion transaction,
    so concurrent ingestions never wait on each other's reference rows.
    create_category/create_tag raise ConflictOnCreate when (owner_id, name)
    is already taken.
    """

    async def get_category(self, owner_id: str, name: str) -> Optional[Category]: ...

    async def get_default_category(self, owner_id: str) -> Optional[Category]: ...

    async def create_category(self, category: Category) -> Category: ...

    async def get_tag(self, owner_id: str, name: str) -> Optional[Tag]: ...

    async def create_tag(self, tag: Tag) -> Tag: ...


class IngestionUnit(Protocol):
    """Writes belonging to one ingestion call; committed or discarded together."""

    async def save_raw_input(self, raw_input: RawInput) -> RawInput: ...

    async def save_processing_result(self, result: AIProcessingResult) -> AIProcessingResult: ...

    async def insert_task(self, task: Task) -> Task: ...


class IngestionStore(Protocol):
    async def get_user(self, owner_id: str) -> Optional[User]: ...

    def references(self) -> AsyncContextManager[ReferenceUnit]: ...

    def transaction(self) -> AsyncContextManager[IngestionUnit]: ...

    async def get_raw_input(self, raw_input_id: str) -> Optional[RawInput]: ...

    async def list_generated_tasks(self, raw_input_id: str) -> List[Task]: ...

    async def list_categories(self, owner_id: str) -> List[Category]: ...
