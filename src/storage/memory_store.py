"""In-process store for tests and local runs without PostgreSQL."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional, Tuple

from vocal_clerk.errors import ConflictOnCreate
from vocal_clerk.models import AIProcessingResult, Category, RawInput, Tag, Task, User

logger = logging.getLogger(__name__)


class _MemoryReferences:
    """
    Categories and tags go straight into the shared (owner, name) indexes;
    check-and-insert has no await in between, so it is atomic on the event
    loop.
    """

    def __init__(self, store: "InMemoryStore"):
        self._store = store

    async def get_category(self, owner_id: str, name: str) -> Optional[Category]:
        return self._store.categories.get((owner_id, name))

    async def get_default_category(self, owner_id: str) -> Optional[Category]:
        for (owner, _), category in self._store.categories.items():
            if owner == owner_id and category.is_default:
                return category
        return None

    async def create_category(self, category: Category) -> Category:
        key = (category.owner_id, category.name)
        if key in self._store.categories:
            raise ConflictOnCreate("category", category.owner_id, category.name)
        if category.is_default and await self.get_default_category(category.owner_id):
            raise ConflictOnCreate("category", category.owner_id, category.name)
        self._store.categories[key] = category
        return category

    async def get_tag(self, owner_id: str, name: str) -> Optional[Tag]:
        return self._store.tags.get((owner_id, name))

    async def create_tag(self, tag: Tag) -> Tag:
        key = (tag.owner_id, tag.name)
        if key in self._store.tags:
            raise ConflictOnCreate("tag", tag.owner_id, tag.name)
        self._store.tags[key] = tag
        return tag


class _MemoryUnit:
    """Raw inputs, processing results and tasks stay pending until commit."""

    def __init__(self, store: "InMemoryStore"):
        self._store = store
        self.raw_inputs: List[RawInput] = []
        self.results: List[AIProcessingResult] = []
        self.tasks: List[Task] = []

    async def save_raw_input(self, raw_input: RawInput) -> RawInput:
        self.raw_inputs.append(raw_input)
        return raw_input

    async def save_processing_result(self, result: AIProcessingResult) -> AIProcessingResult:
        self.results.append(result)
        return result

    async def insert_task(self, task: Task) -> Task:
        self.tasks.append(task)
        return task

    def commit(self) -> None:
        for raw_input in self.raw_inputs:
            task_ids = tuple(t.id for t in self.tasks if t.raw_input_id == raw_input.id)
            self._store.raw_inputs[raw_input.id] = raw_input.model_copy(
                update={"generated_task_ids": task_ids}
            )
        for result in self.results:
            self._store.processing_results[result.raw_input_id] = result
        for task in self.tasks:
            self._store.tasks[task.id] = task


class InMemoryStore:

    def __init__(self) -> None:
        self.users: Dict[str, User] = {}
        self.categories: Dict[Tuple[str, str], Category] = {}
        self.tags: Dict[Tuple[str, str], Tag] = {}
        self.raw_inputs: Dict[str, RawInput] = {}
        self.processing_results: Dict[str, AIProcessingResult] = {}
        self.tasks: Dict[str, Task] = {}

    def add_user(self, user: User) -> User:
        self.users[user.id] = user
        return user

    async def get_user(self, owner_id: str) -> Optional[User]:
        return self.users.get(owner_id)

    @asynccontextmanager
    async def references(self) -> AsyncIterator[_MemoryReferences]:
        yield _MemoryReferences(self)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[_MemoryUnit]:
        unit = _MemoryUnit(self)
        try:
            yield unit
        except Exception:
            logger.warning(
                f"Discarding {len(unit.tasks)} pending task(s) after failed ingestion"
            )
            raise
        unit.commit()

    async def get_raw_input(self, raw_input_id: str) -> Optional[RawInput]:
        return self.raw_inputs.get(raw_input_id)

    async def list_generated_tasks(self, raw_input_id: str) -> List[Task]:
        return [t for t in self.tasks.values() if t.raw_input_id == raw_input_id]

    async def list_categories(self, owner_id: str) -> List[Category]:
        return [c for (owner, _), c in self.categories.items() if owner == owner_id]
