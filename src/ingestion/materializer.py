from __future__ import annotations

import hashlib
import logging
from typing import Awaitable, Callable, List, NamedTuple, Optional, Sequence, TypeVar

from llm.schemas import TaskCandidate
from storage.base import IngestionUnit, ReferenceUnit
from vocal_clerk.errors import ConflictOnCreate
from vocal_clerk.models import (
    DEFAULT_CATEGORY_COLOR,
    DEFAULT_CATEGORY_ICON,
    DEFAULT_CATEGORY_NAME,
    Category,
    RawInput,
    Tag,
    Task,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def category_color(owner_id: str, name: str) -> str:
    """Stable '#rrggbb' colour for a category invented by extraction."""
    digest = hashlib.md5(f"{owner_id}:{name}".encode("utf-8")).hexdigest()
    return f"#{digest[:6]}"


async def _get_or_create(
    kind: str,
    lookup: Callable[[], Awaitable[Optional[T]]],
    create: Callable[[], Awaitable[T]],
) -> T:
    existing = await lookup()
    if existing is not None:
        return existing
    try:
        return await create()
    except ConflictOnCreate as e:
        logger.info(f"Lost create race for {kind} {e.name!r}, re-reading winner")
        winner = await lookup()
        if winner is None:
            raise
        return winner


class ResolvedCandidate(NamedTuple):
    candidate: TaskCandidate
    category: Category
    tags: List[Tag]


class EntityMaterializer:
    """Turns task candidates into persisted, linked Task records."""

    async def resolve(
        self,
        refs: ReferenceUnit,
        owner_id: str,
        candidates: Sequence[TaskCandidate],
    ) -> List[ResolvedCandidate]:
        resolved: List[ResolvedCandidate] = []
        for candidate in candidates:
            category = await self.resolve_category(refs, owner_id, candidate.category)
            tags = [await self.resolve_tag(refs, owner_id, name) for name in candidate.tags]
            resolved.append(ResolvedCandidate(candidate, category, tags))
        return resolved

    async def materialize(
        self,
        unit: IngestionUnit,
        owner_id: str,
        raw_input: RawInput,
        resolved: Sequence[ResolvedCandidate],
    ) -> List[Task]:
        tasks: List[Task] = []
        for candidate, category, tags in resolved:
            task = Task(
                title=candidate.title,
                description=candidate.description,
                due_date=candidate.due_date,
                reminder_time=candidate.reminder_time,
                priority=candidate.priority,
                category=category,
                owner_id=owner_id,
                raw_input_id=raw_input.id,
                original_input_text=raw_input.content,
                tags=tags,
            )
            tasks.append(await unit.insert_task(task))

        logger.debug(f"Materialized {len(tasks)} task(s) for raw input {raw_input.id}")
        return tasks

    async def resolve_category(
        self, refs: ReferenceUnit, owner_id: str, name: str
    ) -> Category:
        name = (name or "").strip() or DEFAULT_CATEGORY_NAME

        if name == DEFAULT_CATEGORY_NAME:
            default = await refs.get_default_category(owner_id)
            if default is not None:
                return default

        async def create() -> Category:
            # "General" becomes the owner's default only if none exists yet
            is_default = (
                name == DEFAULT_CATEGORY_NAME
                and await refs.get_default_category(owner_id) is None
            )
            return await refs.create_category(
                Category(
                    name=name,
                    color=DEFAULT_CATEGORY_COLOR if is_default else category_color(owner_id, name),
                    icon=DEFAULT_CATEGORY_ICON,
                    owner_id=owner_id,
                    is_default=is_default,
                )
            )

        return await _get_or_create(
            "category", lambda: refs.get_category(owner_id, name), create
        )

    async def resolve_tag(self, refs: ReferenceUnit, owner_id: str, name: str) -> Tag:
        return await _get_or_create(
            "tag",
            lambda: refs.get_tag(owner_id, name),
            lambda: refs.create_tag(Tag(name=name, owner_id=owner_id)),
        )
