"""
PostgreSQL-backed ingestion store.

Uniqueness of categories and tags per owner is enforced by the database.
Reference rows are created before the ingestion transaction opens; the
ingestion transaction itself only inserts rows nobody else can collide with.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

import asyncpg

from vocal_clerk.errors import ConflictOnCreate
from vocal_clerk.models import (
    DEFAULT_CATEGORY_COLOR,
    DEFAULT_CATEGORY_ICON,
    AIProcessingResult,
    Category,
    InputType,
    RawInput,
    Tag,
    Task,
    TaskPriority,
    User,
    UserSettings,
)

logger = logging.getLogger(__name__)


def _category_from_record(record) -> Category:
    return Category(
        id=str(record["id"]),
        name=record["name"],
        color=record["color"] or DEFAULT_CATEGORY_COLOR,
        icon=record["icon"] or DEFAULT_CATEGORY_ICON,
        owner_id=record["owner_id"],
        is_default=record["is_default"],
        created_at=record["created_at"],
    )


def _tag_from_record(record) -> Tag:
    return Tag(
        id=str(record["id"]),
        name=record["name"],
        owner_id=record["owner_id"],
        created_at=record["created_at"],
    )


class PostgresReferences:
    """
    Category and tag get-or-create on a connection with no open transaction,
    so each insert commits on its own and never waits on another ingestion's
    uncommitted rows. ON CONFLICT has no target so it also covers the
    one-default-per-owner index.
    """

    def __init__(self, conn: asyncpg.Connection):
        self.conn = conn

    async def get_category(self, owner_id: str, name: str) -> Optional[Category]:
        record = await self.conn.fetchrow(
            "SELECT * FROM categories WHERE owner_id = $1 AND name = $2",
            owner_id,
            name,
        )
        return _category_from_record(record) if record else None

    async def get_default_category(self, owner_id: str) -> Optional[Category]:
        record = await self.conn.fetchrow(
            "SELECT * FROM categories WHERE owner_id = $1 AND is_default",
            owner_id,
        )
        return _category_from_record(record) if record else None

    async def create_category(self, category: Category) -> Category:
        record = await self.conn.fetchrow(
            """
            INSERT INTO categories (id, owner_id, name, color, icon, is_default, created_at)
            VALUES ($1, $2, $3, $4, $5, $6, $7)
            ON CONFLICT DO NOTHING
            RETURNING id
            """,
            category.id,
            category.owner_id,
            category.name,
            category.color,
            category.icon,
            category.is_default,
            category.created_at,
        )
        if record is None:
            raise ConflictOnCreate("category", category.owner_id, category.name)
        return category

    async def get_tag(self, owner_id: str, name: str) -> Optional[Tag]:
        record = await self.conn.fetchrow(
            "SELECT * FROM tags WHERE owner_id = $1 AND name = $2",
            owner_id,
            name,
        )
        return _tag_from_record(record) if record else None

    async def create_tag(self, tag: Tag) -> Tag:
        record = await self.conn.fetchrow(
            """
            INSERT INTO tags (id, owner_id, name, created_at)
            VALUES ($1, $2, $3, $4)
            ON CONFLICT DO NOTHING
            RETURNING id
            """,
            tag.id,
            tag.owner_id,
            tag.name,
            tag.created_at,
        )
        if record is None:
            raise ConflictOnCreate("tag", tag.owner_id, tag.name)
        return tag


class PostgresUnit:
    """Writes of one ingestion call, on one connection and transaction."""

    def __init__(self, conn: asyncpg.Connection):
        self.conn = conn

    async def save_raw_input(self, raw_input: RawInput) -> RawInput:
        await self.conn.execute(
            """
            INSERT INTO raw_inputs (id, owner_id, content, type, created_at)
            VALUES ($1, $2, $3, $4, $5)
            """,
            raw_input.id,
            raw_input.owner_id,
            raw_input.content,
            raw_input.type.value,
            raw_input.created_at,
        )
        return raw_input

    async def save_processing_result(self, result: AIProcessingResult) -> AIProcessingResult:
        await self.conn.execute(
            """
            INSERT INTO ai_processing_results (
                id, raw_input_id, processed_content, ai_model_used,
                processing_time_ms, confidence_score, created_at
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7)
            """,
            result.id,
            result.raw_input_id,
            result.processed_content_summary,
            result.ai_model_used,
            result.processing_time_ms,
            result.confidence_score,
            result.created_at,
        )
        return result

    async def insert_task(self, task: Task) -> Task:
        await self.conn.execute(
            """
            INSERT INTO tasks (
                id, owner_id, title, description, due_date, reminder_time,
                priority, category_id, raw_input_id, original_input,
                completed, completed_at, created_at
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13)
            """,
            task.id,
            task.owner_id,
            task.title,
            task.description,
            task.due_date,
            task.reminder_time,
            task.priority.value,
            task.category.id,
            task.raw_input_id,
            task.original_input_text,
            task.completed,
            task.completed_at,
            task.created_at,
        )
        if task.tags:
            await self.conn.executemany(
                "INSERT INTO task_tags (task_id, tag_id) VALUES ($1, $2)",
                [(task.id, tag.id) for tag in task.tags],
            )
        return task


class PostgresStore:
    """Ingestion store on top of the shared asyncpg pool."""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def get_user(self, owner_id: str) -> Optional[User]:
        query = """
            SELECT u.id, u.username, s.ai_model, s.preferred_language, s.reminder_lead_time_min
            FROM users u
            LEFT JOIN user_settings s ON s.user_id = u.id
            WHERE u.id = $1
        """
        async with self.pool.acquire() as conn:
            record = await conn.fetchrow(query, owner_id)
        if record is None:
            return None

        settings = UserSettings()
        if record["ai_model"] is not None:
            settings = UserSettings(
                ai_model=record["ai_model"],
                preferred_language=record["preferred_language"],
                reminder_lead_time_min=record["reminder_lead_time_min"],
            )
        return User(id=record["id"], username=record["username"], settings=settings)

    @asynccontextmanager
    async def references(self) -> AsyncIterator[PostgresReferences]:
        async with self.pool.acquire() as conn:
            yield PostgresReferences(conn)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[PostgresUnit]:
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                yield PostgresUnit(conn)

    async def get_raw_input(self, raw_input_id: str) -> Optional[RawInput]:
        async with self.pool.acquire() as conn:
            record = await conn.fetchrow(
                """
                SELECT r.*,
                       ARRAY(
                           SELECT t.id FROM tasks t
                           WHERE t.raw_input_id = r.id
                           ORDER BY t.created_at, t.id
                       ) AS task_ids
                FROM raw_inputs r
                WHERE r.id = $1
                """,
                raw_input_id,
            )
        if record is None:
            return None
        return RawInput(
            id=str(record["id"]),
            content=record["content"],
            type=InputType(record["type"]),
            owner_id=record["owner_id"],
            created_at=record["created_at"],
            generated_task_ids=tuple(str(i) for i in record["task_ids"]),
        )

    async def list_generated_tasks(self, raw_input_id: str) -> List[Task]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT t.*,
                       c.name AS c_name, c.color AS c_color, c.icon AS c_icon,
                       c.is_default AS c_is_default, c.created_at AS c_created_at
                FROM tasks t
                JOIN categories c ON c.id = t.category_id
                WHERE t.raw_input_id = $1
                ORDER BY t.created_at, t.id
                """,
                raw_input_id,
            )
            tag_rows = await conn.fetch(
                """
                SELECT tt.task_id, g.*
                FROM task_tags tt
                JOIN tags g ON g.id = tt.tag_id
                JOIN tasks t ON t.id = tt.task_id
                WHERE t.raw_input_id = $1
                ORDER BY g.name
                """,
                raw_input_id,
            )

        tags_by_task: dict = {}
        for record in tag_rows:
            tags_by_task.setdefault(str(record["task_id"]), []).append(_tag_from_record(record))

        tasks: List[Task] = []
        for r in rows:
            task_id = str(r["id"])
            tasks.append(
                Task(
                    id=task_id,
                    title=r["title"],
                    description=r["description"],
                    due_date=r["due_date"],
                    reminder_time=r["reminder_time"],
                    priority=TaskPriority(r["priority"]),
                    category=Category(
                        id=str(r["category_id"]),
                        name=r["c_name"],
                        color=r["c_color"] or DEFAULT_CATEGORY_COLOR,
                        icon=r["c_icon"] or DEFAULT_CATEGORY_ICON,
                        owner_id=r["owner_id"],
                        is_default=r["c_is_default"],
                        created_at=r["c_created_at"],
                    ),
                    owner_id=r["owner_id"],
                    raw_input_id=str(r["raw_input_id"]) if r["raw_input_id"] else None,
                    original_input_text=r["original_input"],
                    tags=tags_by_task.get(task_id, []),
                    created_at=r["created_at"],
                    completed=r["completed"],
                    completed_at=r["completed_at"],
                )
            )
        return tasks

    async def list_categories(self, owner_id: str) -> List[Category]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                "SELECT * FROM categories WHERE owner_id = $1 ORDER BY created_at, name",
                owner_id,
            )
        return [_category_from_record(r) for r in rows]
