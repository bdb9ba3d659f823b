from contextlib import asynccontextmanager

import pytest

from extraction.task_extractor import TaskExtractor
from ingestion.materializer import EntityMaterializer
from ingestion.pipeline import IngestionPipeline
from storage.postgres_store import PostgresReferences, PostgresStore
from vocal_clerk.errors import ConflictOnCreate
from vocal_clerk.models import Category, Tag


class FakeDatabase:
    """Just enough of the schema's unique constraints to exercise the store."""

    def __init__(self):
        self.categories = {}
        self.tags = {}
        self.statements = []  # (connection, transaction depth, first query line)
        self.connections = []
        self.hide_next_lookup = False


class FakeConnection:
    def __init__(self, db: FakeDatabase):
        self.db = db
        self.depth = 0

    @asynccontextmanager
    async def transaction(self):
        self.depth += 1
        try:
            yield
        finally:
            self.depth -= 1

    def _log(self, query):
        self.db.statements.append((self, self.depth, query.strip().splitlines()[0]))

    async def fetchrow(self, query, *args):
        self._log(query)
        if "FROM users u" in query:
            return {
                "id": args[0],
                "username": args[0],
                "ai_model": "mock",
                "preferred_language": "en",
                "reminder_lead_time_min": 15,
            }
        if "INSERT INTO categories" in query:
            cid, owner, name, color, icon, is_default, created_at = args
            taken = (owner, name) in self.db.categories or (
                is_default and any(r["is_default"] for (o, _), r in self.db.categories.items() if o == owner)
            )
            if taken:
                return None
            self.db.categories[(owner, name)] = {
                "id": cid, "owner_id": owner, "name": name, "color": color,
                "icon": icon, "is_default": is_default, "created_at": created_at,
            }
            return {"id": cid}
        if "INSERT INTO tags" in query:
            tid, owner, name, created_at = args
            if (owner, name) in self.db.tags:
                return None
            self.db.tags[(owner, name)] = {
                "id": tid, "owner_id": owner, "name": name, "created_at": created_at,
            }
            return {"id": tid}
        if self.db.hide_next_lookup:
            # a competing writer commits right after this lookup
            self.db.hide_next_lookup = False
            return None
        if "FROM categories" in query and "is_default" in query:
            return next(
                (r for (o, _), r in self.db.categories.items() if o == args[0] and r["is_default"]),
                None,
            )
        if "FROM categories" in query:
            return self.db.categories.get(tuple(args))
        if "FROM tags" in query:
            return self.db.tags.get(tuple(args))
        raise AssertionError(f"unexpected query: {query}")

    async def execute(self, query, *args):
        self._log(query)

    async def executemany(self, query, rows):
        self._log(query)


class FakePool:
    def __init__(self, db: FakeDatabase):
        self.db = db

    @asynccontextmanager
    async def acquire(self):
        conn = FakeConnection(self.db)
        self.db.connections.append(conn)
        yield conn


@pytest.fixture
def db():
    return FakeDatabase()


@pytest.mark.asyncio
async def test_duplicate_insert_becomes_conflict(db):
    refs = PostgresReferences(FakeConnection(db))
    await refs.create_tag(Tag(name="aws", owner_id="alice"))
    with pytest.raises(ConflictOnCreate):
        await refs.create_tag(Tag(name="aws", owner_id="alice"))
    await refs.create_category(Category(name="Work", owner_id="alice"))
    with pytest.raises(ConflictOnCreate):
        await refs.create_category(Category(name="Work", owner_id="alice"))


@pytest.mark.asyncio
async def test_second_default_category_is_a_conflict(db):
    refs = PostgresReferences(FakeConnection(db))
    await refs.create_category(Category(name="Inbox", owner_id="alice", is_default=True))
    with pytest.raises(ConflictOnCreate):
        await refs.create_category(Category(name="General", owner_id="alice", is_default=True))


@pytest.mark.asyncio
async def test_lost_race_returns_the_committed_row(db):
    winner = Category(name="Travel", owner_id="alice", color="#000000")
    db.categories[("alice", "Travel")] = {
        "id": winner.id, "owner_id": "alice", "name": "Travel", "color": "#000000",
        "icon": "folder", "is_default": False, "created_at": winner.created_at,
    }
    db.hide_next_lookup = True

    resolved = await EntityMaterializer().resolve_category(
        PostgresReferences(FakeConnection(db)), "alice", "Travel"
    )

    assert resolved.id == winner.id
    assert resolved.color == "#000000"
    assert len(db.categories) == 1


@pytest.mark.asyncio
async def test_reference_rows_are_written_outside_the_ingestion_transaction(db, fake_backend_factory, fixed_clock):
    backend = fake_backend_factory(
        '[{"title":"Fly to Berlin","category":"Travel","tags":["berlin","trip"]}]'
    )
    pipeline = IngestionPipeline(
        PostgresStore(FakePool(db)),
        backend_selector=lambda user: backend,
        extractor=TaskExtractor(clock=fixed_clock),
    )

    tasks = await pipeline.ingest("alice", "fly to Berlin next week")

    assert [t.category.name for t in tasks] == ["Travel"]
    reference_inserts = [
        (conn, depth) for conn, depth, q in db.statements
        if q.startswith("INSERT INTO categories") or q.startswith("INSERT INTO tags")
    ]
    ingestion_inserts = [
        (conn, depth) for conn, depth, q in db.statements
        if q.startswith("INSERT INTO raw_inputs") or q.startswith("INSERT INTO tasks")
    ]
    assert len(reference_inserts) == 3
    assert all(depth == 0 for _, depth in reference_inserts)
    assert all(depth == 1 for _, depth in ingestion_inserts)
    assert {c for c, _ in reference_inserts}.isdisjoint({c for c, _ in ingestion_inserts})
