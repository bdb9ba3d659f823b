import logging
import os

from fastapi import FastAPI

from api import state
from api.dependencies import DEFAULT_USER_ID
from api.routers import notes, ops
from ingestion.pipeline import IngestionPipeline
from storage import db
from storage.memory_store import InMemoryStore
from storage.postgres_store import PostgresStore
from vocal_clerk.models import User, UserSettings

# Logging configuration
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="VocalClerk ingestion")
app.include_router(notes.router)
app.include_router(ops.router)


def _in_memory_store() -> InMemoryStore:
    store = InMemoryStore()
    store.add_user(
        User(
            id=DEFAULT_USER_ID,
            username=DEFAULT_USER_ID,
            settings=UserSettings(ai_model=os.getenv("AI_DEFAULT_BACKEND", "ollama")),
        )
    )
    return store


@app.on_event("startup")
async def startup() -> None:
    if db.DATABASE_URL:
        pool = await db.init_db_pool()
        await db.init_schema(pool)
        state.store = PostgresStore(pool)
        logger.info("Using PostgreSQL store")
    else:
        state.store = _in_memory_store()
        logger.warning("DATABASE_URL not set, using in-memory store (data is not persisted)")

    state.pipeline = IngestionPipeline(state.store)


@app.on_event("shutdown")
async def shutdown() -> None:
    if isinstance(state.store, PostgresStore):
        await db.close_db_pool()
    state.pipeline = None
    state.store = None
