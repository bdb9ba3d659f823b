import logging

from fastapi import APIRouter, Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from api import state
from storage import db
from storage.postgres_store import PostgresStore

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint for container orchestration."""
    store_type = "postgres" if isinstance(state.store, PostgresStore) else "in-memory"
    health = {
        "status": "healthy" if state.pipeline is not None else "starting",
        "store": store_type,
    }

    if store_type == "postgres":
        db_health = await db.health_check()
        health["database"] = db_health
        if db_health["status"] != "healthy":
            health["status"] = "degraded"

    return health


@router.get("/metrics")
async def metrics() -> Response:
    """
    Prometheus scrape endpoint.
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
