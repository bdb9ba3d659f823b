import logging
import time

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from api.dependencies import DEFAULT_USER_ID, REQUEST_TIMEOUT_S, get_pipeline, get_store
from api.metrics import (
    BACKEND_PROCESSING_MS,
    INGEST_LATENCY_SECONDS,
    INGEST_REQUESTS_TOTAL,
    TASKS_MATERIALIZED_TOTAL,
)
from ingestion.pipeline import IngestionPipeline
from storage.base import IngestionStore
from vocal_clerk.errors import OwnerNotFound

router = APIRouter()
logger = logging.getLogger(__name__)


class NotesIn(BaseModel):
    text: str
    owner_id: str = DEFAULT_USER_ID


@router.post("/notes")
async def submit_notes(
    payload: NotesIn,
    pipeline: IngestionPipeline = Depends(get_pipeline),
) -> dict:
    start = time.time()
    logger.info(f"Received notes submission: {payload.text[:50]}...")

    try:
        result = await pipeline.run(payload.owner_id, payload.text, timeout_s=REQUEST_TIMEOUT_S)
    except OwnerNotFound as e:
        INGEST_REQUESTS_TOTAL.labels(status="owner_not_found").inc()
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        INGEST_REQUESTS_TOTAL.labels(status="invalid").inc()
        raise HTTPException(status_code=422, detail=str(e))

    status = "degraded" if result.degraded else "extracted"

    # Prometheus counters (best-effort)
    try:
        INGEST_REQUESTS_TOTAL.labels(status=status).inc()
        INGEST_LATENCY_SECONDS.observe(time.time() - start)
        TASKS_MATERIALIZED_TOTAL.inc(len(result.tasks))
        BACKEND_PROCESSING_MS.labels(
            backend=result.processing_result.ai_model_used.split(":", 1)[0]
        ).observe(result.processing_result.processing_time_ms)
    except Exception as e:
        logger.debug(f"Metrics update failed: {e}")

    return {
        "status": status,
        "raw_input_id": result.raw_input.id,
        "tasks_processed": len(result.tasks),
        "tasks": [t.model_dump(mode="json") for t in result.tasks],
    }


@router.get("/raw-inputs/{raw_input_id}/tasks")
async def get_generated_tasks(
    raw_input_id: str,
    store: IngestionStore = Depends(get_store),
) -> dict:
    """Tasks produced by one ingestion call."""
    tasks = await store.list_generated_tasks(raw_input_id)
    return {
        "raw_input_id": raw_input_id,
        "tasks": [t.model_dump(mode="json") for t in tasks],
        "total": len(tasks),
    }
