import os
from typing import Optional

from fastapi import HTTPException

from api import state
from ingestion.pipeline import IngestionPipeline
from storage.base import IngestionStore

# Configuration
DEFAULT_USER_ID = os.getenv("DEFAULT_USER_ID", "default")
REQUEST_TIMEOUT_S: Optional[float] = (
    float(os.getenv("INGEST_BACKEND_TIMEOUT_S")) if os.getenv("INGEST_BACKEND_TIMEOUT_S") else None
)


def get_store() -> IngestionStore:
    if state.store is None:
        raise HTTPException(status_code=503, detail="store not initialized")
    return state.store


def get_pipeline() -> IngestionPipeline:
    if state.pipeline is None:
        raise HTTPException(status_code=503, detail="pipeline not initialized")
    return state.pipeline
