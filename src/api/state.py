from typing import Optional

from ingestion.pipeline import IngestionPipeline
from storage.base import IngestionStore

# Global instances initialized at startup
store: Optional[IngestionStore] = None
pipeline: Optional[IngestionPipeline] = None
