from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import List, Optional, Tuple

from extraction.task_extractor import TaskExtractor
from ingestion.materializer import EntityMaterializer
from llm.selection import BackendSelector, select_backend
from storage.base import IngestionStore
from vocal_clerk.errors import OwnerNotFound
from vocal_clerk.models import AIProcessingResult, InputType, RawInput, Task

logger = logging.getLogger(__name__)

# Backends report no confidence of their own; this is a fixed placeholder.
EXTRACTED_CONFIDENCE = 0.85
DEGRADED_CONFIDENCE = 0.0
SUMMARY_MAX_CHARS = 5000


class IngestionState(str, Enum):
    RECEIVED = "RECEIVED"
    EXTRACTING = "EXTRACTING"
    EXTRACTED = "EXTRACTED"
    DEGRADED = "DEGRADED"
    MATERIALIZED = "MATERIALIZED"


@dataclass
class IngestionResult:
    state: IngestionState
    degraded: bool
    raw_input: RawInput
    processing_result: AIProcessingResult
    tasks: List[Task]
    history: Tuple[IngestionState, ...] = ()


class IngestionPipeline:
    """Central orchestration: raw text in, persisted tasks out."""

    def __init__(
        self,
        store: IngestionStore,
        backend_selector: BackendSelector = select_backend,
        extractor: Optional[TaskExtractor] = None,
        materializer: Optional[EntityMaterializer] = None,
    ):
        self.store = store
        self.backend_selector = backend_selector
        self.extractor = extractor or TaskExtractor()
        self.materializer = materializer or EntityMaterializer()

    async def ingest(
        self, owner_id: str, raw_text: str, *, timeout_s: Optional[float] = None
    ) -> List[Task]:
        result = await self.run(owner_id, raw_text, timeout_s=timeout_s)
        return result.tasks

    async def run(
        self, owner_id: str, raw_text: str, *, timeout_s: Optional[float] = None
    ) -> IngestionResult:
        # whitespace-only text is still input; only an empty string is rejected
        if not raw_text:
            raise ValueError("raw text must not be empty")

        user = await self.store.get_user(owner_id)
        if user is None:
            raise OwnerNotFound(owner_id)

        raw_input = RawInput(content=raw_text, type=InputType.TEXT, owner_id=owner_id)
        history = [IngestionState.RECEIVED]
        logger.info(f"Received input {raw_input.id} from {owner_id} ({len(raw_text)} chars)")

        self._enter(history, raw_input, IngestionState.EXTRACTING)
        started = time.perf_counter()
        backend = self.backend_selector(user)
        outcome = await self.extractor.extract(
            raw_text,
            backend,
            language=user.settings.preferred_language,
            timeout_s=timeout_s,
            remind_before=timedelta(minutes=user.settings.reminder_lead_time_min),
        )
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        self._enter(
            history,
            raw_input,
            IngestionState.DEGRADED if outcome.degraded else IngestionState.EXTRACTED,
        )

        processing_result = AIProcessingResult(
            raw_input_id=raw_input.id,
            processed_content_summary=self._summarize(outcome.candidates),
            ai_model_used=outcome.backend_id,
            processing_time_ms=elapsed_ms,
            confidence_score=DEGRADED_CONFIDENCE if outcome.degraded else EXTRACTED_CONFIDENCE,
        )

        # Reference rows commit before the ingestion transaction opens, so
        # concurrent ingestions never wait on each other's category inserts.
        async with self.store.references() as refs:
            resolved = await self.materializer.resolve(refs, owner_id, outcome.candidates)

        async with self.store.transaction() as unit:
            await unit.save_raw_input(raw_input)
            await unit.save_processing_result(processing_result)
            tasks = await self.materializer.materialize(unit, owner_id, raw_input, resolved)

        raw_input = raw_input.model_copy(
            update={"generated_task_ids": tuple(t.id for t in tasks)}
        )
        self._enter(history, raw_input, IngestionState.MATERIALIZED)
        logger.info(
            f"Input {raw_input.id} materialized into {len(tasks)} task(s)"
            f"{' (degraded)' if outcome.degraded else ''}"
        )

        return IngestionResult(
            state=history[-1],
            degraded=outcome.degraded,
            raw_input=raw_input,
            processing_result=processing_result,
            tasks=tasks,
            history=tuple(history),
        )

    @staticmethod
    def _enter(history: list, raw_input: RawInput, state: IngestionState) -> None:
        logger.debug(f"Input {raw_input.id}: {history[-1].value} -> {state.value}")
        history.append(state)

    @staticmethod
    def _summarize(candidates) -> str:
        dumped = json.dumps(
            [c.model_dump(mode="json", by_alias=True) for c in candidates],
            ensure_ascii=False,
        )
        return dumped[:SUMMARY_MAX_CHARS]
