from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from extraction.fallback import REMIND_BEFORE, FallbackGenerator
from extraction.response_parser import ResponseParser
from llm.prompts import PromptBuilder
from llm.providers.base import AIBackendClient
from llm.schemas import TaskCandidate
from vocal_clerk.errors import BackendUnavailable, MalformedExtraction
from vocal_clerk.models import utcnow

logger = logging.getLogger(__name__)


@dataclass
class ExtractionOutcome:
    candidates: List[TaskCandidate]
    degraded: bool
    backend_id: str
    reason: Optional[str] = None


class TaskExtractor:
    """Single extraction attempt against a backend, with fallback instead of retry."""

    def __init__(
        self,
        prompt_builder: Optional[PromptBuilder] = None,
        parser: Optional[ResponseParser] = None,
        fallback: Optional[FallbackGenerator] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.parser = parser or ResponseParser()
        self.fallback = fallback or FallbackGenerator(clock=clock)
        self._clock = clock or utcnow

    async def extract(
        self,
        text: str,
        backend: AIBackendClient,
        *,
        language: str = "en",
        timeout_s: Optional[float] = None,
        remind_before: timedelta = REMIND_BEFORE,
    ) -> ExtractionOutcome:
        prompt = self.prompt_builder.build(
            text, language=language, reference_time=self._clock()
        )

        try:
            raw = await self._call_backend(backend, prompt, timeout_s)
            candidates = self.parser.parse(raw)
        except BackendUnavailable as e:
            logger.warning(f"Backend {backend.identifier} unavailable, degrading: {e}")
            return self._degraded(
                text, backend, f"backend_unavailable: {e}", remind_before
            )
        except MalformedExtraction as e:
            logger.warning(f"Unparseable reply from {backend.identifier}, degrading: {e}")
            return self._degraded(
                text, backend, f"malformed_extraction: {e}", remind_before
            )

        logger.info(f"Extracted {len(candidates)} task(s) via {backend.identifier}")
        return ExtractionOutcome(
            candidates=candidates, degraded=False, backend_id=backend.identifier
        )

    async def _call_backend(
        self, backend: AIBackendClient, prompt: str, timeout_s: Optional[float]
    ) -> str:
        limit = timeout_s if timeout_s is not None else backend.timeout_s
        try:
            # providers block on httpx; keep the event loop free
            return await asyncio.wait_for(
                asyncio.to_thread(backend.extract, prompt, timeout_s=limit),
                timeout=limit,
            )
        except BackendUnavailable:
            raise
        except asyncio.TimeoutError as exc:
            raise BackendUnavailable(f"no reply within {limit}s") from exc
        except Exception as exc:  # noqa: BLE001
            raise BackendUnavailable(f"{type(exc).__name__}: {exc}") from exc

    def _degraded(
        self,
        text: str,
        backend: AIBackendClient,
        reason: str,
        remind_before: timedelta,
    ) -> ExtractionOutcome:
        return ExtractionOutcome(
            candidates=[self.fallback.generate(text, remind_before=remind_before)],
            degraded=True,
            backend_id=backend.identifier,
            reason=reason,
        )
