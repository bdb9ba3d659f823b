"""
Recovers task candidates from free-form model output.

Models wrap their JSON in markdown fences, lead with prose, or trail off with
comments. The parser looks for a fenced block first, then slices from the
first '[' to the last ']' and decodes that as a JSON array.

Items are validated one at a time: an item that is not an object, or that has
no usable title, is skipped and logged instead of discarding the whole batch.
If nothing survives, the response counts as malformed.
"""

from __future__ import annotations

import json
import logging
import re
from typing import List

from pydantic import ValidationError

from llm.schemas import TaskCandidate
from vocal_clerk.errors import MalformedExtraction

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?[ \t]*\r?\n?(.*?)```", re.DOTALL | re.IGNORECASE)


def _unfence(text: str) -> str:
    match = _FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text


def _bracket_slice(text: str) -> str:
    start = text.find("[")
    end = text.rfind("]")
    if start < 0 or end <= start:
        raise MalformedExtraction("no JSON array found in response")
    return text[start : end + 1]


class ResponseParser:

    def parse(self, raw_response: str) -> List[TaskCandidate]:
        if raw_response is None:
            raise MalformedExtraction("empty response")

        text = _unfence(raw_response.strip())
        payload = _bracket_slice(text)

        try:
            items = json.loads(payload)
        except (ValueError, RecursionError) as exc:
            # RecursionError: pathologically nested replies
            raise MalformedExtraction(f"response array is not valid JSON: {exc}") from exc

        if not isinstance(items, list):
            raise MalformedExtraction("response JSON is not an array")

        candidates: List[TaskCandidate] = []
        for index, item in enumerate(items):
            if not isinstance(item, dict):
                logger.warning(f"Skipping non-object item #{index} in extraction response")
                continue
            try:
                candidates.append(TaskCandidate.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping invalid task item #{index}: {e.error_count()} error(s)")

        if not candidates:
            raise MalformedExtraction("response array contains no usable tasks")

        return candidates
