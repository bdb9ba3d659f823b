from __future__ import annotations

import re
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from llm.schemas import TaskCandidate
from vocal_clerk.models import DEFAULT_CATEGORY_NAME, TaskPriority, utcnow

TITLE_MAX_CHARS = 100
ELLIPSIS = "..."
MAX_TAGS = 3
MIN_TAG_WORD_CHARS = 5
DUE_IN = timedelta(hours=24)
REMIND_BEFORE = timedelta(minutes=15)

_TITLE_JUNK_RE = re.compile(r"```|[`\[\]{}\"']")


def _title_from(text: str) -> str:
    cleaned = " ".join(_TITLE_JUNK_RE.sub(" ", text).split())
    if not cleaned:
        return "Untitled note"
    if len(cleaned) > TITLE_MAX_CHARS:
        return cleaned[: TITLE_MAX_CHARS - len(ELLIPSIS)].rstrip() + ELLIPSIS
    return cleaned


def _tags_from(text: str) -> List[str]:
    # best effort: capitalised words tend to be names, places and projects
    tags: List[str] = []
    for word in text.split():
        token = "".join(ch for ch in word if ch.isalnum())
        if len(token) < MIN_TAG_WORD_CHARS or not token[0].isupper():
            continue
        if token not in tags:
            tags.append(token)
        if len(tags) == MAX_TAGS:
            break
    return tags


class FallbackGenerator:
    """Builds one degraded task straight from the raw input. Never fails."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or utcnow

    def generate(
        self, raw_text: str, *, remind_before: timedelta = REMIND_BEFORE
    ) -> TaskCandidate:
        due = self._clock() + DUE_IN
        return TaskCandidate(
            title=_title_from(raw_text),
            description=raw_text,
            due_date=due,
            reminder_time=due - remind_before,
            priority=TaskPriority.MEDIUM,
            category=DEFAULT_CATEGORY_NAME,
            tags=_tags_from(raw_text),
        )
