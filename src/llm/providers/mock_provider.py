from __future__ import annotations

import json
from typing import Optional

from llm.providers.base import AIBackendClient

_KEYWORD_TAGS = ("meeting", "work", "idea")
_TEXT_MARKERS = ("Text:", "文本：")


class MockBackend(AIBackendClient):
    """Offline backend for local runs and demos. Never touches the network."""

    name = "mock"

    def __init__(self, *, model: str = "keywords", timeout_s: Optional[float] = None):
        super().__init__(model=model, timeout_s=timeout_s)

    def extract(self, prompt: str, *, timeout_s: Optional[float] = None) -> str:
        """
        Returns a one-item JSON array built from the text after the prompt's
        final text marker.
        """
        text = prompt.strip()
        for marker in _TEXT_MARKERS:
            if marker in prompt:
                text = prompt.rsplit(marker, 1)[-1].strip()
                break
        lower = text.lower()

        tags = [kw for kw in _KEYWORD_TAGS if kw in lower]
        category = "Meeting" if "meeting" in tags else "General"
        priority = "HIGH" if "urgent" in lower or "high priority" in lower else "MEDIUM"

        title = text.splitlines()[0] if text else "Note"
        return json.dumps(
            [
                {
                    "title": title[:100],
                    "description": text,
                    "dueDate": None,
                    "reminderTime": None,
                    "priority": priority,
                    "category": category,
                    "tags": tags,
                }
            ],
            ensure_ascii=False,
        )
