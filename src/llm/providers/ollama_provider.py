from __future__ import annotations

import os
from typing import Optional

import httpx

from vocal_clerk.errors import BackendUnavailable
from .base import AIBackendClient


class OllamaBackend(AIBackendClient):
    """Locally hosted model served by Ollama's generate endpoint."""

    name = "ollama"

    def __init__(
        self,
        *,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        super().__init__(
            model=model or os.getenv("OLLAMA_MODEL", "llama3.1").strip(),
            timeout_s=timeout_s,
            transport=transport,
        )
        self.base_url = (
            base_url or os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
        ).strip().rstrip("/")

    def extract(self, prompt: str, *, timeout_s: Optional[float] = None) -> str:
        url = f"{self.base_url}/api/generate"
        payload = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {"temperature": 0.2},
        }

        data = self._post_json(url, payload, timeout_s=timeout_s)

        text = data.get("response") if isinstance(data, dict) else None
        if not isinstance(text, str):
            raise BackendUnavailable("ollama reply has no 'response' text")
        return text
