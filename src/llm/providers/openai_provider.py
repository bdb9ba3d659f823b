from __future__ import annotations

import os
from typing import Any, Optional

import httpx

from vocal_clerk.errors import BackendUnavailable
from .base import AIBackendClient

SYSTEM_PROMPT = "You turn notes into task lists. Reply with a JSON array only."


class OpenAIBackend(AIBackendClient):
    name = "openai"

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        super().__init__(
            model=model or os.getenv("OPENAI_MODEL", "gpt-4o-mini").strip(),
            timeout_s=timeout_s,
            transport=transport,
        )
        self.api_key = (api_key if api_key is not None else os.getenv("OPENAI_API_KEY", "")).strip()
        self.base_url = (
            base_url or os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
        ).strip().rstrip("/")

    def _payload(self, prompt: str) -> dict:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": 0.2,
        }

    def extract(self, prompt: str, *, timeout_s: Optional[float] = None) -> str:
        if not self.api_key:
            raise BackendUnavailable(f"{self.name} API key is missing")

        url = f"{self.base_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        data = self._post_json(url, self._payload(prompt), headers=headers, timeout_s=timeout_s)
        return self._message_content(data)

    def _message_content(self, data: Any) -> str:
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise BackendUnavailable(f"{self.name} reply has no message content") from exc

        if isinstance(content, list):
            # some compatible servers return content parts
            content = "".join(
                part.get("text", "") for part in content if isinstance(part, dict)
            )
        if not isinstance(content, str):
            raise BackendUnavailable(f"{self.name} reply has no message content")
        return content
