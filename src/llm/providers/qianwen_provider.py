from __future__ import annotations

import os
from typing import Optional

import httpx

from .openai_provider import OpenAIBackend


class QianwenBackend(OpenAIBackend):
    """Hosted Qwen models through DashScope's OpenAI-compatible endpoint."""

    name = "qianwen"

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
            api_key=api_key if api_key is not None else os.getenv("QIANWEN_API_KEY", ""),
            model=model or os.getenv("QIANWEN_MODEL", "qwen-max").strip(),
            base_url=base_url
            or os.getenv(
                "QIANWEN_BASE_URL",
                "https://dashscope.aliyuncs.com/compatible-mode/v1",
            ),
            timeout_s=timeout_s,
            transport=transport,
        )

    def _payload(self, prompt: str) -> dict:
        return {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": 0.2,
            "top_p": 0.8,
        }
