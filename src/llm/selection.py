"""Maps a user's stored AI-model preference onto a backend client."""

from __future__ import annotations

import logging
import os
from typing import Callable, Dict, Optional

from llm.providers.base import AIBackendClient
from llm.providers.mock_provider import MockBackend
from llm.providers.ollama_provider import OllamaBackend
from llm.providers.openai_provider import OpenAIBackend
from llm.providers.qianwen_provider import QianwenBackend
from vocal_clerk.models import User

logger = logging.getLogger(__name__)

BACKENDS: Dict[str, Callable[..., AIBackendClient]] = {
    "ollama": OllamaBackend,
    "qianwen": QianwenBackend,
    "openai": OpenAIBackend,
    "mock": MockBackend,
}

BackendSelector = Callable[[User], AIBackendClient]


def _default_backend_name() -> str:
    name = os.getenv("AI_DEFAULT_BACKEND", "ollama").strip().lower()
    return name if name in BACKENDS else "ollama"


def select_backend(user: User, timeout_s: Optional[float] = None) -> AIBackendClient:
    preference = (user.settings.ai_model or "").strip().lower()

    if preference not in BACKENDS:
        fallback = _default_backend_name()
        logger.warning(
            f"Unknown AI model preference {preference!r} for user {user.id}, using {fallback}"
        )
        preference = fallback

    return BACKENDS[preference](timeout_s=timeout_s)
