from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from vocal_clerk.errors import BackendUnavailable

DEFAULT_TIMEOUT_S = float(os.getenv("AI_BACKEND_TIMEOUT_S", "30"))


class AIBackendClient(ABC):
    """One AI provider able to turn an extraction prompt into response text."""

    name: str = "base"

    def __init__(
        self,
        *,
        model: str,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.model = model
        self.timeout_s = timeout_s if timeout_s is not None else DEFAULT_TIMEOUT_S
        self._transport = transport

    @property
    def identifier(self) -> str:
        return f"{self.name}:{self.model}"

    @abstractmethod
    def extract(self, prompt: str, *, timeout_s: Optional[float] = None) -> str:
        """
        Must return the model output as TEXT; parsing happens in ResponseParser.
        Any failure to obtain that text raises BackendUnavailable.
        """
        raise NotImplementedError

    def _post_json(
        self,
        url: str,
        payload: dict,
        *,
        headers: Optional[dict] = None,
        timeout_s: Optional[float] = None,
    ) -> Any:
        timeout = timeout_s if timeout_s is not None else self.timeout_s
        try:
            with httpx.Client(timeout=timeout, transport=self._transport) as client:
                r = client.post(url, headers=headers, json=payload)
                r.raise_for_status()
                return r.json()
        except httpx.TimeoutException as exc:
            raise BackendUnavailable(f"{self.name} timed out after {timeout}s") from exc
        except httpx.HTTPStatusError as exc:
            raise BackendUnavailable(
                f"{self.name} returned status {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise BackendUnavailable(f"{self.name} request failed: {exc}") from exc
        except ValueError as exc:
            raise BackendUnavailable(f"{self.name} returned a non-JSON body") from exc
