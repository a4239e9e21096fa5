"""AI client service.

The OpenAI client is created once at process start and wrapped in an
:class:`AIService` whose status is either :class:`Ready` or
:class:`Unavailable`. Callers receive the service explicitly; nothing reads
a module-level client.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from dotenv import load_dotenv
from openai import OpenAI

from ..errors import QuizwithError

__all__ = [
    "API_KEY_ENV",
    "AIUnavailableError",
    "AIService",
    "Ready",
    "Unavailable",
    "load_client",
]

API_KEY_ENV = "OPENAI_API_KEY"
_PLACEHOLDER_KEYS = {"your_openai_api_key", "changeme", "sk-..."}
_MIN_KEY_LENGTH = 10

logger = logging.getLogger(__name__)


class AIUnavailableError(QuizwithError):
    """Raised when AI features are requested but no client is configured."""


@dataclass(frozen=True)
class Ready:
    client: Any


@dataclass(frozen=True)
class Unavailable:
    reason: str


ClientStatus = Union[Ready, Unavailable]


def load_client(
    *,
    env: Mapping[str, str] | None = None,
    api_base: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Any:
    """Initialize an OpenAI client using environment-derived credentials."""

    if env is None:
        load_dotenv()
        env = os.environ
    api_key = (env.get(API_KEY_ENV) or "").strip()
    if not api_key:
        raise AIUnavailableError(
            f"{API_KEY_ENV} not found in environment. Set it or add to .env"
        )
    if api_key.lower() in _PLACEHOLDER_KEYS or len(api_key) <= _MIN_KEY_LENGTH:
        raise AIUnavailableError(
            f"{API_KEY_ENV} looks like a placeholder or is too short."
        )
    kwargs: dict[str, Any] = {"api_key": api_key}
    if api_base:
        kwargs["base_url"] = api_base
    if timeout is not None:
        kwargs["timeout"] = timeout
    return OpenAI(**kwargs)


class AIService:
    """Holds the AI client, or the reason there is none."""

    def __init__(self, status: ClientStatus) -> None:
        self._status = status

    @classmethod
    def from_environment(
        cls,
        *,
        env: Mapping[str, str] | None = None,
        api_base: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> "AIService":
        try:
            client = load_client(env=env, api_base=api_base, timeout=timeout)
        except AIUnavailableError as exc:
            logger.warning(
                "AI features disabled", extra={"reason": str(exc)}
            )
            return cls(Unavailable(str(exc)))
        except Exception as exc:  # noqa: BLE001
            logger.exception("Failed to initialize the OpenAI client")
            return cls(Unavailable(f"Failed to initialize OpenAI client: {exc}"))
        logger.info("AI client initialized")
        return cls(Ready(client))

    @classmethod
    def ready(cls, client: Any) -> "AIService":
        return cls(Ready(client))

    @classmethod
    def unavailable(cls, reason: str) -> "AIService":
        return cls(Unavailable(reason))

    @property
    def status(self) -> ClientStatus:
        return self._status

    @property
    def available(self) -> bool:
        return isinstance(self._status, Ready)

    @property
    def reason(self) -> Optional[str]:
        if isinstance(self._status, Unavailable):
            return self._status.reason
        return None

    def require_client(self) -> Any:
        if isinstance(self._status, Ready):
            return self._status.client
        raise AIUnavailableError(self._status.reason)
