"""Best-effort submission of finished attempts."""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

from .models import AttemptResult

__all__ = ["ResultPersistence", "ResultReporter"]


class ResultPersistence(Protocol):
    def submit_attempt_result(self, result: AttemptResult) -> Any: ...


class ResultReporter:
    """Hand an :class:`AttemptResult` to persistence without ever raising.

    A raised exception or a falsy return from the collaborator counts as a
    failure. Failures are logged; the caller only learns ``False``.
    """

    def __init__(
        self,
        persistence: ResultPersistence,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._persistence = persistence
        self._logger = logger or logging.getLogger(__name__)

    def report(self, result: AttemptResult) -> bool:
        details = {
            "quiz_id": result.quiz_id,
            "score": result.score,
            "total_questions": result.total_questions,
            "is_live": result.is_live,
        }
        try:
            outcome = self._persistence.submit_attempt_result(result)
        except Exception:  # noqa: BLE001
            self._logger.exception("Failed to submit quiz score", extra=details)
            return False
        if not outcome:
            self._logger.warning(
                "Quiz score submission was rejected", extra=details
            )
            return False
        self._logger.info("Submitted quiz score", extra=details)
        return True
