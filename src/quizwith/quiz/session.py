"""Quiz session state machine.

One :class:`QuizSession` owns one attempt at a time. Timer ticks, timer
expiry, the post-answer lock delay and user selections all arrive through
the same object, one at a time, and every entry point first checks that the
event is valid for the current state. That check is the only
synchronization there is: a selection racing a timeout is simply the
second event and is dropped.

State flow::

    LOADING -> AWAITING_ANSWER -> LOCKED -> AWAITING_ANSWER ... -> FINISHED
    LOADING -> EMPTY
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional, Protocol

from ..errors import MalformedResponse, QuizNotFound, StorageError
from .models import AttemptResult, Identity, Question, Quiz
from .reporter import ResultReporter
from .scheduler import Handle, Scheduler
from .scoring import evaluate
from .timer import DEFAULT_QUESTION_SECONDS, QuestionTimer

__all__ = [
    "DEFAULT_LOCK_DELAY_SECONDS",
    "SessionState",
    "AnswerRecord",
    "Attempt",
    "QuizProvider",
    "QuizSession",
]

DEFAULT_LOCK_DELAY_SECONDS = 2.5

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    LOADING = "loading"
    AWAITING_ANSWER = "awaiting_answer"
    LOCKED = "locked"
    FINISHED = "finished"
    EMPTY = "empty"


@dataclass(frozen=True)
class AnswerRecord:
    question_index: int
    question_id: str
    selected_option_id: Optional[str]
    correct: bool

    @property
    def timed_out(self) -> bool:
        return not self.selected_option_id


@dataclass
class Attempt:
    """Mutable progress through one quiz; owned by the session."""

    question_index: int = 0
    score: int = 0
    answered: bool = False
    selected_option_id: Optional[str] = None
    last_correct: Optional[bool] = None
    remaining: int = 0
    answers: list[AnswerRecord] = field(default_factory=list)


class QuizProvider(Protocol):
    def get_quiz_by_id(self, quiz_id: str) -> Optional[Quiz]: ...


SessionListener = Callable[["QuizSession"], None]


class QuizSession:
    def __init__(
        self,
        scheduler: Scheduler,
        *,
        provider: Optional[QuizProvider] = None,
        reporter: Optional[ResultReporter] = None,
        identity: Optional[Identity] = None,
        question_seconds: int = DEFAULT_QUESTION_SECONDS,
        lock_delay_seconds: float = DEFAULT_LOCK_DELAY_SECONDS,
        on_change: Optional[SessionListener] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._scheduler = scheduler
        self._provider = provider
        self._reporter = reporter
        self.identity = identity or Identity()
        self._question_seconds = question_seconds
        self._lock_delay_seconds = lock_delay_seconds
        self._on_change = on_change
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self._timer = QuestionTimer(
            scheduler, on_tick=self._handle_tick, on_expire=self._handle_expiry
        )
        self._lock_handle: Optional[Handle] = None
        self._state = SessionState.LOADING
        self._quiz: Optional[Quiz] = None
        self._attempt = Attempt()
        self._unreported: list[AttemptResult] = []
        self._last_result: Optional[AttemptResult] = None
        self._unavailable_reason: Optional[str] = None
        self._closed = False

    # -- read-only views -------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def quiz(self) -> Optional[Quiz]:
        return self._quiz

    @property
    def attempt(self) -> Attempt:
        return self._attempt

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def unavailable_reason(self) -> Optional[str]:
        return self._unavailable_reason

    @property
    def pending_result(self) -> Optional[AttemptResult]:
        """Oldest finished result whose submission has not succeeded yet."""

        return self._unreported[0] if self._unreported else None

    @property
    def unreported_results(self) -> tuple[AttemptResult, ...]:
        return tuple(self._unreported)

    @property
    def last_result(self) -> Optional[AttemptResult]:
        return self._last_result

    @property
    def question_seconds(self) -> int:
        return self._question_seconds

    @property
    def total_questions(self) -> int:
        return self._quiz.question_count if self._quiz else 0

    @property
    def current_question(self) -> Optional[Question]:
        if self._quiz is None or self._state in (
            SessionState.FINISHED,
            SessionState.EMPTY,
        ):
            return None
        if 0 <= self._attempt.question_index < self._quiz.question_count:
            return self._quiz.questions[self._attempt.question_index]
        return None

    # -- commands ----------------------------------------------------------

    def load(self, quiz_id: str) -> SessionState:
        """Fetch ``quiz_id`` from the provider and begin the first question."""

        if self._closed:
            return self._state
        if self._provider is None:
            raise RuntimeError("QuizSession.load requires a quiz provider")
        self._cancel_pending()
        self._state = SessionState.LOADING
        self._quiz = None
        self._notify()
        try:
            quiz = self._provider.get_quiz_by_id(quiz_id)
        except (QuizNotFound, MalformedResponse, StorageError) as exc:
            logger.warning(
                "Quiz unavailable", extra={"quiz_id": quiz_id, "reason": str(exc)}
            )
            self._enter_empty(str(exc))
            return self._state
        if quiz is None:
            self._enter_empty(f"Quiz not found: {quiz_id}")
            return self._state
        return self.start(quiz)

    def start(self, quiz: Quiz) -> SessionState:
        """Begin a fresh attempt on an already loaded ``quiz``."""

        if self._closed:
            return self._state
        self._cancel_pending()
        self._quiz = quiz
        if quiz.question_count == 0:
            self._enter_empty("This quiz has no questions.")
            return self._state
        self._unavailable_reason = None
        self._begin_attempt()
        return self._state

    def select(self, option_id: Optional[str]) -> bool:
        """Record an answer for the current question; first event wins."""

        return self._lock_answer(option_id or None, source="selection")

    def restart(self) -> bool:
        """Throw away the current attempt and start over at question 0.

        Finished results that were never saved stay queued for
        :meth:`retry_report`.
        """

        if self._closed or self._quiz is None or not self._quiz.questions:
            return False
        self._cancel_pending()
        self._begin_attempt()
        return True

    def retry_report(self) -> bool:
        """Submit results whose earlier submission failed, oldest first.

        Stops at the first failure. Returns ``True`` once every unreported
        result has been submitted.
        """

        if not self._unreported or self._reporter is None:
            return False
        while self._unreported:
            if not self._reporter.report(self._unreported[0]):
                self._notify()
                return False
            self._unreported.pop(0)
        self._notify()
        return True

    def close(self) -> None:
        """Tear the session down; later events are ignored."""

        self._cancel_pending()
        self._closed = True

    # -- internals -----------------------------------------------------------

    def _begin_attempt(self) -> None:
        self._attempt = Attempt(remaining=self._question_seconds)
        self._enter_question()
        logger.debug(
            "Attempt started",
            extra={"quiz_id": self._quiz.id if self._quiz else None},
        )

    def _enter_question(self) -> None:
        attempt = self._attempt
        attempt.answered = False
        attempt.selected_option_id = None
        attempt.last_correct = None
        attempt.remaining = self._question_seconds
        self._state = SessionState.AWAITING_ANSWER
        self._timer.start(self._question_seconds)
        self._notify()

    def _enter_empty(self, reason: str) -> None:
        self._state = SessionState.EMPTY
        self._unavailable_reason = reason
        self._notify()

    def _handle_tick(self, remaining: int) -> None:
        if self._closed or self._state is not SessionState.AWAITING_ANSWER:
            return
        self._attempt.remaining = remaining
        self._notify()

    def _handle_expiry(self) -> None:
        self._lock_answer(None, source="timeout")

    def _lock_answer(self, option_id: Optional[str], *, source: str) -> bool:
        if self._closed or self._state is not SessionState.AWAITING_ANSWER:
            return False
        attempt = self._attempt
        if attempt.answered:
            return False
        question = self.current_question
        if question is None:
            return False

        self._timer.cancel()
        outcome = evaluate(question, option_id)
        attempt.answered = True
        attempt.selected_option_id = option_id
        attempt.last_correct = outcome.correct
        attempt.score += outcome.increment
        attempt.answers.append(
            AnswerRecord(
                question_index=attempt.question_index,
                question_id=question.id,
                selected_option_id=option_id,
                correct=outcome.correct,
            )
        )
        self._state = SessionState.LOCKED
        logger.debug(
            "Answer locked",
            extra={
                "question_id": question.id,
                "question_index": attempt.question_index,
                "source": source,
                "correct": outcome.correct,
            },
        )
        self._lock_handle = self._scheduler.schedule_once(
            self._lock_delay_seconds, self._finish_lock
        )
        self._notify()
        return True

    def _finish_lock(self) -> None:
        self._lock_handle = None
        if self._closed or self._state is not SessionState.LOCKED:
            return
        if self._quiz is None:
            return
        if self._attempt.question_index + 1 < self._quiz.question_count:
            self._attempt.question_index += 1
            self._enter_question()
            return
        self._finish()

    def _finish(self) -> None:
        if self._quiz is None:
            return
        self._state = SessionState.FINISHED
        self._attempt.remaining = 0
        result = self._build_result(self._quiz)
        self._last_result = result
        logger.info(
            "Quiz finished",
            extra={
                "quiz_id": result.quiz_id,
                "score": result.score,
                "total_questions": result.total_questions,
            },
        )
        if self._reporter is None or not self._reporter.report(result):
            self._unreported.append(result)
        self._notify()

    def _build_result(self, quiz: Quiz) -> AttemptResult:
        identity = self.identity
        return AttemptResult(
            quiz_id=quiz.id,
            quiz_title=quiz.title,
            course_id=quiz.course_id,
            user_id=identity.user_id,
            nickname=identity.nickname,
            score=self._attempt.score,
            total_questions=quiz.question_count,
            completed_at=self._clock(),
            is_live=identity.is_guest,
        )

    def _cancel_pending(self) -> None:
        self._timer.cancel()
        handle, self._lock_handle = self._lock_handle, None
        if handle is not None:
            handle.cancel()

    def _notify(self) -> None:
        if self._on_change is not None and not self._closed:
            self._on_change(self)
