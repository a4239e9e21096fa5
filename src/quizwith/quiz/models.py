"""Quiz data model and boundary decoding.

Rows read from storage or produced by the AI are loosely typed mappings.
They are decoded here into frozen dataclasses; any missing or mistyped
field raises :class:`~quizwith.errors.MalformedResponse` instead of
surfacing later as an ``AttributeError`` deep inside the session.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Sequence

from ..errors import MalformedResponse

__all__ = [
    "Option",
    "Question",
    "Quiz",
    "Identity",
    "AttemptResult",
    "decode_option",
    "decode_question",
    "decode_quiz",
    "decode_attempt_result",
]


@dataclass(frozen=True)
class Option:
    id: str
    text: str
    is_correct: bool = False

    def to_dict(self) -> dict[str, object]:
        return {"id": self.id, "text": self.text, "is_correct": self.is_correct}


@dataclass(frozen=True)
class Question:
    """Multiple-choice question with an ordered option list."""

    id: str
    text: str
    options: tuple[Option, ...]

    @property
    def correct_options(self) -> tuple[Option, ...]:
        return tuple(option for option in self.options if option.is_correct)

    @property
    def is_answerable(self) -> bool:
        """True when the question has 2+ options and exactly one is correct."""

        return len(self.options) >= 2 and len(self.correct_options) == 1

    def option_by_id(self, option_id: str | None) -> Option | None:
        if not option_id:
            return None
        for option in self.options:
            if option.id == option_id:
                return option
        return None

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "text": self.text,
            "type": "mcq",
            "options": [option.to_dict() for option in self.options],
        }


@dataclass(frozen=True)
class Quiz:
    id: str
    title: str
    questions: tuple[Question, ...] = ()
    course_id: Optional[str] = None
    created_by: Optional[str] = None

    @property
    def question_count(self) -> int:
        return len(self.questions)

    @property
    def answerable_count(self) -> int:
        return sum(1 for question in self.questions if question.is_answerable)

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "title": self.title,
            "course_id": self.course_id,
            "created_by": self.created_by,
            "questions": [question.to_dict() for question in self.questions],
        }


@dataclass(frozen=True)
class Identity:
    """Opaque label for whoever is taking the quiz."""

    user_id: Optional[str] = None
    display_name: Optional[str] = None
    nickname: Optional[str] = None

    @property
    def is_guest(self) -> bool:
        return bool(self.nickname)

    @property
    def label(self) -> Optional[str]:
        if self.nickname:
            return self.nickname
        if self.display_name:
            return self.display_name.split(" ")[0]
        return self.user_id


@dataclass(frozen=True)
class AttemptResult:
    """Outcome of a finished attempt, handed to result persistence."""

    quiz_id: str
    score: int
    total_questions: int
    completed_at: datetime
    quiz_title: str = ""
    course_id: Optional[str] = None
    user_id: Optional[str] = None
    nickname: Optional[str] = None
    is_live: bool = False

    @property
    def percentage(self) -> float:
        if self.total_questions <= 0:
            return 0.0
        return self.score / self.total_questions * 100

    def to_dict(self) -> dict[str, object]:
        return {
            "quiz_id": self.quiz_id,
            "quiz_title": self.quiz_title,
            "course_id": self.course_id,
            "user_id": self.user_id,
            "nickname": self.nickname,
            "score": self.score,
            "total_questions": self.total_questions,
            "completed_at": self.completed_at.isoformat(),
            "is_live": self.is_live,
        }


@dataclass(frozen=True)
class _Row:
    """Accessor over a raw mapping that tolerates camelCase aliases."""

    data: Mapping[str, Any]
    context: str
    aliases: Mapping[str, str] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        if key in self.data:
            return self.data[key]
        alias = self.aliases.get(key)
        if alias and alias in self.data:
            return self.data[alias]
        return default

    def require(self, key: str) -> Any:
        value = self.get(key)
        if value is None:
            raise MalformedResponse(f"{self.context}: missing field '{key}'")
        return value

    def identifier(self, key: str = "id") -> str:
        value = self.require(key)
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            raise MalformedResponse(
                f"{self.context}: '{key}' must be a string or integer"
            )
        text = str(value).strip()
        if not text:
            raise MalformedResponse(f"{self.context}: '{key}' is empty")
        return text

    def text(self, key: str) -> str:
        value = self.require(key)
        if not isinstance(value, str):
            raise MalformedResponse(f"{self.context}: '{key}' must be a string")
        return value

    def optional_identifier(self, key: str) -> Optional[str]:
        if self.get(key) is None:
            return None
        return self.identifier(key)


_ALIASES = {
    "is_correct": "isCorrect",
    "course_id": "courseId",
    "created_by": "createdBy",
    "quiz_id": "quizId",
    "quiz_title": "quizTitle",
    "user_id": "userId",
    "nickname": "playerNickname",
    "total_questions": "totalQuestions",
    "completed_at": "takenAt",
    "is_live": "isQuizWith",
}


def _as_mapping(raw: object, context: str) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise MalformedResponse(
            f"{context}: expected an object, found {type(raw).__name__}"
        )
    return raw


def _as_list(raw: object, context: str) -> Sequence[Any]:
    if not isinstance(raw, list):
        raise MalformedResponse(
            f"{context}: expected a list, found {type(raw).__name__}"
        )
    return raw


def decode_option(raw: object, *, context: str = "option") -> Option:
    row = _Row(_as_mapping(raw, context), context, _ALIASES)
    flag = row.get("is_correct", False)
    if not isinstance(flag, bool):
        raise MalformedResponse(f"{context}: 'is_correct' must be a boolean")
    return Option(id=row.identifier(), text=row.text("text"), is_correct=flag)


def decode_question(raw: object, *, context: str = "question") -> Question:
    """Decode a question row.

    Questions violating the one-correct-option invariant still decode; they
    report ``is_answerable == False`` and never score.
    """

    row = _Row(_as_mapping(raw, context), context, _ALIASES)
    identifier = row.identifier()
    options = tuple(
        decode_option(item, context=f"{context} {identifier} option {index}")
        for index, item in enumerate(
            _as_list(row.get("options", []), f"{context} {identifier}")
        )
    )
    return Question(id=identifier, text=row.text("text"), options=options)


def decode_quiz(raw: object, *, context: str = "quiz") -> Quiz:
    row = _Row(_as_mapping(raw, context), context, _ALIASES)
    identifier = row.identifier()
    questions = tuple(
        decode_question(item, context=f"quiz {identifier} question {index}")
        for index, item in enumerate(
            _as_list(row.get("questions", []), f"quiz {identifier}")
        )
    )
    return Quiz(
        id=identifier,
        title=row.text("title"),
        questions=questions,
        course_id=row.optional_identifier("course_id"),
        created_by=row.optional_identifier("created_by"),
    )


def decode_attempt_result(
    raw: object, *, context: str = "attempt"
) -> AttemptResult:
    row = _Row(_as_mapping(raw, context), context, _ALIASES)
    score = row.require("score")
    total = row.require("total_questions")
    for name, value in (("score", score), ("total_questions", total)):
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise MalformedResponse(
                f"{context}: '{name}' must be a non-negative integer"
            )
    stamp = row.text("completed_at")
    try:
        completed_at = datetime.fromisoformat(stamp.replace("Z", "+00:00"))
    except ValueError as exc:
        raise MalformedResponse(
            f"{context}: invalid timestamp '{stamp}'"
        ) from exc
    if completed_at.tzinfo is None:
        completed_at = completed_at.replace(tzinfo=timezone.utc)
    nickname = row.get("nickname")
    return AttemptResult(
        quiz_id=row.identifier("quiz_id"),
        quiz_title=str(row.get("quiz_title") or ""),
        course_id=row.optional_identifier("course_id"),
        user_id=row.optional_identifier("user_id"),
        nickname=str(nickname) if nickname else None,
        score=score,
        total_questions=total,
        completed_at=completed_at,
        is_live=bool(row.get("is_live", False)),
    )
