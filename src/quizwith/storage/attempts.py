"""JSONL-backed attempt history."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional
from uuid import uuid4

from ..quiz.models import AttemptResult, decode_attempt_result
from .jsonl import append_jsonl, read_jsonl

__all__ = ["StoredAttempt", "AttemptStore"]


@dataclass(frozen=True)
class StoredAttempt:
    id: str
    result: AttemptResult

    @property
    def percentage(self) -> float:
        return self.result.percentage


class AttemptStore:
    """Append-only log of finished attempts in ``attempts.jsonl``."""

    def __init__(
        self,
        path: Path,
        *,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self.path = Path(path)
        self._id_factory = id_factory or (lambda: uuid4().hex)

    def submit_attempt_result(self, result: AttemptResult) -> StoredAttempt:
        stored = StoredAttempt(id=self._id_factory(), result=result)
        row = {"id": stored.id, **result.to_dict()}
        row["percentage"] = round(stored.percentage, 2)
        append_jsonl(self.path, row)
        return stored

    def list_all(self) -> List[StoredAttempt]:
        return [
            StoredAttempt(id=str(row.get("id", "")), result=decode_attempt_result(row))
            for row in read_jsonl(self.path)
        ]

    def _filtered(
        self, predicate: Callable[[AttemptResult], bool]
    ) -> List[StoredAttempt]:
        return [item for item in self.list_all() if predicate(item.result)]

    def list_for_user(
        self, user_id: str, *, include_live: bool = False
    ) -> List[StoredAttempt]:
        return self._filtered(
            lambda r: r.user_id == user_id and (include_live or not r.is_live)
        )

    def list_for_nickname(self, nickname: str) -> List[StoredAttempt]:
        return self._filtered(lambda r: r.nickname == nickname)

    def list_for_quiz(self, quiz_id: str) -> List[StoredAttempt]:
        return self._filtered(lambda r: r.quiz_id == quiz_id)

    def list_for_quizzes(self, quiz_ids: Iterable[str]) -> List[StoredAttempt]:
        wanted = set(quiz_ids)
        return self._filtered(lambda r: r.quiz_id in wanted)
