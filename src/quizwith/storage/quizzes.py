"""JSONL-backed quiz provider."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional

from ..quiz.models import Quiz, decode_quiz
from .jsonl import read_jsonl, write_jsonl

__all__ = ["QuizStore"]

logger = logging.getLogger(__name__)


class QuizStore:
    """Quizzes stored one per line in ``quizzes.jsonl``.

    Rows are decoded on every read, so a hand-edited file with a broken row
    raises :class:`~quizwith.errors.MalformedResponse` at the lookup that
    touches it.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _rows(self) -> List[dict]:
        return read_jsonl(self.path)

    def get_quiz_by_id(self, quiz_id: str) -> Optional[Quiz]:
        for row in self._rows():
            if str(row.get("id")) == str(quiz_id):
                return decode_quiz(row)
        return None

    def list_quizzes(self) -> List[Quiz]:
        return [decode_quiz(row) for row in self._rows()]

    def list_for_course(self, course_id: str) -> List[Quiz]:
        return [
            quiz for quiz in self.list_quizzes() if quiz.course_id == course_id
        ]

    def list_for_instructor(self, instructor_id: str) -> List[Quiz]:
        return [
            quiz
            for quiz in self.list_quizzes()
            if quiz.created_by == instructor_id
        ]

    def save_quiz(self, quiz: Quiz) -> Quiz:
        """Insert or replace ``quiz`` by id."""

        self.save_quizzes([quiz])
        return quiz

    def save_quizzes(self, quizzes: Iterable[Quiz]) -> List[Quiz]:
        """Insert or replace every quiz by id with a single file write."""

        saved = list(quizzes)
        rows = self._rows()
        positions: dict[str, int] = {}
        for index, row in enumerate(rows):
            positions.setdefault(str(row.get("id")), index)
        for quiz in saved:
            index = positions.get(quiz.id)
            replaced = index is not None
            if replaced:
                rows[index] = quiz.to_dict()
            else:
                positions[quiz.id] = len(rows)
                rows.append(quiz.to_dict())
            logger.info(
                "Saved quiz",
                extra={
                    "quiz_id": quiz.id,
                    "question_count": quiz.question_count,
                    "replaced": replaced,
                },
            )
        write_jsonl(self.path, rows)
        return saved

    def delete_quiz(self, quiz_id: str) -> bool:
        rows = self._rows()
        kept = [row for row in rows if str(row.get("id")) != str(quiz_id)]
        if len(kept) == len(rows):
            return False
        write_jsonl(self.path, kept)
        logger.info("Deleted quiz", extra={"quiz_id": quiz_id})
        return True
