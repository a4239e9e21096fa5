"""Answer evaluation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .models import Question

__all__ = ["Evaluation", "evaluate"]


@dataclass(frozen=True)
class Evaluation:
    correct: bool

    @property
    def increment(self) -> int:
        return 1 if self.correct else 0


def evaluate(question: Question, selected_option_id: Optional[str]) -> Evaluation:
    """Score ``selected_option_id`` against ``question``.

    ``None`` or an empty id stands for a timeout and is always incorrect.
    With duplicated ids the first matching option decides. Questions that
    break the one-correct-option rule never score.
    """

    if not question.is_answerable:
        return Evaluation(correct=False)
    option = question.option_by_id(selected_option_id)
    return Evaluation(correct=bool(option and option.is_correct))
