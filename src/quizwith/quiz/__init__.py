from .models import (
    AttemptResult,
    Identity,
    Option,
    Question,
    Quiz,
    decode_attempt_result,
    decode_question,
    decode_quiz,
)
from .reporter import ResultPersistence, ResultReporter
from .scheduler import Scheduler, TextualScheduler, VirtualScheduler
from .scoring import Evaluation, evaluate
from .session import Attempt, QuizProvider, QuizSession, SessionState
from .timer import QuestionTimer

__all__ = [
    "AttemptResult",
    "Identity",
    "Option",
    "Question",
    "Quiz",
    "decode_attempt_result",
    "decode_question",
    "decode_quiz",
    "ResultPersistence",
    "ResultReporter",
    "Scheduler",
    "TextualScheduler",
    "VirtualScheduler",
    "Evaluation",
    "evaluate",
    "Attempt",
    "QuizProvider",
    "QuizSession",
    "SessionState",
    "QuestionTimer",
]
