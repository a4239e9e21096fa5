from .app import (
    QuizPlayApp,
    header_text,
    options_text,
    question_text,
    status_text,
)

__all__ = [
    "QuizPlayApp",
    "header_text",
    "options_text",
    "question_text",
    "status_text",
]
