"""Shared testing fixtures and stubs for the quizwith test suite."""

from .openai import OpenAIStub, OpenAIStubFactory  # noqa: F401
from .quizzes import (  # noqa: F401
    FIXED_NOW,
    DictProvider,
    RecordingPersistence,
    StrictProvider,
    make_question,
    make_quiz,
    quiz_row,
)
from .workspace import DataHomeBuilder  # noqa: F401

__all__ = [
    "FIXED_NOW",
    "DataHomeBuilder",
    "DictProvider",
    "OpenAIStub",
    "OpenAIStubFactory",
    "RecordingPersistence",
    "StrictProvider",
    "make_question",
    "make_quiz",
    "quiz_row",
]
