from .attempts import AttemptStore, StoredAttempt
from .jsonl import append_jsonl, read_jsonl, write_jsonl
from .quizzes import QuizStore

__all__ = [
    "AttemptStore",
    "StoredAttempt",
    "QuizStore",
    "append_jsonl",
    "read_jsonl",
    "write_jsonl",
]
