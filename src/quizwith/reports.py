"""CLI for ``quizwith attempts``: list finished attempts."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from collections import defaultdict
from typing import Dict, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from .core.config import ConfigError
from .errors import MalformedResponse, StorageError
from .runtime import build_runtime
from .storage.attempts import AttemptStore, StoredAttempt
from .storage.quizzes import QuizStore


def select_attempts(
    store: AttemptStore,
    *,
    user_id: Optional[str] = None,
    nickname: Optional[str] = None,
    quiz_id: Optional[str] = None,
    include_live: bool = False,
) -> List[StoredAttempt]:
    if user_id:
        return store.list_for_user(user_id, include_live=include_live)
    if nickname:
        return store.list_for_nickname(nickname)
    if quiz_id:
        return store.list_for_quiz(quiz_id)
    return store.list_all()


def select_instructor_attempts(
    quizzes: QuizStore, attempts: AttemptStore, instructor_id: str
) -> List[StoredAttempt]:
    """Attempts on every quiz authored by ``instructor_id``, live ones included."""

    owned = quizzes.list_for_instructor(instructor_id)
    return attempts.list_for_quizzes(quiz.id for quiz in owned)


def render_attempts(console: Console, attempts: Sequence[StoredAttempt]) -> None:
    table = Table(title="Quiz attempts", box=box.SIMPLE, expand=False)
    table.add_column("Taken at")
    table.add_column("Quiz")
    table.add_column("Player")
    table.add_column("Score", justify="right")
    table.add_column("%", justify="right")
    table.add_column("Live", justify="center")
    for item in sorted(attempts, key=lambda a: a.result.completed_at):
        result = item.result
        player = result.nickname or result.user_id or "-"
        table.add_row(
            result.completed_at.strftime("%Y-%m-%d %H:%M"),
            result.quiz_title or result.quiz_id,
            player,
            f"{result.score}/{result.total_questions}",
            f"{item.percentage:.0f}",
            "✓" if result.is_live else "",
        )
    console.print(table)
    if attempts:
        average = sum(a.percentage for a in attempts) / len(attempts)
        console.print(f"Average: {average:.1f}% over {len(attempts)} attempt(s)")


def render_quiz_averages(
    console: Console, attempts: Sequence[StoredAttempt]
) -> None:
    grouped: Dict[str, List[StoredAttempt]] = defaultdict(list)
    for item in attempts:
        grouped[item.result.quiz_id].append(item)
    table = Table(title="Per-quiz averages", box=box.SIMPLE, expand=False)
    table.add_column("Quiz")
    table.add_column("Attempts", justify="right")
    table.add_column("Average %", justify="right")
    for quiz_id in sorted(grouped):
        items = grouped[quiz_id]
        title = items[-1].result.quiz_title or quiz_id
        average = sum(a.percentage for a in items) / len(items)
        table.add_row(title, str(len(items)), f"{average:.1f}")
    console.print(table)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quizwith attempts",
        description="Show recorded quiz attempts.",
    )
    who = parser.add_mutually_exclusive_group()
    who.add_argument("--user-id")
    who.add_argument("--nickname")
    who.add_argument("--quiz-id")
    who.add_argument(
        "--instructor-id",
        help="Attempts on this instructor's quizzes, with per-quiz averages",
    )
    parser.add_argument(
        "--include-live",
        action="store_true",
        help="With --user-id, also list live-session attempts",
    )
    parser.add_argument("--config", type=Path)
    return parser


def main(
    argv: Optional[Sequence[str]] = None, *, console: Optional[Console] = None
) -> int:
    args = build_arg_parser().parse_args(argv)
    try:
        runtime = build_runtime(config_path=args.config)
    except ConfigError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 2
    out = console or Console()
    try:
        if args.instructor_id:
            attempts = select_instructor_attempts(
                runtime.quizzes, runtime.attempts, args.instructor_id
            )
        else:
            attempts = select_attempts(
                runtime.attempts,
                user_id=args.user_id,
                nickname=args.nickname,
                quiz_id=args.quiz_id,
                include_live=args.include_live,
            )
    except (MalformedResponse, StorageError) as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 1
    if not attempts:
        out.print("No attempts recorded yet.")
        return 1
    render_attempts(out, attempts)
    if args.instructor_id:
        render_quiz_averages(out, attempts)
    return 0
