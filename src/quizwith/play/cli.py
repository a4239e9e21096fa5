"""CLI entry point for ``quizwith play``."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from ..core.config import ConfigError
from ..quiz.models import Identity
from ..quiz.reporter import ResultReporter
from ..runtime import Runtime, build_runtime
from .app import QuizPlayApp


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quizwith play",
        description="Take a timed quiz in the terminal.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("quiz_id", help="Identifier of the quiz to play")
    who = parser.add_mutually_exclusive_group()
    who.add_argument("--user-id", help="Signed-in user id to record")
    who.add_argument("--nickname", help="Guest nickname (live sessions)")
    parser.add_argument("--name", help="Display name for a signed-in user")
    parser.add_argument("--config", type=Path, help="Path to quizwith.toml")
    parser.add_argument(
        "--verbose", action="store_true", help="Mirror logs to stderr"
    )
    return parser


def identity_from_args(args: argparse.Namespace) -> Identity:
    return Identity(
        user_id=getattr(args, "user_id", None),
        display_name=getattr(args, "name", None),
        nickname=getattr(args, "nickname", None),
    )


def build_app(
    runtime: Runtime, quiz_id: str, identity: Identity
) -> QuizPlayApp:
    settings = runtime.config.session
    return QuizPlayApp(
        quiz_id,
        provider=runtime.quizzes,
        reporter=ResultReporter(runtime.attempts),
        identity=identity,
        question_seconds=settings.question_seconds,
        lock_delay_seconds=settings.lock_delay_seconds,
    )


def run_play(runtime: Runtime, quiz_id: str, identity: Identity) -> int:
    runtime.logger.info(
        "Starting quiz",
        extra={"quiz_id": quiz_id, "guest": identity.is_guest},
    )
    app = build_app(runtime, quiz_id, identity)
    app.run()
    result = app.session.last_result
    if result is None:
        reason = app.session.unavailable_reason
        if reason:
            sys.stderr.write(f"{reason}\n")
            return 1
        return 0
    print(f"Score: {result.score}/{result.total_questions}")
    if app.session.pending_result is not None:
        sys.stderr.write(
            f"Warning: score was not saved. See log: {runtime.log_path}\n"
        )
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    try:
        runtime = build_runtime(config_path=args.config, verbose=args.verbose)
    except ConfigError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 2
    return run_play(runtime, args.quiz_id, identity_from_args(args))


if __name__ == "__main__":  # pragma: no cover - manual execution
    raise SystemExit(main())
