"""CLI for live "QuizWith" sessions."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console
from rich.panel import Panel

from ..core.config import ConfigError
from ..errors import LiveSessionError, MalformedResponse, StorageError
from ..quiz.models import Identity
from ..runtime import Runtime, build_runtime
from .sessions import LiveSession


def _err(message: str) -> None:
    sys.stderr.write(f"Error: {message}\n")


def _render_session(console: Console, session: LiveSession) -> None:
    players = ", ".join(session.players) if session.players else "(none yet)"
    console.print(
        Panel(
            f"PIN: [bold yellow]{session.pin}[/]\n"
            f"Quiz: {session.quiz_title} ({session.quiz_id})\n"
            f"Status: {session.status.value}\n"
            f"Players: {players}",
            title="QuizWith session",
            border_style="cyan",
        )
    )


def _cmd_host(args: argparse.Namespace, runtime: Runtime, console: Console) -> int:
    quiz = runtime.quizzes.get_quiz_by_id(args.quiz_id)
    if quiz is None:
        _err(f"Quiz not found: {args.quiz_id}")
        return 1
    session = runtime.live.host_session(quiz, args.host_user_id)
    _render_session(console, session)
    console.print(
        f"Players join with: quizwith live join {session.pin} <nickname> --play"
    )
    return 0


def _cmd_join(args: argparse.Namespace, runtime: Runtime, console: Console) -> int:
    result = runtime.live.join_session(args.pin, args.nickname)
    if not result.success:
        _err(result.message)
        return 1
    console.print(f"[green]{result.message}[/] Quiz: {result.quiz_id}")
    if not args.play:
        return 0
    from ..play.cli import run_play

    return run_play(
        runtime,
        str(result.quiz_id),
        Identity(nickname=args.nickname.strip()),
    )


def _cmd_show(args: argparse.Namespace, runtime: Runtime, console: Console) -> int:
    session = runtime.live.get_session_by_pin(args.pin)
    if session is None:
        _err(f"No live session with PIN {args.pin}.")
        return 1
    _render_session(console, session)
    return 0


def _cmd_start(args: argparse.Namespace, runtime: Runtime, console: Console) -> int:
    _render_session(console, runtime.live.start_session(args.pin, args.host_user_id))
    return 0


def _cmd_finish(
    args: argparse.Namespace, runtime: Runtime, console: Console
) -> int:
    _render_session(
        console, runtime.live.finish_session(args.pin, args.host_user_id)
    )
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="quizwith live",
        description="Host and join live quiz sessions",
    )
    p.add_argument("--config", type=Path, help="Path to quizwith.toml")
    p.add_argument("--verbose", action="store_true")
    sub = p.add_subparsers(dest="action", required=True)

    sp_host = sub.add_parser("host", help="Open a session for a quiz")
    sp_host.add_argument("quiz_id")
    sp_host.add_argument("--host-user-id", required=True)

    sp_join = sub.add_parser("join", help="Join a waiting session by PIN")
    sp_join.add_argument("pin")
    sp_join.add_argument("nickname")
    sp_join.add_argument(
        "--play", action="store_true", help="Start playing right away"
    )

    sp_show = sub.add_parser("show", help="Show a session by PIN")
    sp_show.add_argument("pin")

    for name, help_text in (
        ("start", "Close the lobby and start the session"),
        ("finish", "Mark the session finished"),
    ):
        sp = sub.add_parser(name, help=help_text)
        sp.add_argument("pin")
        sp.add_argument("--host-user-id", required=True)
    return p


_HANDLERS = {
    "host": _cmd_host,
    "join": _cmd_join,
    "show": _cmd_show,
    "start": _cmd_start,
    "finish": _cmd_finish,
}


def main(
    argv: Optional[Sequence[str]] = None, *, console: Optional[Console] = None
) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    try:
        runtime = build_runtime(config_path=args.config, verbose=args.verbose)
    except ConfigError as exc:
        _err(str(exc))
        return 2
    try:
        return _HANDLERS[args.action](args, runtime, console or Console())
    except (LiveSessionError, MalformedResponse, StorageError) as exc:
        runtime.logger.warning(
            "Live session command failed",
            extra={"action": args.action, "error": str(exc)},
        )
        _err(str(exc))
        return 1
