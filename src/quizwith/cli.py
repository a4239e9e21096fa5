"""Unified ``quizwith`` command."""

from __future__ import annotations

import inspect
import sys
from dataclasses import dataclass
from importlib import import_module, metadata
from typing import Callable, Mapping, Optional, Sequence


CommandHandler = Callable[[Sequence[str]], int]


@dataclass(frozen=True)
class CommandSpec:
    """A ``quizwith`` subcommand backed by a module's ``main``."""

    name: str
    summary: str
    module: str
    is_tui: bool = False

    def run(self, argv: Sequence[str]) -> int:
        return _run_module_command(
            self.module, "main", f"quizwith {self.name}", argv
        )


_COMMAND_SPECS: Sequence[CommandSpec] = (
    CommandSpec(
        name="init",
        summary="Create the data directory and a config template.",
        module="quizwith.workspace",
    ),
    CommandSpec(
        name="play",
        summary="Take a quiz with a per-question countdown.",
        module="quizwith.play.cli",
        is_tui=True,
    ),
    CommandSpec(
        name="quizzes",
        summary="List, show, import and generate quizzes.",
        module="quizwith.authoring.cli",
    ),
    CommandSpec(
        name="attempts",
        summary="Show recorded quiz attempts and scores.",
        module="quizwith.reports",
    ),
    CommandSpec(
        name="live",
        summary="Host or join a live session by PIN.",
        module="quizwith.live.cli",
    ),
)

COMMANDS: Mapping[str, CommandSpec] = {
    spec.name: spec for spec in _COMMAND_SPECS
}


def format_command_table() -> str:
    """Return the command listing used by ``list`` and the usage banner."""

    width = max((len(spec.name) for spec in _COMMAND_SPECS), default=0)
    lines = ["Available commands:"]
    for spec in _COMMAND_SPECS:
        suffix = " (TUI)" if spec.is_tui else ""
        lines.append(f"  {spec.name.ljust(width)}  {spec.summary}{suffix}")
    return "\n".join(lines)


def format_usage() -> str:
    return "\n".join(
        [
            "Usage: quizwith <command> [args...]",
            "Run `quizwith list` for commands or "
            "`quizwith help <name>` for details.",
            "",
            format_command_table(),
        ]
    )


def _print(
    text: str, *, stream: Optional[Callable[[str], None]] = None
) -> None:
    target = stream if stream is not None else sys.stdout.write
    if text:
        target(text + "\n")


def _unknown(command: str) -> int:
    _print(f"Unknown command '{command}'.", stream=sys.stderr.write)
    _print(format_command_table(), stream=sys.stderr.write)
    return 2


def _handle_version() -> int:
    try:
        version = metadata.version("quizwith")
    except metadata.PackageNotFoundError:
        version = "unknown"
    _print(version)
    return 0


def _handle_help(argv: Sequence[str]) -> int:
    if not argv:
        _print(format_usage())
        return 0
    spec = COMMANDS.get(argv[0])
    if spec is None:
        return _unknown(argv[0])
    _print(f"{spec.name}: {spec.summary}")
    _print(f"Run `quizwith {spec.name} --help` for command options.")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(argv if argv is not None else sys.argv[1:])
    if not args:
        _print(format_usage())
        return 2

    head, *tail = args
    if head in ("-h", "--help"):
        _print(format_usage())
        return 0
    if head in ("-V", "--version", "version"):
        return _handle_version()
    if head == "list":
        _print(format_command_table())
        return 0
    if head == "help":
        return _handle_help(tail)

    spec = COMMANDS.get(head)
    if spec is None:
        return _unknown(head)
    return spec.run(tail)


def _run_module_command(
    module_name: str,
    func_name: str,
    prog_name: str,
    argv: Sequence[str],
) -> int:
    target = getattr(import_module(module_name), func_name)
    return _invoke_main(target, prog_name, argv)


def _invoke_main(
    func: Callable[..., object], prog_name: str, argv: Sequence[str]
) -> int:
    args = list(argv)
    old_argv = sys.argv
    sys.argv = [prog_name, *args]
    try:
        result = func(args) if _accepts_argv(func) else func()
    except SystemExit as exc:
        return _normalize_system_exit(exc)
    finally:
        sys.argv = old_argv
    if isinstance(result, int) and not isinstance(result, bool):
        return result
    return 0


def _accepts_argv(func: Callable[..., object]) -> bool:
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        return False
    for param in signature.parameters.values():
        if param.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
            inspect.Parameter.VAR_POSITIONAL,
        ):
            return True
    return False


def _normalize_system_exit(exc: SystemExit) -> int:
    code = exc.code
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    if isinstance(code, str):
        _print(code, stream=sys.stderr.write)
    return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
