import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from ..core.ai import AIService, AIUnavailableError
from ..core.config import ConfigError
from ..errors import MalformedResponse, StorageError
from ..quiz.generator import GenerationError, QuestionGenerator
from ..quiz.models import Quiz, decode_quiz
from ..runtime import Runtime, build_runtime
from .slugs import slugify


def _err(message: str) -> None:
    sys.stderr.write(f"Error: {message}\n")


def _cmd_list(args: argparse.Namespace, runtime: Runtime, console: Console) -> int:
    if args.course_id:
        quizzes = runtime.quizzes.list_for_course(args.course_id)
    elif args.created_by:
        quizzes = runtime.quizzes.list_for_instructor(args.created_by)
    else:
        quizzes = runtime.quizzes.list_quizzes()
    if not quizzes:
        console.print("No quizzes found.")
        return 1
    table = Table(title="Quizzes", box=box.SIMPLE, expand=False)
    table.add_column("ID")
    table.add_column("Title")
    table.add_column("Course")
    table.add_column("Author")
    table.add_column("Questions", justify="right")
    for quiz in quizzes:
        table.add_row(
            quiz.id,
            quiz.title,
            quiz.course_id or "-",
            quiz.created_by or "-",
            str(quiz.question_count),
        )
    console.print(table)
    return 0


def _cmd_show(args: argparse.Namespace, runtime: Runtime, console: Console) -> int:
    quiz = runtime.quizzes.get_quiz_by_id(args.quiz_id)
    if quiz is None:
        _err(f"Quiz not found: {args.quiz_id}")
        return 1
    console.rule(f"[bold cyan]{quiz.title}[/]")
    for number, question in enumerate(quiz.questions, start=1):
        flag = "" if question.is_answerable else " [yellow](unanswerable)[/]"
        console.print(f"[bold]{number}. {question.text}[/]{flag}")
        for option in question.options:
            marker = "[green]✓[/]" if option.is_correct else " "
            console.print(f"   {marker} {option.text}")
    return 0


def _cmd_import(
    args: argparse.Namespace, runtime: Runtime, console: Console
) -> int:
    path: Path = args.path
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        _err(f"Cannot read {path}: {exc}")
        return 1
    items = payload if isinstance(payload, list) else [payload]
    quizzes = [
        decode_quiz(item, context=f"quiz {index}")
        for index, item in enumerate(items)
    ]
    if args.created_by:
        quizzes = [replace(quiz, created_by=args.created_by) for quiz in quizzes]
    runtime.quizzes.save_quizzes(quizzes)
    for quiz in quizzes:
        unanswerable = quiz.question_count - quiz.answerable_count
        if unanswerable:
            console.print(
                f"[yellow]{quiz.id}: {unanswerable} question(s) have no single "
                "correct option and will never score.[/]"
            )
    console.print(
        f"Imported {len(quizzes)} quiz(zes) -> {runtime.quizzes.path}"
    )
    return 0


def _cmd_delete(
    args: argparse.Namespace, runtime: Runtime, console: Console
) -> int:
    if not runtime.quizzes.delete_quiz(args.quiz_id):
        _err(f"Quiz not found: {args.quiz_id}")
        return 1
    console.print(f"Deleted quiz '{args.quiz_id}'")
    return 0


def _cmd_generate(
    args: argparse.Namespace, runtime: Runtime, console: Console
) -> int:
    settings = runtime.config.ai
    ai = AIService.from_environment(
        api_base=settings.api_base,
        timeout=float(settings.request_timeout_seconds),
    )
    generator = QuestionGenerator(ai, settings)
    if not generator.available:
        _err(f"AI question generation is unavailable: {ai.reason}")
        return 1
    try:
        questions = generator.generate(args.topic, args.count)
    except (GenerationError, MalformedResponse, AIUnavailableError) as exc:
        _err(str(exc))
        return 1

    if args.append_to:
        base = runtime.quizzes.get_quiz_by_id(args.append_to)
        if base is None:
            _err(f"Quiz not found: {args.append_to}")
            return 1
        quiz = replace(base, questions=base.questions + tuple(questions))
    else:
        title = args.title or f"{args.topic.strip()} quiz"
        quiz = Quiz(
            id=args.quiz_id or slugify(title),
            title=title,
            questions=tuple(questions),
            course_id=args.course_id,
            created_by=args.created_by,
        )

    for number, question in enumerate(questions, start=1):
        console.print(f"[bold]{number}. {question.text}[/]")
        for option in question.options:
            marker = "[green]✓[/]" if option.is_correct else " "
            console.print(f"   {marker} {option.text}")
    if args.dry_run:
        console.print("[dim]Dry run: nothing saved.[/]")
        return 0
    runtime.quizzes.save_quiz(quiz)
    console.print(
        f"Saved {len(questions)} question(s) to quiz '{quiz.id}' "
        f"-> {runtime.quizzes.path}"
    )
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="quizwith quizzes",
        description="Author and inspect quizzes",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    p.add_argument("--config", type=Path, help="Path to quizwith.toml")
    p.add_argument("--verbose", action="store_true")
    sub = p.add_subparsers(dest="action", required=True)

    sp_list = sub.add_parser("list", help="List stored quizzes")
    owner = sp_list.add_mutually_exclusive_group()
    owner.add_argument("--course-id")
    owner.add_argument("--created-by", help="Only quizzes by this instructor")

    sp_show = sub.add_parser("show", help="Show a quiz with its answers")
    sp_show.add_argument("quiz_id")

    sp_import = sub.add_parser("import", help="Import quizzes from JSON")
    sp_import.add_argument("path", type=Path)
    sp_import.add_argument(
        "--created-by", help="Instructor id recorded on every imported quiz"
    )

    sp_delete = sub.add_parser("delete", help="Remove a stored quiz")
    sp_delete.add_argument("quiz_id")

    sp_gen = sub.add_parser(
        "generate", help="Draft questions on a topic with AI"
    )
    sp_gen.add_argument("topic")
    sp_gen.add_argument("--count", type=int)
    sp_gen.add_argument("--title")
    sp_gen.add_argument("--quiz-id")
    sp_gen.add_argument("--course-id")
    sp_gen.add_argument("--created-by", help="Instructor id for a new quiz")
    sp_gen.add_argument(
        "--append-to", help="Add the questions to an existing quiz"
    )
    sp_gen.add_argument("--dry-run", action="store_true")
    return p


_HANDLERS = {
    "list": _cmd_list,
    "show": _cmd_show,
    "import": _cmd_import,
    "delete": _cmd_delete,
    "generate": _cmd_generate,
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
    handler = _HANDLERS[args.action]
    try:
        return handler(args, runtime, console or Console())
    except (MalformedResponse, StorageError) as exc:
        runtime.logger.error(
            "Quiz command failed", extra={"action": args.action, "error": str(exc)}
        )
        _err(str(exc))
        return 1
