from typing import Optional

from textual.app import App, ComposeResult, ScreenStackError
from textual.containers import Vertical
from textual.css.query import NoMatches
from textual.widgets import Footer, Static

from ..quiz.models import Identity
from ..quiz.reporter import ResultReporter
from ..quiz.scheduler import Scheduler, TextualScheduler
from ..quiz.session import QuizProvider, QuizSession, SessionState

MAX_OPTION_KEYS = 9


def _bar(remaining: int, total: int, width: int = 30) -> str:
    if total <= 0:
        return ""
    ratio = max(0.0, min(1.0, remaining / total))
    filled = round(ratio * width)
    if ratio > 0.6:
        color = "green"
    elif ratio > 0.3:
        color = "yellow"
    else:
        color = "red"
    return f"[{color}]{'█' * filled}[/{color}]{'░' * (width - filled)}"


def header_text(session: QuizSession) -> str:
    quiz = session.quiz
    if quiz is None:
        return "Loading quiz..."
    attempt = session.attempt
    parts = [f"[b]{quiz.title}[/b]", f"Score: {attempt.score}"]
    if session.state in (SessionState.AWAITING_ANSWER, SessionState.LOCKED):
        parts.append(
            f"Question {attempt.question_index + 1} of {session.total_questions}"
        )
        parts.append(f"{attempt.remaining}s")
    label = session.identity.label
    if session.identity.is_guest and label:
        parts.append(f"Playing as: {label}")
    line = "  |  ".join(parts)
    if session.state is SessionState.AWAITING_ANSWER:
        line += "\n" + _bar(attempt.remaining, session.question_seconds)
    return line


def question_text(session: QuizSession) -> str:
    state = session.state
    if state is SessionState.LOADING:
        return "Loading quiz..."
    if state is SessionState.EMPTY:
        return (
            "[b yellow]Quiz Not Found or Empty[/b yellow]\n"
            "This quiz is currently unavailable or has no questions."
        )
    if state is SessionState.FINISHED:
        attempt = session.attempt
        label = session.identity.label
        greeting = f"Well done, {label}!\n" if label else ""
        return (
            "[b]Quiz Finished![/b]\n"
            f"{greeting}"
            f"Your Score: [b yellow]{attempt.score}[/b yellow] / "
            f"{session.total_questions}"
        )
    question = session.current_question
    return question.text if question else ""


def options_text(session: QuizSession) -> str:
    question = session.current_question
    if question is None:
        return ""
    attempt = session.attempt
    lines = []
    for index, option in enumerate(question.options[:MAX_OPTION_KEYS], start=1):
        line = f"{index}. {option.text}"
        if attempt.answered:
            if option.is_correct and question.is_answerable:
                line = f"[green]{line}  ✓[/green]"
            elif option.id == attempt.selected_option_id:
                line = f"[red]{line}  ✗[/red]"
            else:
                line = f"[dim]{line}[/dim]"
        lines.append(line)
    return "\n".join(lines)


def status_text(session: QuizSession) -> str:
    state = session.state
    attempt = session.attempt
    if state is SessionState.LOCKED:
        if attempt.selected_option_id is None:
            return "[red]Time's up![/red]"
        if attempt.last_correct:
            return "[green]Correct![/green]"
        return "[red]Incorrect.[/red]"
    if state is SessionState.FINISHED:
        if session.pending_result is not None:
            return (
                "[yellow]Your score could not be saved. "
                "Press s to retry.[/yellow]  r: try again  q: quit"
            )
        return "r: try again  q: quit"
    if state is SessionState.EMPTY:
        return "q: quit"
    if state is SessionState.AWAITING_ANSWER:
        return "Press the number of your answer."
    return ""


class QuizPlayApp(App):
    CSS = """
#header { padding: 1 2; background: $boost; }
#question { padding: 1 2; text-style: bold; }
#options { padding: 0 4; }
#status { padding: 1 2; }
"""
    BINDINGS = [
        *[
            (str(n), f"choose({n - 1})", f"Option {n}")
            for n in range(1, MAX_OPTION_KEYS + 1)
        ],
        ("r", "restart", "Try again"),
        ("s", "retry_report", "Retry save"),
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        quiz_id: str,
        *,
        provider: QuizProvider,
        reporter: Optional[ResultReporter] = None,
        identity: Optional[Identity] = None,
        question_seconds: int = 30,
        lock_delay_seconds: float = 2.5,
        scheduler: Optional[Scheduler] = None,
    ):
        super().__init__()
        self._quiz_id = quiz_id
        self.session = QuizSession(
            scheduler or TextualScheduler(self),
            provider=provider,
            reporter=reporter,
            identity=identity,
            question_seconds=question_seconds,
            lock_delay_seconds=lock_delay_seconds,
            on_change=self._on_session_change,
        )

    def compose(self) -> ComposeResult:
        with Vertical(id="stage"):
            yield Static(header_text(self.session), id="header")
            yield Static(question_text(self.session), id="question")
            yield Static(options_text(self.session), id="options")
            yield Static(status_text(self.session), id="status")
        yield Footer()

    def on_mount(self) -> None:
        self.session.load(self._quiz_id)

    def on_unmount(self) -> None:
        self.session.close()

    # Actions also work on an app that is not running
    def action_choose(self, index: int) -> bool:
        question = self.session.current_question
        if question is None or not 0 <= index < len(question.options):
            return False
        return self.session.select(question.options[index].id)

    def action_restart(self) -> bool:
        if self.session.state is not SessionState.FINISHED:
            return False
        return self.session.restart()

    def action_retry_report(self) -> bool:
        return self.session.retry_report()

    def _on_session_change(self, session: QuizSession) -> None:
        panels = (
            ("#header", header_text),
            ("#question", question_text),
            ("#options", options_text),
            ("#status", status_text),
        )
        for selector, render in panels:
            try:
                widget = self.query_one(selector, Static)
            except (NoMatches, ScreenStackError):
                return
            widget.update(render(session))
