from fixtures import DictProvider, RecordingPersistence, make_question, make_quiz

from quizwith.play.app import (
    QuizPlayApp,
    _bar,
    header_text,
    options_text,
    question_text,
    status_text,
)
from quizwith.quiz.models import Identity
from quizwith.quiz.reporter import ResultReporter
from quizwith.quiz.scheduler import VirtualScheduler
from quizwith.quiz.session import SessionState


def _app(*quizzes, identity=None, persistence=None):
    scheduler = VirtualScheduler()
    app = QuizPlayApp(
        "quiz-1",
        provider=DictProvider(*quizzes),
        reporter=ResultReporter(persistence or RecordingPersistence()),
        identity=identity,
        scheduler=scheduler,
    )
    return app, scheduler


def test_bindings_cover_number_keys_and_actions():
    keys = [binding[0] for binding in QuizPlayApp.BINDINGS]
    assert keys[:9] == [str(n) for n in range(1, 10)]
    assert {"r", "s", "q"} <= set(keys)


def test_bar_colors_by_remaining_ratio():
    assert _bar(10, 10, width=4) == "[green]████[/green]"
    assert _bar(4, 10, width=10) == "[yellow]████[/yellow]░░░░░░"
    assert _bar(1, 10, width=10) == "[red]█[/red]░░░░░░░░░"
    assert _bar(3, 0) == ""


def test_loading_screen_before_mount():
    app, _ = _app(make_quiz())
    assert app.session.state is SessionState.LOADING
    assert header_text(app.session) == "Loading quiz..."
    assert question_text(app.session) == "Loading quiz..."
    assert options_text(app.session) == ""


def test_question_screen_lists_numbered_options():
    app, scheduler = _app(make_quiz(), identity=Identity(nickname="Zed"))
    app.session.load("quiz-1")
    scheduler.advance(4)

    header = header_text(app.session)
    assert "Sample Quiz" in header
    assert "Question 1 of 3" in header
    assert "26s" in header
    assert "Playing as: Zed" in header
    assert question_text(app.session) == "Question q0?"
    assert options_text(app.session).splitlines() == [
        "1. Choice 1",
        "2. Choice 2",
        "3. Choice 3",
    ]
    assert status_text(app.session) == "Press the number of your answer."


def test_choose_marks_correct_and_selected_options():
    app, _ = _app(make_quiz())
    app.session.load("quiz-1")

    assert app.action_choose(1) is True
    assert app.action_choose(0) is False
    lines = options_text(app.session).splitlines()
    assert lines[0] == "[green]1. Choice 1  ✓[/green]"
    assert lines[1] == "[red]2. Choice 2  ✗[/red]"
    assert lines[2] == "[dim]3. Choice 3[/dim]"
    assert status_text(app.session) == "[red]Incorrect.[/red]"


def test_choose_out_of_range_is_ignored():
    app, _ = _app(make_quiz())
    app.session.load("quiz-1")
    assert app.action_choose(8) is False
    assert app.session.state is SessionState.AWAITING_ANSWER


def test_timeout_and_correct_status_messages():
    app, scheduler = _app(make_quiz())
    app.session.load("quiz-1")
    app.action_choose(0)
    assert status_text(app.session) == "[green]Correct![/green]"
    scheduler.advance(2.5 + 30)
    assert status_text(app.session) == "[red]Time's up![/red]"


def test_unanswerable_question_highlights_no_correct_option():
    quiz = make_quiz(questions=[make_question("q0", correct=(0, 1))])
    app, _ = _app(quiz)
    app.session.load("quiz-1")
    app.action_choose(0)
    assert "✓" not in options_text(app.session)


def test_finish_screen_and_restart():
    app, scheduler = _app(
        make_quiz(count=2),
        identity=Identity(user_id="u-1", display_name="Ada Lovelace"),
    )
    app.session.load("quiz-1")
    assert app.action_restart() is False

    app.action_choose(0)
    scheduler.run_until_idle()

    text = question_text(app.session)
    assert "Quiz Finished!" in text
    assert "Well done, Ada!" in text
    assert "Your Score: [b yellow]1[/b yellow] / 2" in text
    assert status_text(app.session) == "r: try again  q: quit"
    assert options_text(app.session) == ""

    assert app.action_restart() is True
    assert app.session.attempt.score == 0
    assert app.session.state is SessionState.AWAITING_ANSWER


def test_unsaved_score_offers_retry():
    persistence = RecordingPersistence(fail_times=1)
    app, scheduler = _app(make_quiz(count=1), persistence=persistence)
    app.session.load("quiz-1")
    scheduler.run_until_idle()

    assert "could not be saved" in status_text(app.session)
    assert app.action_retry_report() is True
    assert status_text(app.session) == "r: try again  q: quit"
    assert len(persistence.results) == 1


def test_empty_quiz_screen():
    app, _ = _app(make_quiz(questions=[]))
    app.session.load("quiz-1")
    assert "Quiz Not Found or Empty" in question_text(app.session)
    assert status_text(app.session) == "q: quit"
    assert app.action_choose(0) is False
