from fixtures import make_question

from quizwith.quiz.models import Option, Question
from quizwith.quiz.scoring import evaluate


def test_correct_option_scores_one():
    question = make_question("q1", correct=(1,))
    outcome = evaluate(question, "q1-b")
    assert outcome.correct is True
    assert outcome.increment == 1


def test_wrong_option_scores_zero():
    question = make_question("q1", correct=(1,))
    outcome = evaluate(question, "q1-a")
    assert outcome.correct is False
    assert outcome.increment == 0


def test_timeout_never_scores():
    question = make_question("q1")
    assert evaluate(question, None).correct is False
    assert evaluate(question, "").correct is False


def test_unknown_option_is_incorrect():
    question = make_question("q1")
    assert evaluate(question, "nope").correct is False


def test_question_with_two_correct_options_never_scores():
    question = make_question("q1", correct=(0, 1))
    assert question.is_answerable is False
    assert evaluate(question, "q1-a").correct is False
    assert evaluate(question, "q1-b").correct is False


def test_question_without_correct_option_never_scores():
    question = make_question("q1", correct=())
    assert question.is_answerable is False
    assert evaluate(question, "q1-a").correct is False


def test_single_option_question_is_unanswerable():
    question = make_question("q1", option_count=1)
    assert question.is_answerable is False
    assert evaluate(question, "q1-a").correct is False


def test_duplicate_option_ids_first_match_decides():
    question = Question(
        id="dup",
        text="Pick",
        options=(
            Option(id="x", text="first", is_correct=False),
            Option(id="x", text="second", is_correct=True),
            Option(id="y", text="third", is_correct=False),
        ),
    )
    assert question.is_answerable is True
    assert evaluate(question, "x").correct is False
