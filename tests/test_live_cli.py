import re

from rich.console import Console

from fixtures import make_quiz

from quizwith.live import cli as live_cli


def _run(argv):
    console = Console(record=True, width=100)
    code = live_cli.main(argv, console=console)
    return code, console.export_text()


def _host(data_home):
    data_home.write_quizzes(make_quiz().to_dict())
    code, out = _run(["host", "quiz-1", "--host-user-id", "instructor"])
    assert code == 0
    return re.search(r"PIN: (\d{6})", out).group(1)


def test_host_prints_pin_and_join_hint(data_home):
    data_home.write_quizzes(make_quiz().to_dict())
    code, out = _run(["host", "quiz-1", "--host-user-id", "instructor"])
    assert code == 0
    assert re.search(r"PIN: \d{6}", out)
    assert "Status: waiting" in out
    assert "quizwith live join" in out


def test_host_unknown_quiz(data_home, capsys):
    code, _ = _run(["host", "ghost", "--host-user-id", "instructor"])
    assert code == 1
    assert "Quiz not found: ghost" in capsys.readouterr().err


def test_host_empty_quiz_fails(data_home, capsys):
    data_home.write_quizzes(make_quiz(questions=[]).to_dict())
    code, _ = _run(["host", "quiz-1", "--host-user-id", "instructor"])
    assert code == 1
    assert "no questions" in capsys.readouterr().err


def test_join_and_show(data_home):
    pin = _host(data_home)
    code, out = _run(["join", pin, "Zed"])
    assert code == 0
    assert "Joined successfully!" in out

    code, out = _run(["show", pin])
    assert code == 0
    assert "Players: Zed" in out


def test_join_failures(data_home, capsys):
    pin = _host(data_home)
    _run(["join", pin, "Zed"])
    code, _ = _run(["join", pin, "ZED"])
    assert code == 1
    assert "already taken" in capsys.readouterr().err

    code, _ = _run(["join", "000000", "Amy"])
    assert code == 1
    assert "Invalid or inactive PIN." in capsys.readouterr().err


def test_join_with_play_runs_quiz_as_guest(data_home, monkeypatch):
    pin = _host(data_home)
    calls = []

    def fake_run_play(runtime, quiz_id, identity):
        calls.append((quiz_id, identity))
        return 0

    monkeypatch.setattr("quizwith.play.cli.run_play", fake_run_play)
    code, _ = _run(["join", pin, " Zed ", "--play"])
    assert code == 0
    quiz_id, identity = calls[0]
    assert quiz_id == "quiz-1"
    assert identity.nickname == "Zed"
    assert identity.is_guest is True


def test_start_and_finish(data_home, capsys):
    pin = _host(data_home)
    code, out = _run(["start", pin, "--host-user-id", "instructor"])
    assert code == 0
    assert "Status: active" in out

    code, _ = _run(["start", pin, "--host-user-id", "instructor"])
    assert code == 1
    assert "expected waiting" in capsys.readouterr().err

    code, out = _run(["finish", pin, "--host-user-id", "instructor"])
    assert code == 0
    assert "Status: finished" in out


def test_start_requires_host(data_home, capsys):
    pin = _host(data_home)
    code, _ = _run(["start", pin, "--host-user-id", "intruder"])
    assert code == 1
    assert "Only the host" in capsys.readouterr().err


def test_show_unknown_pin(data_home, capsys):
    code, _ = _run(["show", "123456"])
    assert code == 1
    assert "No live session with PIN 123456." in capsys.readouterr().err
