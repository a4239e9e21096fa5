from __future__ import annotations

from quizwith import workspace
from quizwith.core.config import load_config


def test_init_creates_data_home_and_template(data_home, capsys):
    assert workspace.main([]) == 0
    out = capsys.readouterr().out

    assert f"Data home: {data_home.root.resolve()}" in out
    assert "Created config template" in out
    assert data_home.config_path.exists()
    assert (data_home.root / "logs").is_dir()
    for name in workspace.DATA_FILES:
        assert (data_home.root / name).exists()
    cfg = load_config()
    assert cfg.source == data_home.config_path.resolve()


def test_init_keeps_existing_config_unless_forced(data_home, capsys):
    data_home.write_config("[session]\nquestion_seconds = 10\n")

    workspace.main([])
    assert "Config already exists" in capsys.readouterr().out
    assert "question_seconds = 10" in data_home.config_path.read_text()

    workspace.main(["--force"])
    assert "Created config template" in capsys.readouterr().out
    assert "question_seconds = 30" in data_home.config_path.read_text()


def test_init_with_explicit_path(tmp_path, capsys):
    target = tmp_path / "custom-home"
    home, config_path, written = workspace.init_workspace(path=target, env={})
    assert home == target.resolve()
    assert config_path == target.resolve() / "config" / "quizwith.toml"
    assert written is True

    workspace.main(["--path", str(target)])
    out = capsys.readouterr().out
    assert f"QUIZWITH_DATA_HOME={target.resolve()}" in out


def test_init_respects_config_env_override(tmp_path):
    env = {
        "QUIZWITH_DATA_HOME": str(tmp_path / "home"),
        "QUIZWITH_CONFIG": str(tmp_path / "elsewhere" / "q.toml"),
    }
    home, config_path, _ = workspace.init_workspace(env=env)
    assert home == (tmp_path / "home").resolve()
    assert config_path == (tmp_path / "elsewhere" / "q.toml").resolve()
    assert config_path.exists()
