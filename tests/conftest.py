from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
ROOT = TESTS_DIR.parent
for extra in (TESTS_DIR, ROOT / "src"):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from fixtures import DataHomeBuilder, OpenAIStubFactory  # noqa: E402
from quizwith.quiz.scheduler import VirtualScheduler  # noqa: E402


@pytest.fixture
def openai_factory(monkeypatch: pytest.MonkeyPatch) -> OpenAIStubFactory:
    """Patch the OpenAI client class with an inspectable stub factory."""

    factory = OpenAIStubFactory()
    monkeypatch.setattr("quizwith.core.ai.OpenAI", factory)
    return factory


@pytest.fixture
def scheduler() -> VirtualScheduler:
    return VirtualScheduler()


@pytest.fixture
def data_home(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> DataHomeBuilder:
    """Point QUIZWITH_DATA_HOME at a per-test directory."""

    home = tmp_path / "quizwith-data"
    home.mkdir()
    monkeypatch.setenv("QUIZWITH_DATA_HOME", str(home))
    monkeypatch.delenv("QUIZWITH_CONFIG", raising=False)
    return DataHomeBuilder(home)


@pytest.fixture(autouse=True)
def _reset_quizwith_logger() -> Iterator[None]:
    yield
    logger = logging.getLogger("quizwith")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
