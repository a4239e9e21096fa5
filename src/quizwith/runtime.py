"""Wire config, logging and stores together for the command-line tools."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .core.config import QuizwithConfig, load_config
from .core.logging import configure_logger
from .live.sessions import LiveSessionStore
from .storage.attempts import AttemptStore
from .storage.quizzes import QuizStore

__all__ = ["Runtime", "build_runtime"]

LOGGER_NAME = "quizwith"


@dataclass(frozen=True)
class Runtime:
    config: QuizwithConfig
    logger: logging.Logger
    log_path: Path
    quizzes: QuizStore
    attempts: AttemptStore
    live: LiveSessionStore


def build_runtime(
    *,
    config_path: Optional[Path] = None,
    verbose: bool = False,
    env: Mapping[str, str] | None = None,
) -> Runtime:
    """Load configuration and open the stores under the data home.

    Raises :class:`~quizwith.core.config.ConfigError` for bad settings.
    """

    config = load_config(explicit_path=config_path, env=env)
    home = config.data_home
    logger, log_path = configure_logger(
        LOGGER_NAME,
        log_dir=config.log_dir,
        level=config.logging.level,
        verbose=verbose or config.logging.verbose,
    )
    logger.debug(
        "Runtime ready",
        extra={"data_home": home, "config": config.source},
    )
    return Runtime(
        config=config,
        logger=logger,
        log_path=log_path,
        quizzes=QuizStore(home / "quizzes.jsonl"),
        attempts=AttemptStore(home / "attempts.jsonl"),
        live=LiveSessionStore(home / "live_sessions.jsonl"),
    )
