"""Core shared helpers for quizwith subcommands."""

from __future__ import annotations

from .ai import AIService, AIUnavailableError, Ready, Unavailable, load_client
from .config import (
    ConfigError,
    QuizwithConfig,
    load_config,
    write_template,
)
from .logging import JsonLogFormatter, configure_logger

__all__ = [
    "AIService",
    "AIUnavailableError",
    "Ready",
    "Unavailable",
    "load_client",
    "ConfigError",
    "QuizwithConfig",
    "load_config",
    "write_template",
    "JsonLogFormatter",
    "configure_logger",
]
