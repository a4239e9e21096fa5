"""Configuration management for quizwith.

Settings live in a single TOML file grouped by concern. Defaults are merged
with the user's file, unknown keys are rejected, and the merged tree is
validated into frozen dataclasses so callers never read raw mappings.
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional

try:  # Python 3.11+
    import tomllib
except ModuleNotFoundError as exc:  # pragma: no cover - should never happen
    raise RuntimeError("Python 3.11+ required for tomllib support") from exc

from ..errors import QuizwithError

__all__ = [
    "CONFIG_PATH_ENV",
    "DATA_HOME_ENV",
    "ConfigError",
    "PathsConfig",
    "SessionConfig",
    "AIConfig",
    "LoggingConfig",
    "QuizwithConfig",
    "load_config",
    "default_tree",
    "config_template",
    "write_template",
    "resolve_data_home",
    "resolve_config_path",
]

CONFIG_PATH_ENV = "QUIZWITH_CONFIG"
DATA_HOME_ENV = "QUIZWITH_DATA_HOME"
DEFAULT_DATA_HOME = Path.home() / ".quizwith-data"


class ConfigError(QuizwithError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class PathsConfig:
    data_home_override: Optional[Path]
    default_home: Path = DEFAULT_DATA_HOME


@dataclass(frozen=True)
class SessionConfig:
    question_seconds: int
    lock_delay_seconds: float


@dataclass(frozen=True)
class AIConfig:
    model: str
    temperature: float
    max_tokens: int
    question_count: int
    api_base: Optional[str]
    request_timeout_seconds: int


@dataclass(frozen=True)
class LoggingConfig:
    level: str
    verbose: bool


@dataclass(frozen=True)
class QuizwithConfig:
    paths: PathsConfig
    session: SessionConfig
    ai: AIConfig
    logging: LoggingConfig
    source: Optional[Path] = None

    @property
    def data_home(self) -> Path:
        """Return the effective data home considering overrides."""

        if self.paths.data_home_override is not None:
            return self.paths.data_home_override
        return self.paths.default_home

    @property
    def log_dir(self) -> Path:
        return self.data_home / "logs"


def _deepcopy_defaults() -> Dict[str, Any]:
    return copy.deepcopy(_DEFAULTS)


def _merge_dict(
    base: MutableMapping[str, Any],
    override: Mapping[str, Any],
    *,
    path: str = "",
) -> None:
    for key, value in override.items():
        if key not in base:
            dotted = f"{path}{key}" if path else key
            raise ConfigError(f"Unknown configuration key '{dotted}'.")
        base_value = base[key]
        if isinstance(base_value, MutableMapping):
            if not isinstance(value, Mapping):
                dotted = f"{path}{key}" if path else key
                raise ConfigError(
                    "Expected table for '{0}', found {1}.".format(
                        dotted,
                        type(value).__name__,
                    )
                )
            _merge_dict(base_value, value, path=f"{path}{key}.")
        else:
            base[key] = value


def _require_positive_int(value: Any, *, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"'{field}' must be a positive integer.")
    return value


def _require_bool(value: Any, *, field: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"'{field}' must be a boolean.")
    return value


def _require_float_range(
    value: Any, *, field: str, min_value: float, max_value: float
) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"'{field}' must be a number.")
    number = float(value)
    if not (min_value <= number <= max_value):
        raise ConfigError(
            f"'{field}' must be between {min_value} and {max_value}."
        )
    return number


def _require_string(value: Any, *, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'{field}' must be a non-empty string.")
    return value.strip()


def _coerce_optional_string(value: Any, *, field: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'{field}' must be a non-empty string when set.")
    return value.strip()


def _coerce_optional_path(value: Any, *, field: str) -> Optional[Path]:
    if value is None:
        return None
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'{field}' must be a non-empty string when set.")
    return Path(value).expanduser().resolve()


def _build_paths(
    section: Mapping[str, Any], default_home: Optional[Path] = None
) -> PathsConfig:
    override = _coerce_optional_path(
        section.get("data_home"),
        field="paths.data_home",
    )
    return PathsConfig(
        data_home_override=override,
        default_home=default_home or resolve_data_home(),
    )


def _build_session(section: Mapping[str, Any]) -> SessionConfig:
    question_seconds = _require_positive_int(
        section.get("question_seconds"),
        field="session.question_seconds",
    )
    lock_delay_seconds = _require_float_range(
        section.get("lock_delay_seconds"),
        field="session.lock_delay_seconds",
        min_value=0.0,
        max_value=60.0,
    )
    return SessionConfig(
        question_seconds=question_seconds,
        lock_delay_seconds=lock_delay_seconds,
    )


def _build_ai(section: Mapping[str, Any]) -> AIConfig:
    model = _require_string(section.get("model"), field="ai.model")
    temperature = _require_float_range(
        section.get("temperature"),
        field="ai.temperature",
        min_value=0.0,
        max_value=2.0,
    )
    max_tokens = _require_positive_int(
        section.get("max_tokens"), field="ai.max_tokens"
    )
    question_count = _require_positive_int(
        section.get("question_count"), field="ai.question_count"
    )
    api_base = _coerce_optional_string(
        section.get("api_base"), field="ai.api_base"
    )
    request_timeout_seconds = _require_positive_int(
        section.get("request_timeout_seconds"),
        field="ai.request_timeout_seconds",
    )
    return AIConfig(
        model=model,
        temperature=temperature,
        max_tokens=max_tokens,
        question_count=question_count,
        api_base=api_base,
        request_timeout_seconds=request_timeout_seconds,
    )


def _build_logging(section: Mapping[str, Any]) -> LoggingConfig:
    level = _require_string(section.get("level"), field="logging.level").upper()
    allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if level not in allowed:
        raise ConfigError(
            "logging.level must be one of "
            "DEBUG, INFO, WARNING, ERROR, CRITICAL."
        )
    verbose = _require_bool(section.get("verbose"), field="logging.verbose")
    return LoggingConfig(level=level, verbose=verbose)


def _build_config(
    tree: Mapping[str, Any],
    *,
    source: Optional[Path] = None,
    default_home: Optional[Path] = None,
) -> QuizwithConfig:
    sections = {}
    for name in ("paths", "session", "ai", "logging"):
        section = tree.get(name, {})
        if not isinstance(section, Mapping):
            raise ConfigError(f"{name} table must be a mapping.")
        sections[name] = section

    return QuizwithConfig(
        paths=_build_paths(sections["paths"], default_home),
        session=_build_session(sections["session"]),
        ai=_build_ai(sections["ai"]),
        logging=_build_logging(sections["logging"]),
        source=source,
    )


def _load_toml(path: Path) -> Mapping[str, Any]:
    try:
        with path.open("rb") as fh:
            return tomllib.load(fh)
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Failed to parse config TOML: {exc}") from exc


def resolve_data_home(env: Mapping[str, str] | None = None) -> Path:
    env_map = os.environ if env is None else env
    override = env_map.get(DATA_HOME_ENV)
    if override:
        return Path(override).expanduser().resolve()
    return DEFAULT_DATA_HOME


def resolve_config_path(
    *,
    explicit_path: Optional[Path] = None,
    env: Mapping[str, str] | None = None,
) -> tuple[Path, bool]:
    """Return the config path and whether the caller asked for it."""

    env_map = os.environ if env is None else env
    if explicit_path is not None:
        return explicit_path.expanduser().resolve(), True
    env_override = env_map.get(CONFIG_PATH_ENV)
    if env_override:
        return Path(env_override).expanduser().resolve(), True
    return resolve_data_home(env_map) / "config" / "quizwith.toml", False


def load_config(
    *,
    explicit_path: Optional[Path] = None,
    env: Mapping[str, str] | None = None,
) -> QuizwithConfig:
    """Load the TOML config, applying defaults and validation.

    A missing file at the default location yields the defaults; a missing
    file the caller pointed at explicitly is an error.
    """

    path, requested = resolve_config_path(explicit_path=explicit_path, env=env)
    tree = _deepcopy_defaults()
    if not requested and not path.exists():
        return _build_config(tree, default_home=resolve_data_home(env))
    toml_data = _load_toml(path)
    if not isinstance(toml_data, Mapping):
        raise ConfigError("Config TOML must contain a table at the root.")
    _merge_dict(tree, toml_data)
    return _build_config(
        tree, source=path, default_home=resolve_data_home(env)
    )


def default_tree() -> Dict[str, Any]:
    """Return a copy of the default configuration tree."""

    return _deepcopy_defaults()


def config_template() -> str:
    """Return the TOML template recommended for new installs."""

    return _CONFIG_TEMPLATE.strip() + "\n"


def write_template(
    path: Path, *, overwrite: bool = False, mode: int = 0o600
) -> Path:
    """Write the default template to ``path``."""

    path.parent.mkdir(parents=True, exist_ok=True)
    if path.exists() and not overwrite:
        raise ConfigError(f"Config already exists: {path}")
    with path.open("w", encoding="utf-8") as fh:
        fh.write(config_template())
    try:
        path.chmod(mode)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
    return path


_DEFAULTS: Dict[str, Any] = {
    "paths": {
        "data_home": None,
    },
    "session": {
        "question_seconds": 30,
        "lock_delay_seconds": 2.5,
    },
    "ai": {
        "model": "gpt-4o-mini",
        "temperature": 0.4,
        "max_tokens": 1200,
        "question_count": 3,
        "api_base": None,
        "request_timeout_seconds": 60,
    },
    "logging": {
        "level": "INFO",
        "verbose": False,
    },
}


_CONFIG_TEMPLATE = """
# quizwith configuration

[paths]
# Set to override the default data directory (~/.quizwith-data)
# data_home = "~/my-quiz-data"

[session]
# Countdown for every question, in seconds
question_seconds = 30
# Pause after an answer is locked before moving on
lock_delay_seconds = 2.5

[ai]
# Chat completion model used to draft quiz questions
model = "gpt-4o-mini"
# Sampling temperature (0.0-2.0)
temperature = 0.4
max_tokens = 1200
# Questions generated per request when --count is omitted
question_count = 3
# Optional API base override
# api_base = "https://api.openai.com/v1"
request_timeout_seconds = 60

[logging]
level = "INFO"
# Mirror log records to stderr
verbose = false
"""
