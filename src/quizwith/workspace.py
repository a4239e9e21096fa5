"""CLI for ``quizwith init``: prepare the data home and config template."""

from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import Mapping, Optional, Sequence

from .core.config import (
    ConfigError,
    resolve_config_path,
    resolve_data_home,
    write_template,
)

DATA_FILES = ("quizzes.jsonl", "attempts.jsonl", "live_sessions.jsonl")


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quizwith init",
        description="Create the quizwith data directory and config file.",
    )
    parser.add_argument(
        "--path",
        type=Path,
        help="Data directory to create (defaults to QUIZWITH_DATA_HOME)",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing config file",
    )
    return parser


def init_workspace(
    *,
    path: Optional[Path] = None,
    force: bool = False,
    env: Mapping[str, str] | None = None,
) -> tuple[Path, Path, bool]:
    """Create the data home and config template.

    Returns the data home, the config path and whether the config was
    written (``False`` when it already existed and ``force`` was not set).
    """

    env_map = dict(os.environ if env is None else env)
    if path is not None:
        home = path.expanduser().resolve()
        config_path = home / "config" / "quizwith.toml"
    else:
        home = resolve_data_home(env_map)
        config_path, _ = resolve_config_path(env=env_map)
    for sub in ("config", "logs"):
        (home / sub).mkdir(parents=True, exist_ok=True)
    for name in DATA_FILES:
        (home / name).touch(exist_ok=True)
    try:
        write_template(config_path, overwrite=force)
    except ConfigError:
        return home, config_path, False
    return home, config_path, True


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    home, config_path, written = init_workspace(path=args.path, force=args.force)
    print(f"Data home: {home}")
    if written:
        print(f"Created config template {config_path}")
    else:
        print(f"Config already exists at {config_path} (use --force to replace)")
    if args.path is not None:
        print(f"Set QUIZWITH_DATA_HOME={home} to use this directory by default.")
    return 0
