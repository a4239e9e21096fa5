import json

from pathlib import Path
from typing import List, Sequence

from ..errors import StorageError


def read_jsonl(path: Path) -> List[dict]:
    """Read one JSON object per line; a missing file reads as empty."""
    p = Path(path)
    if not p.exists():
        return []
    data: List[dict] = []
    try:
        with p.open("r", encoding="utf-8") as fh:
            for lineno, line in enumerate(fh, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    record = json.loads(line)
                except json.JSONDecodeError as exc:
                    raise StorageError(
                        f"{p}:{lineno}: invalid JSON ({exc.msg})"
                    ) from exc
                data.append(record)
    except OSError as exc:
        raise StorageError(f"Failed to read {p}: {exc}") from exc
    return data


def write_jsonl(path: Path, records: Sequence[dict]) -> None:
    p = Path(path)
    tmp = p.with_suffix(p.suffix + ".tmp")
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        with tmp.open("w", encoding="utf-8") as fh:
            for rec in records:
                fh.write(json.dumps(rec, ensure_ascii=False))
                fh.write("\n")
        tmp.replace(p)
    except OSError as exc:
        raise StorageError(f"Failed to write {p}: {exc}") from exc


def append_jsonl(path: Path, record: dict) -> None:
    p = Path(path)
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        with p.open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(record, ensure_ascii=False))
            fh.write("\n")
    except OSError as exc:
        raise StorageError(f"Failed to append to {p}: {exc}") from exc
