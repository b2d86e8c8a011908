"""Candidate batch read/write as a JSON array or JSONL."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import orjson

from labelid.models.candidate import DecodeCandidate


def _to_candidates(items: list[Any]) -> list[DecodeCandidate]:
    return [DecodeCandidate.from_dict(d) for d in items if isinstance(d, dict)]


def read_candidates(path: str | Path) -> list[DecodeCandidate]:
    """Read candidates from a JSON array, a ``{"candidates": [...]}`` object, or JSONL.

    Blank and unparseable JSONL lines are skipped. A missing file raises
    ``FileNotFoundError``.
    """
    raw = Path(path).read_bytes()
    try:
        data = orjson.loads(raw)
    except orjson.JSONDecodeError:
        data = None

    if isinstance(data, list):
        return _to_candidates(data)
    if isinstance(data, dict):
        if isinstance(data.get("candidates"), list):
            return _to_candidates(data["candidates"])
        return _to_candidates([data])

    items: list[Any] = []
    for line in raw.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            items.append(orjson.loads(line))
        except orjson.JSONDecodeError:
            continue
    return _to_candidates(items)


def write_candidates(path: str | Path, candidates: list[DecodeCandidate]) -> None:
    """Write candidates as JSONL, one object per line."""
    with open(path, "wb") as f:
        for c in candidates:
            f.write(orjson.dumps(c.to_dict(), option=orjson.OPT_APPEND_NEWLINE))


def write_json(path: str | Path, data: Any) -> None:
    Path(path).write_bytes(orjson.dumps(data, option=orjson.OPT_INDENT_2))
