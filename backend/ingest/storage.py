"""
Snapshot persistence.

The snapshot is written to a temp file next to the target and renamed over
it, so readers only ever see the previous complete file or the new one.
"""
from __future__ import annotations

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from shared.errors import SnapshotWriteError
from shared.models.domain import NormalizedMatch

Snapshot = dict[str, list[NormalizedMatch]]


def snapshot_to_wire(snapshot: Snapshot) -> dict[str, list[dict[str, Any]]]:
    return {court: [m.to_wire() for m in matches] for court, matches in snapshot.items()}


def dump_snapshot(snapshot: Snapshot) -> str:
    return json.dumps(snapshot_to_wire(snapshot), indent=2, ensure_ascii=False)


def _write_atomic(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


async def write_snapshot(path: Path, snapshot: Snapshot) -> int:
    """
    Serialize and persist a snapshot, fully replacing the previous file.

    Returns:
        Number of bytes written.

    Raises:
        SnapshotWriteError: If the file could not be written. The previous
            snapshot is left as it was.
    """
    text = dump_snapshot(snapshot)
    try:
        await asyncio.to_thread(_write_atomic, path, text)
    except OSError as exc:
        raise SnapshotWriteError(path, str(exc)) from exc
    return len(text.encode("utf-8"))


def read_snapshot(path: Path) -> Optional[dict[str, Any]]:
    """Load the last written snapshot, or None if there is none yet."""
    try:
        with open(path, encoding="utf-8") as fh:
            return json.load(fh)
    except FileNotFoundError:
        return None
