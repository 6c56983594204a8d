"""Exception hierarchy for the schedule refresh pipeline."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union


class ScheduleError(Exception):
    """Base class for failures that abort or degrade a refresh cycle."""


class UpstreamFetchError(ScheduleError):
    """The polling endpoint could not be reached or returned an unusable body."""

    def __init__(self, url: str, message: str, status: Optional[int] = None) -> None:
        self.url = url
        self.status = status
        detail = f" (HTTP {status})" if status is not None else ""
        super().__init__(f"Failed to fetch polling data from {url}{detail}: {message}")


class MatchValidationError(ScheduleError):
    """A raw match does not have the structure needed to normalize it."""

    def __init__(self, match_id: Optional[Union[int, str]], errors: list[dict[str, Any]]) -> None:
        self.match_id = match_id
        self.errors = errors
        fields = ", ".join(".".join(str(p) for p in e.get("loc", ())) for e in errors) or "?"
        super().__init__(f"Match {match_id!r} failed validation at: {fields}")


class SnapshotWriteError(ScheduleError):
    """The schedule snapshot could not be persisted."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"Failed to write snapshot to {path}: {message}")
