"""
Schedule builder: one full refresh cycle.

fetch polling body -> normalize each match -> group by court -> write snapshot.

A failed cycle leaves the previously written snapshot untouched; the next
cycle runs independently of this one.
"""
from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable, Iterable, Optional

from shared.config import Settings, get_settings
from shared.errors import MatchValidationError, ScheduleError
from shared.models.domain import CycleResult, NormalizedMatch, PollingPayload
from shared.utils.logging import get_logger
from shared.utils.metrics import (
    LAST_SUCCESS,
    MATCHES_REJECTED,
    REFRESH_CYCLES,
    REFRESH_DURATION,
    SCHEDULE_COURTS,
    SCHEDULE_MATCHES,
    atrack_latency,
)

from ingest.normalization.normalizer import MatchNormalizer
from ingest.normalization.timezones import TimeConverter
from ingest.storage import Snapshot, write_snapshot

logger = get_logger(__name__)

FetchPayload = Callable[[], Awaitable[PollingPayload]]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def group_by_court(matches: Iterable[NormalizedMatch]) -> Snapshot:
    """Bucket matches by court, keeping first-seen court order and match order."""
    grouped: Snapshot = {}
    for match in matches:
        grouped.setdefault(match.court, []).append(match)
    return grouped


class ScheduleBuilder:
    """
    Orchestrates a refresh cycle.

    ``fetch`` and the reference instant are injectable so a cycle can be run
    in isolation from the network and the timer.
    """

    def __init__(
        self,
        fetch: FetchPayload,
        normalizer: MatchNormalizer,
        output_path: Path,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._fetch = fetch
        self._normalizer = normalizer
        self._output_path = Path(output_path)
        self._clock = clock

    @classmethod
    def from_settings(cls, fetch: FetchPayload, settings: Settings | None = None) -> "ScheduleBuilder":
        settings = settings or get_settings()
        converter = TimeConverter(settings.source_tz, settings.target_tz)
        return cls(fetch, MatchNormalizer(converter), settings.schedule_path)

    @property
    def output_path(self) -> Path:
        return self._output_path

    def build(self, raw_matches: list[Any], reference: datetime) -> tuple[Snapshot, int]:
        """
        Normalize every raw match against one shared reference instant.

        Returns:
            The grouped snapshot and the number of matches rejected as malformed.
        """
        normalized: list[NormalizedMatch] = []
        rejected = 0
        for raw in raw_matches:
            try:
                normalized.append(self._normalizer.normalize_raw(raw, reference))
            except MatchValidationError as exc:
                rejected += 1
                MATCHES_REJECTED.inc()
                logger.warning("match_rejected", match_id=exc.match_id, error=str(exc))
        return group_by_court(normalized), rejected

    async def run_cycle(self, reference: Optional[datetime] = None) -> CycleResult:
        """
        Run one fetch-normalize-write cycle.

        Never raises for pipeline failures: they are logged and reported in
        the returned ``CycleResult``. Cancellation still propagates.
        """
        reference = reference or self._clock()
        started_at = utc_now()
        start = time.perf_counter()

        try:
            async with atrack_latency(REFRESH_DURATION):
                payload = await self._fetch()
                snapshot, rejected = self.build(payload.matches, reference)
                size = await write_snapshot(self._output_path, snapshot)
        except asyncio.CancelledError:
            raise
        except ScheduleError as exc:
            logger.warning("schedule_update_failed", error=str(exc), error_type=type(exc).__name__)
            return self._failed(started_at, exc)
        except Exception as exc:
            logger.error("schedule_update_failed", error=str(exc), exc_info=True)
            return self._failed(started_at, exc)

        match_count = sum(len(v) for v in snapshot.values())
        REFRESH_CYCLES.labels(status="ok").inc()
        SCHEDULE_COURTS.set(len(snapshot))
        SCHEDULE_MATCHES.set(match_count)
        LAST_SUCCESS.set_to_current_time()
        logger.info(
            "schedule_updated",
            path=str(self._output_path),
            courts=len(snapshot),
            matches=match_count,
            rejected=rejected,
            bytes=size,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return CycleResult(
            ok=True,
            started_at=started_at,
            finished_at=utc_now(),
            courts=len(snapshot),
            matches=match_count,
            rejected=rejected,
        )

    def _failed(self, started_at: datetime, exc: Exception) -> CycleResult:
        REFRESH_CYCLES.labels(status="error").inc()
        return CycleResult(ok=False, started_at=started_at, finished_at=utc_now(), error=str(exc))
