"""
Refresh scheduler for Courtside.

Runs the schedule builder once at startup and then on a fixed period, on
the same event loop as the HTTP server. Cycles run back to back and never
overlap; a failed cycle has no effect on the next one.

Standalone use (no HTTP server):
    python -m scheduler.service          # loop until SIGINT/SIGTERM
    python -m scheduler.service --once   # one cycle, exit 1 on failure
"""
from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from datetime import datetime
from typing import Optional

from shared.config import Settings, get_settings
from shared.models.domain import CycleResult
from shared.utils.http_client import PollingHTTPClient
from shared.utils.logging import get_logger, setup_logging
from shared.utils.metrics import start_metrics_server

from ingest.providers.polling import PollingProvider
from ingest.service import ScheduleBuilder

logger = get_logger(__name__)


class RefreshScheduler:
    """
    Drives ``ScheduleBuilder.run_cycle`` on a fixed-rate timeline.

    Ticks are spaced ``refresh_interval_s`` apart from the first cycle's
    start. When a cycle overruns its slot the next one starts immediately
    after it instead of running concurrently.
    """

    def __init__(self, builder: ScheduleBuilder, settings: Settings | None = None) -> None:
        self._builder = builder
        self._settings = settings or get_settings()
        self._interval = self._settings.refresh_interval_s
        self._shutdown = asyncio.Event()
        self._task: Optional[asyncio.Task[None]] = None
        self.cycles = 0
        self.last_result: Optional[CycleResult] = None
        self.last_success_at: Optional[datetime] = None

    @property
    def interval_s(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> CycleResult:
        result = await self._builder.run_cycle()
        self.cycles += 1
        self.last_result = result
        if result.ok:
            self.last_success_at = result.finished_at
        return result

    async def run(self) -> None:
        """Main loop. Returns once shutdown is requested."""
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        if not self._settings.refresh_on_startup:
            next_tick += self._interval

        while not self._shutdown.is_set():
            delay = next_tick - loop.time()
            if delay > 0:
                try:
                    await asyncio.wait_for(self._shutdown.wait(), timeout=delay)
                    break
                except asyncio.TimeoutError:
                    pass

            await self.run_once()

            next_tick += self._interval
            if next_tick < loop.time():
                skipped = int((loop.time() - next_tick) // self._interval) + 1
                logger.warning("refresh_cycle_overran", interval_s=self._interval, skipped_ticks=skipped)
                next_tick = loop.time()

    def start(self) -> asyncio.Task[None]:
        """Spawn the loop as a background task on the running event loop."""
        if self.running:
            raise RuntimeError("RefreshScheduler already started")
        self._shutdown.clear()
        self._task = asyncio.create_task(self.run(), name="schedule-refresh")
        logger.info("refresh_scheduler_started", interval_s=self._interval)
        return self._task

    def request_shutdown(self) -> None:
        self._shutdown.set()

    async def stop(self) -> None:
        """Stop the loop, cancelling a cycle that is still in flight."""
        self.request_shutdown()
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("refresh_scheduler_stopped", cycles=self.cycles)


async def main(argv: list[str] | None = None) -> int:
    """Scheduler service entrypoint."""
    parser = argparse.ArgumentParser(prog="courtside-refresh", description=__doc__.splitlines()[1])
    parser.add_argument("--once", action="store_true", help="run a single refresh cycle and exit")
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging("scheduler", settings)
    start_metrics_server(settings)

    provider = PollingProvider(PollingHTTPClient.from_settings(settings))
    await provider.start()
    builder = ScheduleBuilder.from_settings(provider.fetch_payload, settings)
    service = RefreshScheduler(builder, settings)

    try:
        if args.once:
            result = await service.run_once()
            return 0 if result.ok else 1

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, service.request_shutdown)

        logger.info("scheduler_service_started", interval_s=service.interval_s)
        await service.run()
        return 0
    finally:
        await provider.close()
        logger.info("scheduler_service_stopped", cycles=service.cycles)


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
