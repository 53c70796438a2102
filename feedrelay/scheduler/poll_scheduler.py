"""
FeedRelay Poll Scheduler
========================

Runs the new-item pipeline on a fixed interval until asked to stop.
Runs never overlap; ticks missed while a run overran are dropped.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..delivery.message_formatter import format_error_notification
from ..delivery.message_sender import MessageSender
from ..models import RunResult
from ..processing.pipeline import NewItemPipeline
from ..utils.exceptions import ErrorCode, FeedRelayError
from ..utils.logging import get_logger_for_component


class PollScheduler:
    """Interval scheduler for the pipeline."""

    def __init__(
        self,
        pipeline: NewItemPipeline,
        interval_seconds: float,
        notifier: Optional[MessageSender] = None,
        run_timeout: float = 600.0,
        run_on_start: bool = False,
        notify_on_failure: bool = True,
    ):
        """Initialize scheduler.

        Args:
            pipeline: Pipeline to run on every tick
            interval_seconds: Seconds between ticks
            notifier: Sender used for fatal-error alerts
            run_timeout: Upper bound for a single run
            run_on_start: Run once immediately instead of after the first interval
            notify_on_failure: Send fatal run errors through ``notifier``
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        self.pipeline = pipeline
        self.interval_seconds = interval_seconds
        self.notifier = notifier
        self.run_timeout = run_timeout
        self.run_on_start = run_on_start
        self.notify_on_failure = notify_on_failure
        self.logger = get_logger_for_component("scheduler")

        self._stop_event: Optional[asyncio.Event] = None
        self.run_count = 0
        self.failure_count = 0
        self.skipped_ticks = 0
        self.last_run_at: Optional[datetime] = None
        self.last_result: Optional[RunResult] = None
        self.last_error: Optional[str] = None

    async def run_forever(self, stop_event: asyncio.Event) -> None:
        """Tick until ``stop_event`` is set.

        A run in progress when the event is set finishes its current item
        and returns; no new run is started afterwards.
        """
        self._stop_event = stop_event
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + (0.0 if self.run_on_start else self.interval_seconds)

        self.logger.info(
            f"Scheduler started, polling every {self.interval_seconds:g}s"
            + (" (running immediately)" if self.run_on_start else "")
        )

        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=max(0.0, next_tick - loop.time()))
                break
            except asyncio.TimeoutError:
                pass

            await self.run_once()

            next_tick += self.interval_seconds
            now = loop.time()
            if next_tick <= now:
                missed = int((now - next_tick) // self.interval_seconds) + 1
                next_tick += missed * self.interval_seconds
                self.skipped_ticks += missed
                self.logger.warning(f"Run overran the interval, dropped {missed} tick(s)")

        self.logger.info("Scheduler stopped")

    async def run_once(self) -> Optional[RunResult]:
        """Run the pipeline once, handling fatal errors.

        Returns:
            RunResult on success, None if the run failed
        """
        self.run_count += 1
        self.last_run_at = datetime.now(timezone.utc)

        try:
            result = await asyncio.wait_for(
                self.pipeline.run_once(cancel_event=self._stop_event),
                timeout=self.run_timeout,
            )
        except asyncio.TimeoutError:
            error = FeedRelayError(
                f"Run exceeded {self.run_timeout:g}s and was cancelled",
                error_code=ErrorCode.RUN_TIMEOUT,
                recoverable=True,
            )
            await self._handle_failure(error)
            return None
        except FeedRelayError as e:
            await self._handle_failure(e)
            return None
        except Exception as e:
            self.logger.error(f"Unexpected error during run: {e}", exc_info=True)
            await self._handle_failure(e)
            return None

        self.last_result = result
        self.last_error = None
        return result

    async def _handle_failure(self, error: Exception) -> None:
        self.failure_count += 1
        self.last_error = str(error)

        if isinstance(error, FeedRelayError):
            self.logger.error(f"Run failed: {error}", extra=error.to_dict())
        else:
            self.logger.error(f"Run failed: {error}")

        if self.notifier is not None and self.notify_on_failure:
            await self.notifier.send_notification(format_error_notification(error))

    def get_status(self) -> Dict[str, Any]:
        """Scheduler counters for the CLI."""
        return {
            "interval_seconds": self.interval_seconds,
            "run_count": self.run_count,
            "failure_count": self.failure_count,
            "skipped_ticks": self.skipped_ticks,
            "last_run_at": self.last_run_at.isoformat() if self.last_run_at else None,
            "last_error": self.last_error,
        }
