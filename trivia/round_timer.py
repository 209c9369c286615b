"""
Per-round countdown ticks for the round engine.
"""
import asyncio
import logging
import time
from typing import Any, Callable, Optional

# Set up logger for timer operations
logger = logging.getLogger(__name__)


class TimerLifecycleLogger:
    """Structured logging for round timer lifecycle events."""

    @staticmethod
    def log_timer_start(round_index: int, ticks: int, interval: float) -> None:
        """Log countdown start."""
        logger.debug(
            f"Timer lifecycle: COUNTDOWN_START - Round {round_index + 1}, {ticks} ticks every {interval:.3f}s",
            extra={
                'event_type': 'timer_countdown_start',
                'round_index': round_index,
                'ticks': ticks,
                'interval': interval,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_completion(round_index: int, completion_type: str, ticks_sent: int) -> None:
        """Log how a countdown finished: expired, cancelled or asyncio_cancelled."""
        logger.debug(
            f"Timer lifecycle: COMPLETED - Round {round_index + 1}, Type: {completion_type}, Ticks sent: {ticks_sent}",
            extra={
                'event_type': 'timer_completed',
                'round_index': round_index,
                'completion_type': completion_type,
                'ticks_sent': ticks_sent,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_error(round_index: int, error_type: str, error_message: str) -> None:
        """Log timer errors."""
        logger.error(
            f"Timer lifecycle: ERROR - Round {round_index + 1}, Type: {error_type}, Message: {error_message}",
            extra={
                'event_type': 'timer_error',
                'round_index': round_index,
                'error_type': error_type,
                'error_message': error_message,
                'timestamp': time.time()
            }
        )


class RoundTimer:
    """
    Emits one tick per interval for a single round until cancelled.

    Each tick is reported through ``tick_callback(round_index)`` so the
    receiver can tell ticks of a finished round apart from current ones.
    """

    def __init__(
        self,
        round_index: int,
        ticks: int,
        tick_callback: Callable[[int], Any],
        interval: float = 1.0
    ):
        """
        Initialize the timer.

        Args:
            round_index: Index of the round this timer belongs to
            ticks: Number of ticks to emit before stopping on its own
            tick_callback: Called synchronously with ``round_index`` on each tick
            interval: Seconds between ticks
        """
        self._round_index = round_index
        self._ticks = ticks
        self._tick_callback = tick_callback
        self._interval = interval
        self._task: Optional[asyncio.Task] = None
        self._is_cancelled = False
        self._ticks_sent = 0
        self._error: Optional[BaseException] = None

    def start(self) -> asyncio.Task:
        """Schedule the countdown on the running event loop."""
        if self._task is not None:
            raise RuntimeError(f"Timer for round {self._round_index + 1} already started")
        self._task = asyncio.create_task(self._run())
        self._task.add_done_callback(self._on_done)
        return self._task

    def _on_done(self, task: asyncio.Task) -> None:
        # the engine never awaits the countdown; _run has already logged the failure
        if not task.cancelled():
            self._error = task.exception()

    async def _run(self) -> None:
        TimerLifecycleLogger.log_timer_start(self._round_index, self._ticks, self._interval)
        try:
            while self._ticks_sent < self._ticks and not self._is_cancelled:
                await asyncio.sleep(self._interval)
                if self._is_cancelled:
                    break
                self._ticks_sent += 1
                self._tick_callback(self._round_index)

            TimerLifecycleLogger.log_timer_completion(
                self._round_index,
                "cancelled" if self._is_cancelled else "expired",
                self._ticks_sent
            )
        except asyncio.CancelledError:
            self._is_cancelled = True
            TimerLifecycleLogger.log_timer_completion(
                self._round_index, "asyncio_cancelled", self._ticks_sent
            )
            raise
        except Exception as e:
            TimerLifecycleLogger.log_timer_error(self._round_index, "countdown_execution_error", str(e))
            raise

    def cancel(self) -> None:
        """Stop the countdown; no tick is delivered after this returns."""
        self._is_cancelled = True
        if self._task and not self._task.done():
            self._task.cancel()

    @property
    def round_index(self) -> int:
        return self._round_index

    @property
    def is_cancelled(self) -> bool:
        """Check if timer is cancelled."""
        return self._is_cancelled

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def ticks_sent(self) -> int:
        return self._ticks_sent

    @property
    def error(self) -> Optional[BaseException]:
        """Exception that stopped the countdown, if any."""
        return self._error
