"""
Cancellable asyncio timers driving match sessions.
Handles the Session Clock, the Opponent Simulator cadence, and one-shot delays.
"""
import asyncio
import inspect
import logging
import time
from typing import Any, Callable, Optional

# Set up logger for timer operations
logger = logging.getLogger(__name__)


class TimerLifecycleLogger:
    """Structured logging for timer lifecycle events."""

    @staticmethod
    def log_timer_created(session_id: str, timer_name: str, interval: float) -> None:
        """Log timer creation."""
        logger.debug(
            f"Timer lifecycle: CREATED - Session {session_id}, Timer {timer_name}, Interval {interval}s",
            extra={
                'event_type': 'timer_created',
                'session_id': session_id,
                'timer_name': timer_name,
                'interval': interval,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_tick(session_id: str, timer_name: str, tick_count: int) -> None:
        """Log timer ticks (throttled to avoid spam)."""
        if tick_count % 10 == 0:
            logger.debug(
                f"Timer lifecycle: TICK - Session {session_id}, Timer {timer_name}, Tick {tick_count}",
                extra={
                    'event_type': 'timer_tick',
                    'session_id': session_id,
                    'timer_name': timer_name,
                    'tick_count': tick_count,
                    'timestamp': time.time()
                }
            )

    @staticmethod
    def log_timer_completion(session_id: str, timer_name: str, completion_type: str, tick_count: int) -> None:
        """Log timer completion (natural expiry or cancellation)."""
        logger.debug(
            f"Timer lifecycle: COMPLETED - Session {session_id}, Timer {timer_name}, "
            f"Type {completion_type}, Ticks {tick_count}",
            extra={
                'event_type': 'timer_completed',
                'session_id': session_id,
                'timer_name': timer_name,
                'completion_type': completion_type,
                'tick_count': tick_count,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_state_transition(session_id: str, timer_name: str, from_state: str, to_state: str,
                                   reason: str = None) -> None:
        """Log timer state transitions."""
        logger.debug(
            f"Timer lifecycle: STATE_TRANSITION - Session {session_id}, Timer {timer_name}, "
            f"{from_state} -> {to_state}" + (f" ({reason})" if reason else ""),
            extra={
                'event_type': 'timer_state_transition',
                'session_id': session_id,
                'timer_name': timer_name,
                'from_state': from_state,
                'to_state': to_state,
                'reason': reason,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_error(session_id: str, timer_name: str, error_type: str, error_message: str) -> None:
        """Log timer-related errors with context."""
        logger.error(
            f"Timer lifecycle: ERROR - Session {session_id}, Timer {timer_name}, Type {error_type}: {error_message}",
            extra={
                'event_type': 'timer_error',
                'session_id': session_id,
                'timer_name': timer_name,
                'error_type': error_type,
                'error_message': error_message,
                'timestamp': time.time()
            }
        )


async def _invoke(callback: Callable[[], Any]) -> None:
    result = callback()
    if inspect.isawaitable(result):
        await result


class MatchTimer:
    """
    A single owned asyncio task that ticks periodically or fires once.

    A periodic timer produces exactly one tick per wake-up; if the event loop
    stalls, missed intervals are not replayed on resume.
    """

    def __init__(self, name: str, session_id: str = "local"):
        """Initialize the timer."""
        self.name = name
        self._session_id = session_id
        self._task: Optional[asyncio.Task] = None
        self._is_paused = False
        self._is_cancelled = False
        self._tick_count = 0

    def start_periodic(self, interval: float, tick_callback: Callable[[], Any]) -> asyncio.Task:
        """
        Start ticking every ``interval`` seconds.

        Args:
            interval: Seconds between ticks
            tick_callback: Called on each tick, plain function or coroutine function

        Returns:
            The scheduled task

        Raises:
            RuntimeError: If the timer was already started
        """
        self._ensure_not_started()
        TimerLifecycleLogger.log_timer_created(self._session_id, self.name, interval)
        self._task = asyncio.create_task(self._run_periodic(interval, tick_callback))
        return self._task

    def start_once(self, delay: float, callback: Callable[[], Any]) -> asyncio.Task:
        """
        Fire ``callback`` once after ``delay`` seconds.

        Raises:
            RuntimeError: If the timer was already started
        """
        self._ensure_not_started()
        TimerLifecycleLogger.log_timer_created(self._session_id, self.name, delay)
        self._task = asyncio.create_task(self._run_once(delay, callback))
        return self._task

    async def _run_periodic(self, interval: float, tick_callback: Callable[[], Any]) -> None:
        try:
            while not self._is_cancelled:
                await asyncio.sleep(interval)
                if self._is_cancelled:
                    break
                if self._is_paused:
                    continue
                self._tick_count += 1
                TimerLifecycleLogger.log_timer_tick(self._session_id, self.name, self._tick_count)
                await _invoke(tick_callback)
            TimerLifecycleLogger.log_timer_completion(
                self._session_id, self.name, "cancelled", self._tick_count
            )
        except asyncio.CancelledError:
            self._is_cancelled = True
            TimerLifecycleLogger.log_timer_completion(
                self._session_id, self.name, "asyncio_cancelled", self._tick_count
            )
            raise
        except Exception as e:
            TimerLifecycleLogger.log_timer_error(self._session_id, self.name, "tick_callback_error", str(e))
            raise

    async def _run_once(self, delay: float, callback: Callable[[], Any]) -> None:
        try:
            await asyncio.sleep(delay)
            while self._is_paused and not self._is_cancelled:
                await asyncio.sleep(0.05)
            if self._is_cancelled:
                TimerLifecycleLogger.log_timer_completion(self._session_id, self.name, "cancelled", 0)
                return
            self._tick_count = 1
            TimerLifecycleLogger.log_timer_completion(self._session_id, self.name, "natural_expiry", 1)
            await _invoke(callback)
        except asyncio.CancelledError:
            self._is_cancelled = True
            TimerLifecycleLogger.log_timer_completion(self._session_id, self.name, "asyncio_cancelled", 0)
            raise
        except Exception as e:
            TimerLifecycleLogger.log_timer_error(self._session_id, self.name, "callback_error", str(e))
            raise

    def pause(self) -> None:
        """Pause the timer; ticks due while paused are dropped."""
        if not self._is_paused:
            TimerLifecycleLogger.log_timer_state_transition(
                self._session_id, self.name, "running", "paused", "pause requested"
            )
        self._is_paused = True

    def resume(self) -> None:
        """Resume a paused timer."""
        if self._is_paused:
            TimerLifecycleLogger.log_timer_state_transition(
                self._session_id, self.name, "paused", "running", "resume requested"
            )
        self._is_paused = False

    def cancel(self) -> None:
        """Stop the timer. Safe to call repeatedly and from inside its own callback."""
        if self._is_cancelled:
            return
        self._is_cancelled = True
        if self._task and not self._task.done():
            # A timer stopping itself from its callback exits its loop on return
            if self._task is not asyncio.current_task():
                self._task.cancel()
            TimerLifecycleLogger.log_timer_state_transition(
                self._session_id, self.name, "running", "cancelled", "task cancelled"
            )
        else:
            TimerLifecycleLogger.log_timer_state_transition(
                self._session_id, self.name, "idle", "cancelled", "no active task"
            )

    def _ensure_not_started(self) -> None:
        if self._task is not None:
            raise RuntimeError(f"Timer {self.name} for session {self._session_id} was already started")

    @property
    def is_paused(self) -> bool:
        """Check if timer is paused."""
        return self._is_paused

    @property
    def is_cancelled(self) -> bool:
        """Check if timer is cancelled."""
        return self._is_cancelled

    @property
    def is_running(self) -> bool:
        """Check if the timer task is scheduled and not finished."""
        return self._task is not None and not self._task.done() and not self._is_cancelled

    @property
    def tick_count(self) -> int:
        """Number of ticks delivered so far."""
        return self._tick_count

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._task
