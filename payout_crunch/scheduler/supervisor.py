"""
Retry supervisor wrapping full payout attempts.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, Optional

import structlog

from payout_crunch.core.exceptions import (
    ConnectivityError,
    CrunchError,
    DryRunError,
    NotificationError,
    RuntimeUpgradeDetectedError,
)
from payout_crunch.services.notifications.base import Notifier


logger = structlog.get_logger(__name__)

AttemptFunc = Callable[[], Awaitable[object]]
SleepFunc = Callable[[float], Awaitable[None]]

TRANSIENT_ERRORS = (
    ConnectivityError,
    RuntimeUpgradeDetectedError,
    ConnectionError,
    TimeoutError,
    asyncio.TimeoutError,
)


class SupervisorState(Enum):
    """State of the retry supervisor."""
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    RETRYING = "retrying"
    FATAL = "fatal"


@dataclass
class SupervisorStats:
    """Statistics for supervised attempts."""
    total_runs: int = 0
    successful_runs: int = 0
    failed_runs: int = 0
    last_run: Optional[datetime] = None
    last_error: Optional[str] = None
    last_wait: int = 0


class RetrySupervisor:
    """
    Runs one attempt at a time and decides how long to wait before the next.

    Failures are classified as:
    - notification errors: logged, handled like a success
    - dry-run errors: exponential backoff, no alert
    - transient connectivity, finished subscriptions, runtime upgrades:
      fixed cool-down, attempt counter untouched
    - everything else: alert through the notifier, then exponential backoff
    """

    def __init__(
        self,
        attempt: AttemptFunc,
        notifier: Notifier,
        error_interval: int = 5,
        maximum_error_interval: int = 180,
        transient_cooldown: int = 30,
        success_wait: int = 0,
        sleep: SleepFunc = asyncio.sleep
    ):
        self.attempt_func = attempt
        self.notifier = notifier
        self.error_interval = error_interval
        self.maximum_error_interval = maximum_error_interval
        self.transient_cooldown = transient_cooldown
        self.success_wait = success_wait
        self.sleep = sleep

        self.state = SupervisorState.IDLE
        self.attempt = 1
        self.stats = SupervisorStats()
        self._should_stop = False
        self.logger = logger.bind(service="retry_supervisor")

    def backoff_minutes(self, attempt: int) -> int:
        """`error_interval ** attempt` minutes, capped at `maximum_error_interval`."""
        return min(self.error_interval ** attempt, self.maximum_error_interval)

    async def step(self) -> int:
        """
        Run one attempt and classify its outcome.

        Returns:
            Seconds to wait before the next attempt
        """
        self.state = SupervisorState.RUNNING
        self.stats.total_runs += 1
        self.stats.last_run = datetime.now(timezone.utc)

        try:
            await self.attempt_func()
        except NotificationError as e:
            self.logger.warning("Notification skipped", error=e.message)
            return self._succeeded()
        except DryRunError as e:
            minutes = self.backoff_minutes(self.attempt)
            wait = self._backoff()
            self._failed(e)
            self.state = SupervisorState.RETRYING
            self.logger.warning("DryRunError, on hold", error=e.message, wait_minutes=minutes)
            return wait
        except TRANSIENT_ERRORS as e:
            self._failed(e)
            self.state = SupervisorState.RETRYING
            self.logger.warning(
                f"{e} - On hold for {self.transient_cooldown} secs!",
                error_type=type(e).__name__
            )
            return self.transient_cooldown
        except Exception as e:
            minutes = self.backoff_minutes(self.attempt)
            wait = self._backoff()
            self._failed(e)
            self.state = SupervisorState.FATAL
            self.logger.error(
                "❌ Payout attempt failed",
                error=str(e),
                error_type=type(e).__name__,
                code=getattr(e, "code", None),
                wait_minutes=minutes
            )
            await self._alert(minutes)
            return wait

        return self._succeeded()

    async def run_forever(self) -> None:
        """Attempt, wait, repeat until stopped."""
        self.logger.info("Supervisor loop started")
        while not self._should_stop:
            wait = await self.step()
            self.stats.last_wait = wait
            if self._should_stop:
                break
            await self.sleep(wait)
        self.logger.info("Supervisor loop stopped")

    def stop(self) -> None:
        self._should_stop = True

    def _succeeded(self) -> int:
        self.state = SupervisorState.SUCCEEDED
        self.stats.successful_runs += 1
        self.attempt = 1
        return self.success_wait

    def _failed(self, error: Exception) -> None:
        self.stats.failed_runs += 1
        self.stats.last_error = error.message if isinstance(error, CrunchError) else str(error)

    def _backoff(self) -> int:
        minutes = self.backoff_minutes(self.attempt)
        self.attempt += 1
        return minutes * 60

    async def _alert(self, minutes: int) -> None:
        message = f"On hold for {minutes} min!"
        formatted_message = (
            f"🚨 An error was raised -> <code>crunch</code> on hold for {minutes} min "
            f"while rescue is on the way 🚁 🚒 🚑 🚓"
        )
        try:
            await self.notifier.send(message, formatted_message)
        except Exception as e:
            self.logger.warning(
                "Failed to send error notification message",
                error=str(e),
                error_type=type(e).__name__
            )
