"""
Main entry point for the payout service.
Wires a fresh chain connection into every supervised attempt.
"""

import asyncio
import signal
from typing import List, Optional

import structlog

from payout_crunch.chains.factory import ClientFactory, connect_adapter
from payout_crunch.core.config import CrunchSettings
from payout_crunch.core.logging import setup_logging
from payout_crunch.indexer.era_watcher import EraEventWatcher
from payout_crunch.services.notifications import build_notifier
from payout_crunch.services.notifications.base import Notifier
from payout_crunch.services.payouts.orchestrator import PayoutOrchestrator
from payout_crunch.services.payouts.types import ValidatorRecord
from .supervisor import RetrySupervisor, SleepFunc


logger = structlog.get_logger(__name__)

# Pause before resubscribing when an era watch ends without an error
ERA_RESUBSCRIBE_WAIT = 1


class CrunchService:
    """Payout service coordinator."""

    def __init__(
        self,
        settings: CrunchSettings,
        client_factory: Optional[ClientFactory] = None,
        notifier: Optional[Notifier] = None,
        sleep: SleepFunc = asyncio.sleep
    ):
        self.settings = settings
        self.client_factory = client_factory
        self.notifier = notifier or build_notifier(settings)
        self.sleep = sleep
        self.supervisor: Optional[RetrySupervisor] = None
        self.logger = logger.bind(service="crunch_service", chain=settings.chain)

    async def attempt(self) -> None:
        """One supervised attempt: connect, run or watch, disconnect."""
        adapter = await connect_adapter(self.settings, self.client_factory)
        try:
            orchestrator = PayoutOrchestrator(adapter, self.settings, self.notifier)
            if self.settings.is_era_driven:
                watcher = EraEventWatcher(
                    adapter.client,
                    orchestrator.run,
                    max_wait=self.settings.era_trigger_max_wait,
                    sleep=self.sleep,
                )
                await watcher.watch()
            else:
                await orchestrator.run()
        finally:
            await adapter.close()

    async def run_once(self) -> bool:
        """Single run without retries. Errors are logged, not raised."""
        try:
            adapter = await connect_adapter(self.settings, self.client_factory)
            try:
                await PayoutOrchestrator(adapter, self.settings, self.notifier).run()
            finally:
                await adapter.close()
        except Exception as e:
            self.logger.error("❌ Payout run failed", error=str(e), error_type=type(e).__name__)
            return False
        return True

    async def inspect(self) -> List[ValidatorRecord]:
        adapter = await connect_adapter(self.settings, self.client_factory)
        try:
            return await PayoutOrchestrator(adapter, self.settings, self.notifier).inspect()
        finally:
            await adapter.close()

    async def start(self) -> None:
        """Supervise attempts until stopped."""
        success_wait = (
            ERA_RESUBSCRIBE_WAIT if self.settings.is_era_driven else self.settings.run_interval
        )
        self.supervisor = RetrySupervisor(
            self.attempt,
            self.notifier,
            error_interval=self.settings.error_interval,
            maximum_error_interval=self.settings.maximum_error_interval,
            transient_cooldown=self.settings.transient_cooldown,
            success_wait=success_wait,
            sleep=self.sleep,
        )
        self.logger.info(
            "Starting payout service",
            run_mode=self.settings.run_mode,
            success_wait=success_wait
        )
        await self.supervisor.run_forever()

    def stop(self) -> None:
        self.logger.info("Stopping payout service")
        if self.supervisor is not None:
            self.supervisor.stop()

    async def close(self) -> None:
        await self.notifier.close()


def settings_for_mode(settings: CrunchSettings, mode: str) -> CrunchSettings:
    """Settings whose run_mode matches the mode the service was started in. View keeps them as is."""
    if mode in ("once", "daily", "turbo", "era") and mode != settings.run_mode:
        return settings.model_copy(update={"run_mode": mode})
    return settings


async def main(settings: CrunchSettings, mode: Optional[str] = None) -> None:
    """
    Run the service in the given mode.

    Args:
        settings: Service settings
        mode: once, daily, turbo, era or view; defaults to settings.run_mode
    """
    setup_logging(settings)

    mode = mode or settings.run_mode
    settings = settings_for_mode(settings, mode)

    service = CrunchService(settings)

    loop = asyncio.get_running_loop()
    main_task = asyncio.current_task()

    def signal_handler(signum):
        logger.info(f"Received signal {signum}, shutting down...")
        service.stop()
        main_task.cancel()

    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, signal_handler, signum)

    try:
        if mode == "view":
            await service.inspect()
        elif mode == "once":
            await service.run_once()
        else:
            await service.start()
    except asyncio.CancelledError:
        logger.info("Payout service cancelled")
    finally:
        await service.close()
