"""
Finalized block watcher that triggers payout runs on EraPaid events.
"""

import asyncio
import random
from enum import Enum
from typing import Awaitable, Callable, List, Optional

import structlog

from payout_crunch.chains.client import ChainClient
from payout_crunch.chains.types import ChainEvent, EventType, FinalizedBlock, StreamInterruption
from payout_crunch.core.exceptions import (
    ConnectivityError,
    RuntimeUpgradeDetectedError,
    SubscriptionFinishedError,
)


logger = structlog.get_logger(__name__)

RunCallback = Callable[[], Awaitable[object]]
SleepFunc = Callable[[float], Awaitable[None]]


class WatcherState(Enum):
    """Era watcher state enumeration."""
    IDLE = "idle"
    SUBSCRIBED = "subscribed"
    PROCESSING_GAP = "processing_gap"
    TRIGGERED = "triggered"


class EraEventWatcher:
    """
    Follows finalized blocks and starts a payout run whenever an era is paid.

    Blocks skipped while the subscription reconnected are replayed in
    ascending order before the current block is looked at. A change of
    runtime version ends the watch, since every chain bound handle has to
    be rebuilt.
    """

    def __init__(
        self,
        client: ChainClient,
        on_era_paid: RunCallback,
        max_wait: int = 240,
        run_on_start: bool = True,
        sleep: SleepFunc = asyncio.sleep,
        jitter: Optional[Callable[[int], float]] = None
    ):
        self.client = client
        self.on_era_paid = on_era_paid
        self.max_wait = max_wait
        self.run_on_start = run_on_start
        self.sleep = sleep
        self.jitter = jitter or (lambda max_wait: random.uniform(0, max_wait))

        self.state = WatcherState.IDLE
        self.last_block_number: Optional[int] = None
        self.runs_triggered = 0
        self.logger = logger.bind(service="era_event_watcher")

    async def watch(self) -> None:
        """
        Watch until something breaks. Never returns normally.

        Raises:
            RuntimeUpgradeDetectedError: Runtime version changed
            ConnectivityError: Stream dropped without reconnecting
            SubscriptionFinishedError: Stream ended
        """
        if self.run_on_start:
            self.logger.info("Inspect and crunch unclaimed payout rewards")
            await self.on_era_paid()

        runtime_version = await self.client.runtime_version()
        self.state = WatcherState.SUBSCRIBED
        self.logger.info("📡 Subscribed to EraPaid on finalized blocks", runtime_version=runtime_version)

        async for item in self.client.subscribe_finalized_blocks():
            if isinstance(item, StreamInterruption):
                if item.will_reconnect:
                    self.logger.warning("The RPC connection was dropped, will try to reconnect", reason=item.reason)
                    continue
                raise ConnectivityError(f"Block subscription interrupted: {item.reason}")

            await self.process_block(item, runtime_version)

        raise SubscriptionFinishedError()

    async def process_block(self, block: FinalizedBlock, runtime_version: int) -> None:
        current_version = await self.client.runtime_version()
        if current_version != runtime_version:
            raise RuntimeUpgradeDetectedError(runtime_version, current_version)

        last = self.last_block_number
        if last is not None and block.number > last + 1:
            await self.replay_gap(last + 1, block.number)

        events = await self.client.block_events(block.hash)
        if _has_event(events, EventType.ERA_PAID):
            await self.trigger(block.number)

        if _has_event(events, EventType.CODE_UPDATED):
            raise RuntimeUpgradeDetectedError(runtime_version, current_version)

        self.state = WatcherState.SUBSCRIBED
        self.last_block_number = block.number

    async def replay_gap(self, first: int, current: int) -> List[int]:
        """Check blocks `first..current-1` for EraPaid. Returns the block numbers checked."""
        self.state = WatcherState.PROCESSING_GAP
        self.logger.info("⚡ Processing skipped blocks", start=first, end=current - 1)

        checked: List[int] = []
        for number in range(first, current):
            block_hash = await self.client.block_hash(number)
            if block_hash is None:
                continue
            checked.append(number)
            events = await self.client.block_events(block_hash)
            if _has_event(events, EventType.ERA_PAID):
                await self.trigger(number)
            self.state = WatcherState.PROCESSING_GAP
        return checked

    async def trigger(self, block_number: int) -> None:
        self.state = WatcherState.TRIGGERED
        wait = self.jitter(self.max_wait)
        self.logger.info("💸 EraPaid detected", block_number=block_number, wait=round(wait, 1))
        await self.sleep(wait)
        self.runs_triggered += 1
        await self.on_era_paid()


def _has_event(events: List[ChainEvent], event_type: EventType) -> bool:
    return any(e.event_type == event_type for e in events)
