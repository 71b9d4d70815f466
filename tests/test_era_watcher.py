"""
Test the EraPaid watcher: gap replay, runtime upgrades and stream endings.
"""

from unittest.mock import AsyncMock, call

import pytest

from conftest import event
from payout_crunch.chains.types import EventType, FinalizedBlock, StreamInterruption
from payout_crunch.core.exceptions import (
    ConnectivityError,
    RuntimeUpgradeDetectedError,
    SubscriptionFinishedError,
)
from payout_crunch.indexer.era_watcher import EraEventWatcher, WatcherState


def _watcher(chain, run_on_start=False, **kwargs):
    params = dict(sleep=AsyncMock(), jitter=lambda max_wait: 0)
    params.update(kwargs)
    return EraEventWatcher(chain, AsyncMock(), run_on_start=run_on_start, **params)


@pytest.mark.asyncio
async def test_era_paid_triggers_a_run(chain):
    chain.events["0xb100"] = [event(EventType.ERA_PAID, era_index=9)]
    watcher = _watcher(chain)

    await watcher.process_block(FinalizedBlock(100, "0xb100"), runtime_version=1)

    watcher.on_era_paid.assert_awaited_once()
    assert watcher.runs_triggered == 1
    assert watcher.last_block_number == 100
    assert watcher.state == WatcherState.SUBSCRIBED


@pytest.mark.asyncio
async def test_blocks_without_era_paid_do_nothing(chain):
    chain.events["0xb100"] = [event(EventType.REWARDED, stash="x", amount=1)]
    watcher = _watcher(chain)

    await watcher.process_block(FinalizedBlock(100, "0xb100"), runtime_version=1)

    watcher.on_era_paid.assert_not_awaited()


@pytest.mark.asyncio
async def test_skipped_blocks_are_replayed_in_order_before_current(chain):
    chain.events["0xhash102"] = [event(EventType.ERA_PAID, era_index=9)]
    chain.events["0xb104"] = [event(EventType.ERA_PAID, era_index=10)]
    watcher = _watcher(chain)
    watcher.trigger = AsyncMock()
    watcher.last_block_number = 100

    await watcher.process_block(FinalizedBlock(104, "0xb104"), runtime_version=1)

    assert chain.block_hash_calls == [101, 102, 103]
    assert watcher.trigger.await_args_list == [call(102), call(104)]
    assert watcher.last_block_number == 104


@pytest.mark.asyncio
async def test_consecutive_blocks_need_no_replay(chain):
    watcher = _watcher(chain)
    watcher.last_block_number = 100

    await watcher.process_block(FinalizedBlock(101, "0xb101"), runtime_version=1)

    assert chain.block_hash_calls == []


@pytest.mark.asyncio
async def test_replay_skips_blocks_without_hash(chain):
    chain.hashes[102] = None
    watcher = _watcher(chain)

    checked = await watcher.replay_gap(101, 104)

    assert checked == [101, 103]


@pytest.mark.asyncio
async def test_runtime_version_change_stops_watching(chain):
    chain.versions = [2]
    watcher = _watcher(chain)

    with pytest.raises(RuntimeUpgradeDetectedError) as exc_info:
        await watcher.process_block(FinalizedBlock(100, "0xb100"), runtime_version=1)

    assert exc_info.value.previous_version == 1
    assert exc_info.value.current_version == 2


@pytest.mark.asyncio
async def test_code_updated_event_stops_watching(chain):
    chain.events["0xb100"] = [event(EventType.CODE_UPDATED)]
    watcher = _watcher(chain)

    with pytest.raises(RuntimeUpgradeDetectedError):
        await watcher.process_block(FinalizedBlock(100, "0xb100"), runtime_version=1)


@pytest.mark.asyncio
async def test_watch_runs_on_start_then_follows_blocks(chain):
    chain.block_stream = [FinalizedBlock(100, "0xb100"), FinalizedBlock(101, "0xb101")]
    chain.events["0xb101"] = [event(EventType.ERA_PAID, era_index=9)]
    watcher = _watcher(chain, run_on_start=True)

    with pytest.raises(SubscriptionFinishedError):
        await watcher.watch()

    assert watcher.on_era_paid.await_count == 2
    assert watcher.runs_triggered == 1
    assert watcher.last_block_number == 101


@pytest.mark.asyncio
async def test_reconnecting_interruption_is_tolerated(chain):
    chain.block_stream = [
        FinalizedBlock(100, "0xb100"),
        StreamInterruption("connection reset", will_reconnect=True),
        FinalizedBlock(103, "0xb103"),
    ]
    watcher = _watcher(chain)

    with pytest.raises(SubscriptionFinishedError):
        await watcher.watch()

    assert chain.block_hash_calls == [101, 102]
    assert watcher.last_block_number == 103


@pytest.mark.asyncio
async def test_final_interruption_raises_connectivity_error(chain):
    chain.block_stream = [StreamInterruption("server gone", will_reconnect=False)]
    watcher = _watcher(chain)

    with pytest.raises(ConnectivityError) as exc_info:
        await watcher.watch()

    assert not isinstance(exc_info.value, SubscriptionFinishedError)


@pytest.mark.asyncio
async def test_trigger_waits_for_jitter(chain):
    sleep = AsyncMock()
    watcher = _watcher(chain, sleep=sleep, jitter=lambda max_wait: max_wait / 2, max_wait=240)

    await watcher.trigger(100)

    sleep.assert_awaited_once_with(120)
    watcher.on_era_paid.assert_awaited_once()
