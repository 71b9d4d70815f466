"""
Shared fixtures: an in-memory chain client and ready-made adapters.
"""

import os
from typing import Dict, List, Optional, Set, Tuple

import pytest

from payout_crunch.chains.adapter import ChainAdapter
from payout_crunch.chains.profiles import get_chain_profile
from payout_crunch.chains.types import (
    BlockHeader,
    Call,
    ChainEvent,
    ClaimPermission,
    EraRewardPoints,
    EventType,
    Exposure,
    FeeEstimate,
    TxParams,
    TxStatus,
    TxStatusKind,
    Weight,
)
from payout_crunch.core.config import CrunchSettings


SIGNER = "5SignerAccount1111111111111111111111111111111111"


def event(event_type: EventType, **fields) -> ChainEvent:
    return ChainEvent(event_type, fields)


def finalized(events: List[ChainEvent], block_hash: str = "0xfinal", extrinsic: str = "0xext") -> TxStatus:
    return TxStatus(TxStatusKind.FINALIZED, block_hash=block_hash, extrinsic_hash=extrinsic, events=events)


class FakeChainClient:
    """
    In-memory chain. Successful payout batches update the claimed pages,
    so a second run sees the state the first run left behind.
    """

    def __init__(self):
        self.period = 10
        self.history = 84
        self.ed = 100
        self.max_weight = Weight(1_000, 1_000)
        self.weight_per_call = Weight(100, 10)
        self.fee_per_call = 10
        self.signer = SIGNER
        self.balances: Dict[str, int] = {SIGNER: 1_000_000}

        self.active: Set[str] = set()
        self.exposures: Dict[Tuple[int, str], Exposure] = {}
        self.claimed: Dict[Tuple[int, str], Set[int]] = {}
        self.controllers: Dict[str, str] = {}
        self.reward_points: Dict[int, EraRewardPoints] = {}
        self.identities: Dict[str, str] = {}
        self.supers: Dict[str, Tuple[str, str]] = {}

        self.pool_depositors: Dict[int, str] = {}
        self.permissions: Dict[str, ClaimPermission] = {}
        self.memberships: Dict[str, int] = {}
        self.pending_rewards: Dict[str, int] = {}

        self.simulate_error: Optional[Exception] = None
        self.simulated: List[int] = []
        self.submitted: List[Call] = []
        self.tx_responses: List[List[TxStatus]] = []
        self.balance_queries: List[str] = []

        self.versions: List[int] = [1]
        self.block_stream: list = []
        self.hashes: Dict[int, str] = {}
        self.events: Dict[str, List[ChainEvent]] = {}
        self.block_hash_calls: List[int] = []
        self.headers: Dict[str, BlockHeader] = {}
        self._next_block = 100
        self.closed = False

    # Helpers

    def add_validator(self, stash: str, eras, page_count: int = 1, active: bool = True,
                      controller: Optional[str] = None):
        self.controllers[stash] = controller or f"{stash}-ctrl"
        for era in eras:
            self.exposures[(era, stash)] = Exposure(total=1_000, page_count=page_count)
        if active:
            self.active.add(stash)

    # Staking state

    async def current_period(self) -> int:
        return self.period

    async def active_validators(self) -> Set[str]:
        return set(self.active)

    async def exposure(self, period, stash):
        return self.exposures.get((period, stash))

    async def claimed_pages(self, period, stash):
        pages = self.claimed.get((period, stash))
        return set(pages) if pages is not None else None

    async def bonded_controller(self, stash):
        return self.controllers.get(stash)

    async def era_reward_points(self, period):
        return self.reward_points.get(period)

    # Constants

    async def history_depth(self) -> int:
        return self.history

    async def existential_deposit(self) -> int:
        return self.ed

    async def max_extrinsic_weight(self) -> Weight:
        return self.max_weight

    # Accounts and transactions

    async def signer_account(self) -> str:
        return self.signer

    async def account_balance(self, account):
        self.balance_queries.append(account)
        return self.balances.get(account, 0)

    async def simulate_fee_and_weight(self, call: Call) -> FeeEstimate:
        if self.simulate_error is not None:
            raise self.simulate_error
        n = len(call.params["calls"])
        self.simulated.append(n)
        return FeeEstimate(
            partial_fee=n * self.fee_per_call,
            weight=Weight(n * self.weight_per_call.ref_time, n * self.weight_per_call.proof_size),
        )

    async def submit_and_watch(self, call: Call, params: TxParams):
        self.submitted.append(call)
        if self.tx_responses:
            statuses = self.tx_responses.pop(0)
        else:
            statuses = self._auto_statuses(call)
        for status in statuses:
            yield status

    def _auto_statuses(self, call: Call) -> List[TxStatus]:
        self._next_block += 1
        block_hash = f"0xblock{self._next_block}"
        self.headers[block_hash] = BlockHeader(self._next_block, block_hash)

        events: List[ChainEvent] = []
        inner: List[Call] = list(call.params["calls"])
        for c in inner:
            if c.function.startswith("payout_stakers"):
                stash = c.params["validator_stash"]
                era = c.params["era"]
                page = c.params.get("page", 0)
                events.append(event(EventType.PAYOUT_STARTED, era_index=era, validator_stash=stash))
                events.append(event(EventType.REWARDED, stash=stash, amount=500))
                events.append(event(EventType.REWARDED, stash="nominator-a", amount=100))
                events.append(event(EventType.ITEM_COMPLETED))
                self.claimed.setdefault((era, stash), set()).add(page)
            elif c.function == "claim_commission":
                events.append(event(EventType.POOL_COMMISSION_CLAIMED, pool_id=c.params["pool_id"], commission=42))
                events.append(event(EventType.ITEM_COMPLETED))
            else:
                events.append(event(EventType.ITEM_COMPLETED))
        events.append(event(EventType.BATCH_COMPLETED))

        self.balances[self.signer] = self.balances.get(self.signer, 0) - len(inner) * self.fee_per_call
        return [
            TxStatus(TxStatusKind.BROADCASTED),
            TxStatus(TxStatusKind.IN_BLOCK, block_hash=block_hash),
            finalized(events, block_hash=block_hash, extrinsic=f"0xext{self._next_block}"),
        ]

    # Blocks

    async def subscribe_finalized_blocks(self):
        for item in self.block_stream:
            yield item

    async def runtime_version(self) -> int:
        if len(self.versions) > 1:
            return self.versions.pop(0)
        return self.versions[0]

    async def block_header(self, block_hash):
        return self.headers.get(block_hash)

    async def block_hash(self, number):
        self.block_hash_calls.append(number)
        return self.hashes.get(number, f"0xhash{number}")

    async def block_events(self, block_hash):
        return list(self.events.get(block_hash, []))

    # Identity

    async def identity_of(self, account):
        return self.identities.get(account)

    async def super_of(self, account):
        return self.supers.get(account)

    # Nomination pools

    async def bonded_pool_depositor(self, pool_id):
        return self.pool_depositors.get(pool_id)

    async def claim_permission(self, account):
        return self.permissions.get(account)

    async def claim_permissions(self):
        for account, permission in self.permissions.items():
            yield account, permission

    async def pool_membership(self, account):
        return self.memberships.get(account)

    async def pending_pool_rewards(self, account):
        return self.pending_rewards.get(account, 0)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def chain():
    return FakeChainClient()


@pytest.fixture
def adapter(chain):
    return ChainAdapter(client=chain, profile=get_chain_profile("westend"))


@pytest.fixture
def settings(monkeypatch):
    for name in list(os.environ):
        if name.startswith("CRUNCH_"):
            monkeypatch.delenv(name)
    return CrunchSettings(_env_file=None, stashes=["stash-a", "stash-b"])
