"""
Chain client capability consumed by the payout engine.

Wire encoding, signing and metadata discovery live behind this protocol.
A concrete client is supplied through the `chain_client_factory` setting.
"""

from typing import AsyncIterator, List, Optional, Protocol, Set, Tuple, Union, runtime_checkable

from .types import (
    BlockHeader,
    Call,
    ChainEvent,
    ClaimPermission,
    EraRewardPoints,
    Exposure,
    FeeEstimate,
    FinalizedBlock,
    StreamInterruption,
    TxParams,
    TxStatus,
    Weight,
)


BlockStreamItem = Union[FinalizedBlock, StreamInterruption]


@runtime_checkable
class ChainClient(Protocol):
    """Async access to one network's state, runtime APIs and transaction pool."""

    # Staking state
    async def current_period(self) -> int: ...

    async def active_validators(self) -> Set[str]: ...

    async def exposure(self, period: int, stash: str) -> Optional[Exposure]: ...

    async def claimed_pages(self, period: int, stash: str) -> Optional[Set[int]]: ...

    async def bonded_controller(self, stash: str) -> Optional[str]: ...

    async def era_reward_points(self, period: int) -> Optional[EraRewardPoints]: ...

    # Constants
    async def history_depth(self) -> int: ...

    async def existential_deposit(self) -> int: ...

    async def max_extrinsic_weight(self) -> Weight: ...

    # Accounts and transactions
    async def signer_account(self) -> str: ...

    async def account_balance(self, account: str) -> int: ...

    async def simulate_fee_and_weight(self, call: Call) -> FeeEstimate: ...

    def submit_and_watch(self, call: Call, params: TxParams) -> AsyncIterator[TxStatus]: ...

    # Blocks
    def subscribe_finalized_blocks(self) -> AsyncIterator[BlockStreamItem]: ...

    async def runtime_version(self) -> int: ...

    async def block_header(self, block_hash: str) -> Optional[BlockHeader]: ...

    async def block_hash(self, number: int) -> Optional[str]: ...

    async def block_events(self, block_hash: str) -> List[ChainEvent]: ...

    # Identity
    async def identity_of(self, account: str) -> Optional[str]: ...

    async def super_of(self, account: str) -> Optional[Tuple[str, str]]: ...

    # Nomination pools
    async def bonded_pool_depositor(self, pool_id: int) -> Optional[str]: ...

    async def claim_permission(self, account: str) -> Optional[ClaimPermission]: ...

    def claim_permissions(self) -> AsyncIterator[Tuple[str, ClaimPermission]]: ...

    async def pool_membership(self, account: str) -> Optional[int]: ...

    async def pending_pool_rewards(self, account: str) -> int: ...

    async def close(self) -> None: ...
