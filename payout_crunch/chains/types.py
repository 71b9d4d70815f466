"""
Value types exchanged with a chain client.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class EventType(Enum):
    """Chain events the payout engine reacts to."""
    EXTRINSIC_FAILED = "System.ExtrinsicFailed"
    CODE_UPDATED = "System.CodeUpdated"
    PAYOUT_STARTED = "Staking.PayoutStarted"
    REWARDED = "Staking.Rewarded"
    ERA_PAID = "Staking.EraPaid"
    ITEM_COMPLETED = "Utility.ItemCompleted"
    ITEM_FAILED = "Utility.ItemFailed"
    BATCH_COMPLETED = "Utility.BatchCompleted"
    BATCH_COMPLETED_WITH_ERRORS = "Utility.BatchCompletedWithErrors"
    BATCH_INTERRUPTED = "Utility.BatchInterrupted"
    POOL_COMMISSION_CLAIMED = "NominationPools.PoolCommissionClaimed"


class TxStatusKind(Enum):
    """Progress states of a watched extrinsic."""
    VALIDATED = "validated"
    BROADCASTED = "broadcasted"
    IN_BLOCK = "in_block"
    FINALIZED = "finalized"
    ERROR = "error"
    INVALID = "invalid"
    DROPPED = "dropped"


class ClaimPermission(Enum):
    """Nomination pool member claim permissions."""
    PERMISSIONED = "Permissioned"
    PERMISSIONLESS_COMPOUND = "PermissionlessCompound"
    PERMISSIONLESS_WITHDRAW = "PermissionlessWithdraw"
    PERMISSIONLESS_ALL = "PermissionlessAll"

    @property
    def allows_compound(self) -> bool:
        return self in (ClaimPermission.PERMISSIONLESS_COMPOUND, ClaimPermission.PERMISSIONLESS_ALL)


@dataclass(frozen=True)
class Weight:
    """Two dimensional extrinsic weight."""
    ref_time: int
    proof_size: int = 0

    def exceeds(self, limit: "Weight") -> bool:
        return self.ref_time > limit.ref_time or self.proof_size > limit.proof_size


@dataclass(frozen=True)
class Exposure:
    """Stake overview of a stash for one era."""
    total: int
    own: int = 0
    nominator_count: int = 0
    page_count: int = 1


@dataclass(frozen=True)
class FeeEstimate:
    """Pre-dispatch fee and weight estimate of a call."""
    partial_fee: int
    weight: Weight


@dataclass(frozen=True)
class Call:
    """Chain call shape. Encoding is left to the chain client."""
    pallet: str
    function: str
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TxParams:
    """Extrinsic parameters applied by the client when signing."""
    tip: int = 0
    mortal_period: int = 0


@dataclass(frozen=True)
class ChainEvent:
    """A decoded chain event with its fields."""
    event_type: EventType
    fields: Dict[str, Any] = field(default_factory=dict)

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)


@dataclass(frozen=True)
class TxStatus:
    """One update from a submitted and watched extrinsic."""
    kind: TxStatusKind
    block_hash: Optional[str] = None
    extrinsic_hash: Optional[str] = None
    events: List[ChainEvent] = field(default_factory=list)
    message: Optional[str] = None


@dataclass(frozen=True)
class FinalizedBlock:
    """A finalized block announced by the subscription."""
    number: int
    hash: str


@dataclass(frozen=True)
class StreamInterruption:
    """Yielded by a block subscription when the connection dropped."""
    reason: str
    will_reconnect: bool = True


@dataclass(frozen=True)
class BlockHeader:
    number: int
    hash: str
    parent_hash: Optional[str] = None


@dataclass(frozen=True)
class EraRewardPoints:
    """Reward points of one era, total and per stash."""
    total: int
    individual: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class ChainConstants:
    """Chain constants snapshotted once per run."""
    existential_deposit: int
    max_extrinsic_weight: Weight
    history_depth: int
