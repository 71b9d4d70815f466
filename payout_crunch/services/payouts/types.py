"""
Types for payout processing.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, NamedTuple, Optional, Tuple, Union

from payout_crunch.chains.types import Call, Weight


class ClaimUnit(NamedTuple):
    """Smallest claimable slice of a stash's rewards."""
    era: int
    page: int


@dataclass
class Points:
    """Reward points snapshot for one era."""
    validator: int = 0
    era_avg: float = 0.0


@dataclass
class Payout:
    """Outcome of one successfully executed claim."""
    block_number: int
    extrinsic: Optional[str]
    era_index: int
    validator_amount: int
    delegators_amount: int
    delegator_count: int
    points: Points = field(default_factory=Points)


@dataclass
class ValidatorRecord:
    """Per-run view of a configured stash. Never persisted across runs."""
    stash: str
    controller: Optional[str] = None
    name: str = ""
    is_active: bool = False
    claimed: List[ClaimUnit] = field(default_factory=list)
    unclaimed: List[ClaimUnit] = field(default_factory=list)
    payouts: List[Payout] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


class AuxiliaryKind(Enum):
    """Non-payout calls that ride along in a batch."""
    POOL_COMPOUND = "pool_compound"
    POOL_COMMISSION = "pool_commission"


@dataclass(frozen=True)
class PayoutCall:
    """Claim of one (stash, era, page) unit."""
    stash: str
    era: int
    page: int
    call: Call


@dataclass(frozen=True)
class AuxiliaryCall:
    """Pool compounding or commission claim appended after payouts."""
    kind: AuxiliaryKind
    target: Union[str, int]
    call: Call


PlannedCall = Union[PayoutCall, AuxiliaryCall]


@dataclass(frozen=True)
class BatchPlan:
    """Ordered calls to be dispatched together. Order survives every split."""
    calls: Tuple[PlannedCall, ...] = ()

    def __len__(self) -> int:
        return len(self.calls)

    def __bool__(self) -> bool:
        return bool(self.calls)

    @property
    def payout_calls(self) -> List[PayoutCall]:
        return [c for c in self.calls if isinstance(c, PayoutCall)]

    @property
    def chain_calls(self) -> List[Call]:
        return [c.call for c in self.calls]


@dataclass
class BatchRef:
    """Where an executed batch landed."""
    block_number: int
    extrinsic: Optional[str]


@dataclass
class RunSummary:
    """Aggregate counters of one orchestration run."""
    calls: int = 0
    calls_succeeded: int = 0
    calls_failed: int = 0
    next_minimum_expected: int = 0
    total_validators: int = 0
    batches: List[BatchRef] = field(default_factory=list)

    @property
    def success_rate(self) -> float:
        if self.calls == 0:
            return 0.0
        return self.calls_succeeded / self.calls


@dataclass
class PoolCommission:
    pool_id: int
    commission: int


@dataclass
class PoolsSummary:
    """Nomination pool side of a run."""
    total_members: int = 0
    calls: int = 0
    commissions: List[PoolCommission] = field(default_factory=list)


@dataclass
class SignerDetails:
    account: str
    name: str = ""
    free_balance: int = 0
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class RunContext:
    """Limits snapshotted once at the start of a run."""
    signer: str
    available_balance: int
    existential_deposit: int
    max_extrinsic_weight: Weight
    maximum_calls: int
    maximum_payouts: int


@dataclass(frozen=True)
class NetworkInfo:
    name: str
    active_era: int
    token_symbol: str
    token_decimals: int
    subdomain: str


@dataclass
class RunReport:
    """Everything a run produced, handed to reporting."""
    network: NetworkInfo
    signer: SignerDetails
    validators: List[ValidatorRecord]
    summary: RunSummary
    pools: Optional[PoolsSummary] = None
