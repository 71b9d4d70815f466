"""
Submission of validated batches and attribution of their outcome.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

import structlog

from payout_crunch.chains.adapter import ChainAdapter
from payout_crunch.chains.types import (
    ChainEvent,
    EraRewardPoints,
    EventType,
    TxParams,
    TxStatus,
    TxStatusKind,
)
from payout_crunch.core.exceptions import DispatchFailureError
from .types import (
    BatchPlan,
    BatchRef,
    ClaimUnit,
    Payout,
    PayoutCall,
    Points,
    PoolCommission,
    PoolsSummary,
    RunContext,
    RunSummary,
    ValidatorRecord,
)
from .validator import BatchValidator


logger = structlog.get_logger(__name__)

BATCH_INTERRUPTED_WARNING = "⚡ Batch interrupted ⚡"


@dataclass
class _RewardAccumulator:
    """Reward totals of the payout currently being dispatched."""
    validator_index: Optional[int] = None
    era_index: int = 0
    validator_amount: int = 0
    delegators_amount: int = 0
    delegator_count: int = 0


class BatchExecutor:
    """
    Executes validated plans one at a time.

    Every event of the finalizing block is processed in order. Batch items
    are matched to the submitted calls by position, so only payout calls
    ever produce a Payout.
    """

    def __init__(self, adapter: ChainAdapter, validator: BatchValidator, tx_params: TxParams):
        self.adapter = adapter
        self.validator = validator
        self.tx_params = tx_params
        self.logger = logger.bind(service="batch_executor")
        self._points_cache: Dict[int, EraRewardPoints] = {}

    async def execute_all(
        self,
        plan: BatchPlan,
        validators: List[ValidatorRecord],
        summary: RunSummary,
        context: RunContext,
        pools: Optional[PoolsSummary] = None
    ) -> List[BatchPlan]:
        """
        Validate and execute a plan, looping over pending remainders.

        The first pass uses the balance snapshotted in the run context. Later
        passes re-fetch it since earlier batches spent fees.

        Returns:
            Executed sub-plans in submission order
        """
        executed: List[BatchPlan] = []
        iteration = 1

        while plan:
            if iteration == 1:
                available_balance = context.available_balance
            else:
                available_balance = await self.adapter.client.account_balance(context.signer)

            self.logger.debug(
                "Batch iteration",
                iteration=iteration,
                calls=len(plan),
                available_balance=available_balance
            )

            valid, pending = await self.validator.validate(plan, available_balance)
            if valid:
                await self.execute(valid, validators, summary, pools)
                executed.append(valid)

            plan = pending or BatchPlan()
            iteration += 1

        return executed

    async def execute(
        self,
        plan: BatchPlan,
        validators: List[ValidatorRecord],
        summary: RunSummary,
        pools: Optional[PoolsSummary] = None
    ) -> None:
        """Sign, submit and watch one validated plan until it is finalized."""
        batch_call = self.adapter.force_batch(plan.chain_calls)

        self.logger.info("📤 Submitting batch", calls=len(plan))

        async for status in self.adapter.client.submit_and_watch(batch_call, self.tx_params):
            if status.kind == TxStatusKind.FINALIZED:
                await self._process_finalized(status, plan, validators, summary, pools)
                return
            if status.kind in (TxStatusKind.ERROR, TxStatusKind.INVALID, TxStatusKind.DROPPED):
                self.logger.warning(
                    "Transaction status",
                    status=status.kind.value,
                    message=status.message
                )

        self.logger.warning("Transaction watch ended before finalization", calls=len(plan))

    async def _process_finalized(
        self,
        status: TxStatus,
        plan: BatchPlan,
        validators: List[ValidatorRecord],
        summary: RunSummary,
        pools: Optional[PoolsSummary]
    ) -> None:
        header = None
        if status.block_hash is not None:
            header = await self.adapter.client.block_header(status.block_hash)
        block_number = header.number if header is not None else 0
        extrinsic = status.extrinsic_hash

        rewards = _RewardAccumulator()
        item_index = 0

        for event in status.events:
            event_type = event.event_type

            if event_type == EventType.EXTRINSIC_FAILED:
                raise DispatchFailureError(
                    f"Batch extrinsic failed: {event.get('dispatch_error')}",
                    {"block_number": block_number, "extrinsic": extrinsic}
                )

            elif event_type == EventType.PAYOUT_STARTED:
                stash = event.get("validator_stash")
                rewards = _RewardAccumulator(
                    validator_index=_find_validator(validators, stash),
                    era_index=event.get("era_index", 0),
                )

            elif event_type == EventType.REWARDED:
                if rewards.validator_index is None:
                    continue
                stash = validators[rewards.validator_index].stash
                amount = event.get("amount", 0)
                if event.get("stash") == stash:
                    rewards.validator_amount += amount
                else:
                    rewards.delegators_amount += amount
                    rewards.delegator_count += 1

            elif event_type == EventType.ITEM_COMPLETED:
                await self._item_completed(
                    plan, item_index, rewards, validators, summary, block_number, extrinsic
                )
                item_index += 1
                rewards = _RewardAccumulator()

            elif event_type == EventType.ITEM_FAILED:
                planned = plan.calls[item_index] if item_index < len(plan.calls) else None
                if isinstance(planned, PayoutCall):
                    summary.calls_failed += 1
                self.logger.warning(
                    "Batch item failed",
                    index=item_index,
                    error=event.get("error")
                )
                item_index += 1
                rewards = _RewardAccumulator()

            elif event_type == EventType.POOL_COMMISSION_CLAIMED:
                if pools is not None:
                    pools.commissions.append(
                        PoolCommission(event.get("pool_id"), event.get("commission", 0))
                    )

            elif event_type in (EventType.BATCH_COMPLETED, EventType.BATCH_COMPLETED_WITH_ERRORS):
                self.logger.info(
                    "Batch completed" if event_type == EventType.BATCH_COMPLETED
                    else "Batch completed with errors",
                    calls=len(plan),
                    block_number=block_number
                )
                summary.batches.append(BatchRef(block_number, extrinsic))

            elif event_type == EventType.BATCH_INTERRUPTED:
                self._batch_interrupted(event, plan, validators)

    async def _item_completed(
        self,
        plan: BatchPlan,
        item_index: int,
        rewards: _RewardAccumulator,
        validators: List[ValidatorRecord],
        summary: RunSummary,
        block_number: int,
        extrinsic: Optional[str]
    ) -> None:
        planned = plan.calls[item_index] if item_index < len(plan.calls) else None
        if not isinstance(planned, PayoutCall):
            self.logger.debug("Auxiliary batch item completed", index=item_index)
            return

        index = rewards.validator_index
        if index is None:
            index = _find_validator(validators, planned.stash)
        if index is None:
            return

        validator = validators[index]
        validator.claimed.append(ClaimUnit(planned.era, planned.page))
        validator.payouts.append(Payout(
            block_number=block_number,
            extrinsic=extrinsic,
            era_index=planned.era,
            validator_amount=rewards.validator_amount,
            delegators_amount=rewards.delegators_amount,
            delegator_count=rewards.delegator_count,
            points=await self._points(planned.era, validator.stash),
        ))
        summary.calls_succeeded += 1

        self.logger.info(
            "💰 Payout claimed",
            stash=validator.stash,
            era=planned.era,
            page=planned.page,
            validator_amount=rewards.validator_amount,
            delegators=rewards.delegator_count
        )

    def _batch_interrupted(
        self,
        event: ChainEvent,
        plan: BatchPlan,
        validators: List[ValidatorRecord]
    ) -> None:
        index = event.get("index", 0)
        self.logger.warning("Batch interrupted", index=index, error=event.get("error"))
        if not 0 <= index < len(plan.calls):
            return
        planned = plan.calls[index]
        if isinstance(planned, PayoutCall):
            self.logger.warning("Batch interrupted at stash", stash=planned.stash)
            validator_index = _find_validator(validators, planned.stash)
            if validator_index is not None:
                validators[validator_index].warnings.append(BATCH_INTERRUPTED_WARNING)

    async def _points(self, era: int, stash: str) -> Points:
        if era not in self._points_cache:
            reward_points = await self.adapter.client.era_reward_points(era)
            self._points_cache[era] = reward_points or EraRewardPoints(total=0)

        individual = self._points_cache[era].individual
        if not individual:
            return Points()
        return Points(
            validator=individual.get(stash, 0),
            era_avg=sum(individual.values()) / len(individual),
        )


def _find_validator(validators: List[ValidatorRecord], stash: Optional[str]) -> Optional[int]:
    for i, v in enumerate(validators):
        if v.stash == stash:
            return i
    return None
