"""
Fee and weight validation of batch plans.

A candidate batch is wrapped in a single `force_batch` call and its cost is
estimated with the pre-dispatch fee query. Oversized candidates shed their
last call into the pending plan until the remainder fits.
"""

from typing import List, Optional, Tuple

import structlog

from payout_crunch.chains.adapter import ChainAdapter
from payout_crunch.chains.types import FeeEstimate, Weight
from payout_crunch.core.exceptions import (
    CrunchError,
    DryRunError,
    InsufficientBalanceError,
    SingleCallWeightExceededError,
    WeightExceededError,
)
from .types import BatchPlan, PlannedCall


logger = structlog.get_logger(__name__)


class BatchValidator:
    """Splits a plan into a part within the weight and fee limits and a pending remainder."""

    def __init__(
        self,
        adapter: ChainAdapter,
        max_extrinsic_weight: Weight,
        existential_deposit: int,
        maximum_calls: int
    ):
        self.adapter = adapter
        self.max_extrinsic_weight = max_extrinsic_weight
        self.existential_deposit = existential_deposit
        self.maximum_calls = maximum_calls
        self.logger = logger.bind(service="batch_validator")

    async def validate(
        self,
        plan: BatchPlan,
        available_balance: int
    ) -> Tuple[BatchPlan, Optional[BatchPlan]]:
        """
        Validate a plan against the signer balance and maximum extrinsic weight.

        Args:
            plan: Ordered candidate calls
            available_balance: Signer free balance right now

        Returns:
            (valid plan, pending plan or None). Concatenated they equal the input.

        Raises:
            SingleCallWeightExceededError: A single call is heavier than the limit
            InsufficientBalanceError: The signer cannot pay for the candidate
            DryRunError: The fee query itself failed
        """
        candidate: List[PlannedCall] = list(plan.calls)
        pending: List[PlannedCall] = []

        # Calls beyond the per-batch cap never need a fee query
        if len(candidate) > self.maximum_calls:
            pending = candidate[self.maximum_calls:]
            candidate = candidate[:self.maximum_calls]

        while candidate:
            try:
                await self._check(candidate, available_balance)
            except WeightExceededError as e:
                if len(candidate) == 1:
                    raise SingleCallWeightExceededError(
                        "A single call exceeds the maximum extrinsic weight",
                        e.details
                    )
                self.logger.debug(
                    "Batch weight exceeded, splitting",
                    calls=len(candidate),
                    pending=len(pending) + 1
                )
                # Last call goes to the front so pending keeps plan order
                pending.insert(0, candidate.pop())
                continue

            self.logger.info(
                "✅ Batch validated",
                calls=len(candidate),
                pending=len(pending)
            )
            return BatchPlan(tuple(candidate)), self._pending(pending)

        return BatchPlan(), self._pending(pending)

    @staticmethod
    def _pending(calls: List[PlannedCall]) -> Optional[BatchPlan]:
        return BatchPlan(tuple(calls)) if calls else None

    async def _check(self, calls: List[PlannedCall], available_balance: int) -> FeeEstimate:
        batch_call = self.adapter.force_batch([c.call for c in calls])
        try:
            estimate = await self.adapter.client.simulate_fee_and_weight(batch_call)
        except CrunchError:
            raise
        except Exception as e:
            raise DryRunError(f"Fee simulation failed: {e}", {"calls": len(calls)})

        if estimate.weight.exceeds(self.max_extrinsic_weight):
            raise WeightExceededError(
                f"Actual weight ({estimate.weight}) exceeds maximum weight ({self.max_extrinsic_weight})",
                {"calls": len(calls), "weight": estimate.weight.ref_time}
            )

        if available_balance < estimate.partial_fee + self.existential_deposit:
            raise InsufficientBalanceError(
                available_balance, estimate.partial_fee, self.existential_deposit
            )

        return estimate
