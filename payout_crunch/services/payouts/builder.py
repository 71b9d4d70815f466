"""
Batch construction from validator claim units.
"""

from typing import List, Optional, Sequence

import structlog

from payout_crunch.chains.adapter import ChainAdapter
from .types import AuxiliaryCall, BatchPlan, PayoutCall, PlannedCall, RunSummary, ValidatorRecord


logger = structlog.get_logger(__name__)


class BatchBuilder:
    """Packs unclaimed units into one ordered plan of payout calls."""

    def __init__(self, adapter: ChainAdapter, maximum_payouts: int):
        self.adapter = adapter
        self.maximum_payouts = maximum_payouts
        self.logger = logger.bind(service="batch_builder")

    def build(
        self,
        validators: List[ValidatorRecord],
        summary: RunSummary,
        auxiliary: Optional[Sequence[AuxiliaryCall]] = None
    ) -> BatchPlan:
        """
        Pop up to `maximum_payouts` units per validator, most recent first.

        Selected units are removed from each validator's unclaimed list.
        Auxiliary calls are appended after every payout call.
        """
        calls: List[PlannedCall] = []

        for validator in validators:
            taken = 0
            while validator.unclaimed and taken < self.maximum_payouts:
                unit = validator.unclaimed.pop()
                calls.append(PayoutCall(
                    stash=validator.stash,
                    era=unit.era,
                    page=unit.page,
                    call=self.adapter.payout_call(validator.stash, unit.era, unit.page),
                ))
                summary.calls += 1
                taken += 1

            if validator.is_active:
                summary.next_minimum_expected += 1

        if auxiliary:
            calls.extend(auxiliary)

        self.logger.info(
            "📦 Batch plan built",
            payout_calls=summary.calls,
            auxiliary_calls=len(auxiliary or ()),
            validators=len(validators)
        )
        return BatchPlan(tuple(calls))
