"""
Nomination pool calls that ride along with payouts: reward compounding
for members and commission claims for the configured pools.
"""

from typing import List, Optional, Tuple

import structlog

from payout_crunch.chains.adapter import ChainAdapter
from payout_crunch.core.config import CrunchSettings
from payout_crunch.services.payouts.types import AuxiliaryCall, AuxiliaryKind, PoolsSummary


logger = structlog.get_logger(__name__)


class PoolCallCollector:
    """Builds the auxiliary pool calls of a run."""

    def __init__(self, adapter: ChainAdapter, settings: CrunchSettings):
        self.adapter = adapter
        self.client = adapter.client
        self.settings = settings
        self.logger = logger.bind(service="pool_call_collector")

    async def collect(self) -> Tuple[List[AuxiliaryCall], PoolsSummary]:
        summary = PoolsSummary()
        calls: List[AuxiliaryCall] = []

        members = await self.members_for_compound()
        for member in members:
            calls.append(AuxiliaryCall(
                kind=AuxiliaryKind.POOL_COMPOUND,
                target=member,
                call=self.adapter.bond_extra_rewards_call(member),
            ))
        summary.total_members = len(members)

        if self.settings.pool_claim_commission_enabled:
            for pool_id in self.settings.pool_ids:
                calls.append(AuxiliaryCall(
                    kind=AuxiliaryKind.POOL_COMMISSION,
                    target=pool_id,
                    call=self.adapter.claim_commission_call(pool_id),
                ))

        summary.calls = len(calls)
        if calls:
            self.logger.info(
                "🏊 Pool calls collected",
                members=summary.total_members,
                calls=summary.calls
            )
        return calls, summary

    async def members_for_compound(self) -> List[str]:
        if self.settings.pool_only_operator_compound_enabled:
            return await self._operators_for_compound()
        if not self.settings.pool_members_compound_enabled or not self.settings.pool_ids:
            return []

        members: List[str] = []
        async for member, permission in self.client.claim_permissions():
            if not permission.allows_compound:
                continue
            pool_id = await self.client.pool_membership(member)
            if pool_id is None or pool_id not in self.settings.pool_ids:
                continue
            if await self._above_threshold(member):
                members.append(member)
        return members

    async def _operators_for_compound(self) -> List[str]:
        operators: List[str] = []
        for pool_id in self.settings.pool_ids:
            depositor: Optional[str] = await self.client.bonded_pool_depositor(pool_id)
            if depositor is None:
                self.logger.warning("Pool has no depositor", pool_id=pool_id)
                continue
            permission = await self.client.claim_permission(depositor)
            if permission is None or not permission.allows_compound:
                continue
            if await self._above_threshold(depositor):
                operators.append(depositor)
        return operators

    async def _above_threshold(self, member: str) -> bool:
        pending = await self.client.pending_pool_rewards(member)
        return pending > self.settings.pool_compound_threshold
