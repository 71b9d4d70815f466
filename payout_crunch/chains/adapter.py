"""
Chain adapter: one client plus the data that makes it a specific network.
"""

from dataclasses import dataclass
from typing import Sequence

from .client import ChainClient
from .profiles import ChainProfile
from .types import Call, ChainConstants


@dataclass
class ChainAdapter:
    """Builds call shapes for a network and snapshots its constants."""
    client: ChainClient
    profile: ChainProfile

    def payout_call(self, stash: str, era: int, page: int) -> Call:
        """Claim call for one (era, page) unit of a stash."""
        if self.profile.paged_payouts:
            return Call(
                "Staking",
                "payout_stakers_by_page",
                {"validator_stash": stash, "era": era, "page": page},
            )
        return Call("Staking", "payout_stakers", {"validator_stash": stash, "era": era})

    def force_batch(self, calls: Sequence[Call]) -> Call:
        """Composite call that dispatches every call and ignores individual failures."""
        return Call("Utility", "force_batch", {"calls": tuple(calls)})

    def bond_extra_rewards_call(self, member: str) -> Call:
        return Call("NominationPools", "bond_extra_other", {"member": member, "extra": "Rewards"})

    def claim_commission_call(self, pool_id: int) -> Call:
        return Call("NominationPools", "claim_commission", {"pool_id": pool_id})

    async def constants(self) -> ChainConstants:
        return ChainConstants(
            existential_deposit=await self.client.existential_deposit(),
            max_extrinsic_weight=await self.client.max_extrinsic_weight(),
            history_depth=await self.client.history_depth(),
        )

    async def close(self) -> None:
        await self.client.close()
