"""
Claim status tracking for validator stashes.
"""

from typing import List, Tuple

import structlog

from payout_crunch.chains.client import ChainClient
from .types import ClaimUnit


logger = structlog.get_logger(__name__)


def lookback_start(active_era: int, maximum_history_eras: int, history_depth: int) -> int:
    """First era of the lookback window ending at the active era (exclusive)."""
    window = min(maximum_history_eras, history_depth)
    if active_era > window:
        return active_era - window
    return 0


class EraPayoutTracker:
    """
    Derives claimed and unclaimed units of a stash straight from chain state.

    Eras are walked in ascending order, so the most recent unclaimed unit
    always sits at the end of the returned list.
    """

    def __init__(self, client: ChainClient):
        self.client = client
        self.logger = logger.bind(service="era_payout_tracker")

    async def track(
        self,
        stash: str,
        start_era: int,
        active_era: int
    ) -> Tuple[List[ClaimUnit], List[ClaimUnit]]:
        """
        Partition the claim units of `[start_era, active_era)` for a stash.

        Args:
            stash: Validator stash account
            start_era: First era of the window (inclusive)
            active_era: Active era (exclusive)

        Returns:
            (claimed, unclaimed) lists of ClaimUnit
        """
        claimed: List[ClaimUnit] = []
        unclaimed: List[ClaimUnit] = []

        for era in range(start_era, active_era):
            exposure = await self.client.exposure(era, stash)
            if exposure is None:
                # Not elected in this era, nothing to claim
                continue

            claimed_pages = await self.client.claimed_pages(era, stash)
            for page in range(max(exposure.page_count, 1)):
                unit = ClaimUnit(era, page)
                if claimed_pages is not None and page in claimed_pages:
                    claimed.append(unit)
                else:
                    unclaimed.append(unit)

        self.logger.debug(
            "Claim units tracked",
            stash=stash,
            start_era=start_era,
            active_era=active_era,
            claimed=len(claimed),
            unclaimed=len(unclaimed)
        )
        return claimed, unclaimed
