"""
Display names for accounts, resolved from on-chain identities.
"""

from typing import Optional, Set, Tuple

import structlog

from payout_crunch.chains.client import ChainClient


logger = structlog.get_logger(__name__)

MAX_IDENTITY_DEPTH = 8


def short_account(account: str) -> str:
    if len(account) <= 12:
        return account
    return f"{account[:6]}...{account[-6:]}"


class IdentityResolver:
    """
    Resolves `parent/sub` style names by walking super-of links.

    The walk stops on a revisited account or after MAX_IDENTITY_DEPTH hops
    and falls back to a shortened account.
    """

    def __init__(self, client: ChainClient, max_depth: int = MAX_IDENTITY_DEPTH):
        self.client = client
        self.max_depth = max_depth
        self.logger = logger.bind(service="identity_resolver")

    async def display_name(self, account: str) -> str:
        name, _ = await self.resolve(account)
        return name

    async def resolve(self, account: str) -> Tuple[str, bool]:
        """
        Returns:
            (display name, whether an on-chain identity was found)
        """
        visited: Set[str] = set()
        current = account
        sub_name: Optional[str] = None

        while True:
            if current in visited:
                self.logger.warning("Identity cycle detected", account=account)
                break
            if len(visited) >= self.max_depth:
                self.logger.warning("Identity chain too deep", account=account)
                break
            visited.add(current)

            identity = await self.client.identity_of(current)
            if identity is not None:
                if sub_name:
                    return f"{identity}/{sub_name}", True
                return identity, True

            parent = await self.client.super_of(current)
            if parent is None:
                break
            current, sub_name = parent

        return short_account(account), False
