"""
Test display name resolution.
"""

import pytest

from conftest import SIGNER
from payout_crunch.services.identity import IdentityResolver, short_account


def test_short_account():
    assert short_account(SIGNER) == "5Signe...111111"
    assert short_account("stash-a") == "stash-a"


@pytest.mark.asyncio
async def test_own_identity(chain):
    chain.identities["stash-a"] = "ACME"

    assert await IdentityResolver(chain).resolve("stash-a") == ("ACME", True)


@pytest.mark.asyncio
async def test_sub_identity_uses_parent_name(chain):
    chain.identities["parent"] = "ACME"
    chain.supers["stash-a"] = ("parent", "node-1")

    assert await IdentityResolver(chain).resolve("stash-a") == ("ACME/node-1", True)


@pytest.mark.asyncio
async def test_no_identity_falls_back_to_short_account(chain):
    assert await IdentityResolver(chain).resolve(SIGNER) == ("5Signe...111111", False)
    assert await IdentityResolver(chain).display_name(SIGNER) == "5Signe...111111"


@pytest.mark.asyncio
async def test_cycle_terminates(chain):
    chain.supers["stash-a"] = ("stash-b", "x")
    chain.supers["stash-b"] = ("stash-a", "y")

    assert await IdentityResolver(chain).resolve("stash-a") == ("stash-a", False)


@pytest.mark.asyncio
async def test_walk_is_bounded(chain):
    lookups = []
    identity_of = chain.identity_of

    async def counting(account):
        lookups.append(account)
        return await identity_of(account)

    chain.identity_of = counting
    for n in range(20):
        chain.supers[f"acc-{n}"] = (f"acc-{n + 1}", f"sub-{n}")
    chain.identities["acc-20"] = "too far"

    name, has_identity = await IdentityResolver(chain, max_depth=8).resolve("acc-0")

    assert (name, has_identity) == ("acc-0", False)
    assert len(lookups) == 8
