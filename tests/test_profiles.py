"""
Test chain profiles, claim call shapes and the client protocol.
"""

from dataclasses import replace

import pytest

from payout_crunch.chains.adapter import ChainAdapter
from payout_crunch.chains.client import ChainClient
from payout_crunch.chains.profiles import CHAIN_PROFILES, get_chain_profile
from payout_crunch.core.config import SUPPORTED_CHAINS
from payout_crunch.core.exceptions import ConfigurationError


def test_every_supported_chain_has_a_profile():
    assert sorted(CHAIN_PROFILES) == sorted(SUPPORTED_CHAINS)


def test_lookup_ignores_case():
    assert get_chain_profile("Polkadot").token_symbol == "DOT"


@pytest.mark.parametrize("chain", ["dot", "ethereum", ""])
def test_unknown_chain_is_rejected(chain):
    with pytest.raises(ConfigurationError):
        get_chain_profile(chain)


def test_whole_era_claim_when_not_paged(chain):
    profile = get_chain_profile("westend")
    adapter = ChainAdapter(client=chain, profile=replace(profile, paged_payouts=False))

    call = adapter.payout_call("stash-a", 9, 0)

    assert call.function == "payout_stakers"
    assert call.params == {"validator_stash": "stash-a", "era": 9}


def test_in_memory_client_implements_the_whole_protocol(chain):
    assert isinstance(chain, ChainClient)
