"""
Per-network chain profiles.

Networks differ only in data: token, explorer subdomain, default endpoint
and the shape of the staking claim call.
"""

from dataclasses import dataclass
from typing import Dict

from payout_crunch.core.exceptions import ConfigurationError


@dataclass(frozen=True)
class ChainProfile:
    """Static description of a supported network."""
    name: str
    token_symbol: str
    token_decimals: int
    subdomain: str
    default_ws_url: str
    paged_payouts: bool = True


CHAIN_PROFILES: Dict[str, ChainProfile] = {
    "polkadot": ChainProfile(
        name="Polkadot",
        token_symbol="DOT",
        token_decimals=10,
        subdomain="polkadot",
        default_ws_url="wss://rpc.polkadot.io:443",
    ),
    "kusama": ChainProfile(
        name="Kusama",
        token_symbol="KSM",
        token_decimals=12,
        subdomain="assethub-kusama",
        default_ws_url="wss://kusama-asset-hub-rpc.polkadot.io:443",
    ),
    "westend": ChainProfile(
        name="Westend",
        token_symbol="WND",
        token_decimals=12,
        subdomain="assethub-westend",
        default_ws_url="wss://westend-asset-hub-rpc.polkadot.io:443",
    ),
    "paseo": ChainProfile(
        name="Paseo",
        token_symbol="PAS",
        token_decimals=10,
        subdomain="assethub-paseo",
        default_ws_url="wss://asset-hub-paseo-rpc.n.dwellir.com:443",
    ),
}


def get_chain_profile(chain: str) -> ChainProfile:
    """Resolve a profile by network name."""
    key = chain.lower()
    try:
        return CHAIN_PROFILES[key]
    except KeyError:
        raise ConfigurationError(f"Chain not supported: {chain}", {"chain": chain})
