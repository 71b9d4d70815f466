"""
Chain adapter layer.
"""

from .adapter import ChainAdapter
from .client import ChainClient
from .profiles import ChainProfile, get_chain_profile

__all__ = [
    "ChainAdapter",
    "ChainClient",
    "ChainProfile",
    "get_chain_profile",
]
