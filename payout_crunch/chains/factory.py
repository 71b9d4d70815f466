"""
Loading of the chain client factory named in settings.
"""

import importlib
import inspect
from typing import Awaitable, Callable, Optional

import structlog

from payout_crunch.core.config import CrunchSettings
from payout_crunch.core.exceptions import ConfigurationError

from .adapter import ChainAdapter
from .client import ChainClient
from .profiles import get_chain_profile


logger = structlog.get_logger(__name__)

ClientFactory = Callable[[CrunchSettings], Awaitable[ChainClient]]


def load_client_factory(path: str) -> ClientFactory:
    """
    Resolve a `module:callable` path to a client factory.

    Args:
        path: Dotted module path and attribute, e.g. `mypkg.substrate:connect`

    Returns:
        The factory callable
    """
    if not path or ":" not in path:
        raise ConfigurationError(
            "chain_client_factory must look like 'package.module:factory'",
            {"chain_client_factory": path}
        )
    module_name, _, attr = path.partition(":")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import chain client module {module_name}: {e}")
    factory = getattr(module, attr, None)
    if factory is None or not callable(factory):
        raise ConfigurationError(f"{path} is not a callable chain client factory")
    return factory


async def connect_adapter(
    settings: CrunchSettings,
    factory: Optional[ClientFactory] = None
) -> ChainAdapter:
    """Build a fresh adapter; called at the start of every supervised attempt."""
    profile = get_chain_profile(settings.chain)
    if factory is None:
        factory = load_client_factory(settings.chain_client_factory)

    result = factory(settings)
    client = await result if inspect.isawaitable(result) else result

    logger.info(
        "🔌 Chain client connected",
        chain=profile.name,
        url=settings.substrate_ws_url or profile.default_ws_url,
    )
    return ChainAdapter(client=client, profile=profile)
