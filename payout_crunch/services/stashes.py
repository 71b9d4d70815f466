"""
Stash list sources: configured stashes plus an optional remote list.
"""

import asyncio
from typing import List

import aiohttp
import structlog

from payout_crunch.core.config import CrunchSettings
from payout_crunch.core.exceptions import ConnectivityError


logger = structlog.get_logger(__name__)


class StashSource:
    """Loads the stashes a run should take care of."""

    def __init__(self, settings: CrunchSettings, timeout: int = 10):
        self.settings = settings
        self.timeout = timeout
        self.logger = logger.bind(service="stash_source")

    async def load(self) -> List[str]:
        """Configured stashes first, then remote ones; duplicates dropped if enabled."""
        stashes = list(self.settings.stashes)
        stashes.extend(await self.fetch_remote())

        if self.settings.unique_stashes_enabled:
            stashes = list(dict.fromkeys(stashes))

        self.logger.debug("Stashes loaded", total=len(stashes))
        return stashes

    async def fetch_remote(self) -> List[str]:
        """Fetch one stash per line from `stashes_url`. Private GitHub files need a token."""
        url = self.settings.stashes_url
        if not url:
            return []

        headers = {}
        if self.settings.github_pat:
            headers["Authorization"] = f"token {self.settings.github_pat}"
            headers["Accept"] = "application/vnd.github.v4+raw"

        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(
                    url,
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as response:
                    response.raise_for_status()
                    text = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ConnectivityError(f"Failed to fetch stashes from {url}: {e}", {"url": url})

        stashes = parse_stash_lines(text)
        self.logger.info("📥 Remote stashes loaded", total=len(stashes), url=url)
        return stashes


def parse_stash_lines(text: str) -> List[str]:
    return [line.strip() for line in text.strip().splitlines() if line.strip()]
