"""PaissaDB API client."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Optional

import aiohttp

from .errors import TransientFetchError
from .models import WorldDetail, WorldSummary

logger = logging.getLogger(__name__)


class PaissaClient:
    """Fetches world housing snapshots from PaissaDB.

    Every failure mode (network error, timeout, unexpected status or a payload
    that does not parse) is reported as :class:`TransientFetchError`.
    """

    def __init__(
        self,
        base_url: str = "https://paissadb.zhu.codes",
        *,
        timeout: float = 15.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._worlds: Optional[List[WorldSummary]] = None

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _get_json(self, path: str) -> Any:
        url = f"{self._base_url}{path}"
        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.get(url) as resp:
                    if resp.status != 200:
                        raise TransientFetchError(
                            f"PaissaDB returned HTTP {resp.status} for {path}"
                        )
                    return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            logger.warning("PaissaDB request to %s failed: %s", url, exc)
            raise TransientFetchError(f"PaissaDB request for {path} failed") from exc

    async def fetch_world_detail(self, world_id: int) -> WorldDetail:
        payload = await self._get_json(f"/worlds/{world_id}")
        try:
            return WorldDetail.from_dict(payload)
        except (KeyError, TypeError, ValueError) as exc:
            raise TransientFetchError(
                f"PaissaDB returned a malformed snapshot for world {world_id}"
            ) from exc

    async def fetch_worlds(self) -> List[WorldSummary]:
        """Return the world list, cached after the first successful fetch."""

        if self._worlds is not None:
            return self._worlds
        payload = await self._get_json("/worlds")
        try:
            worlds = [WorldSummary.from_dict(item) for item in payload]
        except (KeyError, TypeError, ValueError) as exc:
            raise TransientFetchError("PaissaDB returned a malformed world list") from exc
        self._worlds = sorted(worlds, key=lambda world: (world.datacenter_name, world.name))
        return self._worlds


__all__ = ["PaissaClient"]
