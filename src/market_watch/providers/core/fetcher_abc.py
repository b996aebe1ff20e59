"""Abstract base class for upstream asset fetchers."""
from abc import ABC, abstractmethod

from market_watch.db import AssetClass
from market_watch.schemas import CachedAsset


class AssetFetcherABC(ABC):
    """Base interface for the adapters the ingestion scheduler drives.

    One fetcher per asset class. fetch_snapshot is a whole-tick operation: it
    either returns the full list to publish or raises UpstreamError, and the
    scheduler keeps the previous cache entry in that case.
    """

    asset_class: AssetClass

    @abstractmethod
    async def fetch_snapshot(self) -> list[CachedAsset]:
        """Fetch the asset class's current universe, ordered by market cap (desc).

        Raises:
            UpstreamError: Network failure, non-2xx, malformed payload, or too
                few usable entries.
        """

    @abstractmethod
    async def fetch_single(self, asset_id: str) -> CachedAsset | None:
        """Fetch one asset directly from upstream (cache-miss path).

        Returns:
            The asset, or None when upstream does not know it.

        Raises:
            UpstreamError: The upstream call itself failed.
        """

    async def close(self) -> None:
        """Clean up resources (connections, clients).

        Override in subclasses if cleanup is needed.
        """

    async def __aenter__(self) -> "AssetFetcherABC":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        """Async context manager exit - calls close()."""
        await self.close()
