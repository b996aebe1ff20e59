"""Abstract base class for per-symbol equity quote sources."""
from abc import ABC, abstractmethod

from market_watch.schemas import CachedAsset


class QuoteSourceABC(ABC):
    """One request (or a small fixed set) per symbol.

    The batched fetcher decides how many symbols are in flight at once;
    sources only know how to turn one symbol into an asset.
    """

    name: str = "equity"

    @abstractmethod
    async def fetch_quote(self, symbol: str) -> CachedAsset | None:
        """Fetch the current quote for a normalized ticker.

        Returns:
            The asset, or None when upstream has no usable price for it.

        Raises:
            UpstreamError: The request itself failed.
        """

    async def close(self) -> None:
        """Release clients. Override if the source holds any."""
