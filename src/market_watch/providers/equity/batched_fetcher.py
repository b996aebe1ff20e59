"""Rate-limited equity fetcher: parallel within a batch, serial across batches."""
import asyncio
import logging
import math
from collections.abc import Iterable

from market_watch.db import AssetClass
from market_watch.exceptions import InsufficientDataError, UpstreamError
from market_watch.providers.core import AssetFetcherABC
from market_watch.providers.core.utils import normalize_equity_symbol
from market_watch.providers.equity.quote_source_abc import QuoteSourceABC
from market_watch.providers.equity.symbols import DEFAULT_EQUITY_SYMBOLS
from market_watch.schemas import CachedAsset

logger = logging.getLogger(__name__)


def _dedupe(symbols: Iterable[str]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for s in symbols:
        norm = normalize_equity_symbol(s)
        if norm:
            seen.setdefault(norm, None)
    return tuple(seen)


class BatchedEquityFetcher(AssetFetcherABC):
    """Walks a fixed symbol list in batches to respect a per-minute rate limit.

    Symbols that fail or have no usable quote are dropped for the tick (no
    retry). If fewer than `min_resolved` symbols come back, the whole tick
    fails so the scheduler keeps the previous snapshot instead of publishing
    a misleadingly short list.
    """

    asset_class = AssetClass.EQUITY

    def __init__(
        self,
        source: QuoteSourceABC,
        symbols: Iterable[str] = DEFAULT_EQUITY_SYMBOLS,
        *,
        batch_size: int = 5,
        batch_delay: float = 1.5,
        min_resolved_ratio: float = 0.5,
        min_resolved: int | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            source: Per-symbol quote source (Finnhub, yfinance).
            symbols: Universe to fetch; normalized and de-duplicated.
            batch_size: Symbols requested concurrently.
            batch_delay: Seconds to sleep between batches.
            min_resolved_ratio: Fraction of the universe that must resolve.
            min_resolved: Absolute minimum; overrides the ratio when given.
        """
        self._source = source
        self._symbols = _dedupe(symbols)
        self._batch_size = max(1, batch_size)
        self._batch_delay = max(0.0, batch_delay)
        if min_resolved is None:
            min_resolved = math.ceil(len(self._symbols) * min_resolved_ratio)
        self._min_resolved = max(1, min_resolved)

    @property
    def symbols(self) -> tuple[str, ...]:
        return self._symbols

    @property
    def min_resolved(self) -> int:
        return self._min_resolved

    def batches(self) -> list[tuple[str, ...]]:
        size = self._batch_size
        return [self._symbols[i : i + size] for i in range(0, len(self._symbols), size)]

    async def fetch_snapshot(self) -> list[CachedAsset]:
        """Fetch every symbol batch by batch; sort the survivors by market cap."""
        resolved: list[CachedAsset] = []
        batches = self.batches()
        for index, batch in enumerate(batches):
            if index:
                await asyncio.sleep(self._batch_delay)
            resolved.extend(await self._fetch_batch(batch))

        if len(resolved) < self._min_resolved:
            logger.warning(
                "Equity fetch resolved %d/%d symbols (minimum %d)",
                len(resolved),
                len(self._symbols),
                self._min_resolved,
            )
            raise InsufficientDataError(resolved=len(resolved), required=self._min_resolved)

        resolved.sort(key=lambda a: a.market_cap or 0.0, reverse=True)
        return resolved

    async def fetch_single(self, asset_id: str) -> CachedAsset | None:
        return await self._source.fetch_quote(normalize_equity_symbol(asset_id))

    async def close(self) -> None:
        await self._source.close()

    async def _fetch_batch(self, batch: tuple[str, ...]) -> list[CachedAsset]:
        results = await asyncio.gather(
            *[self._source.fetch_quote(s) for s in batch],
            return_exceptions=True,
        )
        out: list[CachedAsset] = []
        for symbol, result in zip(batch, results):
            if isinstance(result, CachedAsset):
                out.append(result)
            elif isinstance(result, UpstreamError):
                logger.warning("Dropping %s this tick: %s", symbol, result)
            elif isinstance(result, BaseException):
                logger.error("Unexpected error fetching %s: %r", symbol, result)
            else:
                logger.debug("No usable quote for %s", symbol)
        return out
