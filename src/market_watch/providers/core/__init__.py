"""Core fetcher abstractions."""
from market_watch.providers.core.error_mapper import ErrorMapper
from market_watch.providers.core.fetcher_abc import AssetFetcherABC
from market_watch.providers.core.utils import optional_float, round2

__all__ = [
    "AssetFetcherABC",
    "ErrorMapper",
    "optional_float",
    "round2",
]
