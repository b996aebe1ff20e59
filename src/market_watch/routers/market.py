"""Market data read routes (served from the price cache)."""
from fastapi import APIRouter, HTTPException, Query

from market_watch.db import AssetClass
from market_watch.deps import MarketServiceDep
from market_watch.schemas import (CachedAsset, MarketHealth, MarketOverview,
                                  MarketSnapshot)

router = APIRouter(prefix="/market", tags=["market"])


@router.get("/all", response_model=MarketOverview)
async def get_overview(service: MarketServiceDep) -> MarketOverview:
    """Top assets of every class in one payload."""
    return await service.get_overview()


@router.get("/health", response_model=MarketHealth)
async def get_health(service: MarketServiceDep) -> MarketHealth:
    return await service.health()


@router.get("/{asset_class}", response_model=MarketSnapshot)
async def get_snapshot(
    asset_class: AssetClass,
    service: MarketServiceDep,
    limit: int = Query(default=50, ge=1, le=250, description="Max assets to return"),
) -> MarketSnapshot:
    """Latest snapshot, ordered by market cap.

    Always answers: `cached` is false when the static fallback was served.
    """
    return await service.get_snapshot(asset_class, limit)


@router.get("/{asset_class}/search", response_model=list[CachedAsset])
async def search_assets(
    asset_class: AssetClass,
    service: MarketServiceDep,
    q: str = Query(min_length=1, description="Matches id, symbol or name"),
    limit: int = Query(default=10, ge=1, le=50),
) -> list[CachedAsset]:
    return await service.search(asset_class, q, limit)


@router.get("/{asset_class}/{asset_id}", response_model=CachedAsset)
async def get_asset(
    asset_class: AssetClass,
    asset_id: str,
    service: MarketServiceDep,
) -> CachedAsset:
    """One asset by id or symbol; falls through to upstream on a cache miss."""
    asset = await service.get_single(asset_class, asset_id)
    if asset is None:
        raise HTTPException(status_code=404, detail=f"Asset '{asset_id}' not found")
    return asset
