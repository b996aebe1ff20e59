"""Finnhub response models (field names as returned by the API)."""
from pydantic import BaseModel, ConfigDict


class FinnhubQuote(BaseModel):
    """/quote: c=current, dp=percent change, v=volume, t=unix time."""

    model_config = ConfigDict(extra="ignore")

    c: float | None = None
    dp: float | None = None
    v: float | None = None
    t: int | None = None


class FinnhubProfile(BaseModel):
    """/stock/profile2 subset; empty object for unknown symbols."""

    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    marketCapitalization: float | None = None
    weburl: str | None = None
