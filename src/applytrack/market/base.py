"""Protocol for market-data providers."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from applytrack.schemas import MarketEstimate


@runtime_checkable
class MarketDataSource(Protocol):
    """Anything that can estimate pay and cost of living for a role."""

    def fetch_estimate(self, title: str, location: str) -> MarketEstimate:
        """Return salary range and cost-of-living figures for *title* in *location*."""
        ...
