"""Caller-side policy: try the market service a bounded number of times, then estimate locally."""

from __future__ import annotations

import logging
import time
from typing import Callable, Sequence

import requests

from applytrack.exceptions import MarketDataUnavailableError
from applytrack.market.base import MarketDataSource
from applytrack.market.local import LocalEstimateSource
from applytrack.market.remote import RemoteMarketSource
from applytrack.retry import retry
from applytrack.schemas import MarketEstimate, OfferInput
from applytrack.settings import AppSettings

logger = logging.getLogger(__name__)

_RETRYABLE = (requests.RequestException, MarketDataUnavailableError)


class MarketDataResolver:
    """Selects between a primary market source and the local fallback."""

    def __init__(
        self,
        primary: MarketDataSource | None = None,
        fallback: MarketDataSource | None = None,
        max_attempts: int = 2,
        base_delay: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._primary = primary
        self._fallback = fallback or LocalEstimateSource()
        self._fetch_primary = None
        if primary is not None:
            self._fetch_primary = retry(
                max_attempts=max_attempts,
                base_delay=base_delay,
                retryable=_RETRYABLE,
                sleep=sleep,
            )(primary.fetch_estimate)

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "MarketDataResolver":
        primary = None
        if settings.market_api_url:
            primary = RemoteMarketSource(
                settings.market_api_url,
                api_token=settings.market_api_token,
                timeout=settings.market_timeout,
            )
        return cls(
            primary=primary,
            max_attempts=settings.market_max_attempts,
            base_delay=settings.market_retry_delay,
        )

    def estimate(self, title: str, location: str) -> MarketEstimate:
        """Return an estimate, labelled ``api`` or ``local-estimate`` by origin."""
        if self._fetch_primary is not None:
            try:
                return self._fetch_primary(title, location)
            except _RETRYABLE as exc:
                logger.warning(
                    "Market data unavailable for %r in %r (%s), using local estimate.",
                    title,
                    location,
                    exc,
                )
        return self._fallback.fetch_estimate(title, location)


def gather_estimates(
    offers: Sequence[OfferInput],
    resolver: MarketDataResolver,
) -> list[MarketEstimate | None]:
    """Look up an estimate for each offer that can use one.

    An offer needs an estimate when it names a location (for the
    cost-of-living index) or when it has no stated salary but names a role.
    Without a role the salary range says nothing about the offer, so only
    the cost-of-living figures are kept.
    """
    estimates: list[MarketEstimate | None] = []
    for offer in offers:
        has_salary = offer.salary is not None and offer.salary > 0
        if not (offer.location or (not has_salary and offer.role)):
            estimates.append(None)
            continue
        estimate = resolver.estimate(offer.role, offer.location)
        if not offer.role:
            estimate = estimate.model_copy(update={"salary_range": None})
        estimates.append(estimate)
    return estimates
