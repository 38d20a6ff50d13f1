"""Service coordinator: Store → Analyse / Estimate → Score → Report."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Sequence

import yaml
from pydantic import ValidationError

from applytrack.analytics.flow import reconstruct_flow
from applytrack.analytics.stats import activity_timeline, compute_stats
from applytrack.exceptions import ConfigurationError
from applytrack.market.resolver import MarketDataResolver, gather_estimates
from applytrack.models import ApplicationStats, FlowGraph, Reminder, TimelineEvent
from applytrack.reporting.tracker import ApplicationTracker
from applytrack.schemas import ComparisonRequest, OfferInput, ScoreWeights
from applytrack.settings import AppSettings
from applytrack.valuation.scorer import RankedOffer, score_offers

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def load_comparison_request(path: str | Path) -> ComparisonRequest:
    """Read offers (and optional weights) from a YAML or JSON file."""
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Offer file not found: {path}")
    with open(path) as fh:
        raw = yaml.safe_load(fh) or {}
    if isinstance(raw, list):
        raw = {"offers": raw}
    try:
        return ComparisonRequest.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid offer file {path}: {exc}") from exc


class ApplyTrackService:
    """Wires the store, the market resolver and the pure analytics together."""

    def __init__(
        self,
        settings: AppSettings,
        tracker: ApplicationTracker | None = None,
        resolver: MarketDataResolver | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._settings = settings
        self._tracker = tracker or ApplicationTracker(settings.db_path)
        self._resolver = resolver or MarketDataResolver.from_settings(settings)
        self._clock = clock

    @property
    def tracker(self) -> ApplicationTracker:
        return self._tracker

    # ---- analytics ----

    def flow(self) -> FlowGraph:
        return reconstruct_flow(self._tracker.list_applications())

    def stats(self) -> ApplicationStats:
        return compute_stats(
            self._tracker.list_applications(),
            now=self._clock(),
            recent_days=self._settings.recent_window_days,
            months=self._settings.trend_months,
        )

    def timeline(self, days: int | None = None) -> list[TimelineEvent]:
        return activity_timeline(
            self._tracker.list_applications(),
            now=self._clock(),
            days=self._settings.recent_window_days if days is None else days,
        )

    def upcoming_reminders(self, hours: int | None = None) -> list[Reminder]:
        return self._tracker.upcoming_reminders(
            self._clock(),
            hours=self._settings.reminder_window_hours if hours is None else hours,
        )

    # ---- valuation ----

    def compare_offers(
        self,
        offers: Sequence[OfferInput],
        weights: ScoreWeights | None = None,
    ) -> list[RankedOffer]:
        """Look up market data where useful, then score and rank *offers*."""
        weights = weights or self._settings.score_weights()
        estimates = gather_estimates(offers, self._resolver)
        ranked = score_offers(offers, weights, estimates)
        logger.info(
            "Compared %d offer(s); %d could not be scored.",
            len(ranked),
            sum(1 for r in ranked if not r.score_computable),
        )
        return ranked

    def compare_applications(
        self,
        application_ids: Sequence[int],
        weights: ScoreWeights | None = None,
    ) -> list[RankedOffer]:
        offers = [self._tracker.get_offer_input(app_id) for app_id in application_ids]
        return self.compare_offers(offers, weights)

    def compare_file(self, path: str | Path) -> list[RankedOffer]:
        request = load_comparison_request(path)
        return self.compare_offers(request.offers, request.weights)

    def close(self) -> None:
        self._tracker.close()
