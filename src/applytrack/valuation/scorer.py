"""Offer valuation: one comparable "total value" per offer.

::

    total = w_salary * basis / (col_index / 100) + w_benefits * benefit_value

The basis is the stated salary, or the market median when no salary has been
offered yet. An offer with neither is marked not computable instead of being
scored as zero.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Sequence

from applytrack.exceptions import (
    ComparisonError,
    InsufficientOffersError,
    TooManyOffersError,
)
from applytrack.schemas import MarketEstimate, OfferInput, ScoreWeights

MIN_OFFERS = 2
MAX_OFFERS = 4
NATIONAL_AVERAGE_INDEX = 100.0

# ---- benefit valuations (USD per year) ----

HEALTH_INSURANCE_VALUE = 5000.0
DENTAL_INSURANCE_VALUE = 1000.0
VISION_INSURANCE_VALUE = 500.0
RETIREMENT_401K_VALUE = 3000.0
PTO_DAY_VALUE = 500.0
REMOTE_WORK_VALUE = 5000.0
FLEXIBLE_HOURS_VALUE = 3000.0
STOCK_OPTIONS_VALUE = 5000.0


@dataclass(frozen=True)
class RankedOffer:
    """Scored offer, positioned in the comparison result."""

    index: int
    rank: int
    offer: OfferInput
    benefit_value: float
    cost_of_living_index: float
    basis_salary: float | None = None
    salary_basis: str | None = None  # "stated" or "market-median"
    adjusted_salary: float | None = None
    weighted_salary: float | None = None
    weighted_benefits: float | None = None
    total_score: float | None = None
    score_computable: bool = False
    market_source: str | None = None


def benefit_value(offer: OfferInput) -> float:
    """Dollar value of the bonus and benefit package."""
    b = offer.benefits
    value = offer.bonus
    if b.health_insurance:
        value += HEALTH_INSURANCE_VALUE
    if b.dental_insurance:
        value += DENTAL_INSURANCE_VALUE
    if b.vision_insurance:
        value += VISION_INSURANCE_VALUE
    if b.retirement_401k:
        value += RETIREMENT_401K_VALUE
    value += PTO_DAY_VALUE * b.paid_time_off_days
    if b.remote_work:
        value += REMOTE_WORK_VALUE
    if b.flexible_hours:
        value += FLEXIBLE_HOURS_VALUE
    if b.stock_options:
        value += STOCK_OPTIONS_VALUE
    return value


def cost_of_living_adjusted_salary(
    basis_salary: float,
    col_index: float = NATIONAL_AVERAGE_INDEX,
) -> float:
    """Express *basis_salary* in national-average dollars."""
    if col_index <= 0:
        raise ValueError(f"cost-of-living index must be positive, got {col_index}")
    return basis_salary / (col_index / NATIONAL_AVERAGE_INDEX)


def _basis(offer: OfferInput, estimate: MarketEstimate | None) -> tuple[float | None, str | None]:
    if offer.salary is not None and offer.salary > 0:
        return offer.salary, "stated"
    salary_range = estimate.salary_range if estimate is not None else None
    if salary_range is not None and salary_range.median > 0:
        return salary_range.median, "market-median"
    return None, None


def _score_one(
    index: int,
    offer: OfferInput,
    weights: ScoreWeights,
    estimate: MarketEstimate | None,
) -> RankedOffer:
    benefits = benefit_value(offer)
    col_index = (
        estimate.cost_of_living_index.overall if estimate is not None else NATIONAL_AVERAGE_INDEX
    )
    source = estimate.source if estimate is not None else None
    basis, basis_label = _basis(offer, estimate)

    if basis is None:
        return RankedOffer(
            index=index,
            rank=0,
            offer=offer,
            benefit_value=benefits,
            cost_of_living_index=col_index,
            market_source=source,
        )

    adjusted = cost_of_living_adjusted_salary(basis, col_index)
    weighted_salary = weights.salary * adjusted
    weighted_benefits = weights.benefits * benefits
    return RankedOffer(
        index=index,
        rank=0,
        offer=offer,
        benefit_value=benefits,
        cost_of_living_index=col_index,
        basis_salary=basis,
        salary_basis=basis_label,
        adjusted_salary=adjusted,
        weighted_salary=weighted_salary,
        weighted_benefits=weighted_benefits,
        total_score=weighted_salary + weighted_benefits,
        score_computable=True,
        market_source=source,
    )


def rank_offers(
    offers: Sequence[OfferInput],
    weights: ScoreWeights | None = None,
    market_estimates: Sequence[MarketEstimate | None] | None = None,
) -> list[RankedOffer]:
    """Score and order any number of offers.

    Computable offers come first, highest score first, ties kept in input
    order. Offers that cannot be scored follow in input order.
    """
    weights = weights or ScoreWeights()
    if market_estimates is None:
        market_estimates = [None] * len(offers)
    elif len(market_estimates) != len(offers):
        raise ComparisonError(
            f"{len(market_estimates)} market estimates supplied for {len(offers)} offers"
        )

    scored = [
        _score_one(i, offer, weights, estimate)
        for i, (offer, estimate) in enumerate(zip(offers, market_estimates))
    ]
    computable = sorted(
        (s for s in scored if s.score_computable),
        key=lambda s: -s.total_score,  # type: ignore[operator]
    )
    incomparable = [s for s in scored if not s.score_computable]

    ordered = computable + incomparable
    return [
        replace(s, rank=position)
        for position, s in enumerate(ordered, start=1)
    ]


def score_offers(
    offers: Sequence[OfferInput],
    weights: ScoreWeights | None = None,
    market_estimates: Sequence[MarketEstimate | None] | None = None,
) -> list[RankedOffer]:
    """Compare 2 to 4 offers; see :func:`rank_offers` for the ordering."""
    if len(offers) < MIN_OFFERS:
        raise InsufficientOffersError(
            f"At least {MIN_OFFERS} offers are needed for a comparison, got {len(offers)}"
        )
    if len(offers) > MAX_OFFERS:
        raise TooManyOffersError(
            f"At most {MAX_OFFERS} offers can be compared at once, got {len(offers)}"
        )
    return rank_offers(offers, weights, market_estimates)
