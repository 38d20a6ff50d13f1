"""Deterministic offline estimates, used when the market service is unreachable."""

from __future__ import annotations

from applytrack.schemas import CostOfLivingIndex, MarketEstimate, SalaryRange

# ---- lookup tables ----

_BASE_RANGE = (70_000, 140_000, 100_000)
_SENIOR_RANGE = (100_000, 180_000, 135_000)
_ENGINEERING_UPLIFT = (10_000, 20_000, 15_000)

_SENIOR_MARKERS = ("senior", "lead")
_ENGINEERING_MARKERS = ("engineer", "developer")

# First match wins.
_LOCATION_MULTIPLIERS: list[tuple[tuple[str, ...], float]] = [
    (("san francisco", "new york"), 1.4),
    (("seattle", "boston"), 1.25),
    (("austin", "denver"), 1.1),
]

# overall, housing, groceries
_COST_OF_LIVING: dict[str, tuple[float, float, float]] = {
    "san francisco": (192.3, 296.5, 162.4),
    "new york": (187.2, 242.3, 169.8),
    "seattle": (152.8, 203.4, 139.5),
    "los angeles": (166.5, 243.1, 154.2),
    "austin": (119.3, 154.8, 109.7),
}


def estimate_salary(title: str, location: str) -> SalaryRange:
    title_l = title.lower()
    low, high, median = _SENIOR_RANGE if any(m in title_l for m in _SENIOR_MARKERS) else _BASE_RANGE
    if any(m in title_l for m in _ENGINEERING_MARKERS):
        low, high, median = (
            low + _ENGINEERING_UPLIFT[0],
            high + _ENGINEERING_UPLIFT[1],
            median + _ENGINEERING_UPLIFT[2],
        )

    location_l = location.lower()
    multiplier = 1.0
    for cities, factor in _LOCATION_MULTIPLIERS:
        if any(city in location_l for city in cities):
            multiplier = factor
            break

    return SalaryRange(
        min=round(low * multiplier),
        max=round(high * multiplier),
        median=round(median * multiplier),
    )


def estimate_cost_of_living(location: str) -> CostOfLivingIndex:
    location_l = location.lower()
    for city, (overall, housing, groceries) in _COST_OF_LIVING.items():
        if city in location_l:
            return CostOfLivingIndex(overall=overall, housing=housing, groceries=groceries)
    return CostOfLivingIndex()


class LocalEstimateSource:
    """Rule-based estimator; same inputs always give the same estimate."""

    def fetch_estimate(self, title: str, location: str) -> MarketEstimate:
        return MarketEstimate(
            salary_range=estimate_salary(title, location),
            cost_of_living_index=estimate_cost_of_living(location),
            source="local-estimate",
        )
