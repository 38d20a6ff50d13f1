"""Validated request/response contracts shared by the scorer and its collaborators.

Every model accepts either snake_case or camelCase keys so payloads coming from
the browser (``healthInsurance``, ``paidTimeOffDays``) and from YAML files
(``health_insurance``) validate the same way.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

MarketSource = Literal["api", "local-estimate"]


class _Contract(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class Benefits(_Contract):
    """Benefit flags of an offer."""

    health_insurance: bool = False
    dental_insurance: bool = False
    vision_insurance: bool = False
    retirement_401k: bool = Field(default=False, alias="retirement401k")
    paid_time_off_days: float = Field(default=0, ge=0)
    remote_work: bool = False
    flexible_hours: bool = False
    stock_options: bool = False


class OfferInput(_Contract):
    """A job offer (or a prospective one) entered for comparison."""

    salary: float | None = Field(default=None, ge=0)
    bonus: float = Field(default=0, ge=0)
    benefits: Benefits = Field(default_factory=Benefits)
    company: str = ""
    role: str = ""
    location: str = ""

    @field_validator("bonus", mode="before")
    @classmethod
    def _none_bonus(cls, v: object) -> object:
        return 0 if v is None else v


class ScoreWeights(_Contract):
    """Multipliers applied to the salary and benefit components."""

    salary: float = Field(default=1.0, ge=0)
    benefits: float = Field(default=0.5, ge=0)


class SalaryRange(_Contract):
    min: float = Field(ge=0)
    max: float = Field(ge=0)
    median: float = Field(ge=0)


class CostOfLivingIndex(_Contract):
    """Indices relative to the national average of 100."""

    overall: float = Field(default=100, gt=0)
    housing: float = Field(default=100, gt=0)
    groceries: float = Field(default=100, gt=0)


class MarketEstimate(_Contract):
    """Market salary and cost-of-living figures for one title/location pair.

    ``salary_range`` is None when only the location was looked up.
    """

    salary_range: SalaryRange | None = None
    cost_of_living_index: CostOfLivingIndex = Field(default_factory=CostOfLivingIndex)
    source: MarketSource


class ComparisonRequest(_Contract):
    """Offers to compare, optionally with custom weights (e.g. an ``offers.yaml`` file)."""

    offers: list[OfferInput]
    weights: ScoreWeights | None = None
