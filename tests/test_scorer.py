"""Tests for offer scoring and ranking."""

from __future__ import annotations

import itertools

import pytest
from pydantic import ValidationError

from applytrack.exceptions import (
    ComparisonError,
    InsufficientOffersError,
    TooManyOffersError,
)
from applytrack.schemas import (
    Benefits,
    CostOfLivingIndex,
    MarketEstimate,
    OfferInput,
    SalaryRange,
    ScoreWeights,
)
from applytrack.valuation.scorer import (
    benefit_value,
    cost_of_living_adjusted_salary,
    rank_offers,
    score_offers,
)


def _estimate(median: float, col: float = 100, source: str = "api") -> MarketEstimate:
    return MarketEstimate(
        salary_range=SalaryRange(min=median * 0.8, max=median * 1.2, median=median),
        cost_of_living_index=CostOfLivingIndex(overall=col),
        source=source,
    )


def test_reference_pair():
    a = OfferInput(salary=100_000)
    b = OfferInput(salary=90_000, benefits=Benefits(health_insurance=True, paid_time_off_days=10))

    assert benefit_value(b) == 10_000
    ranked = score_offers([b, a])

    assert [r.index for r in ranked] == [1, 0]
    assert ranked[0].total_score == pytest.approx(100_000)
    assert ranked[1].total_score == pytest.approx(95_000)
    assert [r.rank for r in ranked] == [1, 2]


def test_every_benefit_constant():
    everything = OfferInput(
        salary=1,
        bonus=2_500,
        benefits=Benefits(
            health_insurance=True,
            dental_insurance=True,
            vision_insurance=True,
            retirement_401k=True,
            paid_time_off_days=4,
            remote_work=True,
            flexible_hours=True,
            stock_options=True,
        ),
    )
    assert benefit_value(everything) == 2_500 + 5000 + 1000 + 500 + 3000 + 2000 + 5000 + 3000 + 5000


def test_camel_case_payload():
    offer = OfferInput.model_validate(
        {
            "salary": 80000,
            "bonus": 1000,
            "benefits": {"healthInsurance": True, "retirement401k": True, "paidTimeOffDays": 2},
        }
    )
    assert benefit_value(offer) == 1000 + 5000 + 3000 + 1000


def test_negative_inputs_rejected():
    with pytest.raises(ValidationError):
        OfferInput(salary=-1)
    with pytest.raises(ValidationError):
        Benefits(paid_time_off_days=-3)


def test_cost_of_living_adjustment():
    assert cost_of_living_adjusted_salary(100_000, 200) == pytest.approx(50_000)
    assert cost_of_living_adjusted_salary(100_000) == pytest.approx(100_000)
    with pytest.raises(ValueError):
        cost_of_living_adjusted_salary(100_000, 0)


def test_estimate_index_applies_to_stated_salary():
    ranked = score_offers(
        [OfferInput(salary=150_000), OfferInput(salary=100_000)],
        market_estimates=[_estimate(140_000, col=192.3, source="local-estimate"), None],
    )
    assert ranked[0].index == 1
    sf = ranked[1]
    assert sf.salary_basis == "stated"
    assert sf.market_source == "local-estimate"
    assert sf.adjusted_salary == pytest.approx(150_000 / 1.923)


def test_market_median_used_without_salary():
    ranked = score_offers(
        [OfferInput(), OfferInput(salary=50_000)],
        market_estimates=[_estimate(120_000, source="api"), None],
    )
    top = ranked[0]
    assert top.index == 0
    assert top.score_computable
    assert top.basis_salary == 120_000
    assert top.salary_basis == "market-median"
    assert top.market_source == "api"


def test_missing_salary_is_not_scored_as_zero():
    ranked = score_offers(
        [OfferInput(salary=None, benefits=Benefits(health_insurance=True)), OfferInput(salary=1)],
    )
    assert ranked[0].index == 1
    last = ranked[-1]
    assert last.score_computable is False
    assert last.total_score is None
    assert last.benefit_value == 5000
    assert last.rank == 2


def test_zero_salary_counts_as_missing():
    ranked = score_offers([OfferInput(salary=0), OfferInput(salary=0)])
    assert all(not r.score_computable for r in ranked)
    assert [r.index for r in ranked] == [0, 1]


def test_ties_keep_input_order():
    offers = [
        OfferInput(company="first", salary=100_000),
        OfferInput(company="second", salary=90_000, bonus=20_000),
        OfferInput(company="third", salary=100_000),
    ]
    ranked = score_offers(offers)
    assert [r.offer.company for r in ranked] == ["first", "second", "third"]


def test_permutation_invariance():
    offers = [
        OfferInput(salary=100_000),
        OfferInput(salary=95_000, bonus=10_000),
        OfferInput(salary=100_000),
        OfferInput(salary=None),
    ]
    reference = [(r.offer.salary, r.offer.bonus, r.total_score) for r in score_offers(offers)]
    for perm in itertools.permutations(range(len(offers))):
        shuffled = [offers[i] for i in perm]
        ranked = score_offers(shuffled)
        # re-order equal scores by original position
        ranked.sort(key=lambda r: (
            not r.score_computable,
            -(r.total_score or 0),
            perm[r.index],
        ))
        assert [(r.offer.salary, r.offer.bonus, r.total_score) for r in ranked] == reference


def test_custom_weights():
    offers = [
        OfferInput(salary=100_000),
        OfferInput(salary=80_000, benefits=Benefits(remote_work=True, stock_options=True)),
    ]
    ranked = score_offers(offers, weights=ScoreWeights(salary=1.0, benefits=3.0))
    assert ranked[0].index == 1
    assert ranked[0].total_score == pytest.approx(80_000 + 30_000)
    assert ranked[0].weighted_benefits == pytest.approx(30_000)


def test_offer_count_bounds():
    with pytest.raises(InsufficientOffersError):
        score_offers([OfferInput(salary=1)])
    with pytest.raises(InsufficientOffersError):
        score_offers([])
    with pytest.raises(TooManyOffersError):
        score_offers([OfferInput(salary=1)] * 5)


def test_rank_offers_has_no_upper_bound():
    ranked = rank_offers([OfferInput(salary=s) for s in range(1, 11)])
    assert len(ranked) == 10
    assert ranked[0].offer.salary == 10


def test_estimate_length_mismatch():
    with pytest.raises(ComparisonError):
        score_offers([OfferInput(salary=1), OfferInput(salary=2)], market_estimates=[None])
