#!/usr/bin/env python3
"""
Tests for composite scoring, recommendation and tabular summaries.
"""

from dataclasses import replace

import pandas as pd
import pytest

from withdrawal import (
    SimulationParams,
    StrategyComparison,
    StrategyResult,
    WealthPercentiles,
    WithdrawalPolicy,
    DEFAULT_POLICIES,
    composite_score,
    rank_strategies,
    recommend_strategy,
    success_tier,
    comparison_table,
    wealth_percentile_table,
    trajectory_frame,
    apply_policy,
)
from withdrawal.ranking import stability_score, wealth_score


PRINCIPAL = 1_000_000


def make_result(policy=WithdrawalPolicy.FIXED_REAL, **overrides):
    fields = dict(
        policy=policy,
        n_runs=1000,
        success_rate=90.0,
        ending_wealth=WealthPercentiles(0.0, 200_000, 800_000, 1_500_000, 2_500_000),
        average_income=50_000.0,
        income_volatility=10_000.0,
        worst_case_income=30_000.0,
        best_case_income=70_000.0,
        average_years_lasted=29.0,
        sample_path=(),
    )
    fields.update(overrides)
    return StrategyResult(**fields)


# =============================================================================
# Scoring
# =============================================================================

def test_composite_score_formula():
    result = make_result()
    # stability = 100 - 20 = 80, wealth = min(100, 0.8 * 50) = 40
    assert stability_score(result) == pytest.approx(80.0)
    assert wealth_score(result, PRINCIPAL) == pytest.approx(40.0)
    assert composite_score(result, PRINCIPAL) == pytest.approx(0.5 * 90 + 0.3 * 80 + 0.2 * 40)


def test_wealth_score_capped_at_100():
    rich = make_result(ending_wealth=WealthPercentiles(1e6, 2e6, 5e6, 6e6, 7e6))
    assert wealth_score(rich, PRINCIPAL) == 100.0


def test_wealth_score_zero_principal():
    assert wealth_score(make_result(), 0.0) == 0.0


def test_stability_not_clamped():
    """Variability above 100% gives a negative stability score."""
    volatile = make_result(income_volatility=150_000.0)
    assert stability_score(volatile) == pytest.approx(-200.0)


def test_zero_average_income_scores_full_stability():
    idle = make_result(average_income=0.0, income_volatility=0.0)
    assert idle.income_variability_pct == 0.0
    assert stability_score(idle) == 100.0


def test_score_depends_on_principal():
    result = make_result()
    assert composite_score(result, PRINCIPAL) != composite_score(result, 2 * PRINCIPAL)


# =============================================================================
# Ranking
# =============================================================================

def test_ties_resolved_by_input_order():
    """
    Prediction: with five identical scores the first policy wins.

    Rationale: the ranking sort is stable, so equal scores keep input order.
    """
    results = [make_result(policy) for policy in DEFAULT_POLICIES]
    assert recommend_strategy(results, PRINCIPAL) == DEFAULT_POLICIES[0]

    reversed_results = list(reversed(results))
    assert recommend_strategy(reversed_results, PRINCIPAL) == DEFAULT_POLICIES[-1]

    ranked = rank_strategies(results, PRINCIPAL)
    assert [s.policy for s in ranked] == list(DEFAULT_POLICIES)


def test_highest_score_recommended():
    results = [
        make_result(WithdrawalPolicy.FIXED_REAL, success_rate=80.0),
        make_result(WithdrawalPolicy.BUCKET, success_rate=99.0),
        make_result(WithdrawalPolicy.GUARDRAILS, success_rate=95.0),
    ]
    ranked = rank_strategies(results, PRINCIPAL)
    assert [s.policy for s in ranked] == [
        WithdrawalPolicy.BUCKET, WithdrawalPolicy.GUARDRAILS, WithdrawalPolicy.FIXED_REAL,
    ]
    assert recommend_strategy(results, PRINCIPAL) == WithdrawalPolicy.BUCKET


def test_no_results_no_recommendation():
    assert recommend_strategy([], PRINCIPAL) is None


# =============================================================================
# Summaries
# =============================================================================

@pytest.mark.parametrize("rate, tier", [
    (100.0, "excellent"),
    (95.0, "excellent"),
    (94.9, "good"),
    (85.0, "good"),
    (75.0, "fair"),
    (74.9, "poor"),
    (0.0, "poor"),
])
def test_success_tiers(rate, tier):
    assert success_tier(rate) == tier


@pytest.fixture
def small_comparison():
    results = tuple(
        make_result(policy, success_rate=70.0 + 5 * i)
        for i, policy in enumerate(DEFAULT_POLICIES)
    )
    recommended = recommend_strategy(results, PRINCIPAL)
    return StrategyComparison(params=SimulationParams(), results=results,
                              recommended=recommended)


def test_comparison_table(small_comparison):
    table = comparison_table(small_comparison)

    assert isinstance(table, pd.DataFrame)
    assert list(table.index) == [p.value for p in DEFAULT_POLICIES]
    assert table['tier'].tolist() == ['poor', 'fair', 'fair', 'good', 'good']
    assert table['recommended'].sum() == 1
    assert table.loc['dynamic', 'recommended']
    assert table.loc['fixed4', 'strategy'] == "Fixed 4% Rule"
    assert table['score'].tolist() == pytest.approx(
        [composite_score(r, PRINCIPAL) for r in small_comparison.results]
    )


def test_comparison_table_rescored_at_other_principal(small_comparison):
    base = comparison_table(small_comparison)
    doubled = comparison_table(small_comparison, initial_portfolio=2 * PRINCIPAL)
    assert (doubled['score'] < base['score']).all()


def test_wealth_percentile_table(small_comparison):
    table = wealth_percentile_table(small_comparison.results)
    assert list(table.columns) == ['p10', 'p25', 'p50', 'p75', 'p90']
    assert table.loc['bucket', 'p50'] == 800_000


def test_trajectory_frame():
    records = apply_policy(WithdrawalPolicy.FIXED_REAL, PRINCIPAL, 5, 0.025, [0.05] * 5)
    frame = trajectory_frame(records)

    assert frame.index.name == 'year'
    assert list(frame.index) == [1, 2, 3, 4, 5]
    assert frame['withdrawal'].iloc[0] == pytest.approx(40_000)
    assert list(frame.columns) == ['age', 'portfolio_value', 'withdrawal', 'market_return']


def test_result_info_and_replace():
    result = make_result(WithdrawalPolicy.GUARDRAILS)
    assert result.info.short_name == "Guardrails"
    assert replace(result, success_rate=50.0).success_rate == 50.0
