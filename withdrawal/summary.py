"""
Tabular summaries of strategy comparison results.
"""

import pandas as pd
from typing import Sequence

from .params import StrategyComparison, StrategyResult, YearRecord, POLICY_INFO
from .ranking import score_strategy


# (minimum success rate, tier), checked top to bottom
SUCCESS_TIERS = [
    (95.0, "excellent"),
    (85.0, "good"),
    (75.0, "fair"),
]


def success_tier(success_rate: float) -> str:
    """Qualitative label for a success rate in percent."""
    for threshold, tier in SUCCESS_TIERS:
        if success_rate >= threshold:
            return tier
    return "poor"


def comparison_table(comparison: StrategyComparison, initial_portfolio: float = None) -> pd.DataFrame:
    """
    One row per policy, in evaluation order.

    The composite score is computed at initial_portfolio, which defaults to
    the principal the comparison was run with.
    """
    if initial_portfolio is None:
        initial_portfolio = comparison.params.initial_portfolio

    rows = []
    for result in comparison.results:
        scored = score_strategy(result, initial_portfolio)
        rows.append({
            'strategy': POLICY_INFO[result.policy].name,
            'success_rate': result.success_rate,
            'tier': success_tier(result.success_rate),
            'average_income': result.average_income,
            'worst_case_income': result.worst_case_income,
            'best_case_income': result.best_case_income,
            'median_ending_wealth': result.median_ending_wealth,
            'income_variability_pct': result.income_variability_pct,
            'average_years_lasted': result.average_years_lasted,
            'score': scored.score,
            'recommended': result.policy == comparison.recommended,
        })

    return pd.DataFrame(rows, index=[r.policy.value for r in comparison.results])


def wealth_percentile_table(results: Sequence[StrategyResult]) -> pd.DataFrame:
    """Ending-wealth percentiles (p10..p90) per policy."""
    return pd.DataFrame(
        [r.ending_wealth.as_tuple() for r in results],
        index=[r.policy.value for r in results],
        columns=['p10', 'p25', 'p50', 'p75', 'p90'],
    )


def trajectory_frame(trajectory: Sequence[YearRecord]) -> pd.DataFrame:
    """Year-by-year trajectory as a DataFrame indexed by year."""
    return pd.DataFrame(
        {
            'age': [r.age for r in trajectory],
            'portfolio_value': [r.portfolio_value for r in trajectory],
            'withdrawal': [r.withdrawal for r in trajectory],
            'market_return': [r.market_return for r in trajectory],
        },
        index=pd.Index([r.year for r in trajectory], name='year'),
    )
