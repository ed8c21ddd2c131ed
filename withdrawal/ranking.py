"""
Strategy scoring and recommendation.

Composite score = 0.5 x success rate + 0.3 x stability + 0.2 x wealth, where
stability = 100 - income variability % and wealth = min(100, 50 x median
ending wealth / principal). Scores depend on the principal, so they are
computed on demand and never stored on a StrategyResult.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from .params import StrategyResult, WithdrawalPolicy


SUCCESS_WEIGHT = 0.5
STABILITY_WEIGHT = 0.3
WEALTH_WEIGHT = 0.2
WEALTH_SCORE_CAP = 100.0


@dataclass(frozen=True)
class ScoredStrategy:
    """A policy with its composite score and the components behind it."""
    policy: WithdrawalPolicy
    score: float
    success_score: float
    stability_score: float
    wealth_score: float


def stability_score(result: StrategyResult) -> float:
    """100 minus income volatility as a percentage of average income (not clamped)."""
    return 100.0 - result.income_variability_pct


def wealth_score(result: StrategyResult, initial_portfolio: float) -> float:
    """Median ending wealth relative to principal, scaled by 50 and capped at 100."""
    if initial_portfolio <= 0:
        return 0.0
    return min(WEALTH_SCORE_CAP, result.median_ending_wealth / initial_portfolio * 50)


def score_strategy(result: StrategyResult, initial_portfolio: float) -> ScoredStrategy:
    success = result.success_rate
    stability = stability_score(result)
    wealth = wealth_score(result, initial_portfolio)
    return ScoredStrategy(
        policy=result.policy,
        score=(SUCCESS_WEIGHT * success
               + STABILITY_WEIGHT * stability
               + WEALTH_WEIGHT * wealth),
        success_score=success,
        stability_score=stability,
        wealth_score=wealth,
    )


def composite_score(result: StrategyResult, initial_portfolio: float) -> float:
    """Composite score for one result at the given principal."""
    return score_strategy(result, initial_portfolio).score


def rank_strategies(
    results: Sequence[StrategyResult],
    initial_portfolio: float,
) -> List[ScoredStrategy]:
    """
    Score every result and order best first.

    The sort is stable, so equal scores keep their input order.
    """
    scored = [score_strategy(r, initial_portfolio) for r in results]
    return sorted(scored, key=lambda s: s.score, reverse=True)


def recommend_strategy(
    results: Sequence[StrategyResult],
    initial_portfolio: float,
) -> Optional[WithdrawalPolicy]:
    """Highest-scoring policy, first in input order on ties; None if no results."""
    if not results:
        return None
    return rank_strategies(results, initial_portfolio)[0].policy
