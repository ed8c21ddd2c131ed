"""
Simulation engine for withdrawal strategy comparison.

This module contains the single-run executor, the per-policy Monte Carlo
aggregator and the driver that evaluates every policy and picks a
recommendation.
"""

import numpy as np
from joblib import Parallel, delayed
from tqdm import tqdm
from typing import Callable, List, Optional, Sequence, Tuple

from .params import (
    SimulationParams,
    PolicyParams,
    WithdrawalPolicy,
    YearRecord,
    WealthPercentiles,
    StrategyResult,
    StrategyComparison,
    POLICY_CATALOG,
)
from .market import Mulberry32, ReturnDataset, SP500_HISTORICAL, generate_return_path
from .policies import apply_policy
from .ranking import recommend_strategy


SEED_STRIDE = 12345
WEALTH_PERCENTILES = (0.10, 0.25, 0.50, 0.75, 0.90)
WORST_CASE_INCOME_PCTL = 0.05
BEST_CASE_INCOME_PCTL = 0.95

# Runs dispatched per parallel batch; cancellation is checked between batches
PARALLEL_BATCH_SIZE = 100

DEFAULT_POLICIES = tuple(info.policy for info in POLICY_CATALOG)
POLICY_SHORT_NAMES = {info.policy: info.short_name for info in POLICY_CATALOG}


class SimulationCancelled(RuntimeError):
    """Raised when a comparison is cancelled between runs."""


# =============================================================================
# Single Run
# =============================================================================

def derive_run_seed(base_seed: int, run_index: int) -> int:
    """Seed for one run: a fixed function of the top-level seed and run index."""
    return (base_seed + run_index * SEED_STRIDE) & 0xFFFFFFFF


def run_single(
    policy: WithdrawalPolicy,
    params: SimulationParams,
    seed: int,
    dataset: ReturnDataset = SP500_HISTORICAL,
    policy_params: Optional[PolicyParams] = None,
) -> Tuple[YearRecord, ...]:
    """
    Execute one run: sample a return path from its own seed, apply the policy.

    Ages are filled in as retirement_age + year index + 1.
    """
    rng = Mulberry32(seed)
    returns = generate_return_path(params.horizon_years, rng, dataset)
    return apply_policy(
        policy,
        params.initial_portfolio,
        params.horizon_years,
        params.inflation_rate,
        returns,
        starting_age=params.retirement_age,
        life_expectancy=params.life_expectancy,
        params=policy_params,
    )


# =============================================================================
# Statistics Helpers
# =============================================================================

def percentile_index(n: int, p: float) -> int:
    """Index floor(n * p) into a sorted sequence, never reaching n."""
    if n <= 0:
        raise ValueError("Cannot take a percentile of an empty sequence")
    return min(int(n * p), n - 1)


def sorted_percentile(sorted_values: Sequence[float], p: float) -> float:
    """Value at floor(n * p) of an ascending sequence."""
    return float(sorted_values[percentile_index(len(sorted_values), p)])


def first_depletion_year(trajectory: Sequence[YearRecord]) -> Optional[int]:
    """Year index of the first record with an empty portfolio, or None."""
    for idx, record in enumerate(trajectory):
        if record.portfolio_value <= 0:
            return idx
    return None


def summarize_runs(
    policy: WithdrawalPolicy,
    trajectories: Sequence[Tuple[YearRecord, ...]],
    horizon_years: int,
) -> StrategyResult:
    """
    Fold completed runs into a StrategyResult.

    - success: the portfolio never reached zero within the horizon
    - years lasted: first depletion index for failures, full horizon otherwise
    - ending-wealth percentiles: value at floor(n * p) of the sorted endings
    - income: every withdrawal of every run flattened into one sample;
      volatility is its population standard deviation
    - sample path: the run at index n // 2 after sorting runs by ending wealth
    """
    n_runs = len(trajectories)
    if n_runs == 0:
        raise ValueError("Need at least one completed run to summarize")

    ending = np.array([t[-1].portfolio_value if t else 0.0 for t in trajectories])
    withdrawals = np.array([r.withdrawal for t in trajectories for r in t])

    successes = 0
    years_lasted = 0
    for trajectory in trajectories:
        depleted_at = first_depletion_year(trajectory)
        if depleted_at is None:
            successes += 1
            years_lasted += horizon_years
        else:
            years_lasted += depleted_at

    sorted_ending = np.sort(ending, kind='stable')
    percentiles = WealthPercentiles(
        *(sorted_percentile(sorted_ending, p) for p in WEALTH_PERCENTILES)
    )

    if withdrawals.size > 0:
        average_income = float(np.mean(withdrawals))
        income_volatility = float(np.std(withdrawals))
        sorted_withdrawals = np.sort(withdrawals, kind='stable')
        worst_case = sorted_percentile(sorted_withdrawals, WORST_CASE_INCOME_PCTL)
        best_case = sorted_percentile(sorted_withdrawals, BEST_CASE_INCOME_PCTL)
    else:
        average_income = income_volatility = worst_case = best_case = 0.0

    order = np.argsort(ending, kind='stable')
    sample_path = tuple(trajectories[int(order[n_runs // 2])])

    return StrategyResult(
        policy=policy,
        n_runs=n_runs,
        success_rate=successes / n_runs * 100,
        ending_wealth=percentiles,
        average_income=average_income,
        income_volatility=income_volatility,
        worst_case_income=worst_case,
        best_case_income=best_case,
        average_years_lasted=years_lasted / n_runs,
        sample_path=sample_path,
    )


# =============================================================================
# Monte Carlo per Policy
# =============================================================================

def _check_cancelled(cancel_event) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise SimulationCancelled("Simulation cancelled between runs")


def run_strategy_simulation(
    policy: WithdrawalPolicy,
    params: Optional[SimulationParams] = None,
    dataset: ReturnDataset = SP500_HISTORICAL,
    policy_params: Optional[PolicyParams] = None,
    n_jobs: int = 1,
    show_progress: bool = False,
    cancel_event=None,
) -> StrategyResult:
    """
    Run n_simulations independent runs of one policy and aggregate them.

    Run i uses seed derive_run_seed(random_seed, i), so the result is the
    same whatever the execution order or number of workers.

    Args:
        policy: Withdrawal policy to evaluate
        params: Simulation parameters
        dataset: Historical returns for bootstrap sampling
        policy_params: Policy constants
        n_jobs: Worker count for joblib (1 = run in-process)
        show_progress: Show a tqdm progress bar
        cancel_event: Object with is_set(); checked between runs (or batches)

    Raises:
        SimulationCancelled: if cancel_event is set before all runs finish
    """
    if params is None:
        params = SimulationParams()
    params.validate()

    n_sims = params.n_simulations
    seeds = [derive_run_seed(params.random_seed, i) for i in range(n_sims)]
    trajectories: List[Tuple[YearRecord, ...]] = []

    with tqdm(total=n_sims, desc=POLICY_SHORT_NAMES.get(policy, policy.value),
              unit="sim", disable=not show_progress) as pbar:
        if n_jobs == 1:
            for seed in seeds:
                _check_cancelled(cancel_event)
                trajectories.append(run_single(policy, params, seed, dataset, policy_params))
                pbar.update(1)
        else:
            with Parallel(n_jobs=n_jobs, backend='loky') as parallel:
                for start in range(0, n_sims, PARALLEL_BATCH_SIZE):
                    _check_cancelled(cancel_event)
                    batch = seeds[start:start + PARALLEL_BATCH_SIZE]
                    trajectories.extend(parallel(
                        delayed(run_single)(policy, params, seed, dataset, policy_params)
                        for seed in batch
                    ))
                    pbar.update(len(batch))

    return summarize_runs(policy, trajectories, params.horizon_years)


# =============================================================================
# Full Comparison
# =============================================================================

def run_strategy_comparison(
    params: Optional[SimulationParams] = None,
    policies: Sequence[WithdrawalPolicy] = DEFAULT_POLICIES,
    dataset: ReturnDataset = SP500_HISTORICAL,
    policy_params: Optional[PolicyParams] = None,
    n_jobs: int = 1,
    show_progress: bool = False,
    progress_callback: Optional[Callable[[WithdrawalPolicy, int, int], None]] = None,
    cancel_event=None,
) -> StrategyComparison:
    """
    Evaluate every policy against the same seeds and recommend one.

    All policies see identical return paths: run i of every policy uses the
    same derived seed. progress_callback(policy, completed, total) is called
    once per policy, only after its StrategyResult is complete.
    """
    if params is None:
        params = SimulationParams()
    params.validate()

    results = []
    total = len(policies)
    for i, policy in enumerate(policies):
        result = run_strategy_simulation(
            policy,
            params,
            dataset=dataset,
            policy_params=policy_params,
            n_jobs=n_jobs,
            show_progress=show_progress,
            cancel_event=cancel_event,
        )
        results.append(result)
        if progress_callback is not None:
            progress_callback(policy, i + 1, total)

    recommended = recommend_strategy(results, params.initial_portfolio)
    return StrategyComparison(
        params=params,
        results=tuple(results),
        recommended=recommended,
    )
