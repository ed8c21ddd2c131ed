"""
Core module for withdrawal strategy simulation.

This module provides the components for comparing retirement withdrawal
policies under bootstrapped historical returns:
- Parameter and result dataclasses (params.py)
- Historical data, seeded random source, return paths (market.py)
- The five withdrawal policies (policies.py)
- Single runs, Monte Carlo aggregation, full comparison (simulation.py)
- Composite scoring and recommendation (ranking.py)
- Tabular summaries (summary.py)
"""

# Parameter dataclasses
from .params import (
    SimulationParams,
    FixedRealParams,
    VariableParams,
    GuardrailParams,
    BucketParams,
    ActuarialParams,
    PolicyParams,
    WithdrawalPolicy,
    RiskTolerance,
    PolicyInfo,
    POLICY_CATALOG,
    POLICY_INFO,
    # State and records
    YearRecord,
    BucketState,
    PolicyState,
    # Result dataclasses
    WealthPercentiles,
    StrategyResult,
    StrategyComparison,
)

# Market primitives
from .market import (
    SP500_RAW_RETURNS_PCT,
    SP500_HISTORICAL,
    ReturnDataset,
    Mulberry32,
    build_historical_returns,
    generate_return_path,
)

# Policies
from .policies import (
    iterate_policy,
    apply_policy,
    apply_guardrails,
    drain_buckets,
    refill_buckets,
    actuarial_rate,
)

# Simulation engine
from .simulation import (
    SimulationCancelled,
    DEFAULT_POLICIES,
    derive_run_seed,
    run_single,
    summarize_runs,
    run_strategy_simulation,
    run_strategy_comparison,
)

# Ranking
from .ranking import (
    ScoredStrategy,
    composite_score,
    rank_strategies,
    recommend_strategy,
)

# Summaries
from .summary import (
    success_tier,
    comparison_table,
    wealth_percentile_table,
    trajectory_frame,
)

__all__ = [
    # Params
    'SimulationParams',
    'FixedRealParams',
    'VariableParams',
    'GuardrailParams',
    'BucketParams',
    'ActuarialParams',
    'PolicyParams',
    'WithdrawalPolicy',
    'RiskTolerance',
    'PolicyInfo',
    'POLICY_CATALOG',
    'POLICY_INFO',
    'YearRecord',
    'BucketState',
    'PolicyState',
    # Results
    'WealthPercentiles',
    'StrategyResult',
    'StrategyComparison',
    # Market
    'SP500_RAW_RETURNS_PCT',
    'SP500_HISTORICAL',
    'ReturnDataset',
    'Mulberry32',
    'build_historical_returns',
    'generate_return_path',
    # Policies
    'iterate_policy',
    'apply_policy',
    'apply_guardrails',
    'drain_buckets',
    'refill_buckets',
    'actuarial_rate',
    # Simulation
    'SimulationCancelled',
    'DEFAULT_POLICIES',
    'derive_run_seed',
    'run_single',
    'summarize_runs',
    'run_strategy_simulation',
    'run_strategy_comparison',
    # Ranking
    'ScoredStrategy',
    'composite_score',
    'rank_strategies',
    'recommend_strategy',
    # Summaries
    'success_tier',
    'comparison_table',
    'wealth_percentile_table',
    'trajectory_frame',
]
