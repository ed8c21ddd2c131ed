"""
Core parameter and result dataclasses for withdrawal strategy simulation.

This module contains the parameter dataclasses, the closed set of withdrawal
policies, and the result types shared by the simulation engine, the ranker
and the visualization package.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple
from enum import Enum


# =============================================================================
# Retirement Parameters
# =============================================================================

@dataclass
class SimulationParams:
    """Parameters for one withdrawal strategy comparison."""
    initial_portfolio: float = 1_000_000   # Portfolio at retirement ($)
    retirement_age: int = 65               # Age at retirement (first simulated year)
    current_age: int = 55                  # Current age (informational)
    inflation_rate: float = 0.025          # Annual inflation (decimal)
    expected_return: float = 0.07          # Advisory only, the sampler uses history
    life_expectancy: int = 95              # Planning horizon end age
    n_simulations: int = 1000              # Runs per policy
    random_seed: int = 42                  # Top-level seed for all runs

    @property
    def horizon_years(self) -> int:
        """Years in retirement = life expectancy - retirement age."""
        return self.life_expectancy - self.retirement_age

    def validate(self) -> None:
        """Fail fast on inputs that would produce empty statistics."""
        if self.horizon_years <= 0:
            raise ValueError(
                f"Horizon must be positive: life_expectancy={self.life_expectancy}, "
                f"retirement_age={self.retirement_age}"
            )
        if self.n_simulations <= 0:
            raise ValueError(f"n_simulations must be positive, got {self.n_simulations}")
        if self.initial_portfolio < 0:
            raise ValueError(f"initial_portfolio must be non-negative, got {self.initial_portfolio}")


# =============================================================================
# Policy Constants
# =============================================================================

@dataclass(frozen=True)
class FixedRealParams:
    """Fixed 4% rule: first-year rate of initial portfolio, then inflation."""
    initial_rate: float = 0.04


@dataclass(frozen=True)
class VariableParams:
    """Fixed percentage of current portfolio each year."""
    rate: float = 0.04


@dataclass(frozen=True)
class GuardrailParams:
    """Guardrails bands, adjustments and hard limits."""
    initial_rate: float = 0.04
    upper_rail: float = 0.05         # Cut spending above this withdrawal rate
    lower_rail: float = 0.03         # Raise spending below this withdrawal rate
    drawdown_trigger: float = 0.80   # ... and portfolio below this share of peak
    surge_trigger: float = 1.20      # ... and portfolio above this share of peak
    cut_pct: float = 0.10
    raise_pct: float = 0.10
    floor_rate: float = 0.03         # Hard floor, share of initial portfolio
    ceiling_rate: float = 0.06       # Hard ceiling, share of initial portfolio


@dataclass(frozen=True)
class BucketParams:
    """Three-bucket split sized in years of first-year spending."""
    initial_rate: float = 0.04
    cash_years: float = 2.5
    bond_years: float = 6.0
    bond_return: float = 0.045
    cash_return: float = 0.025
    refill_trigger: float = 0.05     # Refill only when stocks returned more than this
    refill_fraction: float = 0.10    # Max share of stocks moved per bucket per year


@dataclass(frozen=True)
class ActuarialParams:
    """Remaining-life withdrawal rate: 1 / (remaining years + margin)."""
    safety_margin: int = 2
    min_rate: float = 0.03
    max_rate: float = 0.08


@dataclass(frozen=True)
class PolicyParams:
    """Constants for all five policies; defaults are the published rule constants."""
    fixed_real: FixedRealParams = field(default_factory=FixedRealParams)
    variable: VariableParams = field(default_factory=VariableParams)
    guardrails: GuardrailParams = field(default_factory=GuardrailParams)
    bucket: BucketParams = field(default_factory=BucketParams)
    actuarial: ActuarialParams = field(default_factory=ActuarialParams)


# =============================================================================
# Withdrawal Policies
# =============================================================================

class WithdrawalPolicy(Enum):
    """The closed set of withdrawal policies, in evaluation order."""
    FIXED_REAL = "fixed4"
    VARIABLE_PERCENTAGE = "variablePercentage"
    GUARDRAILS = "guardrails"
    BUCKET = "bucket"
    DYNAMIC_ACTUARIAL = "dynamic"


class RiskTolerance(Enum):
    """Risk tolerance a policy asks of the retiree."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class PolicyInfo:
    """Descriptive metadata for a withdrawal policy."""
    policy: WithdrawalPolicy
    name: str
    short_name: str
    description: str
    pros: Tuple[str, ...]
    cons: Tuple[str, ...]
    psychology_fit: str
    risk_tolerance: RiskTolerance

    def __str__(self):
        return self.name


# Five policies to compare
POLICY_CATALOG = [
    PolicyInfo(
        WithdrawalPolicy.FIXED_REAL,
        name="Fixed 4% Rule",
        short_name="4% Rule",
        description=("Withdraw 4% of the initial balance in year 1, then adjust "
                     "for inflation each year."),
        pros=("Simple and predictable", "Well-researched historical success",
              "Easy to budget around"),
        cons=("Ignores market conditions", "May leave money on the table",
              "Risk of depletion in poor sequences"),
        psychology_fit=("Best for those who value predictability and simplicity "
                        "and want to know exactly what they can spend."),
        risk_tolerance=RiskTolerance.MEDIUM,
    ),
    PolicyInfo(
        WithdrawalPolicy.VARIABLE_PERCENTAGE,
        name="Variable Percentage",
        short_name="Variable %",
        description="Withdraw a fixed percentage of the current portfolio value each year.",
        pros=("Never fully depletes the portfolio", "Automatically adjusts to the market",
              "Leaves a larger legacy in good markets"),
        cons=("Income varies significantly", "Hard to budget",
              "May force dramatic spending cuts"),
        psychology_fit=("Best for flexible spenders who can adjust lifestyle up or "
                        "down with market conditions."),
        risk_tolerance=RiskTolerance.HIGH,
    ),
    PolicyInfo(
        WithdrawalPolicy.GUARDRAILS,
        name="Guardrails Strategy",
        short_name="Guardrails",
        description=("Start with the 4% rule, raise spending 10% after good years and "
                     "cut 10% after bad years, within limits."),
        pros=("Balances stability and flexibility",
              "Responds to markets without wild swings",
              "Protects against sequence risk"),
        cons=("More complex to implement", "Requires tracking portfolio peaks",
              "Still some income variability"),
        psychology_fit=("Best for those who want stability but can handle moderate "
                        "adjustments."),
        risk_tolerance=RiskTolerance.MEDIUM,
    ),
    PolicyInfo(
        WithdrawalPolicy.BUCKET,
        name="Bucket Strategy",
        short_name="Buckets",
        description=("Divide the portfolio into cash (2-3 years), bonds (5-7 years) "
                     "and stocks. Refill from stocks in up markets."),
        pros=("Psychological peace of mind", "Clear short-term security",
              "Avoids selling stocks in down markets"),
        cons=("Cash drag reduces long-term returns", "Complex rebalancing rules",
              "May not outperform simpler strategies"),
        psychology_fit=("Best for those who need to see near-term spending secured."),
        risk_tolerance=RiskTolerance.LOW,
    ),
    PolicyInfo(
        WithdrawalPolicy.DYNAMIC_ACTUARIAL,
        name="Dynamic Spending",
        short_name="Dynamic",
        description=("Base withdrawals on portfolio value and remaining life "
                     "expectancy."),
        pros=("Adapts to longevity", "Higher safe spending early",
              "Never withdraws more than the portfolio holds"),
        cons=("Complex to calculate", "Requires mortality assumptions",
              "Income varies over time"),
        psychology_fit=("Best for analytical types who can handle variable income."),
        risk_tolerance=RiskTolerance.HIGH,
    ),
]

POLICY_INFO = {info.policy: info for info in POLICY_CATALOG}


# =============================================================================
# Per-Run State and Records
# =============================================================================

@dataclass(frozen=True)
class YearRecord:
    """One simulated year of a run."""
    year: int                 # 1-based year index
    age: int                  # Age at the end of this year
    portfolio_value: float    # Portfolio after withdrawal and return, >= 0
    withdrawal: float         # Actual withdrawal this year
    market_return: float      # Applied stock return (decimal)


@dataclass(frozen=True)
class BucketState:
    """Sub-balances of the bucket policy."""
    cash: float
    bonds: float
    stocks: float

    @property
    def total(self) -> float:
        return self.cash + self.bonds + self.stocks


@dataclass(frozen=True)
class PolicyState:
    """
    State carried from one year to the next within a single run.

    Each policy reads the fields it needs and returns a new PolicyState;
    nothing is mutated in place, so a run's state stays local to that run.
    """
    portfolio: float
    withdrawal: float                     # Intended withdrawal for the coming year
    peak: float = 0.0                     # Guardrails: running portfolio maximum
    buckets: Optional[BucketState] = None # Bucket policy only


# =============================================================================
# Result Dataclasses
# =============================================================================

@dataclass(frozen=True)
class WealthPercentiles:
    """Ending-wealth percentiles across all runs."""
    p10: float
    p25: float
    p50: float
    p75: float
    p90: float

    def as_tuple(self) -> Tuple[float, float, float, float, float]:
        return (self.p10, self.p25, self.p50, self.p75, self.p90)


@dataclass(frozen=True)
class StrategyResult:
    """
    Aggregated outcome of all runs for one withdrawal policy.

    Built once per policy after every run has completed and never
    modified afterwards.
    """
    policy: WithdrawalPolicy
    n_runs: int
    success_rate: float                  # 0-100
    ending_wealth: WealthPercentiles
    average_income: float
    income_volatility: float             # Population std of all withdrawals
    worst_case_income: float             # 5th percentile withdrawal
    best_case_income: float              # 95th percentile withdrawal
    average_years_lasted: float
    sample_path: Tuple[YearRecord, ...]  # Representative (median) run

    @property
    def median_ending_wealth(self) -> float:
        return self.ending_wealth.p50

    @property
    def income_variability_pct(self) -> float:
        """Income volatility as a percentage of average income (0 if no income)."""
        if self.average_income <= 0:
            return 0.0
        return self.income_volatility / self.average_income * 100

    @property
    def info(self) -> PolicyInfo:
        return POLICY_INFO[self.policy]


@dataclass(frozen=True)
class StrategyComparison:
    """
    Results for every evaluated policy plus the recommendation.

    Composite scores are not stored; they depend on the principal and are
    recomputed on demand by the ranking module.
    """
    params: SimulationParams
    results: Tuple[StrategyResult, ...]
    recommended: Optional[WithdrawalPolicy]

    def result_for(self, policy: WithdrawalPolicy) -> StrategyResult:
        for result in self.results:
            if result.policy == policy:
                return result
        raise KeyError(policy)

    @property
    def policies(self) -> List[WithdrawalPolicy]:
        return [r.policy for r in self.results]
