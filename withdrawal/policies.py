"""
Withdrawal policy implementations.

Each policy is a pair of plain functions:
- an initializer building the PolicyState for year one
- a step mapping (state, year, market return) -> (next state, actual withdrawal)

All five share one driver, iterate_policy(), which applies the common yearly
pattern: withdraw, apply the return, record the year, carry state forward.

Available policies:
- FIXED_REAL: 4% of initial portfolio, grown with inflation
- VARIABLE_PERCENTAGE: fixed share of the current portfolio
- GUARDRAILS: fixed-real spending cut or raised when the rate leaves its band
- BUCKET: cash / bonds / stocks buckets, drained in order, refilled in up years
- DYNAMIC_ACTUARIAL: 1 / (remaining life + margin) of the current portfolio
"""

from dataclasses import dataclass, replace
from typing import Callable, Dict, Iterator, Optional, Sequence, Tuple

from .params import (
    WithdrawalPolicy,
    PolicyParams,
    GuardrailParams,
    BucketParams,
    ActuarialParams,
    PolicyState,
    BucketState,
    YearRecord,
)


@dataclass(frozen=True)
class PolicyContext:
    """Run-wide inputs every policy step can read."""
    initial_portfolio: float
    inflation_rate: float
    starting_age: int
    life_expectancy: int
    params: PolicyParams


# =============================================================================
# Fixed-Real (4% rule)
# =============================================================================

def _init_fixed_real(ctx: PolicyContext) -> PolicyState:
    return PolicyState(
        portfolio=ctx.initial_portfolio,
        withdrawal=ctx.initial_portfolio * ctx.params.fixed_real.initial_rate,
    )


def _step_fixed_real(state: PolicyState, year: int, market_return: float,
                     ctx: PolicyContext) -> Tuple[PolicyState, float]:
    actual = min(state.withdrawal, state.portfolio)
    portfolio = max(0.0, (state.portfolio - actual) * (1 + market_return))
    return replace(
        state,
        portfolio=portfolio,
        withdrawal=state.withdrawal * (1 + ctx.inflation_rate),
    ), actual


# =============================================================================
# Variable Percentage
# =============================================================================

def _init_variable(ctx: PolicyContext) -> PolicyState:
    return PolicyState(portfolio=ctx.initial_portfolio, withdrawal=0.0)


def _step_variable(state: PolicyState, year: int, market_return: float,
                   ctx: PolicyContext) -> Tuple[PolicyState, float]:
    withdrawal = state.portfolio * ctx.params.variable.rate
    actual = min(withdrawal, state.portfolio)
    portfolio = max(0.0, (state.portfolio - actual) * (1 + market_return))
    return replace(state, portfolio=portfolio, withdrawal=withdrawal), actual


# =============================================================================
# Guardrails
# =============================================================================

def _init_guardrails(ctx: PolicyContext) -> PolicyState:
    return PolicyState(
        portfolio=ctx.initial_portfolio,
        withdrawal=ctx.initial_portfolio * ctx.params.guardrails.initial_rate,
        peak=ctx.initial_portfolio,
    )


def apply_guardrails(withdrawal: float, portfolio: float, peak: float,
                     initial_portfolio: float, gp: GuardrailParams) -> float:
    """
    Cut or raise the intended withdrawal when its rate leaves the rails.

    A cut needs both a rate above the upper rail and a portfolio below
    drawdown_trigger x peak; a raise needs a rate below the lower rail and
    a portfolio above surge_trigger x peak. An empty portfolio is left alone.
    """
    if portfolio <= 0:
        return withdrawal

    floor = initial_portfolio * gp.floor_rate
    ceiling = initial_portfolio * gp.ceiling_rate
    rate = withdrawal / portfolio

    if rate > gp.upper_rail and portfolio < peak * gp.drawdown_trigger:
        return max(floor, withdrawal * (1 - gp.cut_pct))
    if rate < gp.lower_rail and portfolio > peak * gp.surge_trigger:
        return min(ceiling, withdrawal * (1 + gp.raise_pct))
    return withdrawal


def _step_guardrails(state: PolicyState, year: int, market_return: float,
                     ctx: PolicyContext) -> Tuple[PolicyState, float]:
    gp = ctx.params.guardrails
    withdrawal = apply_guardrails(
        state.withdrawal, state.portfolio, state.peak, ctx.initial_portfolio, gp
    )

    actual = min(withdrawal, state.portfolio)
    portfolio = max(0.0, (state.portfolio - actual) * (1 + market_return))
    peak = max(state.peak, portfolio)

    # Inflation after the guardrail check, kept inside the hard band
    floor = ctx.initial_portfolio * gp.floor_rate
    ceiling = ctx.initial_portfolio * gp.ceiling_rate
    next_withdrawal = min(ceiling, max(floor, withdrawal * (1 + ctx.inflation_rate)))

    return PolicyState(
        portfolio=portfolio, withdrawal=next_withdrawal, peak=peak
    ), actual


# =============================================================================
# Bucket
# =============================================================================

def _init_bucket(ctx: PolicyContext) -> PolicyState:
    bp = ctx.params.bucket
    principal = max(0.0, ctx.initial_portfolio)
    spending = ctx.initial_portfolio * bp.initial_rate

    # Targets larger than the principal are filled cash first, then bonds
    cash = min(spending * bp.cash_years, principal)
    bonds = min(spending * bp.bond_years, principal - cash)
    buckets = BucketState(cash=cash, bonds=bonds, stocks=principal - cash - bonds)
    return PolicyState(portfolio=buckets.total, withdrawal=spending, buckets=buckets)


def drain_buckets(buckets: BucketState, amount: float) -> BucketState:
    """Withdraw from cash, then bonds, then stocks; no bucket goes negative."""
    if amount >= buckets.total:
        return BucketState(cash=0.0, bonds=0.0, stocks=0.0)

    cash, bonds, stocks = buckets.cash, buckets.bonds, buckets.stocks
    if cash >= amount:
        return BucketState(cash=cash - amount, bonds=bonds, stocks=stocks)

    remaining = amount - cash
    if bonds >= remaining:
        return BucketState(cash=0.0, bonds=bonds - remaining, stocks=stocks)

    remaining -= bonds
    return BucketState(cash=0.0, bonds=0.0, stocks=max(0.0, stocks - remaining))


def refill_buckets(buckets: BucketState, withdrawal: float, stock_return: float,
                   bp: BucketParams) -> BucketState:
    """
    Move money from stocks into cash, then bonds, after a strong stock year.

    Targets are multiples of the current withdrawal. Each transfer is capped
    at refill_fraction of the stock balance at that moment, so stocks can
    never be driven below zero.
    """
    cash, bonds, stocks = buckets.cash, buckets.bonds, buckets.stocks
    if stock_return <= bp.refill_trigger or stocks <= 0:
        return buckets

    target_cash = withdrawal * bp.cash_years
    target_bonds = withdrawal * bp.bond_years

    if cash < target_cash:
        amount = min(target_cash - cash, stocks * bp.refill_fraction)
        cash += amount
        stocks -= amount

    if bonds < target_bonds and stocks > 0:
        amount = min(target_bonds - bonds, stocks * bp.refill_fraction)
        bonds += amount
        stocks -= amount

    return BucketState(cash=cash, bonds=bonds, stocks=stocks)


def _step_bucket(state: PolicyState, year: int, market_return: float,
                 ctx: PolicyContext) -> Tuple[PolicyState, float]:
    bp = ctx.params.bucket
    buckets = state.buckets

    actual = min(state.withdrawal, buckets.total)
    buckets = drain_buckets(buckets, actual)

    buckets = BucketState(
        cash=buckets.cash * (1 + bp.cash_return),
        bonds=buckets.bonds * (1 + bp.bond_return),
        stocks=max(0.0, buckets.stocks * (1 + market_return)),
    )
    buckets = refill_buckets(buckets, state.withdrawal, market_return, bp)

    return PolicyState(
        portfolio=max(0.0, buckets.total),
        withdrawal=state.withdrawal * (1 + ctx.inflation_rate),
        buckets=buckets,
    ), actual


# =============================================================================
# Dynamic-Actuarial
# =============================================================================

def actuarial_rate(age: int, life_expectancy: int, ap: ActuarialParams) -> float:
    """
    Withdrawal rate 1 / (remaining years + margin), clamped to [min, max].

    Remaining years never drop below one, so an age at or past life
    expectancy lands on the ceiling instead of dividing by zero.
    """
    remaining = max(1, life_expectancy - age)
    rate = 1.0 / (remaining + ap.safety_margin)
    return min(ap.max_rate, max(ap.min_rate, rate))


def _init_dynamic(ctx: PolicyContext) -> PolicyState:
    return PolicyState(portfolio=ctx.initial_portfolio, withdrawal=0.0)


def _step_dynamic(state: PolicyState, year: int, market_return: float,
                  ctx: PolicyContext) -> Tuple[PolicyState, float]:
    age = ctx.starting_age + year
    rate = actuarial_rate(age, ctx.life_expectancy, ctx.params.actuarial)
    withdrawal = state.portfolio * rate
    actual = min(withdrawal, state.portfolio)
    portfolio = max(0.0, (state.portfolio - actual) * (1 + market_return))
    return replace(state, portfolio=portfolio, withdrawal=withdrawal), actual


# =============================================================================
# Dispatch
# =============================================================================

InitFn = Callable[[PolicyContext], PolicyState]
StepFn = Callable[[PolicyState, int, float, PolicyContext], Tuple[PolicyState, float]]

_POLICY_FUNCTIONS: Dict[WithdrawalPolicy, Tuple[InitFn, StepFn]] = {
    WithdrawalPolicy.FIXED_REAL: (_init_fixed_real, _step_fixed_real),
    WithdrawalPolicy.VARIABLE_PERCENTAGE: (_init_variable, _step_variable),
    WithdrawalPolicy.GUARDRAILS: (_init_guardrails, _step_guardrails),
    WithdrawalPolicy.BUCKET: (_init_bucket, _step_bucket),
    WithdrawalPolicy.DYNAMIC_ACTUARIAL: (_init_dynamic, _step_dynamic),
}

if set(_POLICY_FUNCTIONS) != set(WithdrawalPolicy):
    raise RuntimeError("Every withdrawal policy needs an init and step function")


def iterate_policy(
    policy: WithdrawalPolicy,
    initial_portfolio: float,
    horizon_years: int,
    inflation_rate: float,
    returns: Sequence[float],
    starting_age: int = 65,
    life_expectancy: int = 95,
    params: Optional[PolicyParams] = None,
) -> Iterator[Tuple[YearRecord, PolicyState]]:
    """
    Run one policy year by year, yielding each YearRecord with the state after it.

    Once the portfolio is empty it stays empty: later years record zero
    withdrawal and zero value whatever the market does.

    Args:
        policy: Which withdrawal policy to apply
        initial_portfolio: Portfolio value at retirement
        horizon_years: Number of years to simulate (must be positive)
        inflation_rate: Annual inflation as a decimal
        returns: Decimal stock returns, at least horizon_years long
        starting_age: Age at the start of the first year
        life_expectancy: Used by the dynamic-actuarial policy
        params: Policy constants (defaults are the standard rule constants)
    """
    if horizon_years <= 0:
        raise ValueError(f"horizon_years must be positive, got {horizon_years}")
    if len(returns) < horizon_years:
        raise ValueError(
            f"Return path has {len(returns)} years, need {horizon_years}"
        )
    if params is None:
        params = PolicyParams()

    ctx = PolicyContext(
        initial_portfolio=initial_portfolio,
        inflation_rate=inflation_rate,
        starting_age=starting_age,
        life_expectancy=life_expectancy,
        params=params,
    )
    init, step = _POLICY_FUNCTIONS[policy]
    state = init(ctx)
    depleted = state.portfolio <= 0

    for year in range(horizon_years):
        market_return = float(returns[year])

        if depleted:
            withdrawal = 0.0
            state = replace(state, portfolio=0.0)
        else:
            state, withdrawal = step(state, year, market_return, ctx)
            depleted = state.portfolio <= 0

        record = YearRecord(
            year=year + 1,
            age=starting_age + year + 1,
            portfolio_value=state.portfolio,
            withdrawal=withdrawal,
            market_return=market_return,
        )
        yield record, state


def apply_policy(
    policy: WithdrawalPolicy,
    initial_portfolio: float,
    horizon_years: int,
    inflation_rate: float,
    returns: Sequence[float],
    starting_age: int = 65,
    life_expectancy: int = 95,
    params: Optional[PolicyParams] = None,
) -> Tuple[YearRecord, ...]:
    """Apply a policy to a return path and return the full trajectory."""
    return tuple(
        record for record, _ in iterate_policy(
            policy, initial_portfolio, horizon_years, inflation_rate, returns,
            starting_age=starting_age, life_expectancy=life_expectancy, params=params,
        )
    )
