#!/usr/bin/env python3
"""
Compare retirement withdrawal strategies under bootstrapped S&P 500 returns.

Runs every withdrawal policy against the same seeded return paths, prints
a comparison table with the recommended strategy, and optionally writes
the comparison charts to a PDF.

Usage:
    python compare_withdrawal_strategies.py
    python compare_withdrawal_strategies.py --portfolio 1500000 --inflation 3
    python compare_withdrawal_strategies.py --simulations 5000 --jobs 4 -o strategies.pdf
"""

import pandas as pd

from withdrawal import (
    SimulationParams,
    POLICY_INFO,
    run_strategy_comparison,
    comparison_table,
    wealth_percentile_table,
    success_tier,
)


def print_comparison(comparison) -> None:
    """Print the per-strategy table, ending-wealth percentiles and the recommendation."""
    params = comparison.params

    table = comparison_table(comparison)
    display = pd.DataFrame({
        'Strategy': table['strategy'],
        'Success': table['success_rate'].map('{:.1f}%'.format),
        'Tier': table['tier'],
        'Avg Income': table['average_income'].map('${:,.0f}'.format),
        'Worst (5th)': table['worst_case_income'].map('${:,.0f}'.format),
        'Best (95th)': table['best_case_income'].map('${:,.0f}'.format),
        'Variability': table['income_variability_pct'].map('{:.1f}%'.format),
        'Years': table['average_years_lasted'].map('{:.1f}'.format),
        'Score': table['score'].map('{:.1f}'.format),
    })

    print()
    print("=" * 80)
    print("STRATEGY COMPARISON")
    print("=" * 80)
    print(f"Portfolio: ${params.initial_portfolio:,.0f}   "
          f"Retirement age: {params.retirement_age}   "
          f"Life expectancy: {params.life_expectancy}   "
          f"Inflation: {params.inflation_rate:.1%}")
    print(f"Simulations per strategy: {params.n_simulations:,}   Seed: {params.random_seed}")
    print("-" * 80)
    print(display.to_string(index=False))

    print()
    print("Ending wealth percentiles:")
    print("-" * 80)
    percentiles = wealth_percentile_table(comparison.results)
    percentiles.index = [POLICY_INFO[r.policy].short_name for r in comparison.results]
    print(percentiles.map('${:,.0f}'.format).to_string())

    print()
    print("=" * 80)
    if comparison.recommended is None:
        print("No recommendation: no strategies were evaluated")
    else:
        info = POLICY_INFO[comparison.recommended]
        result = comparison.result_for(comparison.recommended)
        print(f"RECOMMENDED: {info.name}")
        print(f"  {info.description}")
        print(f"  Success rate {result.success_rate:.1f}% ({success_tier(result.success_rate)}), "
              f"average income ${result.average_income:,.0f}")
        print(f"  Best suited to: {info.psychology_fit}")
    print("=" * 80)


def main(
    initial_portfolio: float = 1_000_000,
    retirement_age: int = 65,
    current_age: int = 55,
    inflation_pct: float = 2.5,
    life_expectancy: int = 95,
    n_simulations: int = 1000,
    random_seed: int = 42,
    n_jobs: int = 1,
    output_path: str = None,
    verbose: bool = True,
):
    """
    Run the full comparison and report it.

    Args:
        initial_portfolio: Portfolio at retirement ($)
        retirement_age: Age at retirement
        current_age: Current age
        inflation_pct: Annual inflation in percent (2.5 = 2.5%)
        life_expectancy: Planning horizon end age
        n_simulations: Runs per strategy
        random_seed: Top-level seed
        n_jobs: joblib worker count
        output_path: Optional PDF path for the comparison charts
        verbose: Print tables and progress bars
    """
    params = SimulationParams(
        initial_portfolio=initial_portfolio,
        retirement_age=retirement_age,
        current_age=current_age,
        inflation_rate=inflation_pct / 100,
        life_expectancy=life_expectancy,
        n_simulations=n_simulations,
        random_seed=random_seed,
    )

    if verbose:
        print("=" * 80)
        print(f"Simulating {len(POLICY_INFO)} withdrawal strategies over "
              f"{params.horizon_years} years")
        print("=" * 80)

    comparison = run_strategy_comparison(params, n_jobs=n_jobs, show_progress=verbose)

    if verbose:
        print_comparison(comparison)

    if output_path:
        from visualization import apply_standard_style, create_comparison_report
        apply_standard_style()
        create_comparison_report(comparison, output_path)
        if verbose:
            print(f"PDF generated: {output_path}")

    return comparison


def parse_args(argv=None):
    """Parse command-line flags; rejects a zero worker count."""
    import argparse

    parser = argparse.ArgumentParser(
        description='Compare retirement withdrawal strategies with a historical bootstrap'
    )
    parser.add_argument('-o', '--output', default=None,
                       help='Write comparison charts to this PDF file')
    parser.add_argument('--portfolio', type=float, default=1_000_000,
                       help='Portfolio value at retirement (default: 1000000)')
    parser.add_argument('--retirement-age', type=int, default=65,
                       help='Age at retirement (default: 65)')
    parser.add_argument('--current-age', type=int, default=55,
                       help='Current age (default: 55)')
    parser.add_argument('--inflation', type=float, default=2.5,
                       help='Annual inflation in percent (default: 2.5)')
    parser.add_argument('--life-expectancy', type=int, default=95,
                       help='Planning horizon end age (default: 95)')
    parser.add_argument('--simulations', type=int, default=1000,
                       help='Simulations per strategy (default: 1000)')
    parser.add_argument('--seed', type=int, default=42,
                       help='Random seed (default: 42)')
    parser.add_argument('--jobs', type=int, default=1,
                       help='Parallel workers, -1 for all cores (default: 1)')
    parser.add_argument('-q', '--quiet', action='store_true',
                       help='Suppress output messages')

    args = parser.parse_args(argv)
    if args.jobs == 0:
        parser.error('--jobs must be a positive worker count or negative (-1 = all cores), not 0')
    return args


if __name__ == '__main__':
    args = parse_args()

    main(
        initial_portfolio=args.portfolio,
        retirement_age=args.retirement_age,
        current_age=args.current_age,
        inflation_pct=args.inflation,
        life_expectancy=args.life_expectancy,
        n_simulations=args.simulations,
        random_seed=args.seed,
        n_jobs=args.jobs,
        output_path=args.output,
        verbose=not args.quiet,
    )
