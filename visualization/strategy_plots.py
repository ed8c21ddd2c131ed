"""
Withdrawal strategy comparison plots.

This module provides plotting functions for comparing the five withdrawal
policies: headline metric bars, ending-wealth percentiles, representative
trajectories, and a multi-page PDF report.
"""

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.backends.backend_pdf import PdfPages
from typing import Sequence, Tuple, TYPE_CHECKING

from .styles import COLORS, STRATEGY_COLORS, TIER_COLORS
from .helpers import (
    annotate_bars,
    format_currency_axis,
    strategy_tick_labels,
    trajectory_arrays,
    add_zero_line,
)

if TYPE_CHECKING:
    from withdrawal import StrategyComparison, StrategyResult


def plot_strategy_comparison_bars(
    comparison: 'StrategyComparison',
    figsize: Tuple[int, int] = (16, 5),
) -> plt.Figure:
    """
    Bar chart comparing success rate, composite score, income and variability.
    """
    from withdrawal import composite_score, success_tier

    results = comparison.results
    principal = comparison.params.initial_portfolio
    fig, axes = plt.subplots(1, 4, figsize=figsize)

    x = np.arange(len(results))
    width = 0.6
    labels = strategy_tick_labels(results)

    # Panel 1: Success Rate, colored by tier
    ax = axes[0]
    success = [r.success_rate for r in results]
    bars = ax.bar(x, success, width,
                  color=[TIER_COLORS[success_tier(s)] for s in success])
    ax.set_ylabel('Success Rate (%)')
    ax.set_title('Portfolio Survival')
    ax.set_ylim(0, 110)
    annotate_bars(ax, bars, [f'{s:.1f}%' for s in success], offset=1.0)

    # Panel 2: Composite Score, recommendation highlighted
    ax = axes[1]
    scores = [composite_score(r, principal) for r in results]
    colors = [COLORS['recommended'] if r.policy == comparison.recommended else COLORS['amber']
              for r in results]
    bars = ax.bar(x, scores, width, color=colors)
    ax.set_ylabel('Composite Score')
    ax.set_title('Overall Score')
    annotate_bars(ax, bars, [f'{s:.1f}' for s in scores], offset=0.5)

    # Panel 3: Average Income
    ax = axes[2]
    income = [r.average_income for r in results]
    bars = ax.bar(x, income, width, color=STRATEGY_COLORS[:len(results)])
    ax.set_ylabel('Average Annual Income')
    ax.set_title('Retirement Income')
    format_currency_axis(ax)
    annotate_bars(ax, bars, [f'${v / 1e3:,.0f}k' for v in income])

    # Panel 4: Income Variability
    ax = axes[3]
    variability = [r.income_variability_pct for r in results]
    bars = ax.bar(x, variability, width, color=STRATEGY_COLORS[:len(results)])
    ax.set_ylabel('Income Volatility (% of average)')
    ax.set_title('Income Uncertainty')
    annotate_bars(ax, bars, [f'{v:.0f}%' for v in variability], offset=0.5)

    for ax in axes:
        ax.set_xticks(x)
        ax.set_xticklabels(labels, fontsize=9)

    plt.tight_layout()
    return fig


def plot_ending_wealth_percentiles(
    results: Sequence['StrategyResult'],
    figsize: Tuple[int, int] = (12, 6),
) -> plt.Figure:
    """
    Grouped bars of ending-wealth percentiles (10th to 90th) per policy.
    """
    fig, ax = plt.subplots(figsize=figsize)

    pct_labels = ['10th', '25th', 'Median', '75th', '90th']
    n_groups = len(results)
    width = 0.8 / n_groups
    x = np.arange(len(pct_labels))

    for i, result in enumerate(results):
        values = result.ending_wealth.as_tuple()
        ax.bar(x + (i - (n_groups - 1) / 2) * width, values, width,
               label=result.info.short_name,
               color=STRATEGY_COLORS[i % len(STRATEGY_COLORS)])

    ax.set_xticks(x)
    ax.set_xticklabels(pct_labels)
    ax.set_xlabel('Ending Wealth Percentile')
    ax.set_ylabel('Ending Portfolio Value')
    ax.set_title('Distribution of Ending Wealth')
    format_currency_axis(ax)
    ax.legend(loc='upper left', fontsize=9)

    plt.tight_layout()
    return fig


def plot_sample_paths(
    results: Sequence['StrategyResult'],
    figsize: Tuple[int, int] = (14, 6),
) -> plt.Figure:
    """
    Representative (median ending wealth) run of each policy:
    portfolio value on the left, annual withdrawal on the right.
    """
    fig, (ax_wealth, ax_income) = plt.subplots(1, 2, figsize=figsize)

    for i, result in enumerate(results):
        ages, portfolio, withdrawals = trajectory_arrays(result)
        color = STRATEGY_COLORS[i % len(STRATEGY_COLORS)]
        ax_wealth.plot(ages, portfolio, color=color, linewidth=2,
                       label=result.info.short_name)
        ax_income.plot(ages, withdrawals, color=color, linewidth=2,
                       label=result.info.short_name)

    add_zero_line(ax_wealth)
    ax_wealth.set_xlabel('Age')
    ax_wealth.set_ylabel('Portfolio Value')
    ax_wealth.set_title('Representative Run: Portfolio')
    format_currency_axis(ax_wealth)
    ax_wealth.legend(loc='upper left', fontsize=9)

    ax_income.set_xlabel('Age')
    ax_income.set_ylabel('Annual Withdrawal')
    ax_income.set_title('Representative Run: Income')
    format_currency_axis(ax_income)
    ax_income.legend(loc='upper left', fontsize=9)

    plt.tight_layout()
    return fig


def create_comparison_report(
    comparison: 'StrategyComparison',
    output_path: str,
) -> str:
    """
    Write the comparison charts to a multi-page PDF.

    Returns:
        The output path
    """
    figures = [
        plot_strategy_comparison_bars(comparison),
        plot_ending_wealth_percentiles(comparison.results),
        plot_sample_paths(comparison.results),
    ]

    with PdfPages(output_path) as pdf:
        for fig in figures:
            pdf.savefig(fig, bbox_inches='tight')
            plt.close(fig)

    return output_path
