"""
Plot utility functions and helpers for withdrawal strategy charts.

This module provides common plotting utilities used across visualization modules.
"""

import numpy as np
import matplotlib.pyplot as plt
from typing import List, Sequence, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from withdrawal import StrategyResult


def add_zero_line(ax: plt.Axes, alpha: float = 0.3) -> None:
    """Add a horizontal line at y=0."""
    ax.axhline(y=0, color='gray', linestyle='-', alpha=alpha)


def format_currency_axis(ax: plt.Axes, axis: str = 'y', scale: float = 1e3,
                         suffix: str = 'k') -> None:
    """Format axis labels as currency, in thousands by default."""
    def currency_formatter(x, pos):
        return f'${x / scale:,.0f}{suffix}'

    if axis == 'y':
        ax.yaxis.set_major_formatter(plt.FuncFormatter(currency_formatter))
    else:
        ax.xaxis.set_major_formatter(plt.FuncFormatter(currency_formatter))


def annotate_bars(ax: plt.Axes, bars, labels: Sequence[str], offset: float = 0.0,
                  fontsize: int = 9) -> None:
    """Write one label above each bar."""
    for bar, label in zip(bars, labels):
        ax.text(bar.get_x() + bar.get_width() / 2, bar.get_height() + offset,
                label, ha='center', va='bottom', fontsize=fontsize)


def strategy_tick_labels(results: Sequence['StrategyResult']) -> List[str]:
    """Short policy names, split onto two lines where they contain a space."""
    return [r.info.short_name.replace(' ', '\n') for r in results]


def trajectory_arrays(result: 'StrategyResult') -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Ages, portfolio values and withdrawals of a result's sample path."""
    path = result.sample_path
    ages = np.array([r.age for r in path])
    portfolio = np.array([r.portfolio_value for r in path])
    withdrawals = np.array([r.withdrawal for r in path])
    return ages, portfolio, withdrawals
