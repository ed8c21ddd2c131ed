"""
Visualization module for withdrawal strategy analysis.

This module consolidates the matplotlib code for the project, keeping
plotting separate from the simulation engine.

Submodules:
- styles: Color schemes, fonts, and style constants
- helpers: Common plotting utilities
- strategy_plots: Strategy comparison charts and the PDF report
"""

# Import styles and helpers
from .styles import (
    COLORS,
    STRATEGY_COLORS,
    TIER_COLORS,
    apply_standard_style,
)

from .helpers import (
    add_zero_line,
    format_currency_axis,
    annotate_bars,
    strategy_tick_labels,
    trajectory_arrays,
)

# Import strategy comparison plots
from .strategy_plots import (
    plot_strategy_comparison_bars,
    plot_ending_wealth_percentiles,
    plot_sample_paths,
    create_comparison_report,
)

__all__ = [
    # Styles
    'COLORS',
    'STRATEGY_COLORS',
    'TIER_COLORS',
    'apply_standard_style',

    # Helpers
    'add_zero_line',
    'format_currency_axis',
    'annotate_bars',
    'strategy_tick_labels',
    'trajectory_arrays',

    # Strategy plots
    'plot_strategy_comparison_bars',
    'plot_ending_wealth_percentiles',
    'plot_sample_paths',
    'create_comparison_report',
]
