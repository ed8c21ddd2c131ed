"""
Centralized style definitions for withdrawal strategy charts.

This module provides consistent colors, fonts, and styles across all plots.
"""

import matplotlib.pyplot as plt

# Set consistent style for all figures
plt.style.use('seaborn-v0_8-whitegrid')

# Main color scheme (colorblind-friendly: blue-orange palette)
COLORS = {
    'blue': '#1A759F',
    'orange': '#E07A5F',
    'teal': '#2A9D8F',
    'amber': '#E9C46A',
    'recommended': '#264653',
}

# One color per policy, in evaluation order (colorblind-safe)
STRATEGY_COLORS = ['#1A759F', '#E9C46A', '#2A9D8F', '#BC6C25', '#9b59b6']

# Success tier colors, matching withdrawal.summary.success_tier
TIER_COLORS = {
    'excellent': '#2A9D8F',
    'good': '#1A759F',
    'fair': '#E9C46A',
    'poor': '#E07A5F',
}


def apply_standard_style():
    """Apply standard matplotlib style settings."""
    plt.rcParams.update({
        'font.size': 12,
        'axes.titlesize': 14,
        'axes.labelsize': 12,
        'legend.fontsize': 10,
        'figure.titlesize': 16,
    })

