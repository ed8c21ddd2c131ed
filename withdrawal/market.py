"""
Market primitives for withdrawal strategy simulation.

This module contains:
- The historical S&P 500 return dataset used for bootstrap sampling
- A seeded Mulberry32 random source (one instance per run, no global state)
- Return path generation by bootstrap sampling with replacement
"""

import numpy as np
from typing import Sequence


# =============================================================================
# Historical Return Data
# =============================================================================

SP500_START_YEAR = 1928
SP500_END_YEAR = 2024

# Cap extreme years so long horizons do not compound unrealistic streaks
MAX_ANNUAL_RETURN_PCT = 15.0
MIN_ANNUAL_RETURN_PCT = -15.0

# S&P 500 total return, percent, 1928-2024
SP500_RAW_RETURNS_PCT = (
    # 1928-1940
    43.81, -8.30, -25.12, -43.84, -8.64, 49.98, -1.19, 46.74, 31.94, 35.34, -35.34, 29.28, -1.10,
    # 1941-1960
    -12.77, 19.17, 25.06, 19.03, 35.82, -8.43, 5.20, 5.70, 18.30, 30.81, 23.68, 14.37, -1.21,
    52.56, 31.24, 18.15, -0.73, 23.68, 52.40, 31.74,
    # 1961-1980
    26.63, -8.81, 22.61, 16.42, 12.40, -10.06, 23.80, 10.81, -8.24, -14.31, 3.56, 14.22, 18.76,
    -14.31, -25.90, 37.00, 23.83, -7.18, 6.56, 18.44,
    # 1981-2000
    -4.70, 20.42, 22.34, 6.15, 31.24, 18.49, 5.81, 16.54, 31.48, -3.06, 30.23, 7.49, 9.97, 1.33,
    37.20, 22.68, 33.10, 28.34, 20.89, -9.03,
    # 2001-2020
    -11.85, -21.97, 28.36, 10.74, 4.83, 15.61, 5.48, -36.55, 25.94, 14.82, 2.10, 15.89, 32.15,
    13.52, 1.36, 11.77, 21.61, -4.23, 31.21, 18.02,
    # 2021-2024
    28.47, -18.04, 26.06, 25.02,
)

_expected_years = SP500_END_YEAR - SP500_START_YEAR + 1
if len(SP500_RAW_RETURNS_PCT) != _expected_years:
    raise ValueError(
        f"S&P 500 data integrity error: expected {_expected_years} years "
        f"({SP500_START_YEAR}-{SP500_END_YEAR}), got {len(SP500_RAW_RETURNS_PCT)} values"
    )


def build_historical_returns(
    raw_returns_pct: Sequence[float] = SP500_RAW_RETURNS_PCT,
    min_pct: float = MIN_ANNUAL_RETURN_PCT,
    max_pct: float = MAX_ANNUAL_RETURN_PCT,
) -> np.ndarray:
    """
    Build the bootstrap dataset: capped history followed by the same years halved.

    Halving doubles the pool with more moderate years, so a path is drawn from
    194 entries rather than 97.

    Returns:
        Read-only array of annual returns in percent
    """
    capped = np.clip(np.asarray(raw_returns_pct, dtype=float), min_pct, max_pct)
    data = np.concatenate([capped, capped / 2])
    data.setflags(write=False)
    return data


class ReturnDataset:
    """
    Immutable ordered sequence of annual market returns, in percent.

    Shared read-only by every return path; an empty dataset is a
    configuration error and is rejected at construction.
    """

    def __init__(self, returns_pct: Sequence[float], name: str = "custom"):
        values = np.array(returns_pct, dtype=float)
        if values.ndim != 1 or values.size == 0:
            raise ValueError("Historical return dataset must be a non-empty 1-D sequence")
        values.setflags(write=False)
        self._returns_pct = values
        self.name = name

    @property
    def returns_pct(self) -> np.ndarray:
        return self._returns_pct

    def __len__(self) -> int:
        return self._returns_pct.size

    def __getitem__(self, idx: int) -> float:
        return float(self._returns_pct[idx])

    def __repr__(self):
        return f"ReturnDataset(name={self.name!r}, n={len(self)})"


SP500_HISTORICAL = ReturnDataset(build_historical_returns(), name="S&P 500 1928-2024")


# =============================================================================
# Seeded Random Source
# =============================================================================

_MASK32 = 0xFFFFFFFF


class Mulberry32:
    """
    Mulberry32 pseudo-random generator over a single 32-bit state word.

    Two instances built from the same seed produce bit-identical streams of
    floats in [0, 1). Each run owns its own instance.
    """

    def __init__(self, seed: int):
        self._state = seed & _MASK32

    def random(self) -> float:
        """Next value in [0, 1)."""
        self._state = (self._state + 0x6D2B79F5) & _MASK32
        t = self._state
        r = ((t ^ (t >> 15)) * (1 | t)) & _MASK32
        r ^= (r + (((r ^ (r >> 7)) * (61 | r)) & _MASK32)) & _MASK32
        return ((r ^ (r >> 14)) & _MASK32) / 4294967296.0

    __call__ = random

    def __iter__(self):
        while True:
            yield self.random()


# =============================================================================
# Return Path Generation
# =============================================================================

def sample_index(u: float, n: int) -> int:
    """Map a uniform draw to a dataset index, clamped to [0, n - 1]."""
    return min(max(int(u * n), 0), n - 1)


def generate_return_path(
    n_years: int,
    rng: Mulberry32,
    dataset: ReturnDataset = SP500_HISTORICAL,
) -> np.ndarray:
    """
    Bootstrap one path of annual returns by sampling history with replacement.

    Each year draws one uniform value u and takes dataset[floor(u * len)],
    converted from percent to decimal. The same historical year may appear
    several times in a path or not at all.

    Args:
        n_years: Path length in years (must be positive)
        rng: Random source owned by the calling run
        dataset: Historical returns in percent (never mutated)

    Returns:
        Read-only array of shape (n_years,) with decimal returns
    """
    if n_years <= 0:
        raise ValueError(f"Return path length must be positive, got {n_years}")

    n = len(dataset)
    history = dataset.returns_pct
    path = np.empty(n_years)
    for year in range(n_years):
        path[year] = history[sample_index(rng.random(), n)] / 100.0

    path.setflags(write=False)
    return path
