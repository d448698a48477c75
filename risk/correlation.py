"""Correlation Logic."""

import math
from typing import Callable, Dict, Mapping, Sequence, Union

import pandas as pd
from loguru import logger

from risk.constants import DEFAULT_CORRELATION_RISK

ReturnsInput = Union[pd.DataFrame, Mapping[str, pd.Series]]

# symbol -> correlation risk score (0-100)
CorrelationRiskFn = Callable[[str], float]


def calculate_correlation(
    returns_a: pd.Series,
    returns_b: pd.Series,
    period: int = 90
) -> float:
    """
    Calculate Pearson correlation between two return series.

    Args:
        returns_a: Series of periodic returns (pct_change)
        returns_b: Series of periodic returns (pct_change)
        period: Lookback window (number of rows)

    Returns:
        Correlation coefficient (-1.0 to 1.0).
        Returns 0.0 if insufficient data or a series is constant.
    """
    if len(returns_a) < period or len(returns_b) < period:
        logger.warning(
            f"Insufficient data for correlation: A={len(returns_a)}, B={len(returns_b)}, Req={period}"
        )
        return 0.0

    # Align data by index
    df = pd.DataFrame({'a': returns_a, 'b': returns_b}).dropna()

    if len(df) < period:
        return 0.0

    df_slice = df.tail(period)

    correlation = df_slice['a'].corr(df_slice['b'], method='pearson')

    if correlation is None or math.isnan(correlation):
        return 0.0

    return float(correlation)


def build_correlation_matrix(
    symbols: Sequence[str],
    returns: ReturnsInput,
    period: int = 90
) -> Dict[str, float]:
    """
    Mean pairwise correlation of each symbol with the other given symbols.

    Args:
        symbols: Symbols of open positions (duplicates ignored)
        returns: Return series per symbol, as DataFrame columns or a mapping
        period: Lookback window passed to calculate_correlation

    Returns:
        Dict of symbol -> mean correlation with the rest. Symbols without a
        return series are left out. A lone symbol maps to 0.0.
    """
    unique = [s for s in dict.fromkeys(symbols) if s in returns]
    matrix: Dict[str, float] = {}

    for symbol in unique:
        others = [o for o in unique if o != symbol]
        if not others:
            matrix[symbol] = 0.0
            continue
        values = [
            calculate_correlation(returns[symbol], returns[other], period=period)
            for other in others
        ]
        matrix[symbol] = sum(values) / len(values)

    return matrix


def constant_correlation_risk(symbol: str) -> float:
    """Default correlation risk: the same neutral score for every symbol."""
    return DEFAULT_CORRELATION_RISK


def correlation_risk_from_matrix(
    matrix: Mapping[str, float],
    correlation_limit: float,
    default: float = DEFAULT_CORRELATION_RISK,
) -> CorrelationRiskFn:
    """
    Build a correlation risk function from a correlation matrix.

    Correlation is mapped linearly onto 0-100; anything above
    ``correlation_limit`` is pinned to 100. Symbols missing from the matrix
    get ``default``.
    """
    def risk(symbol: str) -> float:
        if symbol not in matrix:
            return default
        corr = max(0.0, matrix[symbol])
        if corr > correlation_limit:
            return 100.0
        return round(corr * 100, 2)

    return risk
