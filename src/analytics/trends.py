"""Split-half trend classification for a single metric series."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from analytics.series import Series
from constants import TREND_DECREASE_PCT, TREND_INCREASE_PCT

log = logging.getLogger("analytics.trends")

NO_DATA = "no_data"
INSUFFICIENT_DATA = "insufficient_data"
INCREASING = "increasing"
DECREASING = "decreasing"
STABLE = "stable"


def _half_mean(values: Sequence[Optional[float]]) -> float:
    clean = np.array([v for v in values if v is not None], dtype=np.float64)
    if clean.size == 0:
        return 0.0
    return float(clean.mean())


def _empty_result(direction: str) -> Dict[str, Any]:
    return {
        "direction": direction,
        "percentChange": None,
        "firstPeriodAverage": None,
        "secondPeriodAverage": None,
    }


def classify_change(percent_change: float) -> str:
    if percent_change > TREND_INCREASE_PCT:
        return INCREASING
    if percent_change < TREND_DECREASE_PCT:
        return DECREASING
    return STABLE


def analyze_trend(series: Series) -> Dict[str, Any]:
    """Classify a chronologically ordered series.

    First floor(n/2) points vs the rest; missing values are left out of the
    half means (a half with no values at all averages 0).
    """
    n = len(series)
    if n == 0:
        return _empty_result(NO_DATA)
    if n < 2:
        return _empty_result(INSUFFICIENT_DATA)

    values: List[Optional[float]] = [v for _, v in series]
    mid = n // 2
    first = _half_mean(values[:mid])
    second = _half_mean(values[mid:])
    change = (second - first) / first * 100.0 if first > 0 else 0.0

    return {
        "direction": classify_change(change),
        "percentChange": round(change, 2),
        "firstPeriodAverage": first,
        "secondPeriodAverage": second,
    }


def analyze_trends(series_by_type: Dict[str, Series]) -> Dict[str, Dict[str, Any]]:
    trends = {t: analyze_trend(s) for t, s in series_by_type.items()}
    log.debug("Trends computed for %d data types", len(trends))
    return trends
