"""
Pairwise Pearson correlation between data types on overlapping days.

Noise filters (all heuristics for small personal datasets, not p-value backed):
  • a pair needs at least MIN_CORRELATION_SAMPLES shared days,
  • only |r| > MIN_ABS_CORRELATION is reported,
  • |r| > STRONG_CORRELATION is "strong", everything else kept is "moderate".
"""

from __future__ import annotations

import logging
import math
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
from scipy import stats as sp_stats

from analytics.series import alignment_table
from constants import (
    MIN_ABS_CORRELATION,
    MIN_CORRELATION_SAMPLES,
    STRONG_CORRELATION,
    ZERO_VARIANCE_STD,
)

log = logging.getLogger("analytics.correlations")


def pearson(xs: Sequence[float], ys: Sequence[float]) -> float:
    """Pearson r over two aligned vectors.

    r = (nΣxy − ΣxΣy) / sqrt((nΣx² − (Σx)²)(nΣy² − (Σy)²))

    Returns 0.0 for empty input, a zero-variance side or a zero denominator.
    """
    x = np.asarray(xs, dtype=np.float64)
    y = np.asarray(ys, dtype=np.float64)
    n = x.size
    if n == 0 or n != y.size:
        return 0.0
    # Constant arrays: float noise in the sums must not produce a spurious r
    if np.std(x) < ZERO_VARIANCE_STD or np.std(y) < ZERO_VARIANCE_STD:
        return 0.0

    sx, sy = x.sum(), y.sum()
    num = n * (x * y).sum() - sx * sy
    den_sq = (n * (x * x).sum() - sx * sx) * (n * (y * y).sum() - sy * sy)
    if den_sq <= 0:
        return 0.0
    r = float(num / math.sqrt(den_sq))
    return max(-1.0, min(1.0, r))


def correlation_p_value(r: float, n: int) -> Optional[float]:
    """Two-sided t-test p-value for r with n samples (context only)."""
    if n < 3:
        return None
    if abs(r) >= 1.0:
        return 0.0
    t_stat = r * math.sqrt(n - 2) / math.sqrt(1 - r * r + 1e-15)
    return float(2 * sp_stats.t.sf(abs(t_stat), n - 2))


def classify_strength(r: float) -> str:
    return "strong" if abs(r) > STRONG_CORRELATION else "moderate"


def classify_direction(r: float) -> str:
    return "positive" if r > 0 else "negative"


def paired_values(table: pd.DataFrame, type_a: str, type_b: str) -> pd.DataFrame:
    """Days on which both types carry a numeric value."""
    if type_a not in table.columns or type_b not in table.columns:
        return pd.DataFrame(columns=[type_a, type_b])
    return table[[type_a, type_b]].dropna()


def analyze_correlations(
    alignment: Dict[date, Dict[str, float]],
    types: Optional[Sequence[str]] = None,
) -> List[Dict[str, Any]]:
    """Ranked list of correlations that pass the noise filters.

    ``types`` fixes the pair enumeration order (defaults to column order of
    the day table); ranking ties keep that order.
    """
    table = alignment_table(alignment)
    if table.empty:
        return []
    if types is None:
        types = list(table.columns)

    results: List[Dict[str, Any]] = []
    n_checked = 0
    n_skipped = 0
    for i, type_a in enumerate(types):
        for type_b in types[i + 1:]:
            if type_a == type_b:
                continue
            pairs = paired_values(table, type_a, type_b)
            n = len(pairs)
            if n < MIN_CORRELATION_SAMPLES:
                n_skipped += 1
                continue
            n_checked += 1
            r = pearson(pairs[type_a].to_numpy(), pairs[type_b].to_numpy())
            if abs(r) <= MIN_ABS_CORRELATION:
                continue
            results.append({
                "typeA": type_a,
                "typeB": type_b,
                "coefficient": r,
                "strength": classify_strength(r),
                "direction": classify_direction(r),
                "sampleSize": n,
            })

    results.sort(key=lambda c: abs(c["coefficient"]), reverse=True)
    for c in results:
        c["coefficient"] = round(c["coefficient"], 2)

    log.info(
        "   Correlations: %d pairs checked, %d skipped (< %d days), %d kept",
        n_checked, n_skipped, MIN_CORRELATION_SAMPLES, len(results),
    )
    return results
