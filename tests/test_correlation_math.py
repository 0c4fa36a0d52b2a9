"""
Tests for the correlation analyzer mathematical computations.

Covers: Pearson formula, zero-variance handling, symmetry, the sample-size
floor, the |r| filter, strength/direction labels, ranking and rounding.
"""
from datetime import date, timedelta

import numpy as np
import pytest

from analytics.correlations import (
    analyze_correlations,
    classify_direction,
    classify_strength,
    correlation_p_value,
    pearson,
)
from analytics.series import build_day_alignment
from conftest import daily_records


def _alignment(columns):
    """{type: [values per day]} -> day alignment (None = not logged)."""
    start = date(2026, 3, 1)
    out = {}
    for data_type, values in columns.items():
        for i, v in enumerate(values):
            if v is not None:
                out.setdefault(start + timedelta(days=i), {})[data_type] = float(v)
    return out


# ─── pearson ──────────────────────────────────────────────────


class TestPearson:

    def test_perfect_positive(self):
        assert pearson([1, 2, 3, 4, 5], [2, 4, 6, 8, 10]) == pytest.approx(1.0)

    def test_perfect_negative(self):
        assert pearson([1, 2, 3, 4], [8, 6, 4, 2]) == pytest.approx(-1.0)

    def test_matches_numpy(self):
        rng = np.random.default_rng(7)
        x = rng.normal(size=30)
        y = 0.5 * x + rng.normal(size=30)
        assert pearson(x, y) == pytest.approx(np.corrcoef(x, y)[0, 1], abs=1e-12)

    def test_constant_series_is_zero(self):
        assert pearson([5, 5, 5, 5], [1, 2, 3, 4]) == 0.0
        assert pearson([0.1] * 6, [0.1] * 6) == 0.0

    def test_empty_and_mismatched(self):
        assert pearson([], []) == 0.0
        assert pearson([1, 2], [1]) == 0.0

    def test_symmetric(self):
        x = [3.0, 1.5, 4.2, 7.7, 2.2, 9.1]
        y = [1.0, 0.4, 2.5, 2.0, 1.1, 5.5]
        assert pearson(x, y) == pearson(y, x)

    def test_bounded(self):
        r = pearson([1e9, 1e9 + 1, 1e9 + 2, 1e9 + 3], [1, 2, 3, 4])
        assert -1.0 <= r <= 1.0


class TestLabels:

    def test_strength(self):
        assert classify_strength(0.71) == "strong"
        assert classify_strength(-0.9) == "strong"
        assert classify_strength(0.7) == "moderate"

    def test_direction(self):
        assert classify_direction(0.5) == "positive"
        assert classify_direction(-0.5) == "negative"


class TestPValue:

    def test_too_few_samples(self):
        assert correlation_p_value(0.9, 2) is None

    def test_perfect_correlation(self):
        assert correlation_p_value(1.0, 5) == 0.0

    def test_stronger_r_smaller_p(self):
        assert correlation_p_value(0.9, 10) < correlation_p_value(0.4, 10)


# ─── analyze_correlations ─────────────────────────────────────


class TestAnalyzeCorrelations:

    def test_linear_pair(self):
        result = analyze_correlations(_alignment({
            "sleep": [1, 2, 3, 4, 5],
            "mood": [2, 4, 6, 8, 10],
        }))
        assert result == [{
            "typeA": "sleep",
            "typeB": "mood",
            "coefficient": 1.0,
            "strength": "strong",
            "direction": "positive",
            "sampleSize": 5,
        }]

    def test_three_overlapping_days_excluded(self):
        result = analyze_correlations(_alignment({
            "sleep": [1, 2, 3, None, 5],
            "mood": [2, 4, 6, 8, None],
        }))
        assert result == []

    def test_four_overlapping_days_included(self):
        result = analyze_correlations(_alignment({
            "sleep": [1, 2, 3, 4],
            "mood": [2, 4, 6, 8],
        }))
        assert len(result) == 1
        assert result[0]["sampleSize"] == 4

    def test_constant_pair_omitted(self):
        result = analyze_correlations(_alignment({
            "sleep": [7, 7, 7, 7, 7],
            "hydration": [2, 2, 2, 2, 2],
        }))
        assert result == []

    def test_weak_correlation_filtered(self):
        result = analyze_correlations(_alignment({
            "sleep": [1, 2, 3, 4, 5, 6],
            "mood": [3, 1, 4, 1, 5, 2],
        }))
        assert all(abs(c["coefficient"]) > 0.3 for c in result)
        assert result == []

    def test_moderate_negative(self):
        result = analyze_correlations(_alignment({
            "stress": [1, 2, 3, 4, 5, 6],
            "sleep": [8, 6, 7, 5, 7, 4],
        }))
        assert len(result) == 1
        assert result[0]["direction"] == "negative"
        assert result[0]["coefficient"] < -0.3

    def test_sorted_by_magnitude(self):
        result = analyze_correlations(_alignment({
            "sleep": [1, 2, 3, 4, 5, 6],
            "mood": [1, 3, 2, 5, 4, 6],
            "stress": [6, 5, 4, 3, 2, 1],
        }))
        magnitudes = [abs(c["coefficient"]) for c in result]
        assert magnitudes == sorted(magnitudes, reverse=True)
        assert (result[0]["typeA"], result[0]["typeB"]) == ("sleep", "stress")
        assert result[0]["coefficient"] == -1.0

    def test_coefficients_rounded(self):
        result = analyze_correlations(_alignment({
            "sleep": [1, 2, 3, 4, 5, 6],
            "mood": [1, 3, 2, 5, 4, 6],
        }))
        c = result[0]["coefficient"]
        assert c == round(c, 2)

    def test_each_unordered_pair_once(self):
        result = analyze_correlations(_alignment({
            "a_sleep": [1, 2, 3, 4],
            "b_mood": [1, 2, 3, 4],
            "c_stress": [1, 2, 3, 4],
        }))
        pairs = {frozenset((c["typeA"], c["typeB"])) for c in result}
        assert len(pairs) == len(result) == 3

    def test_symmetric_under_type_order(self):
        columns = {"sleep": [5, 6, 8, 7, 9], "mood": [2, 3, 5, 3, 6]}
        forward = analyze_correlations(_alignment(columns), ["sleep", "mood"])
        backward = analyze_correlations(_alignment(columns), ["mood", "sleep"])
        assert forward[0]["coefficient"] == backward[0]["coefficient"]

    def test_empty(self):
        assert analyze_correlations({}) == []

    def test_from_records(self):
        records = daily_records("sleep", [6, 7, 8, 9]) + daily_records("stress", [
            {"level": 8}, {"level": 6}, {"level": 4}, {"level": 2},
        ])
        result = analyze_correlations(build_day_alignment(records), ["sleep", "stress"])
        assert result[0]["coefficient"] == -1.0
        assert result[0]["strength"] == "strong"
