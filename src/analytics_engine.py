"""
Wellness Analytics Engine
=========================
Derives the analytical products of a user's health records.

Architecture (pure, no I/O):
  Layer 0: Normalise + frame:  extract one numeric value per record and
            key it by UTC calendar day.
  Layer 1: Series:  per-type time-ordered series and a day x type table.
  Layer 2: Analyzers (independent of each other):
            split-half trends, pairwise Pearson correlations,
            per-type summary, goal progress.

Input is gathered by the caller (store, request body, JSON export) before
``compute`` is called; nothing in here reads ambient state.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from analytics.correlations import analyze_correlations
from analytics.progress import calculate_progress, scope_to_goal
from analytics.series import (
    alignment_from_frame,
    observed_types,
    records_frame,
    series_from_frame,
)
from analytics.summary import summarize_frame
from analytics.trends import analyze_trends
from models import Goal, Record

log = logging.getLogger("analytics_engine")


class WellnessAnalyticsEngine:
    """Runs every analyzer over one scoped collection of records."""

    def compute(
        self,
        records: Sequence[Record],
        goal: Optional[Goal] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Return trends, correlations, summary, progress and status metadata.

        ``analysis_status`` is "success" or "degraded"; degraded runs still
        carry every field, just with less information in them.
        Progress only counts records linked to ``goal`` since its start date.
        """
        result: Dict[str, Any] = {
            "trends": {},
            "correlations": [],
            "summary": {},
            "progress": None,
            "analysis_status": "success",
            "degraded_reasons": [],
        }

        df = records_frame(records)
        series = series_from_frame(df)
        alignment = alignment_from_frame(df)
        types = observed_types(df)

        result["trends"] = analyze_trends(series)
        result["correlations"] = analyze_correlations(alignment, types)
        result["summary"] = summarize_frame(df)
        if goal is not None:
            result["progress"] = calculate_progress(goal, scope_to_goal(records, goal), now=now)

        reasons: List[str] = result["degraded_reasons"]
        if df.empty:
            reasons.append("no_records")
        elif df["value"].notna().sum() == 0:
            reasons.append("no_numeric_values")
        if len(types) > 1 and not any(
            len(day_types) > 1 for day_types in alignment.values()
        ):
            reasons.append("insufficient_overlap_for_correlation")
        if reasons:
            result["analysis_status"] = "degraded"
            log.warning("Analysis degraded: %s", ", ".join(reasons))

        log.info(
            "\n   COMPUTATION DIGEST (%d records, %d days)\n"
            "   Layer 0 Normalise      : %d numeric values\n"
            "   Layer 1 Series         : %d data types\n"
            "   Layer 2 Trends         : %d classified\n"
            "   Layer 2 Correlations   : %d kept\n"
            "   Layer 2 Progress       : %s",
            len(df),
            len(alignment),
            int(df["value"].notna().sum()),
            len(types),
            len(result["trends"]),
            len(result["correlations"]),
            "computed" if result["progress"] is not None else "no goal",
        )
        return result
