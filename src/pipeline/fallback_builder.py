"""Deterministic plain-language insights built from the engine output.

Used whenever the narrative summarizer is unavailable or returns something
that cannot be parsed. Same JSON shape as the summarizer's answer.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from models import Goal

INSIGHT_CATEGORIES = {"sleep", "stress", "nutrition", "exercise"}


def _category(data_type: str) -> str:
    return data_type if data_type in INSIGHT_CATEGORIES else "general"


def _label(data_type: str) -> str:
    return data_type.replace("_", " ")


def _fmt(value: Optional[float]) -> str:
    if value is None:
        return "n/a"
    return f"{value:.1f}".rstrip("0").rstrip(".")


def progress_rating(percentage: float) -> str:
    if percentage >= 80:
        return "excellent"
    if percentage >= 60:
        return "good"
    if percentage >= 40:
        return "fair"
    return "needs_improvement"


def trend_observations(trends: Dict[str, Dict[str, Any]]) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    for data_type, trend in trends.items():
        direction = trend.get("direction")
        if direction not in ("increasing", "decreasing", "stable"):
            continue
        change = trend.get("percentChange") or 0.0
        if direction == "stable":
            description = (
                f"Your {_label(data_type)} readings held steady "
                f"(average {_fmt(trend.get('secondPeriodAverage'))} in the recent half of the period)."
            )
            priority = "low"
        else:
            description = (
                f"Your {_label(data_type)} readings are {direction}: "
                f"{_fmt(trend.get('firstPeriodAverage'))} → {_fmt(trend.get('secondPeriodAverage'))} "
                f"({change:+.1f}%) between the first and second half of the period."
            )
            priority = "high" if abs(change) > 20 else "medium"
        out.append({
            "type": "trend",
            "title": f"{_label(data_type).capitalize()} is {direction}",
            "description": description,
            "priority": priority,
            "category": _category(data_type),
        })
    return out


def correlation_observations(correlations: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    for corr in correlations:
        a, b = _label(corr["typeA"]), _label(corr["typeB"])
        moves = "rise together" if corr["direction"] == "positive" else "move in opposite directions"
        out.append({
            "type": "correlation",
            "title": f"{a.capitalize()} and {b} are linked",
            "description": (
                f"On days you logged both, {a} and {b} tend to {moves} "
                f"({corr['strength']} correlation, r={corr['coefficient']:.2f}, "
                f"{corr['sampleSize']} days)."
            ),
            "priority": "high" if corr["strength"] == "strong" else "medium",
            "category": "general",
        })
    return out


def build_fallback_recommendations(engine_result: Dict[str, Any], limit: int = 5) -> List[Dict[str, Any]]:
    """Rule-based recommendations, most specific first."""
    recs: List[Dict[str, Any]] = []
    progress = engine_result.get("progress") or {}
    consistency = progress.get("consistencyPercentage")
    if consistency is not None and consistency < 60:
        recs.append({
            "title": "Log More Consistently",
            "description": f"You logged data on {consistency:.0f}% of days since starting your goal.",
            "reason": "Regular entries make trends and correlations reliable",
            "priority": "high",
            "category": "general",
            "actionable": "Set a daily reminder to log your health data",
        })

    for data_type, trend in (engine_result.get("trends") or {}).items():
        if trend.get("direction") == "insufficient_data":
            recs.append({
                "title": f"Track {_label(data_type).capitalize()} Regularly",
                "description": f"Only one {_label(data_type)} entry was found in this period.",
                "reason": "At least two entries are needed to see a trend",
                "priority": "medium",
                "category": _category(data_type),
                "actionable": f"Log {_label(data_type)} daily for the next week",
            })

    for corr in (engine_result.get("correlations") or [])[:2]:
        recs.append({
            "title": f"Watch {_label(corr['typeA']).capitalize()} and {_label(corr['typeB']).capitalize()}",
            "description": (
                f"{_label(corr['typeA']).capitalize()} and {_label(corr['typeB'])} show a "
                f"{corr['strength']} {corr['direction']} relationship."
            ),
            "reason": "Changing one of them may shift the other",
            "priority": "medium",
            "category": "general",
            "actionable": "Note what differs on days when both are at their best",
        })

    if not recs:
        recs.append({
            "title": "Maintain Consistency",
            "description": "Continue your current tracking habits",
            "reason": "Consistent data collection is key to health insights",
            "priority": "medium",
            "category": "general",
            "actionable": "Keep logging your health data daily",
        })
    return recs[:max(limit, 0)]


def build_fallback_insights(engine_result: Dict[str, Any], goal: Optional[Goal] = None) -> Dict[str, Any]:
    """Convert analyzer outputs into the summarizer's insight schema."""
    engine_result = engine_result or {}
    summary = engine_result.get("summary") or {}
    total = summary.get("totalEntries", 0)

    insights = trend_observations(engine_result.get("trends") or {})
    insights += correlation_observations(engine_result.get("correlations") or [])
    if not insights:
        insights.append({
            "type": "general",
            "title": "Keep Tracking",
            "description": "Continue logging your health data to receive personalized insights.",
            "priority": "medium",
            "category": "general",
        })

    progress = engine_result.get("progress")
    if progress is not None:
        pct = float(progress.get("completionPercentage") or 0.0)
        progress_block = {
            "overall": progress_rating(pct),
            "description": (
                f"Data logged on {pct:.0f}% of days toward "
                f"{goal.title if goal and goal.title else 'your goal'}, "
                f"{progress.get('averageEntriesPerDay', 0):.2f} entries per day."
            ),
            "percentage": round(pct),
        }
    else:
        progress_block = {
            "overall": "fair" if total else "needs_improvement",
            "description": "No goal selected; progress reflects tracking activity only.",
            "percentage": 0,
        }

    n_types = summary.get("distinctTypeCount", 0)
    headline = (
        f"{total} entries across {n_types} data type{'s' if n_types != 1 else ''} analyzed."
        if total else "No health data recorded in this period yet."
    )
    return {
        "summary": headline,
        "insights": insights,
        "recommendations": build_fallback_recommendations(engine_result),
        "progress": progress_block,
        "source": "fallback",
    }
