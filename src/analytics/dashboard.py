"""Dashboard overview metrics across a user's goals and recent records."""

from __future__ import annotations

from typing import Any, Dict, Sequence

from analytics.series import build_series
from analytics.trends import analyze_trend
from constants import DASHBOARD_GOAL_HORIZON_DAYS
from models import Goal, GoalStatus, Record


def _active(goals: Sequence[Goal]):
    return [g for g in goals if g.status == GoalStatus.ACTIVE]


def completion_rate(records: Sequence[Record], active_goals: Sequence[Goal]) -> int:
    """Goal-linked entries against one entry per day per goal over the horizon."""
    if not active_goals:
        return 0
    goal_ids = {g.id for g in active_goals}
    linked = sum(1 for r in records if r.goal_id in goal_ids)
    expected = len(active_goals) * DASHBOARD_GOAL_HORIZON_DAYS
    return min(100, round(linked / expected * 100))


def dashboard_metrics(records: Sequence[Record], goals: Sequence[Goal]) -> Dict[str, Any]:
    active = _active(goals)
    last = max((r.timestamp for r in records), default=None)
    return {
        "totalDataPoints": len(records),
        "dataTypes": len({r.type_name for r in records}),
        "activeGoals": len(active),
        "lastEntry": last.isoformat() if last else None,
        "completionRate": completion_rate(records, active),
    }


def comprehensive_summary(
    records: Sequence[Record],
    goals: Sequence[Goal],
    period_days: int = 90,
) -> Dict[str, Any]:
    series = build_series(records)
    trends = [
        {"type": t, "count": len(s), "trend": analyze_trend(s)["direction"]}
        for t, s in series.items()
    ]
    return {
        "totalGoals": len(goals),
        "activeGoals": len(_active(goals)),
        "completedGoals": sum(1 for g in goals if g.status == GoalStatus.COMPLETED),
        "totalDataPoints": len(records),
        "dataTypes": len(series),
        "trends": trends,
        "averageEntriesPerDay": round(len(records) / max(period_days, 1), 2),
    }
