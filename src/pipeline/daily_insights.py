"""Rule-based check-in insights for a single day's entries."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from analytics.normalizer import extract_numeric_value
from constants import EXPECTED_DAILY_TYPES
from models import Goal, Record

SHORT_SLEEP_HOURS = 6
HIGH_STRESS_LEVEL = 7
LONG_EXERCISE_MINUTES = 30


def _field(record: Record, name: str) -> Optional[float]:
    """Numeric ``name`` from the payload or its ``<type>_data``/``data`` wrapper."""
    payload = record.payload
    if not isinstance(payload, dict):
        return None
    for obj in (payload.get(f"{record.type_name}_data"), payload.get("data"), payload):
        if isinstance(obj, dict) and name in obj:
            return extract_numeric_value(obj[name])
    return None


def analyze_entry(record: Record) -> Optional[Dict[str, Any]]:
    kind = record.type_name
    if kind == "sleep":
        hours = _field(record, "duration")
        if hours is not None and hours < SHORT_SLEEP_HOURS:
            return {
                "type": "concern",
                "title": "Sleep Duration Alert",
                "description": f"You logged {hours:g} hours of sleep. Consider aiming for 7-9 hours.",
                "priority": "high",
                "category": "sleep",
            }
    elif kind == "stress":
        level = _field(record, "level")
        if level is not None and level > HIGH_STRESS_LEVEL:
            return {
                "type": "concern",
                "title": "High Stress Level",
                "description": f"Your stress level is {level:g}/10. Consider stress management techniques.",
                "priority": "high",
                "category": "stress",
            }
    elif kind == "exercise":
        minutes = _field(record, "duration")
        if minutes is not None and minutes > LONG_EXERCISE_MINUTES:
            payload = record.payload if isinstance(record.payload, dict) else {}
            inner = payload.get("exercise_data") or payload.get("data") or payload
            activity = inner.get("type") if isinstance(inner, dict) else None
            return {
                "type": "achievement",
                "title": "Great Exercise Session",
                "description": f"Excellent {minutes:g} minutes of {activity or 'exercise'}!",
                "priority": "low",
                "category": "exercise",
            }
    return None


def generate_daily_insights(today: Sequence[Record], active_goals: Sequence[Goal]) -> List[Dict[str, Any]]:
    insights: List[Dict[str, Any]] = []

    logged = {r.type_name for r in today}
    missing = [t for t in EXPECTED_DAILY_TYPES if t not in logged]
    if missing:
        insights.append({
            "type": "reminder",
            "title": "Complete Your Daily Tracking",
            "description": f"Consider logging: {', '.join(missing)}",
            "priority": "medium",
            "category": "general",
        })

    for record in today:
        insight = analyze_entry(record)
        if insight:
            insights.append(insight)

    if active_goals:
        n = len(active_goals)
        insights.append({
            "type": "motivation",
            "title": "Stay Focused on Your Goals",
            "description": f"You have {n} active health goal{'s' if n > 1 else ''}. Keep tracking to achieve them!",
            "priority": "low",
            "category": "general",
        })
    return insights
