"""Goal completion and logging-consistency percentages."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from analytics.series import day_key
from models import Goal, Record

SECONDS_PER_DAY = 86400.0


def scope_to_goal(records: Sequence[Record], goal: Optional[Goal]) -> List[Record]:
    """Records linked to ``goal`` and logged on or after its start date."""
    if goal is None:
        return []
    return [r for r in records if r.goal_id == goal.id and r.timestamp >= goal.start_date]


def days_elapsed(start: datetime, now: datetime) -> int:
    """Whole days since ``start`` (rounded up), never less than 1."""
    seconds = (now - start).total_seconds()
    return max(1, math.ceil(seconds / SECONDS_PER_DAY))


def calculate_progress(
    goal: Goal,
    records: Sequence[Record],
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Progress for ``goal`` from records already scoped to it.

    consistencyPercentage currently uses the same ratio as
    completionPercentage (days with data / days elapsed).
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    total_days = days_elapsed(goal.start_date, now)
    days_with_data = len({day_key(r) for r in records})
    total_entries = len(records)

    ratio_pct = min(100.0, days_with_data / total_days * 100.0)
    return {
        "completionPercentage": round(ratio_pct, 2),
        "consistencyPercentage": round(ratio_pct, 2),
        "totalEntries": total_entries,
        "averageEntriesPerDay": round(total_entries / total_days, 2),
    }
