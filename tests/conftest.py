"""
Shared test configuration.

Adds src/ to sys.path so the flat modules (models, analytics_engine, api,
...) and the small packages (analytics, pipeline, routes) import the same
way they do at runtime.
"""

import os
import sys
from datetime import datetime, timedelta, timezone

import pytest

_project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_src_dir = os.path.join(_project_root, "src")

if _src_dir not in sys.path:
    sys.path.insert(0, _src_dir)

from models import Goal, Record  # noqa: E402

BASE_TIME = datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc)


def make_record(data_type, payload, day=0, hour=8, user_id="u1", goal_id=None):
    """Record ``day`` days after BASE_TIME's date at ``hour`` UTC."""
    ts = BASE_TIME.replace(hour=hour) + timedelta(days=day)
    return Record(user_id=user_id, goal_id=goal_id, data_type=data_type,
                  timestamp=ts, payload=payload)


def daily_records(data_type, values, start_day=0, **kwargs):
    return [make_record(data_type, v, day=start_day + i, **kwargs) for i, v in enumerate(values)]


def make_goal(goal_id="g1", start=None, status="active", user_id="u1", **kwargs):
    return Goal(
        id=goal_id,
        user_id=user_id,
        title=kwargs.pop("title", "Sleep better"),
        category=kwargs.pop("category", "sleep"),
        target_value=kwargs.pop("target_value", 8),
        target_unit=kwargs.pop("target_unit", "hours"),
        start_date=start or BASE_TIME,
        status=status,
        **kwargs,
    )


class FakeStore:
    """In-memory stand-in for routes.helpers.HealthDataStore."""

    def __init__(self, records=None, goals=None, fail=False):
        self.records = list(records or [])
        self.goals = list(goals or [])
        self.fail = fail
        self.calls = []

    def fetch_records(self, user_id, goal_id=None, data_type=None, start=None, end=None):
        self.calls.append(("fetch_records", user_id, goal_id, data_type, start, end))
        if self.fail:
            raise RuntimeError("database unavailable")
        out = [r for r in self.records if r.user_id == user_id]
        if goal_id:
            out = [r for r in out if r.goal_id == goal_id]
        if data_type:
            out = [r for r in out if r.type_name == data_type]
        if start:
            out = [r for r in out if r.timestamp >= start]
        if end:
            out = [r for r in out if r.timestamp < end]
        return sorted(out, key=lambda r: r.timestamp)

    def fetch_goals(self, user_id, status=None):
        if self.fail:
            raise RuntimeError("database unavailable")
        return [g for g in self.goals
                if g.user_id == user_id and (status is None or g.status.value == status)]

    def fetch_goal(self, user_id, goal_id=None):
        if self.fail:
            raise RuntimeError("database unavailable")
        for g in self.goals:
            if g.user_id != user_id:
                continue
            if goal_id is None and g.status.value == "active":
                return g
            if goal_id is not None and g.id == goal_id:
                return g
        return None


@pytest.fixture
def fake_store_cls():
    return FakeStore
