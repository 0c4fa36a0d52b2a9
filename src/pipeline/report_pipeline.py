"""Gather-then-compute orchestration for insight reports, with explicit status."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from analytics.progress import calculate_progress, scope_to_goal
from analytics_engine import WellnessAnalyticsEngine
from models import Goal, Record
from narrative import NarrativeSummarizer, prepare_data_summary
from pipeline.fallback_builder import build_fallback_insights, build_fallback_recommendations

log = logging.getLogger("report_pipeline")


class GoalNotFoundError(LookupError):
    """A goal id was requested that the store does not know for this user."""


class InsightReportPipeline:
    """Fetch everything first, then run the engine, then narrate.

    ``store`` needs ``fetch_records`` and ``fetch_goal`` (see
    routes.helpers.HealthDataStore); ``summarizer`` is optional, without it
    the deterministic fallback is always used.
    """

    def __init__(self, store, summarizer: Optional[NarrativeSummarizer] = None,
                 engine: Optional[WellnessAnalyticsEngine] = None):
        self.store = store
        self.summarizer = summarizer
        self.engine = engine or WellnessAnalyticsEngine()

    # ─── Phase 1: gather ─────────────────────────────────────

    def gather(self, user_id: str, goal_id: Optional[str] = None, days: int = 7,
               now: Optional[datetime] = None) -> Dict[str, Any]:
        """Resolve every input before any computation starts."""
        now = now or datetime.now(timezone.utc)
        start = now - timedelta(days=days)
        goal = self.store.fetch_goal(user_id, goal_id)
        if goal_id and goal is None:
            raise GoalNotFoundError(f"Health goal {goal_id} not found")
        records: List[Record] = self.store.fetch_records(user_id, goal_id=goal_id, start=start)
        goal_records: List[Record] = []
        if goal is not None:
            goal_records = self.store.fetch_records(user_id, goal_id=goal.id, start=goal.start_date)
        log.info(
            "Gathered %d records (%d days) and %d goal records for user %s",
            len(records), days, len(goal_records), user_id,
        )
        return {"records": records, "goal": goal, "goal_records": goal_records, "now": now}

    # ─── Phase 2: compute + narrate ──────────────────────────

    def run(self, user_id: str, goal_id: Optional[str] = None, days: int = 7,
            now: Optional[datetime] = None) -> Dict[str, Any]:
        inputs = self.gather(user_id, goal_id=goal_id, days=days, now=now)
        return self.report(
            inputs["records"], inputs["goal"], days=days,
            goal_records=inputs["goal_records"], now=inputs["now"],
        )

    def analyze(self, records: List[Record], goal: Optional[Goal],
                goal_records: Optional[List[Record]] = None,
                now: Optional[datetime] = None) -> Dict[str, Any]:
        """Engine output over ``records``; progress over the goal's own records.

        Without ``goal_records`` the goal-linked subset of ``records`` is used.
        """
        result = self.engine.compute(records, goal=None, now=now)
        if goal is not None:
            scoped = scope_to_goal(goal_records if goal_records is not None else records, goal)
            result["progress"] = calculate_progress(goal, scoped, now=now)
        return result

    def report(self, records: List[Record], goal: Optional[Goal], days: int = 7,
               goal_records: Optional[List[Record]] = None,
               now: Optional[datetime] = None) -> Dict[str, Any]:
        result = self.analyze(records, goal, goal_records=goal_records, now=now)

        insights, narrative_status = self._narrate(result, goal, days)
        return {
            "insights": insights,
            "analytics": result,
            "narrative_status": narrative_status,
            "analysis_status": result["analysis_status"],
            "degraded_reasons": list(result["degraded_reasons"]),
            "dataPoints": len(records),
        }

    def recommendations(self, records: List[Record], goal: Optional[Goal], limit: int = 5,
                        goal_records: Optional[List[Record]] = None,
                        now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        result = self.analyze(records, goal, goal_records=goal_records, now=now)
        recs = None
        if self.summarizer is not None:
            try:
                recs = self.summarizer.recommend(prepare_data_summary(result, goal, days=14), goal, limit)
            except Exception as e:
                log.warning("Recommendation step failed (non-fatal): %s", e)
        if not recs:
            recs = build_fallback_recommendations(result, limit)
        return recs

    def _narrate(self, result: Dict[str, Any], goal: Optional[Goal], days: int):
        if self.summarizer is None:
            return build_fallback_insights(result, goal), "fallback"
        try:
            insights = self.summarizer.summarize(prepare_data_summary(result, goal, days), goal, days)
        except Exception as e:
            log.warning("Narrative step failed (non-fatal): %s", e)
            insights = None
        if insights is None:
            return build_fallback_insights(result, goal), "fallback"
        return insights, "model"
