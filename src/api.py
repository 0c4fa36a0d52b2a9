"""
FastAPI backend contract for the wellness dashboard and insight cards.

Route handlers are defined here; the record/goal source lives in
routes/helpers.py and every number comes from the analytics package.
"""

import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, ValidationError
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from analytics.correlations import analyze_correlations
from analytics.dashboard import comprehensive_summary, dashboard_metrics
from analytics.progress import calculate_progress
from analytics.series import build_day_alignment, build_series
from analytics.summary import summarize_records
from analytics.trends import analyze_trend, analyze_trends
from analytics_engine import WellnessAnalyticsEngine
from models import InputContractError, parse_goal, parse_records
from narrative import NarrativeSummarizer
from pipeline.daily_insights import generate_daily_insights
from pipeline.report_pipeline import GoalNotFoundError, InsightReportPipeline
from routes.helpers import HealthDataStore, _record_payload

log = logging.getLogger("api")

_limiter = Limiter(key_func=get_remote_address)
_INSIGHTS_RATE_LIMIT = os.getenv("INSIGHTS_RATE_LIMIT", "10/minute")


# ─── App setup ─────────────────────────────────────────────

app = FastAPI(title="Wellness Analytics API", version="1.0.0")
app.state.limiter = _limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

_origin_env = os.getenv("FRONTEND_ORIGINS", "")
_origins = [o.strip() for o in _origin_env.split(",") if o.strip()] or [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


class ComputeRequest(BaseModel):
    userId: Optional[str] = None
    records: List[Dict[str, Any]] = Field(default_factory=list)
    goal: Optional[Dict[str, Any]] = None
    now: Optional[datetime] = None


class InsightsRequest(BaseModel):
    userId: Optional[str] = None
    goalId: Optional[str] = None
    days: int = Field(default=7, ge=1, le=3650)


# ─── Collaborators (replaced in tests) ─────────────────────

def _store() -> HealthDataStore:
    return HealthDataStore()


def _summarizer() -> Optional[NarrativeSummarizer]:
    return NarrativeSummarizer()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _require_user(user_id: Optional[str]) -> str:
    if not user_id:
        raise HTTPException(status_code=400, detail="userId is required")
    return user_id


# ─── Routes ────────────────────────────────────────────────

@app.get("/")
def root() -> Dict[str, Any]:
    return {"service": "wellness-analytics-api", "status": "ok"}


@app.get("/api/wellness/analytics")
def wellness_analytics(
    userId: Optional[str] = None,
    goalId: Optional[str] = None,
    dataType: Optional[str] = None,
    days: int = Query(default=30, ge=1, le=3650),
    endpoint: str = "trends",
) -> Dict[str, Any]:
    """Trends (default), correlations or summary over the last ``days`` days."""
    user_id = _require_user(userId)
    now = _now()
    start = now - timedelta(days=days)
    try:
        # correlations always span every data type
        type_filter = None if endpoint == "correlations" else dataType
        records = _store().fetch_records(user_id, goal_id=goalId, data_type=type_filter, start=start)
    except Exception as e:
        log.error("Failed to fetch health data: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch health data")

    if endpoint == "correlations":
        return {
            "success": True,
            "correlations": analyze_correlations(build_day_alignment(records)),
            "dataPoints": len(records),
        }
    if endpoint == "summary":
        return {
            "success": True,
            "summary": summarize_records(records),
            "dataPoints": len(records),
        }

    series = build_series(records)
    if dataType:
        trends: Any = analyze_trend(series.get(dataType, []))
    else:
        trends = analyze_trends(series)
    return {
        "success": True,
        "trends": trends,
        "days": days,
        "startDate": start.isoformat(),
        "endDate": now.isoformat(),
        "dataPoints": len(records),
    }


@app.post("/api/wellness/analytics/compute")
def compute_analytics(body: ComputeRequest) -> Dict[str, Any]:
    """Run the full engine over records supplied in the request body."""
    try:
        records = parse_records(body.records, body.userId)
        goal = parse_goal(body.goal, body.userId or (records[0].user_id if records else None))
    except InputContractError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    result = WellnessAnalyticsEngine().compute(records, goal=goal, now=body.now)
    return {"success": True, **result, "dataPoints": len(records)}


@app.get("/api/wellness/goals/{goal_id}/progress")
def goal_progress(goal_id: str, userId: Optional[str] = None) -> Dict[str, Any]:
    user_id = _require_user(userId)
    try:
        store = _store()
        goal = store.fetch_goal(user_id, goal_id)
        records = store.fetch_records(user_id, goal_id=goal_id, start=goal.start_date) if goal else []
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
    if goal is None:
        raise HTTPException(status_code=404, detail="Health goal not found")
    return {
        "success": True,
        "goal": {"id": goal.id, **goal.describe()},
        "progress": calculate_progress(goal, records, now=_now()),
    }


@app.get("/api/wellness/dashboard")
def wellness_dashboard(
    userId: Optional[str] = None,
    goalId: Optional[str] = None,
    endpoint: str = "overview",
) -> Dict[str, Any]:
    user_id = _require_user(userId)
    now = _now()
    store = _store()

    if endpoint == "summary":
        try:
            goals = store.fetch_goals(user_id)
            records = store.fetch_records(user_id, start=now - timedelta(days=90))
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if goalId:
            records = [r for r in records if r.goal_id == goalId]
        return {
            "success": True,
            "summary": comprehensive_summary(records, goals, period_days=90),
            "dataPoints": len(records),
            "period": "90 days",
        }

    try:
        goals = store.fetch_goals(user_id, status="active")
        records = store.fetch_records(user_id, start=now - timedelta(days=30))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
    recent = sorted(records, key=lambda r: r.timestamp, reverse=True)[:100]
    if goalId:
        recent = [r for r in recent if r.goal_id == goalId]
    return {
        "success": True,
        "goals": [{"id": g.id, "status": g.status.value, **g.describe()} for g in goals],
        "recentData": [_record_payload(r) for r in recent[:10]],
        "metrics": dashboard_metrics(recent, goals),
        "lastUpdated": now.isoformat(),
    }


@app.post("/api/wellness/insights/generate")
@_limiter.limit(_INSIGHTS_RATE_LIMIT)
def generate_insights(request: Request, body: InsightsRequest) -> Dict[str, Any]:
    """Narrative insights; the deterministic fallback stands in for the model."""
    user_id = _require_user(body.userId)
    pipeline = InsightReportPipeline(_store(), summarizer=_summarizer())
    try:
        inputs = pipeline.gather(user_id, goal_id=body.goalId, days=body.days, now=_now())
    except GoalNotFoundError:
        raise HTTPException(status_code=404, detail="Health goal not found")
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

    report = pipeline.report(
        inputs["records"], inputs["goal"], days=body.days,
        goal_records=inputs["goal_records"], now=inputs["now"],
    )
    goal = inputs["goal"]
    return {
        "success": True,
        "insights": report["insights"],
        "period": f"{body.days} days",
        "dataPoints": report["dataPoints"],
        "analysisStatus": report["analysis_status"],
        "goal": goal.describe() if goal else None,
    }


@app.get("/api/wellness/insights/daily")
def daily_insights(userId: Optional[str] = None) -> Dict[str, Any]:
    user_id = _require_user(userId)
    now = _now()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    try:
        store = _store()
        today_records = store.fetch_records(user_id, start=today, end=today + timedelta(days=1))
        active_goals = store.fetch_goals(user_id, status="active")
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {
        "success": True,
        "insights": generate_daily_insights(today_records, active_goals),
        "date": today.date().isoformat(),
        "dataPoints": len(today_records),
        "activeGoals": len(active_goals),
    }


@app.get("/api/wellness/insights/recommendations")
@_limiter.limit(_INSIGHTS_RATE_LIMIT)
def recommendations(
    request: Request,
    userId: Optional[str] = None,
    goalId: Optional[str] = None,
    limit: int = Query(default=5, ge=1, le=20),
) -> Dict[str, Any]:
    user_id = _require_user(userId)
    now = _now()
    store = _store()
    try:
        records = store.fetch_records(user_id, goal_id=goalId, start=now - timedelta(days=14))
        goal = store.fetch_goal(user_id, goalId)
        goal_records = store.fetch_records(user_id, goal_id=goal.id, start=goal.start_date) if goal else []
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

    pipeline = InsightReportPipeline(store, summarizer=_summarizer())
    recs = pipeline.recommendations(records, goal, limit=limit, goal_records=goal_records, now=now)
    return {
        "success": True,
        "recommendations": recs,
        "basedOn": f"{len(records)} data points from last 14 days",
        "goal": {"title": goal.title, "category": goal.category} if goal else None,
    }
