"""
Narrative Summarizer
====================
Turns the engine's compact summary into insight / recommendation JSON via a
single CrewAI agent. Every failure (model unavailable, timeout, output that
is not the expected JSON) comes back as ``None`` so callers can substitute
the deterministic fallback.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional

from crewai import Agent, Crew, LLM, Process, Task

from analytics.correlations import correlation_p_value
from db_utils import get_llm_settings
from models import Goal

log = logging.getLogger("narrative")

# ── LLM for the insight agent (lazy-init to avoid import-time crashes) ──
_insights_llm = None


def _get_llm() -> LLM:
    global _insights_llm
    if _insights_llm is None:
        settings = get_llm_settings()
        _insights_llm = LLM(
            model=settings["model"],
            api_key=settings["api_key"],
            temperature=settings["temperature"],
        )
    return _insights_llm


INSIGHT_SCHEMA = """{
  "summary": "Brief overall assessment",
  "insights": [
    {
      "type": "pattern|trend|correlation|achievement",
      "title": "Insight title",
      "description": "Detailed description",
      "priority": "high|medium|low",
      "category": "sleep|stress|nutrition|exercise|general"
    }
  ],
  "recommendations": [
    {
      "title": "Recommendation title",
      "description": "What to do",
      "reason": "Why this helps",
      "priority": "high|medium|low",
      "category": "sleep|stress|nutrition|exercise|general"
    }
  ],
  "progress": {
    "overall": "excellent|good|fair|needs_improvement",
    "description": "Progress description",
    "percentage": 0-100
  }
}"""

RECOMMENDATION_SCHEMA = """[
  {
    "title": "Recommendation title",
    "description": "What to do",
    "reason": "Why this helps",
    "priority": "high|medium|low",
    "category": "sleep|stress|nutrition|exercise|general",
    "actionable": "Specific steps to take"
  }
]"""


# ─── Summary text ────────────────────────────────────────────

def prepare_data_summary(engine_result: Dict[str, Any], goal: Optional[Goal] = None,
                         days: int = 7) -> str:
    """Compact text rendering of the engine output for the model prompt."""
    summary = engine_result.get("summary") or {}
    lines: List[str] = [f"Data from last {days} days:"]

    date_range = summary.get("dateRange") or {}
    lines.append(
        f"Entries: {summary.get('totalEntries', 0)} across "
        f"{summary.get('distinctTypeCount', 0)} data types "
        f"({date_range.get('start') or 'n/a'} → {date_range.get('end') or 'n/a'})"
    )

    trends = engine_result.get("trends") or {}
    by_type = summary.get("byType") or {}
    if by_type:
        lines.append("\n[PER TYPE]")
    for data_type, stats in by_type.items():
        trend = trends.get(data_type, {})
        change = trend.get("percentChange")
        change_txt = f", {change:+.1f}%" if change is not None else ""
        lines.append(
            f"  {data_type.upper():15s} n={stats['count']:<3d} avg={stats['average']:.2f}  "
            f"trend={trend.get('direction', 'no_data')}{change_txt}"
        )

    correlations = engine_result.get("correlations") or []
    if correlations:
        lines.append("\n[CORRELATIONS] (heuristic filter |r| > 0.3, ≥ 4 shared days)")
    for corr in correlations:
        p = correlation_p_value(corr["coefficient"], corr["sampleSize"])
        p_txt = f", p≈{p:.3f}" if p is not None else ""
        lines.append(
            f"  {corr['typeA']} ↔ {corr['typeB']}: r={corr['coefficient']:+.2f} "
            f"({corr['strength']} {corr['direction']}, n={corr['sampleSize']}{p_txt})"
        )

    progress = engine_result.get("progress")
    if progress:
        lines.append("\n[GOAL PROGRESS]")
        lines.append(
            f"  completion={progress['completionPercentage']:.0f}%  "
            f"consistency={progress['consistencyPercentage']:.0f}%  "
            f"entries={progress['totalEntries']}  "
            f"per_day={progress['averageEntriesPerDay']:.2f}"
        )
    if goal is not None:
        lines.append(
            f"\nGoal: {goal.title or 'General Health Tracking'} "
            f"(category {goal.category}, target {goal.target_value or 'N/A'} {goal.target_unit or ''})".rstrip()
        )
    return "\n".join(lines)


# ─── Response parsing ────────────────────────────────────────

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def parse_json_response(text: Any) -> Optional[Any]:
    """Parse model output as JSON, tolerating markdown code fences."""
    if text is None:
        return None
    cleaned = _FENCE_RE.sub("", str(text).strip()).strip()
    if not cleaned:
        return None
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        log.warning("Model output is not valid JSON (%d chars)", len(cleaned))
        return None


# ─── Summarizer ──────────────────────────────────────────────

class NarrativeSummarizer:
    """Single-agent crew producing insight and recommendation JSON."""

    def __init__(self, llm: Optional[LLM] = None):
        self._llm = llm

    def _agent(self) -> Agent:
        return Agent(
            role="Wellness Insights Analyst",
            goal="Explain personal health tracking statistics in specific, actionable terms",
            backstory=(
                "You are a knowledgeable health and wellness assistant with expertise in "
                "analyzing health tracking data. You only use the statistics you are given "
                "and never invent measurements."
            ),
            llm=self._llm or _get_llm(),
            allow_delegation=False,
            verbose=False,
        )

    def _run(self, description: str, expected_output: str) -> str:
        agent = self._agent()
        task = Task(description=description, expected_output=expected_output, agent=agent)
        crew = Crew(agents=[agent], tasks=[task], process=Process.sequential, verbose=False)
        result = crew.kickoff()
        return getattr(result, "raw", str(result))

    def summarize(self, summary_text: str, goal: Optional[Goal] = None,
                  days: int = 7) -> Optional[Dict[str, Any]]:
        """Insight JSON for the summary, or None when the model fails."""
        description = (
            "Analyze the following health tracking data and provide personalized insights.\n\n"
            f"Goal: {goal.title if goal else 'General Health Tracking'}\n"
            f"Category: {goal.category if goal else 'General'}\n"
            f"Time Period: Last {days} days\n\n"
            f"Health Data Summary:\n{summary_text}\n\n"
            "Cover patterns and trends, strengths and areas to improve, specific actionable "
            "recommendations, the correlations listed, and progress toward the goal.\n"
            f"Respond with ONLY a JSON object with this structure:\n{INSIGHT_SCHEMA}"
        )
        try:
            raw = self._run(description, "A single JSON object matching the requested structure")
        except Exception as e:
            log.warning("Narrative summarizer unavailable: %s", e)
            return None

        parsed = parse_json_response(raw)
        if not isinstance(parsed, dict) or "summary" not in parsed:
            log.warning("Narrative summarizer returned an unexpected shape; using fallback")
            return None
        parsed.setdefault("insights", [])
        parsed.setdefault("recommendations", [])
        parsed["source"] = "model"
        return parsed

    def recommend(self, summary_text: str, goal: Optional[Goal] = None,
                  limit: int = 5) -> Optional[List[Dict[str, Any]]]:
        """Recommendation list, or None when the model fails."""
        description = (
            f"Based on this health tracking data, provide {limit} specific, actionable "
            "recommendations.\n\n"
            f"Goal: {goal.title if goal else 'General Health'}\n"
            f"Data:\n{summary_text}\n\n"
            "Focus on evidence-based, practical recommendations that can be implemented "
            f"immediately. Respond with ONLY a JSON array:\n{RECOMMENDATION_SCHEMA}"
        )
        try:
            raw = self._run(description, "A JSON array of recommendation objects")
        except Exception as e:
            log.warning("Recommendation model unavailable: %s", e)
            return None

        parsed = parse_json_response(raw)
        if not isinstance(parsed, list):
            log.warning("Recommendation model returned an unexpected shape; using fallback")
            return None
        return [r for r in parsed if isinstance(r, dict)][:limit]
