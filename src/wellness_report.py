"""
Wellness Report: command-line entry point
=========================================
Builds the analytics + insight report for one user, either from the
database or from a JSON export.

Usage:
    python wellness_report.py --user u1                 # from PostgreSQL
    python wellness_report.py --user u1 --goal g1 --days 30
    python wellness_report.py --input export.json       # offline, no DB
    python wellness_report.py --input export.json --no-ai
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from dotenv import load_dotenv

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
log = logging.getLogger("wellness_report")

from models import parse_goal, parse_records
from narrative import NarrativeSummarizer
from pipeline.report_pipeline import InsightReportPipeline
from routes.helpers import HealthDataStore


def load_export(path: str, user_id: Optional[str] = None) -> Dict[str, Any]:
    """Read ``{"records": [...], "goal": {...}}`` (goal optional) from a file."""
    with open(path, "r", encoding="utf-8") as fh:
        raw = json.load(fh)
    if isinstance(raw, list):
        raw = {"records": raw}
    records = parse_records(raw.get("records", []), user_id)
    scope = user_id or (records[0].user_id if records else None)
    goal = parse_goal(raw.get("goal"), scope)
    return {"records": records, "goal": goal}


def build_report(args: argparse.Namespace) -> Dict[str, Any]:
    summarizer = None if args.no_ai else NarrativeSummarizer()
    now = datetime.fromisoformat(args.now) if args.now else datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    if args.input:
        data = load_export(args.input, args.user)
        pipeline = InsightReportPipeline(store=None, summarizer=summarizer)
        return pipeline.report(data["records"], data["goal"], days=args.days, now=now)

    pipeline = InsightReportPipeline(HealthDataStore(), summarizer=summarizer)
    return pipeline.run(args.user, goal_id=args.goal, days=args.days, now=now)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Wellness analytics report")
    parser.add_argument("--user", help="user id (required without --input)")
    parser.add_argument("--goal", help="goal id; defaults to the latest active goal")
    parser.add_argument("--days", type=int, default=7, help="analysis window in days")
    parser.add_argument("--input", help="JSON export to analyse instead of the database")
    parser.add_argument("--now", help="ISO timestamp to treat as 'now'")
    parser.add_argument("--no-ai", action="store_true", help="skip the model, use fallback insights")
    args = parser.parse_args(argv)

    if not args.input and not args.user:
        parser.error("--user is required unless --input is given")

    try:
        report = build_report(args)
    except Exception as e:
        log.error("Report failed: %s", e)
        return 1

    log.info(
        "Report ready: %d data points, analysis_status=%s, narrative=%s",
        report["dataPoints"], report["analysis_status"], report["narrative_status"],
    )
    json.dump(report, sys.stdout, indent=2, ensure_ascii=False, default=str)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
