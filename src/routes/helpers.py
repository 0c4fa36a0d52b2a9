"""
Shared helpers for API routes.
Contains: DB access, the health record / goal source and JSON shaping of
records for the dashboard.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

import psycopg2
from psycopg2.extras import RealDictCursor
from pydantic import ValidationError

from db_utils import get_conn_str
from models import Goal, Record

log = logging.getLogger("api")


# ─── DB helpers ─────────────────────────────────────────────

def _to_jsonable(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


def _fetch_all(query: str, params: Optional[tuple] = None,
               conn_str: Optional[str] = None) -> List[Dict[str, Any]]:
    cs = conn_str or get_conn_str()
    if not cs:
        raise RuntimeError("POSTGRES_CONNECTION_STRING is not set")
    conn = psycopg2.connect(cs)
    try:
        with conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(query, params or ())
            rows = cur.fetchall()
            out: List[Dict[str, Any]] = []
            for row in rows:
                out.append({k: _to_jsonable(v) for k, v in dict(row).items()})
            return out
    finally:
        conn.close()


def _fetch_one(query: str, params: Optional[tuple] = None,
               conn_str: Optional[str] = None) -> Optional[Dict[str, Any]]:
    rows = _fetch_all(query, params=params, conn_str=conn_str)
    return rows[0] if rows else None


# ─── Record / goal source ──────────────────────────────────

class HealthDataStore:
    """Reads scoped records and goals from ``health_data`` / ``health_goals``.

    Rows that fail validation (malformed timestamp, unknown data type) are
    dropped here so they never reach the engine.
    """

    def __init__(self, conn_str: Optional[str] = None):
        self.conn_str = conn_str or get_conn_str()

    def fetch_records(self, user_id: str, goal_id: Optional[str] = None,
                      data_type: Optional[str] = None,
                      start: Optional[datetime] = None,
                      end: Optional[datetime] = None) -> List[Record]:
        clauses = ["user_id = %s"]
        params: list = [user_id]
        if goal_id:
            clauses.append("goal_id = %s")
            params.append(goal_id)
        if data_type:
            clauses.append("data_type = %s")
            params.append(data_type)
        if start:
            clauses.append("date >= %s")
            params.append(start)
        if end:
            clauses.append("date < %s")
            params.append(end)
        rows = _fetch_all(
            f"""
            SELECT id, user_id, goal_id, data_type, date, created_at, data
            FROM health_data
            WHERE {" AND ".join(clauses)}
            ORDER BY date ASC
            """,
            tuple(params),
            conn_str=self.conn_str,
        )
        records: List[Record] = []
        n_rejected = 0
        for row in rows:
            try:
                records.append(Record.from_row(row))
            except ValidationError as e:
                n_rejected += 1
                log.warning("Rejected health_data row %s: %s", row.get("id"), e.errors()[0].get("msg"))
        if n_rejected:
            log.info("Dropped %d malformed health_data rows for user %s", n_rejected, user_id)
        return records

    def fetch_goals(self, user_id: str, status: Optional[str] = None) -> List[Goal]:
        query = "SELECT * FROM health_goals WHERE user_id = %s"
        params: list = [user_id]
        if status:
            query += " AND status = %s"
            params.append(status)
        query += " ORDER BY created_at DESC"
        goals: List[Goal] = []
        for row in _fetch_all(query, tuple(params), conn_str=self.conn_str):
            try:
                goals.append(Goal.from_row(row))
            except ValidationError as e:
                log.warning("Rejected health_goals row %s: %s", row.get("id"), e.errors()[0].get("msg"))
        return goals

    def fetch_goal(self, user_id: str, goal_id: Optional[str] = None) -> Optional[Goal]:
        """The goal by id, or the most recently created active goal."""
        if goal_id:
            row = _fetch_one(
                "SELECT * FROM health_goals WHERE id = %s AND user_id = %s",
                (goal_id, user_id),
                conn_str=self.conn_str,
            )
        else:
            row = _fetch_one(
                """
                SELECT * FROM health_goals
                WHERE user_id = %s AND status = 'active'
                ORDER BY created_at DESC
                LIMIT 1
                """,
                (user_id,),
                conn_str=self.conn_str,
            )
        if not row:
            return None
        try:
            return Goal.from_row(row)
        except ValidationError as e:
            log.warning("Rejected health_goals row %s: %s", row.get("id"), e.errors()[0].get("msg"))
            return None


# ─── Presentation shaping ───────────────────────────────────

def _record_payload(record: Record) -> Dict[str, Any]:
    """Record as returned to presentation layers."""
    return {
        "userId": record.user_id,
        "goalId": record.goal_id,
        "dataType": record.type_name,
        "timestamp": record.timestamp.isoformat(),
        "payload": record.payload,
    }
