"""Per-type counts, averages and latest values plus the overall date range."""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

import pandas as pd

from analytics.series import observed_types, records_frame
from models import Record


def _iso(ts) -> Optional[str]:
    if ts is None or pd.isna(ts):
        return None
    return pd.Timestamp(ts).isoformat()


def summarize_frame(df: pd.DataFrame) -> Dict[str, Any]:
    if df.empty:
        return {
            "totalEntries": 0,
            "distinctTypeCount": 0,
            "dataTypes": [],
            "dateRange": {"start": None, "end": None},
            "byType": {},
        }

    types = observed_types(df)
    ordered = df.sort_values(["timestamp", "order"], kind="mergesort")
    by_type: Dict[str, Dict[str, Any]] = {}
    for data_type in types:
        part = ordered[ordered["data_type"] == data_type]
        numeric = part["value"].dropna()
        by_type[data_type] = {
            "count": int(len(part)),
            # 0 by convention when nothing numeric was logged
            "average": float(numeric.mean()) if len(numeric) else 0.0,
            "latestValue": part["payload"].iloc[-1],
        }

    return {
        "totalEntries": int(len(df)),
        "distinctTypeCount": len(types),
        "dataTypes": types,
        "dateRange": {
            "start": _iso(ordered["timestamp"].iloc[0]),
            "end": _iso(ordered["timestamp"].iloc[-1]),
        },
        "byType": by_type,
    }


def summarize_records(records: Sequence[Record]) -> Dict[str, Any]:
    """Summary of ``records``; averages only count numeric-extractable values."""
    return summarize_frame(records_frame(records))
