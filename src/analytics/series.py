"""Group records into per-type series and a day-aligned value table.

Every component keys days the same way (UTC calendar date of the record
timestamp), so trend, correlation and summary results agree on what "a day" is.
"""

from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd

from analytics.normalizer import extract_numeric_value
from models import Record

FRAME_COLUMNS = ["order", "data_type", "timestamp", "day", "value", "payload"]

Series = List[Tuple[date, Optional[float]]]


def day_key(record: Record) -> date:
    """UTC calendar day of a record (timestamps are already UTC-aware)."""
    return record.timestamp.date()


def records_frame(records: Sequence[Record]) -> pd.DataFrame:
    """One row per record, in input order, with its extracted value.

    ``value`` is NaN where the payload has no numeric value.
    """
    rows = []
    for i, rec in enumerate(records):
        rows.append({
            "order": i,
            "data_type": rec.type_name,
            "timestamp": rec.timestamp,
            "day": day_key(rec),
            "value": extract_numeric_value(rec.payload, rec.type_name),
        })
    df = pd.DataFrame(rows, columns=FRAME_COLUMNS)
    # object dtype keeps payloads verbatim (no int64/NaN upcasting)
    df["payload"] = pd.Series([rec.payload for rec in records], index=df.index, dtype=object)
    df["value"] = pd.to_numeric(df["value"], errors="coerce").astype("float64")
    return df


def observed_types(df: pd.DataFrame) -> List[str]:
    """Data types in order of first appearance."""
    return list(dict.fromkeys(df["data_type"].tolist()))


def build_series(records: Sequence[Record]) -> Dict[str, Series]:
    """Map each data type to its (day, value) pairs, ascending by timestamp."""
    return series_from_frame(records_frame(records))


def series_from_frame(df: pd.DataFrame) -> Dict[str, Series]:
    out: Dict[str, Series] = {}
    if df.empty:
        return out
    ordered = df.sort_values(["timestamp", "order"], kind="mergesort")
    for data_type in observed_types(df):
        part = ordered[ordered["data_type"] == data_type]
        out[data_type] = [
            (day, None if pd.isna(val) else float(val))
            for day, val in zip(part["day"], part["value"])
        ]
    return out


def build_day_alignment(records: Sequence[Record]) -> Dict[date, Dict[str, float]]:
    """Map each day to ``{data_type: representative value}``.

    The representative value is the first numeric value seen for that type on
    that day, in input order. Types with no numeric value that day are absent.
    """
    return alignment_from_frame(records_frame(records))


def alignment_from_frame(df: pd.DataFrame) -> Dict[date, Dict[str, float]]:
    numeric = df.dropna(subset=["value"]).sort_values("order", kind="mergesort")
    if numeric.empty:
        return {}
    firsts = numeric.groupby(["day", "data_type"], sort=True)["value"].first()
    out: Dict[date, Dict[str, float]] = {}
    for (day, data_type), value in firsts.items():
        out.setdefault(day, {})[data_type] = float(value)
    return out


def alignment_table(alignment: Dict[date, Dict[str, float]]) -> pd.DataFrame:
    """Day x type table (NaN where a type has no value that day)."""
    if not alignment:
        return pd.DataFrame()
    table = pd.DataFrame.from_dict(alignment, orient="index")
    return table.sort_index()
