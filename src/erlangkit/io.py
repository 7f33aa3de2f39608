# src/erlangkit/io.py
from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, List, Optional, Sequence

import pandas as pd

if TYPE_CHECKING:
    from .simulation import ContactRecord


REQUIRED_COLUMNS = ["interval_start", "interval_minutes", "volume", "aht_seconds", "is_open"]

CONTACT_RECORD_COLUMNS = [
    "Customer ID",
    "Channel",
    "Arrival Time",
    "Queue Join Time",
    "Queue Wait Time",
    "Service Start Time",
    "Service End Time",
    "Total Time in System",
    "Server ID",
    "Was Queued",
    "Service Time",
    "Time to Answer (ASA)",
]

HISTORICAL_DATA_COLUMNS = [
    "campaign_id",
    "skill_id",
    "channel",
    "date",
    "interval_start",
    "interval_end",
    "volume",
    "aht",
    "abandons",
    "asa",
]


TRUTHY_FLAGS = ("1", "1.0", "true", "t", "yes", "y", "open")


def open_flags(values: pd.Series) -> pd.Series:
    """
    Normalizes an is_open column to bool. Booleans pass through, numbers are open
    when non-zero, text is open only for one of TRUTHY_FLAGS (case-insensitive).
    Missing values count as closed.
    """
    if pd.api.types.is_bool_dtype(values):
        return values.fillna(False).astype(bool)
    if pd.api.types.is_numeric_dtype(values):
        return values.fillna(0).ne(0)
    text = values.astype(str).str.strip().str.lower()
    return text.isin(TRUTHY_FLAGS) & values.notna()


def read_interval_csv(file) -> pd.DataFrame:
    """
    Reads the interval-level staffing input CSV.
    Expected columns:
      interval_start (datetime parsable)
      interval_minutes (int)
      volume (float)
      aht_seconds (float)
      is_open (0/1 or true/false)

    Returns a normalized DataFrame.
    """
    df = pd.read_csv(file)
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}. Required: {REQUIRED_COLUMNS}")

    df = df.copy()
    df["interval_start"] = pd.to_datetime(df["interval_start"])
    df["interval_minutes"] = df["interval_minutes"].astype(int)
    df["volume"] = df["volume"].astype(float)
    df["aht_seconds"] = df["aht_seconds"].astype(float)

    df["is_open"] = open_flags(df["is_open"])

    return df.sort_values("interval_start").reset_index(drop=True)


def contact_records_frame(records: Sequence["ContactRecord"]) -> pd.DataFrame:
    """One row per completed contact, using the export column names."""
    rows = [
        {
            "Customer ID": int(r.customer_id),
            "Channel": r.channel,
            "Arrival Time": float(r.arrival_time),
            "Queue Join Time": float(r.queue_join_time),
            "Queue Wait Time": float(r.queue_wait_time),
            "Service Start Time": float(r.service_start_time),
            "Service End Time": float(r.service_end_time),
            "Total Time in System": float(r.total_time_in_system),
            "Server ID": int(r.server_id),
            "Was Queued": "Yes" if r.was_queued else "No",
            "Service Time": float(r.service_time),
            "Time to Answer (ASA)": float(r.time_to_answer),
        }
        for r in records
    ]
    return pd.DataFrame(rows, columns=CONTACT_RECORD_COLUMNS)


def contact_records_to_csv(records: Sequence["ContactRecord"]) -> str:
    """
    Header plus one line per record, every float with 4 decimals, lines joined by
    "\\n" without a trailing newline. No records gives "" (no header either).
    """
    if not records:
        return ""
    csv = contact_records_frame(records).to_csv(index=False, float_format="%.4f", lineterminator="\n")
    return csv.rstrip("\n")


def _sql_literal(value) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return f"{value:.4f}"
    return "'" + str(value).replace("'", "''") + "'"


def historical_data_statements(
    records: Sequence["ContactRecord"],
    record_date: Optional[date] = None,
) -> List[str]:
    """
    One `INSERT INTO HistoricalData` statement per record. Each contact is stored as
    a single-contact interval spanning arrival to service end (simulation time
    units); its handle time goes to `aht` and its wait to `asa`.

    The column list extends the plain HistoricalData table (campaign, date,
    interval bounds, volume, aht, abandons, asa) with `skill_id` and `channel`, and
    `interval_start` / `interval_end` hold simulation times as decimals rather than
    TIME values. Loading into a table without those columns or with TIME-typed
    interval bounds needs a mapping step first.
    """
    if not records:
        return []

    day = (record_date or date.today()).isoformat()
    columns = ", ".join(HISTORICAL_DATA_COLUMNS)
    statements: List[str] = []
    for r in records:
        values = [
            r.campaign_id,
            r.skill_id,
            r.channel,
            day,
            float(r.arrival_time),
            float(r.service_end_time),
            1,
            float(r.service_time),
            1 if r.abandoned else 0,
            float(r.queue_wait_time),
        ]
        statements.append(
            f"INSERT INTO HistoricalData ({columns}) VALUES ({', '.join(_sql_literal(v) for v in values)});"
        )
    return statements


__all__ = [
    "CONTACT_RECORD_COLUMNS",
    "HISTORICAL_DATA_COLUMNS",
    "REQUIRED_COLUMNS",
    "contact_records_frame",
    "contact_records_to_csv",
    "historical_data_statements",
    "open_flags",
    "read_interval_csv",
]
