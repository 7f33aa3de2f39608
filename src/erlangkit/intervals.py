# src/erlangkit/intervals.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import pandas as pd

from .engine import calculate_staffing
from .erlangc import offered_load_erlangs
from .io import open_flags
from .inputs import Behavior, Constraints, ModelLike, StaffingRequest, Workload, normalize_model
from .validation import validate_interval_df

logger = logging.getLogger(__name__)

RESULT_COLUMNS = [
    "erlangs",
    "required_agents",
    "total_fte",
    "fte_hours_interval",
    "service_level",
    "asa_seconds",
    "occupancy",
    "status",
]


def compute_interval_staffing(
    interval_df: pd.DataFrame,
    *,
    model: ModelLike = "C",
    target_sl_percent: float = 80.0,
    threshold_seconds: float = 20.0,
    max_occupancy_percent: float = 90.0,
    shrinkage_percent: float = 30.0,
    average_patience_seconds: Optional[float] = None,
) -> pd.DataFrame:
    """
    Staffing for every row of an interval table (see `io.read_interval_csv`).

    Closed intervals get zero staffing. Open rows whose load cannot be computed
    (negative volume, non-positive AHT) get status "invalid"; rows the dispatcher
    cannot solve get status "unsolved". Both keep their inputs with empty results.
    """
    validate_interval_df(interval_df)

    df = interval_df.copy()
    df["interval_start"] = pd.to_datetime(df["interval_start"], errors="coerce")
    df["interval_minutes"] = pd.to_numeric(df["interval_minutes"], errors="coerce")
    df["volume"] = pd.to_numeric(df["volume"], errors="coerce").astype(float)
    df["aht_seconds"] = pd.to_numeric(df["aht_seconds"], errors="coerce").astype(float)
    df["is_open"] = open_flags(df["is_open"])

    erlang_model = normalize_model(model)
    constraints = Constraints(
        target_sl_percent=float(target_sl_percent),
        threshold_seconds=float(threshold_seconds),
        max_occupancy_percent=float(max_occupancy_percent),
    )
    behavior = Behavior(
        shrinkage_percent=float(shrinkage_percent),
        average_patience_seconds=average_patience_seconds,
    )

    rows: List[Dict[str, Any]] = []
    for _, r in df.iterrows():
        volume = float(r["volume"])
        if not bool(r["is_open"]) or volume == 0:
            rows.append(
                {
                    "erlangs": 0.0,
                    "required_agents": 0,
                    "total_fte": 0.0,
                    "fte_hours_interval": 0.0,
                    "service_level": 100.0,
                    "asa_seconds": 0.0,
                    "occupancy": 0.0,
                    "status": "closed" if not bool(r["is_open"]) else "ok",
                }
            )
            continue

        aht = float(r["aht_seconds"])
        minutes = float(r["interval_minutes"])
        try:
            erlangs = offered_load_erlangs(volume, aht, minutes * 60.0)
        except ValueError as exc:
            logger.warning("Skipping interval starting %s: %s", r["interval_start"], exc)
            rows.append({c: None for c in RESULT_COLUMNS} | {"status": "invalid"})
            continue

        request = StaffingRequest(
            model=erlang_model,
            workload=Workload(volume=volume, aht_seconds=aht, interval_minutes=minutes),
            constraints=constraints,
            behavior=behavior,
        )
        res = calculate_staffing(request)

        if res is None:
            logger.warning("No staffing solution for interval starting %s", r["interval_start"])
            rows.append({c: None for c in RESULT_COLUMNS} | {"status": "unsolved"})
            continue

        rows.append(
            {
                "erlangs": erlangs,
                "required_agents": res.required_agents,
                "total_fte": res.total_fte,
                "fte_hours_interval": res.total_fte * float(r["interval_minutes"]) / 60.0,
                "service_level": res.service_level,
                "asa_seconds": res.asa_seconds,
                "occupancy": res.occupancy,
                "status": "ok",
            }
        )

    out = pd.concat(
        [df.reset_index(drop=True), pd.DataFrame(rows, columns=RESULT_COLUMNS)],
        axis=1,
    )
    return out.sort_values("interval_start").reset_index(drop=True)


__all__ = ["RESULT_COLUMNS", "compute_interval_staffing"]
