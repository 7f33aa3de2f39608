# src/erlangkit/validation.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List

import pandas as pd

from .io import open_flags
from .inputs import AchievableRequest, Behavior, ErlangModel, StaffingRequest, Workload, normalize_model

REQUIRED_INTERVAL_COLUMNS = {"interval_start", "interval_minutes", "volume", "aht_seconds", "is_open"}


@dataclass(frozen=True)
class ValidationError:
    field: str
    message: str


def _finite(x: float) -> bool:
    try:
        return math.isfinite(float(x))
    except (TypeError, ValueError):
        return False


def _check_workload(w: Workload, errors: List[ValidationError]) -> None:
    if not _finite(w.volume) or w.volume < 0:
        errors.append(ValidationError("volume", "volume must be a finite number >= 0"))
    if not _finite(w.aht_seconds) or w.aht_seconds <= 0:
        errors.append(ValidationError("aht_seconds", "aht_seconds must be > 0"))
    if not _finite(w.interval_minutes) or w.interval_minutes <= 0:
        errors.append(ValidationError("interval_minutes", "interval_minutes must be > 0"))


def _check_behavior(model: ErlangModel, b: Behavior, errors: List[ValidationError]) -> None:
    if not _finite(b.shrinkage_percent) or not (0.0 <= b.shrinkage_percent < 100.0):
        errors.append(ValidationError("shrinkage_percent", "shrinkage_percent must be in [0, 100)"))

    if model in (ErlangModel.ABANDONMENT, ErlangModel.RETRIAL):
        patience = b.average_patience_seconds
        if patience is None or not _finite(patience) or patience <= 0:
            errors.append(
                ValidationError(
                    "average_patience_seconds",
                    f"average_patience_seconds must be > 0 for model {model.value}",
                )
            )


def _check_max_occupancy(pct: float, errors: List[ValidationError]) -> None:
    if not _finite(pct) or not (0.0 < pct <= 100.0):
        errors.append(ValidationError("max_occupancy_percent", "max_occupancy_percent must be in (0, 100]"))


def validate_staffing_request(request: StaffingRequest) -> List[ValidationError]:
    """Returns every problem with `request`; an empty list means it can be solved."""
    model = normalize_model(request.model)
    errors: List[ValidationError] = []

    _check_workload(request.workload, errors)

    c = request.constraints
    if not _finite(c.target_sl_percent) or not (0.0 < c.target_sl_percent <= 100.0):
        errors.append(ValidationError("target_sl_percent", "target_sl_percent must be in (0, 100]"))
    if not _finite(c.threshold_seconds) or c.threshold_seconds <= 0:
        errors.append(ValidationError("threshold_seconds", "threshold_seconds must be > 0"))
    _check_max_occupancy(c.max_occupancy_percent, errors)

    _check_behavior(model, request.behavior, errors)
    return errors


def validate_achievable_request(request: AchievableRequest) -> List[ValidationError]:
    model = normalize_model(request.model)
    errors: List[ValidationError] = []

    _check_workload(request.workload, errors)

    if request.fixed_agents <= 0:
        errors.append(ValidationError("fixed_agents", "fixed_agents must be > 0"))
    if request.actual_agents is not None and request.actual_agents < 0:
        errors.append(ValidationError("actual_agents", "actual_agents must be >= 0"))
    if not _finite(request.threshold_seconds) or request.threshold_seconds < 0:
        errors.append(ValidationError("threshold_seconds", "threshold_seconds must be >= 0"))
    _check_max_occupancy(request.max_occupancy_percent, errors)

    _check_behavior(model, request.behavior, errors)
    return errors


# -----------------------------
# Interval tables
# -----------------------------
def validate_interval_df(df: pd.DataFrame) -> None:
    missing = REQUIRED_INTERVAL_COLUMNS - set(df.columns)
    if missing:
        raise ValueError(
            f"Interval dataframe missing required columns: {sorted(missing)}. "
            f"Expected: {sorted(REQUIRED_INTERVAL_COLUMNS)}"
        )

    if df.empty:
        raise ValueError("Interval dataframe is empty")

    if pd.to_numeric(df["interval_minutes"], errors="coerce").isna().any():
        raise ValueError("interval_minutes must be numeric")
    if (pd.to_numeric(df["interval_minutes"], errors="coerce") <= 0).any():
        raise ValueError("interval_minutes must be > 0 for all rows")

    if pd.to_numeric(df["volume"], errors="coerce").isna().any():
        raise ValueError("volume must be numeric")

    if pd.to_numeric(df["aht_seconds"], errors="coerce").isna().any():
        raise ValueError("aht_seconds must be numeric")

    parsed = pd.to_datetime(df["interval_start"], errors="coerce")
    if parsed.isna().any():
        bad = df.index[parsed.isna()].tolist()[:10]
        raise ValueError(f"interval_start has invalid timestamps. Example bad rows: {bad}")


def validate_intervals(df: pd.DataFrame) -> pd.DataFrame:
    """
    Non-raising row checks. Returns a copy of `df` with boolean flag columns:
      flag_volume_negative, flag_aht_nonpositive, flag_interval_nonpositive,
      flag_open_with_zero_volume
    """
    out = df.copy()
    volume = pd.to_numeric(out["volume"], errors="coerce")
    aht = pd.to_numeric(out["aht_seconds"], errors="coerce")
    minutes = pd.to_numeric(out["interval_minutes"], errors="coerce")
    is_open = open_flags(out["is_open"])

    out["flag_volume_negative"] = (volume < 0).fillna(False).astype(bool)
    out["flag_aht_nonpositive"] = (aht <= 0).fillna(False).astype(bool)
    out["flag_interval_nonpositive"] = (minutes <= 0).fillna(False).astype(bool)
    out["flag_open_with_zero_volume"] = (is_open & (volume == 0)).fillna(False).astype(bool)
    return out


__all__ = [
    "REQUIRED_INTERVAL_COLUMNS",
    "ValidationError",
    "validate_achievable_request",
    "validate_interval_df",
    "validate_intervals",
    "validate_staffing_request",
]
