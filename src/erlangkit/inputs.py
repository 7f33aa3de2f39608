# src/erlangkit/inputs.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class ErlangModel(str, Enum):
    BLOCKING = "B"  # loss system, no queue
    DELAY = "C"  # infinite patience
    ABANDONMENT = "A"  # exponential patience
    RETRIAL = "X"  # abandonment + callbacks


ModelLike = Union[ErlangModel, str]


def normalize_model(model: ModelLike) -> ErlangModel:
    """
    Maps legacy / alternate identifiers onto `ErlangModel`.

    Accepts enum members, single letters ("b", "C") and names such as "erlangB",
    "Erlang_A" or "ErlangX". Unknown identifiers fall back to the delay model.
    """
    if isinstance(model, ErlangModel):
        return model

    m = str(model).strip().lower().replace("_", "").replace("-", "").replace(" ", "")
    if m in ("b", "erlangb", "blocking"):
        return ErlangModel.BLOCKING
    if m in ("a", "erlanga", "abandonment"):
        return ErlangModel.ABANDONMENT
    if m in ("x", "erlangx", "retrial"):
        return ErlangModel.RETRIAL
    return ErlangModel.DELAY


# -----------------------------
# Request models
# -----------------------------
@dataclass(frozen=True)
class Workload:
    volume: float
    aht_seconds: float
    interval_minutes: float = 30


@dataclass(frozen=True)
class Constraints:
    # Percentages on a 0-100 scale
    target_sl_percent: float = 80.0
    threshold_seconds: float = 20.0
    max_occupancy_percent: float = 90.0


@dataclass(frozen=True)
class Behavior:
    shrinkage_percent: float = 0.0
    # Required by the abandonment and retrial models
    average_patience_seconds: Optional[float] = None


@dataclass(frozen=True)
class StaffingRequest:
    model: ModelLike
    workload: Workload
    constraints: Constraints = Constraints()
    behavior: Behavior = Behavior()


@dataclass(frozen=True)
class AchievableRequest:
    """What a fixed number of agents achieves; there is no service-level target."""

    model: ModelLike
    workload: Workload
    fixed_agents: int
    threshold_seconds: float = 20.0
    max_occupancy_percent: float = 90.0
    behavior: Behavior = Behavior()
    # Agents actually available when that differs from the evaluated count
    actual_agents: Optional[int] = None


__all__ = [
    "AchievableRequest",
    "Behavior",
    "Constraints",
    "ErlangModel",
    "ModelLike",
    "StaffingRequest",
    "Workload",
    "normalize_model",
]
