# src/erlangkit/engine.py
from __future__ import annotations

import dataclasses
import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, cast

from .erlanga import (
    abandonment_metrics,
    abandonment_probability,
    asa_with_abandonment,
    expected_abandonments,
    service_level_with_abandonment,
)
from .erlangb import erlang_b, required_lines
from .erlangc import (
    average_speed_of_answer,
    occupancy,
    service_level,
    solve_agents,
    total_fte,
    traffic_intensity,
)
from .erlangx import equilibrium_metrics, retrial_metrics
from .inputs import AchievableRequest, ErlangModel, StaffingRequest, normalize_model
from .validation import validate_achievable_request, validate_staffing_request

logger = logging.getLogger(__name__)

# Floor for the occupancy penalty when it is used as a divisor.
_MIN_PENALTY_DIVISOR: float = 0.001


# -----------------------------
# Result model
# -----------------------------
@dataclass(frozen=True)
class StaffingResult:
    model: ErlangModel
    required_agents: int
    total_fte: float
    service_level: float  # percent, 0-100
    asa_seconds: float
    occupancy: float  # percent, 0-100
    can_achieve_target: bool
    traffic_intensity: float
    utilization_percent: float

    # Model-specific extras
    abandonment_rate: Optional[float] = None
    expected_abandonments: Optional[float] = None
    answered_contacts: Optional[float] = None
    retrial_probability: Optional[float] = None
    virtual_traffic: Optional[float] = None
    blocking_probability: Optional[float] = None

    # Achievable-metrics mode only
    effective_agents: Optional[int] = None
    actual_agents: Optional[int] = None
    actual_occupancy: Optional[float] = None
    occupancy_cap_applied: Optional[bool] = None
    required_agents_for_max_occupancy: Optional[int] = None
    occupancy_penalty: Optional[float] = None


@dataclass(frozen=True)
class _Prepared:
    volume: float
    aht: float
    traffic: float
    threshold: float
    target_sl: float
    max_occupancy: float
    shrinkage: float
    patience: Optional[float]


def _prepare(request: StaffingRequest) -> _Prepared:
    """Percentages to decimals, minutes to seconds."""
    w, c, b = request.workload, request.constraints, request.behavior
    interval_seconds = float(w.interval_minutes) * 60.0
    return _Prepared(
        volume=float(w.volume),
        aht=float(w.aht_seconds),
        traffic=traffic_intensity(w.volume, w.aht_seconds, interval_seconds),
        threshold=float(c.threshold_seconds),
        target_sl=float(c.target_sl_percent) / 100.0,
        max_occupancy=float(c.max_occupancy_percent) / 100.0,
        shrinkage=float(b.shrinkage_percent) / 100.0,
        patience=b.average_patience_seconds,
    )


# -----------------------------
# Per-model solvers
# -----------------------------
def _solve_blocking(request: StaffingRequest, p: _Prepared) -> Optional[StaffingResult]:
    # A loss system has no waiting: the SL target is read as a success rate.
    target_blocking = 1.0 - p.target_sl
    lines = required_lines(p.traffic, target_blocking)
    blocking = erlang_b(p.traffic, lines)

    carried = p.traffic * (1.0 - blocking)
    occ = carried / lines if lines > 0 else 0.0

    return StaffingResult(
        model=ErlangModel.BLOCKING,
        required_agents=lines,
        total_fte=total_fte(lines, p.shrinkage),
        service_level=(1.0 - blocking) * 100.0,
        asa_seconds=0.0,
        occupancy=occ * 100.0,
        can_achieve_target=blocking <= target_blocking,
        traffic_intensity=p.traffic,
        utilization_percent=occ * 100.0,
        blocking_probability=blocking,
    )


def _solve_delay(request: StaffingRequest, p: _Prepared) -> Optional[StaffingResult]:
    agents = solve_agents(p.traffic, p.aht, p.target_sl, p.threshold, p.max_occupancy)
    if agents is None:
        return None

    occ = occupancy(p.traffic, agents)
    return StaffingResult(
        model=ErlangModel.DELAY,
        required_agents=agents,
        total_fte=total_fte(agents, p.shrinkage),
        service_level=service_level(agents, p.traffic, p.aht, p.threshold) * 100.0,
        asa_seconds=average_speed_of_answer(agents, p.traffic, p.aht),
        occupancy=occ * 100.0,
        can_achieve_target=True,
        traffic_intensity=p.traffic,
        utilization_percent=occ * 100.0,
    )


def _solve_abandonment(request: StaffingRequest, p: _Prepared) -> Optional[StaffingResult]:
    m = abandonment_metrics(
        volume=p.volume,
        aht_seconds=p.aht,
        interval_minutes=request.workload.interval_minutes,
        target_sl=p.target_sl,
        threshold_seconds=p.threshold,
        max_occupancy=p.max_occupancy,
        patience_seconds=cast(float, p.patience),
    )
    if m is None:
        return None

    occ = occupancy(p.traffic, m.required_agents)
    return StaffingResult(
        model=ErlangModel.ABANDONMENT,
        required_agents=m.required_agents,
        total_fte=total_fte(m.required_agents, p.shrinkage),
        service_level=m.service_level * 100.0,
        asa_seconds=m.asa_seconds,
        occupancy=occ * 100.0,
        can_achieve_target=m.service_level >= p.target_sl,
        traffic_intensity=p.traffic,
        utilization_percent=occ * 100.0,
        abandonment_rate=m.abandonment_probability,
        expected_abandonments=m.expected_abandonments,
        answered_contacts=m.answered_contacts,
    )


def _solve_retrial(request: StaffingRequest, p: _Prepared) -> Optional[StaffingResult]:
    m = retrial_metrics(
        volume=p.volume,
        aht_seconds=p.aht,
        interval_minutes=request.workload.interval_minutes,
        target_sl=p.target_sl,
        threshold_seconds=p.threshold,
        max_occupancy=p.max_occupancy,
        patience_seconds=cast(float, p.patience),
    )
    if m is None:
        return None

    occ = occupancy(p.traffic, m.required_agents)
    return StaffingResult(
        model=ErlangModel.RETRIAL,
        required_agents=m.required_agents,
        total_fte=total_fte(m.required_agents, p.shrinkage),
        service_level=m.service_level * 100.0,
        asa_seconds=m.asa_seconds,
        occupancy=occ * 100.0,
        can_achieve_target=m.service_level >= p.target_sl,
        traffic_intensity=p.traffic,
        utilization_percent=occ * 100.0,
        abandonment_rate=m.abandonment_rate,
        expected_abandonments=m.expected_abandonments,
        answered_contacts=m.answered_contacts,
        retrial_probability=m.retrial_probability,
        virtual_traffic=m.virtual_traffic,
    )


_SOLVERS: Dict[ErlangModel, Callable[[StaffingRequest, _Prepared], Optional[StaffingResult]]] = {
    ErlangModel.BLOCKING: _solve_blocking,
    ErlangModel.DELAY: _solve_delay,
    ErlangModel.ABANDONMENT: _solve_abandonment,
    ErlangModel.RETRIAL: _solve_retrial,
}


# -----------------------------
# Public API
# -----------------------------
def calculate_staffing(request: StaffingRequest) -> Optional[StaffingResult]:
    """
    Single entry point for staffing requirements across all models.

    Returns None (never raises) when the request is invalid or the target cannot be
    met within the solver's search bounds. Zero workload gives a result with
    `required_agents == 0`, which callers must not confuse with None.
    """
    model = normalize_model(request.model)
    errors = validate_staffing_request(request)
    if errors:
        logger.debug("Rejected staffing request: %s", "; ".join(f"{e.field}: {e.message}" for e in errors))
        return None

    result = _SOLVERS[model](request, _prepare(request))
    if result is None:
        logger.debug("No staffing solution for model %s within search bounds", model.value)
    return result


def calculate_achievable_metrics(request: AchievableRequest) -> Optional[StaffingResult]:
    """
    Metrics produced by a fixed agent count; nothing is solved.

    When fewer agents are available than the occupancy cap implies
    (ceil(A / max_occupancy)), an occupancy penalty is applied:

      penalty = clamp(actual / required_for_cap, 0, 1)
      SL  -> SL * penalty
      ASA -> ASA / penalty

    This is a heuristic for the degradation an over-occupied team shows; it is not
    derived from the M/M/c+M equations and should be read as a rough indication.
    """
    model = normalize_model(request.model)
    errors = validate_achievable_request(request)
    if errors:
        logger.debug("Rejected achievable-metrics request: %s", "; ".join(f"{e.field}: {e.message}" for e in errors))
        return None

    w, b = request.workload, request.behavior
    agents = int(request.fixed_agents)
    actual = int(request.actual_agents) if request.actual_agents is not None else agents
    a = traffic_intensity(w.volume, w.aht_seconds, float(w.interval_minutes) * 60.0)
    aht = float(w.aht_seconds)
    threshold = float(request.threshold_seconds)
    max_occ = float(request.max_occupancy_percent) / 100.0
    shrinkage = float(b.shrinkage_percent) / 100.0

    occ = occupancy(a, agents)
    required_for_cap = int(math.ceil(a / max_occ))
    cap_applied = actual < required_for_cap
    penalty = max(0.0, min(1.0, actual / required_for_cap)) if cap_applied else 1.0

    extras: Dict[str, Any] = {}
    if model is ErlangModel.BLOCKING:
        blocking = erlang_b(a, agents)
        sl = 1.0 - blocking
        asa = 0.0
        occ = a * (1.0 - blocking) / agents
        extras["blocking_probability"] = blocking
    elif model is ErlangModel.DELAY:
        sl = service_level(agents, a, aht, threshold)
        asa = average_speed_of_answer(agents, a, aht)
    elif model is ErlangModel.ABANDONMENT:
        patience = float(b.average_patience_seconds or 0.0)
        tau = patience / aht
        sl = service_level_with_abandonment(agents, a, aht, threshold, patience)
        asa = asa_with_abandonment(agents, a, aht, patience)
        abandons = expected_abandonments(w.volume, agents, a, tau)
        extras.update(
            abandonment_rate=abandonment_probability(agents, a, tau),
            expected_abandonments=abandons,
            answered_contacts=float(w.volume) - abandons,
        )
    else:
        patience = float(b.average_patience_seconds or 0.0)
        m = equilibrium_metrics(
            volume=w.volume,
            agents=agents,
            base_traffic=a,
            aht_seconds=aht,
            threshold_seconds=threshold,
            patience_seconds=patience,
        )
        sl = m.service_level
        asa = m.asa_seconds if agents > a else float("inf")
        extras.update(
            abandonment_rate=m.abandonment_rate,
            expected_abandonments=m.expected_abandonments,
            answered_contacts=m.answered_contacts,
            retrial_probability=m.retrial_probability,
            virtual_traffic=m.virtual_traffic,
        )

    if cap_applied:
        sl = max(0.0, min(1.0, sl * penalty))
        if math.isfinite(asa):
            asa = asa / (penalty if penalty > 0 else _MIN_PENALTY_DIVISOR)

    return StaffingResult(
        model=model,
        required_agents=agents,
        total_fte=total_fte(agents, shrinkage),
        service_level=sl * 100.0,
        asa_seconds=asa,
        occupancy=occ * 100.0,
        can_achieve_target=True,
        traffic_intensity=a,
        utilization_percent=occ * 100.0,
        effective_agents=agents,
        actual_agents=actual,
        actual_occupancy=occupancy(a, actual) * 100.0,
        occupancy_cap_applied=cap_applied,
        required_agents_for_max_occupancy=required_for_cap,
        occupancy_penalty=penalty,
        **extras,
    )


def result_to_dict(result: StaffingResult) -> Dict[str, Any]:
    out = dataclasses.asdict(result)
    out["model"] = result.model.value
    return out


__all__ = [
    "StaffingResult",
    "calculate_achievable_metrics",
    "calculate_staffing",
    "result_to_dict",
]
