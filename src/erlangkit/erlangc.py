# src/erlangkit/erlangc.py
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS: float = 1800.0
DEFAULT_MAX_OCCUPANCY: float = 0.90


def traffic_intensity(volume: float, aht_seconds: float, interval_seconds: float = DEFAULT_INTERVAL_SECONDS) -> float:
    """
    Traffic intensity A (Erlangs) = volume * AHT / interval length.

    Returns 0.0 for any non-positive input rather than raising.
    """
    if volume <= 0 or aht_seconds <= 0 or interval_seconds <= 0:
        return 0.0
    return float(volume) * float(aht_seconds) / float(interval_seconds)


def offered_load_erlangs(volume: float, aht_seconds: float, interval_seconds: float) -> float:
    """
    Offered load a (Erlangs) = arrival_rate * AHT.
    With arrivals measured as count per interval:
      arrival_rate = volume / interval_seconds
      => a = volume * aht_seconds / interval_seconds

    Strict variant of `traffic_intensity`: invalid inputs raise ValueError.
    """
    if interval_seconds <= 0:
        raise ValueError("interval_seconds must be > 0")
    if volume < 0:
        raise ValueError("volume must be >= 0")
    if aht_seconds <= 0 and volume > 0:
        raise ValueError("aht_seconds must be > 0 when volume > 0")
    return traffic_intensity(volume, aht_seconds, interval_seconds)


def erlang_c(agents: int, traffic: float) -> float:
    """
    Erlang C probability of wait (Pw) for M/M/c.

    Computed from the Erlang B recursion to avoid overflow:
      B(0) = 1
      B(k) = A * B(k-1) / (k + A * B(k-1))
      C = c * B(c) / (c - A * (1 - B(c)))

    Requires c > A for stability; returns 1.0 otherwise.
    """
    if traffic <= 0:
        return 0.0
    if agents <= traffic:
        return 1.0

    a = float(traffic)
    b = 1.0
    for k in range(1, int(agents) + 1):
        b = a * b / (k + a * b)

    denom = agents - a * (1.0 - b)
    if denom <= 0:
        return 1.0
    pw = agents * b / denom
    return max(0.0, min(1.0, float(pw)))


def prob_wait_exceeds(agents: int, traffic: float, aht_seconds: float, threshold_seconds: float) -> float:
    """P(wait > t) = Pw * exp(-(c-A) * t / AHT)."""
    if aht_seconds <= 0 or threshold_seconds < 0:
        return 0.0
    if traffic <= 0:
        return 0.0
    if agents <= traffic:
        return 1.0

    pw = erlang_c(agents, traffic)
    expo = math.exp(-(agents - traffic) * (float(threshold_seconds) / float(aht_seconds)))
    return max(0.0, min(1.0, pw * expo))


def service_level(agents: int, traffic: float, aht_seconds: float, threshold_seconds: float) -> float:
    """
    Service level for threshold T (seconds):

    SL(T) = (1 - Pw) + Pw * (1 - exp(-(c-A) * T / AHT))
          = 1 - Pw * exp(-(c-A) * T / AHT)
    """
    if traffic <= 0:
        return 1.0
    if agents <= traffic:
        return 0.0
    return 1.0 - prob_wait_exceeds(agents, traffic, aht_seconds, threshold_seconds)


def average_speed_of_answer(agents: int, traffic: float, aht_seconds: float) -> float:
    """
    Average Speed of Answer (ASA) for M/M/c without abandonment.

    ASA = Pw * (AHT / (c-A))
    """
    if traffic <= 0:
        return 0.0
    if agents <= traffic:
        return float("inf")
    pw = erlang_c(agents, traffic)
    return max(0.0, float(pw) * float(aht_seconds) / float(agents - traffic))


def occupancy(traffic: float, agents: int) -> float:
    if agents <= 0:
        return 0.0
    return max(0.0, min(1.0, float(traffic) / float(agents)))


def total_fte(agents: float, shrinkage: float) -> float:
    """Headcount needed once shrinkage (fraction of paid time lost) is applied."""
    if shrinkage >= 1.0:
        return float("inf")
    if shrinkage < 0:
        shrinkage = 0.0
    return float(agents) / (1.0 - float(shrinkage))


def solve_agents(
    traffic: float,
    aht_seconds: float,
    target_sl: float,
    threshold_seconds: float,
    max_occupancy: float = DEFAULT_MAX_OCCUPANCY,
) -> Optional[int]:
    """
    Minimum agents meeting `target_sl` within `threshold_seconds`, respecting the
    occupancy cap (occupancy <= max_occupancy).

    Service level is non-decreasing in agents, so an upward scan from the occupancy
    floor returns the first feasible count. Returns None when nothing up to the
    traffic-scaled bound works.
    """
    if traffic <= 0 or aht_seconds <= 0:
        return 0

    min_agents = max(1, int(math.ceil(traffic / max_occupancy)))
    max_agents = max(int(math.ceil(traffic * 3)), min_agents, 10)

    for agents in range(min_agents, max_agents + 1):
        if service_level(agents, traffic, aht_seconds, threshold_seconds) >= target_sl:
            return agents

    logger.debug(
        "Delay model: SL %.3f in %.0fs unreachable up to %d agents (A=%.2f)",
        target_sl,
        threshold_seconds,
        max_agents,
        traffic,
    )
    return None


@dataclass(frozen=True)
class DelayMetrics:
    traffic_intensity: float
    required_agents: int
    total_fte: float
    service_level: float
    asa_seconds: float
    occupancy: float
    can_achieve_target: bool


def staffing_metrics(
    *,
    volume: float,
    aht_seconds: float,
    target_sl: float,
    threshold_seconds: float,
    shrinkage: float,
    interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    max_occupancy: float = DEFAULT_MAX_OCCUPANCY,
) -> DelayMetrics:
    """All delay-model metrics for one interval (decimals, not percentages)."""
    a = traffic_intensity(volume, aht_seconds, interval_seconds)
    agents = solve_agents(a, aht_seconds, target_sl, threshold_seconds, max_occupancy)

    if agents is None:
        return DelayMetrics(
            traffic_intensity=a,
            required_agents=0,
            total_fte=0.0,
            service_level=0.0,
            asa_seconds=float("inf"),
            occupancy=0.0,
            can_achieve_target=False,
        )

    return DelayMetrics(
        traffic_intensity=a,
        required_agents=agents,
        total_fte=total_fte(agents, shrinkage),
        service_level=service_level(agents, a, aht_seconds, threshold_seconds),
        asa_seconds=average_speed_of_answer(agents, a, aht_seconds),
        occupancy=occupancy(a, agents),
        can_achieve_target=True,
    )


__all__ = [
    "DEFAULT_INTERVAL_SECONDS",
    "DEFAULT_MAX_OCCUPANCY",
    "DelayMetrics",
    "average_speed_of_answer",
    "erlang_c",
    "occupancy",
    "offered_load_erlangs",
    "prob_wait_exceeds",
    "service_level",
    "solve_agents",
    "staffing_metrics",
    "total_fte",
    "traffic_intensity",
]
