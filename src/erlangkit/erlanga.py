# src/erlangkit/erlanga.py
"""
M/M/c+M queue (Erlang A): Erlang C plus exponential customer patience.

A waiting customer faces two competing exponential clocks:
  - service start, rate (c-A)/AHT
  - abandonment,   rate theta = 1/patience

so with E_C the Erlang C wait probability:
  P(abandon)               = E_C * theta*AHT / (c - A + theta*AHT)
  P(served within t | wait) = (c-A)/(c-A+theta*AHT) * (1 - exp(-gamma*t)),
                              gamma = (c-A+theta*AHT)/AHT
  E[wait | wait]           = AHT / (c - A + theta*AHT)
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

from .erlangc import erlang_c

logger = logging.getLogger(__name__)


def abandonment_probability(agents: int, traffic: float, patience_ratio: float) -> float:
    """
    P(abandon) = E_C / (1 + tau * (c - A)), with tau = patience / AHT.
    """
    if agents <= traffic:
        return 1.0
    if patience_ratio <= 0:
        return 1.0
    if math.isinf(patience_ratio):
        return 0.0

    pw = erlang_c(agents, traffic)
    p = pw / (1.0 + patience_ratio * (agents - traffic))
    return max(0.0, min(1.0, p))


def service_level_with_abandonment(
    agents: int,
    traffic: float,
    aht_seconds: float,
    threshold_seconds: float,
    patience_seconds: float,
) -> float:
    """SL = (1 - E_C) + E_C * service_fraction * (1 - exp(-gamma * t))."""
    if agents <= traffic:
        return 0.0
    pw = erlang_c(agents, traffic)
    if patience_seconds <= 0:
        # only immediate answers count
        return 1.0 - pw

    theta_aht = float(aht_seconds) / float(patience_seconds)
    headroom = agents - traffic
    gamma = (headroom + theta_aht) / float(aht_seconds)
    service_fraction = headroom / (headroom + theta_aht)
    served_within_t = service_fraction * (1.0 - math.exp(-gamma * float(threshold_seconds)))

    sl = (1.0 - pw) + pw * served_within_t
    return max(0.0, min(1.0, sl))


def asa_with_abandonment(agents: int, traffic: float, aht_seconds: float, patience_seconds: float) -> float:
    """ASA = E_C * AHT / (c - A + AHT/patience)."""
    if agents <= traffic:
        return float("inf")
    if patience_seconds <= 0:
        return 0.0

    pw = erlang_c(agents, traffic)
    theta_aht = float(aht_seconds) / float(patience_seconds)
    return max(0.0, pw * float(aht_seconds) / (agents - traffic + theta_aht))


def expected_abandonments(volume: float, agents: int, traffic: float, patience_ratio: float) -> float:
    return float(volume) * abandonment_probability(agents, traffic, patience_ratio)


def solve_agents_abandonment(
    traffic: float,
    aht_seconds: float,
    target_sl: float,
    threshold_seconds: float,
    max_occupancy: float,
    patience_seconds: float,
) -> Optional[int]:
    """
    Upward scan for the smallest agent count meeting `target_sl` under abandonment.

    Bounds: [ceil(A / max_occupancy), max(ceil(5A), min + 50)].
    """
    if traffic <= 0 or aht_seconds <= 0:
        return 0

    min_agents = max(1, int(math.ceil(traffic / max_occupancy)))
    max_agents = max(int(math.ceil(traffic * 5)), min_agents + 50)

    for agents in range(min_agents, max_agents + 1):
        if traffic / agents > max_occupancy:
            continue
        sl = service_level_with_abandonment(agents, traffic, aht_seconds, threshold_seconds, patience_seconds)
        if sl >= target_sl:
            return agents

    logger.debug("Abandonment model: target SL %.3f unreachable up to %d agents", target_sl, max_agents)
    return None


@dataclass(frozen=True)
class AbandonmentMetrics:
    traffic_intensity: float
    required_agents: int
    service_level: float
    asa_seconds: float
    abandonment_probability: float
    expected_abandonments: float
    answered_contacts: float
    patience_ratio: float


def abandonment_metrics(
    *,
    volume: float,
    aht_seconds: float,
    interval_minutes: float,
    target_sl: float,
    threshold_seconds: float,
    max_occupancy: float,
    patience_seconds: float,
) -> Optional[AbandonmentMetrics]:
    """
    Complete Erlang A solve for one interval. Returns None when the target cannot
    be reached within the search bounds; zero traffic yields a zero-agent result.
    """
    interval_seconds = float(interval_minutes) * 60.0
    a = float(volume) * float(aht_seconds) / interval_seconds if interval_seconds > 0 else 0.0
    tau = float(patience_seconds) / float(aht_seconds) if aht_seconds > 0 else 0.0

    if a <= 0 or volume <= 0:
        return AbandonmentMetrics(
            traffic_intensity=a,
            required_agents=0,
            service_level=1.0,
            asa_seconds=0.0,
            abandonment_probability=0.0,
            expected_abandonments=0.0,
            answered_contacts=float(volume),
            patience_ratio=tau,
        )

    agents = solve_agents_abandonment(a, aht_seconds, target_sl, threshold_seconds, max_occupancy, patience_seconds)
    if agents is None:
        return None

    abandons = expected_abandonments(volume, agents, a, tau)
    return AbandonmentMetrics(
        traffic_intensity=a,
        required_agents=agents,
        service_level=service_level_with_abandonment(agents, a, aht_seconds, threshold_seconds, patience_seconds),
        asa_seconds=asa_with_abandonment(agents, a, aht_seconds, patience_seconds),
        abandonment_probability=abandonment_probability(agents, a, tau),
        expected_abandonments=abandons,
        answered_contacts=float(volume) - abandons,
        patience_ratio=tau,
    )


__all__ = [
    "AbandonmentMetrics",
    "abandonment_metrics",
    "abandonment_probability",
    "asa_with_abandonment",
    "expected_abandonments",
    "service_level_with_abandonment",
    "solve_agents_abandonment",
]
