# src/erlangkit/erlangx.py
"""
Abandonment with retrials (Erlang X style).

Callers who abandon may call back, so the load the agents see ("virtual traffic")
is larger than the base load. Abandonment depends on that load and the load depends
on abandonment; the pair is solved by fixed-point iteration.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

from .erlangc import erlang_c, traffic_intensity

logger = logging.getLogger(__name__)

BASE_RETRIAL_RATE: float = 0.40
MAX_RETRIAL_RATE: float = 0.70
FRUSTRATION_SCALE: float = 0.15
MAX_FRUSTRATION: float = 2.0
FEEDBACK_LIMIT: float = 0.99
DEFAULT_PATIENCE_SHAPE: float = 1.2
CONVERGENCE_TOLERANCE: float = 0.001
INITIAL_ABANDONMENT_GUESS: float = 0.05
MAX_EQUILIBRIUM_ITERATIONS: int = 50


def retrial_probability(wait_time: float, patience_seconds: float) -> float:
    """
    Empirical retry model: 40% of abandoners call back, rising with frustration
    (wait / patience, capped at 2.0) by 0.15 per unit, never above 70%.
    """
    if patience_seconds <= 0:
        frustration = MAX_FRUSTRATION
    else:
        frustration = min(max(float(wait_time), 0.0) / float(patience_seconds), MAX_FRUSTRATION)
    return min(BASE_RETRIAL_RATE + frustration * FRUSTRATION_SCALE, MAX_RETRIAL_RATE)


def virtual_traffic(base_traffic: float, abandonment_rate: float, retrial_prob: float) -> float:
    """A_virtual = A / (1 - p_abandon * p_retry); infinite once feedback >= 0.99."""
    feedback = float(abandonment_rate) * float(retrial_prob)
    if feedback >= FEEDBACK_LIMIT:
        return float("inf")
    return float(base_traffic) / (1.0 - feedback)


def _average_wait(agents: int, traffic: float, aht_seconds: float) -> float:
    # Floor on the headroom keeps the estimate finite when virtual load reaches capacity.
    return erlang_c(agents, traffic) * float(aht_seconds) / max(agents - traffic, 0.01)


def abandonment_rate(
    agents: int,
    traffic: float,
    aht_seconds: float,
    patience_seconds: float,
    patience_shape: float = DEFAULT_PATIENCE_SHAPE,
) -> float:
    """
    Weibull-shaped abandonment:
      P(abandon) = Pw * (1 - exp(-(avg_wait / patience) ** shape)),
      avg_wait   = Pw * AHT / (c - A)
    """
    if agents <= traffic:
        return 1.0

    pw = erlang_c(agents, traffic)
    if pw == 0:
        return 0.0
    if patience_seconds <= 0:
        return pw

    avg_wait = pw * float(aht_seconds) / (agents - traffic)
    ratio = avg_wait / float(patience_seconds)
    return pw * (1.0 - math.exp(-(ratio**patience_shape)))


def solve_equilibrium_abandonment(
    base_traffic: float,
    agents: int,
    aht_seconds: float,
    patience_seconds: float,
    max_iterations: int = MAX_EQUILIBRIUM_ITERATIONS,
) -> float:
    """
    Fixed point of (abandonment rate, virtual traffic).

    Stops once both move by less than 0.001 between iterations. Non-convergence is
    tolerated: the last estimate is returned after `max_iterations`.
    """
    rate = INITIAL_ABANDONMENT_GUESS
    load = float(base_traffic)

    for _ in range(max_iterations):
        new_rate = abandonment_rate(agents, load, aht_seconds, patience_seconds)
        retry = retrial_probability(_average_wait(agents, load, aht_seconds), patience_seconds)
        new_load = virtual_traffic(base_traffic, new_rate, retry)

        if abs(new_rate - rate) < CONVERGENCE_TOLERANCE and abs(new_load - load) < CONVERGENCE_TOLERANCE:
            return new_rate

        rate = new_rate
        load = new_load

    logger.debug(
        "Retrial equilibrium not converged after %d iterations (agents=%d, A=%.2f); using %.4f",
        max_iterations,
        agents,
        base_traffic,
        rate,
    )
    return rate


def service_level_retrial(
    agents: int,
    base_traffic: float,
    aht_seconds: float,
    threshold_seconds: float,
    patience_seconds: float,
) -> float:
    """Erlang C service level evaluated at the equilibrium virtual traffic."""
    if agents <= 0 or base_traffic <= 0:
        return 1.0
    if agents <= base_traffic:
        return 0.0

    rate = solve_equilibrium_abandonment(base_traffic, agents, aht_seconds, patience_seconds)
    retry = retrial_probability(_average_wait(agents, base_traffic, aht_seconds), patience_seconds)
    load = virtual_traffic(base_traffic, rate, retry)
    if agents <= load:
        return 0.0

    pw = erlang_c(agents, load)
    exceeds = pw * math.exp(-(agents - load) * (float(threshold_seconds) / float(aht_seconds)))
    return max(0.0, min(1.0, 1.0 - exceeds))


def solve_agents_retrial(
    base_traffic: float,
    aht_seconds: float,
    target_sl: float,
    threshold_seconds: float,
    max_occupancy: float,
    patience_seconds: float,
) -> Optional[int]:
    """
    Binary search for the smallest agent count meeting `target_sl`.

    Each probe runs the equilibrium iteration, so the O(log n) search matters for
    large loads. Relies on service level being monotone in agents.
    """
    if base_traffic <= 0 or aht_seconds <= 0:
        return 0

    min_agents = max(1, int(math.ceil(base_traffic / max_occupancy)))
    max_agents = max(
        int(math.ceil(base_traffic * 5)),
        min_agents + 50,
        10 if base_traffic < 1 else int(math.ceil(base_traffic * 3)),
    )

    lo, hi = min_agents, max_agents
    found: Optional[int] = None
    while lo <= hi:
        mid = (lo + hi) // 2
        sl = service_level_retrial(mid, base_traffic, aht_seconds, threshold_seconds, patience_seconds)
        if sl >= target_sl:
            found = mid
            hi = mid - 1
        else:
            lo = mid + 1

    if found is None:
        logger.debug("Retrial model: target SL %.3f unreachable up to %d agents", target_sl, max_agents)
    return found


@dataclass(frozen=True)
class RetrialMetrics:
    traffic_intensity: float
    required_agents: int
    service_level: float
    asa_seconds: float
    abandonment_rate: float
    expected_abandonments: float
    retrial_probability: float
    virtual_traffic: float
    answered_contacts: float


def equilibrium_metrics(
    *,
    volume: float,
    agents: int,
    base_traffic: float,
    aht_seconds: float,
    threshold_seconds: float,
    patience_seconds: float,
) -> RetrialMetrics:
    """Retrial-model metrics for a known agent count."""
    rate = solve_equilibrium_abandonment(base_traffic, agents, aht_seconds, patience_seconds)
    avg_wait = _average_wait(agents, base_traffic, aht_seconds)
    retry = retrial_probability(avg_wait, patience_seconds)
    abandons = float(volume) * rate

    return RetrialMetrics(
        traffic_intensity=base_traffic,
        required_agents=agents,
        service_level=service_level_retrial(agents, base_traffic, aht_seconds, threshold_seconds, patience_seconds),
        asa_seconds=avg_wait,
        abandonment_rate=rate,
        expected_abandonments=abandons,
        retrial_probability=retry,
        virtual_traffic=virtual_traffic(base_traffic, rate, retry),
        answered_contacts=float(volume) - abandons,
    )


def retrial_metrics(
    *,
    volume: float,
    aht_seconds: float,
    interval_minutes: float,
    target_sl: float,
    threshold_seconds: float,
    max_occupancy: float,
    patience_seconds: float,
) -> Optional[RetrialMetrics]:
    """Complete retrial-model solve for one interval; None if the target is unreachable."""
    base = traffic_intensity(volume, aht_seconds, float(interval_minutes) * 60.0)

    if base <= 0 or volume <= 0:
        return RetrialMetrics(
            traffic_intensity=base,
            required_agents=0,
            service_level=1.0,
            asa_seconds=0.0,
            abandonment_rate=0.0,
            expected_abandonments=0.0,
            retrial_probability=BASE_RETRIAL_RATE,
            virtual_traffic=0.0,
            answered_contacts=float(volume),
        )

    agents = solve_agents_retrial(base, aht_seconds, target_sl, threshold_seconds, max_occupancy, patience_seconds)
    if agents is None:
        return None

    return equilibrium_metrics(
        volume=volume,
        agents=agents,
        base_traffic=base,
        aht_seconds=aht_seconds,
        threshold_seconds=threshold_seconds,
        patience_seconds=patience_seconds,
    )


__all__ = [
    "BASE_RETRIAL_RATE",
    "MAX_RETRIAL_RATE",
    "FEEDBACK_LIMIT",
    "DEFAULT_PATIENCE_SHAPE",
    "RetrialMetrics",
    "abandonment_rate",
    "equilibrium_metrics",
    "retrial_metrics",
    "retrial_probability",
    "service_level_retrial",
    "solve_agents_retrial",
    "solve_equilibrium_abandonment",
    "virtual_traffic",
]
