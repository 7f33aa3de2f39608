# src/erlangkit/crosscheck.py
from __future__ import annotations

import dataclasses
import heapq
import logging
import math
from collections import deque
from typing import Any, Deque, Dict, List, Tuple

import numpy as np
import pandas as pd

from .erlanga import abandonment_probability
from .erlangc import average_speed_of_answer, erlang_c
from .simulation import SimulationConfig, SimulationEngine, validate_config

logger = logging.getLogger(__name__)

# -----------------------------
# Safety caps
# -----------------------------
MAX_REPLICATIONS: int = 500


# -----------------------------
# Single replication
# -----------------------------
def _run_once(config: SimulationConfig, warmup: float) -> Dict[str, Any]:
    engine = SimulationEngine(config)
    engine.process_until(config.max_time)

    records = [r for r in engine.contact_records() if r.arrival_time >= warmup]
    waits = np.array([r.queue_wait_time for r in records], dtype=float)
    snap = engine.snapshot()

    return {
        "seed": config.seed,
        "serviced": len(records),
        "pwait_sim": float(np.mean(waits > 0)) if waits.size else 0.0,
        "wq_sim": float(np.mean(waits)) if waits.size else 0.0,
        "max_queue_length": snap.max_queue_length,
        "final_queue_length": snap.queue_length,
    }


# -----------------------------
# Single replication with impatient customers
# -----------------------------
def _run_abandonment_once(config: SimulationConfig, patience: float, seed: int) -> Dict[str, Any]:
    """
    M/M/c+M run: FIFO queue, exponential patience with mean `patience`. A waiting
    customer whose deadline passes before a server frees up is counted as abandoned;
    customers still waiting at the horizon count only if their deadline has passed.
    """
    rng = np.random.default_rng(seed)
    horizon = float(config.max_time)
    free = int(config.servers)
    waiting: Deque[float] = deque()  # deadlines, FIFO
    events: List[Tuple[float, int, str]] = []
    seq = 0
    arrivals = abandoned = 0

    def schedule(t: float, kind: str) -> None:
        nonlocal seq
        heapq.heappush(events, (t, seq, kind))
        seq += 1

    schedule(rng.exponential(1.0 / config.arrival_rate), "arrival")
    while events and events[0][0] <= horizon:
        now, _, kind = heapq.heappop(events)
        if kind == "arrival":
            arrivals += 1
            if free > 0:
                free -= 1
                schedule(now + rng.exponential(1.0 / config.service_rate), "departure")
            else:
                waiting.append(now + rng.exponential(patience))
            schedule(now + rng.exponential(1.0 / config.arrival_rate), "arrival")
        else:
            free += 1
            while waiting and waiting[0] < now:
                waiting.popleft()
                abandoned += 1
            if waiting:
                waiting.popleft()
                free -= 1
                schedule(now + rng.exponential(1.0 / config.service_rate), "departure")

    abandoned += sum(1 for deadline in waiting if deadline <= horizon)
    return {
        "seed": seed,
        "arrivals": arrivals,
        "abandoned": abandoned,
        "abandon_sim": abandoned / arrivals if arrivals else 0.0,
    }


# -----------------------------
# Public API
# -----------------------------
def run_replications(
    config: SimulationConfig,
    replications: int = 20,
    seed: int = 123,
    warmup: float = 0.0,
) -> pd.DataFrame:
    """
    Runs `replications` independent simulations of `config` to its horizon.
    Replication seeds are drawn from `seed`, so the whole batch is reproducible.

    Contacts arriving before `warmup` are left out of the wait statistics.
    """
    n = int(replications)
    if n <= 0:
        raise ValueError("replications must be > 0")
    if n > MAX_REPLICATIONS:
        raise ValueError(f"replications must be <= {MAX_REPLICATIONS}")
    if not (0.0 <= warmup < config.max_time):
        raise ValueError("warmup must be in [0, max_time)")

    rng = np.random.default_rng(seed)
    seeds = rng.integers(0, 2**31 - 1, size=n)

    rows = [_run_once(dataclasses.replace(config, seed=int(s)), warmup) for s in seeds]
    return pd.DataFrame(rows)


def compare_with_erlang_c(
    config: SimulationConfig,
    replications: int = 20,
    seed: int = 123,
    warmup: float = 0.0,
) -> pd.DataFrame:
    """
    One-row summary putting simulated wait probability and mean wait next to the
    Erlang C values for the same lambda, mu and c. Relative errors are NaN when the
    queue is unstable and the analytic values degenerate.
    """
    reps = run_replications(config, replications=replications, seed=seed, warmup=warmup)

    a = config.arrival_rate / config.service_rate
    c = int(config.servers)
    pwait_theory = erlang_c(c, a)
    # ASA in time units: mean service time stands in for AHT
    wq_theory = average_speed_of_answer(c, a, 1.0 / config.service_rate)

    pwait_sim = float(reps["pwait_sim"].mean())
    wq_sim = float(reps["wq_sim"].mean())
    stable = c > a

    def _rel(sim: float, theory: float) -> float:
        if not stable or theory == 0 or not math.isfinite(theory):
            return float("nan")
        return abs(sim - theory) / theory

    if not stable:
        logger.warning("Compared an unstable queue (rho=%.3f); analytic values are sentinels", a / c)

    out = {
        "arrival_rate": config.arrival_rate,
        "service_rate": config.service_rate,
        "servers": c,
        "rho": a / c,
        "replications": len(reps),
        "pwait_sim": pwait_sim,
        "pwait_sim_p05": float(np.quantile(reps["pwait_sim"], 0.05)),
        "pwait_sim_p95": float(np.quantile(reps["pwait_sim"], 0.95)),
        "pwait_theory": pwait_theory,
        "pwait_rel_error": _rel(pwait_sim, pwait_theory),
        "wq_sim": wq_sim,
        "wq_theory": wq_theory,
        "wq_rel_error": _rel(wq_sim, wq_theory),
    }
    return pd.DataFrame([out])


def compare_with_erlang_a(
    config: SimulationConfig,
    patience: float,
    replications: int = 20,
    seed: int = 123,
) -> pd.DataFrame:
    """
    One-row summary putting the simulated abandonment fraction next to the Erlang A
    value for the same lambda, mu, c and mean patience (in simulation time units).

    The analytic side uses the Erlang C wait probability, so agreement is rough;
    this is a sanity check, not a validation. Relative error is NaN when c <= A.
    """
    errors = validate_config(config)
    if errors:
        raise ValueError(f"Invalid simulation config: {'; '.join(errors)}")
    n = int(replications)
    if not (0 < n <= MAX_REPLICATIONS):
        raise ValueError(f"replications must be in [1, {MAX_REPLICATIONS}]")
    if not (patience > 0 and math.isfinite(patience)):
        raise ValueError("patience must be a positive finite number")

    rng = np.random.default_rng(seed)
    seeds = rng.integers(0, 2**31 - 1, size=n)
    reps = pd.DataFrame([_run_abandonment_once(config, patience, int(s)) for s in seeds])

    a = config.arrival_rate / config.service_rate
    c = int(config.servers)
    # patience / AHT, with AHT = 1 / mu
    tau = patience * config.service_rate
    theory = abandonment_probability(c, a, tau)
    sim = float(reps["abandon_sim"].mean())
    stable = c > a

    out = {
        "arrival_rate": config.arrival_rate,
        "service_rate": config.service_rate,
        "servers": c,
        "patience": patience,
        "rho": a / c,
        "replications": len(reps),
        "abandon_sim": sim,
        "abandon_sim_p05": float(np.quantile(reps["abandon_sim"], 0.05)),
        "abandon_sim_p95": float(np.quantile(reps["abandon_sim"], 0.95)),
        "abandon_theory": theory,
        "abandon_rel_error": abs(sim - theory) / theory if stable and theory > 0 else float("nan"),
    }
    return pd.DataFrame([out])


__all__ = ["MAX_REPLICATIONS", "compare_with_erlang_a", "compare_with_erlang_c", "run_replications"]
