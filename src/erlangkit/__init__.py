# src/erlangkit/__init__.py
from __future__ import annotations

# -----------------------------
# Staffing dispatcher
# -----------------------------
from .inputs import (
    ErlangModel,
    Workload,
    Constraints,
    Behavior,
    StaffingRequest,
    AchievableRequest,
    normalize_model,
)

from .engine import (
    StaffingResult,
    calculate_staffing,
    calculate_achievable_metrics,
    result_to_dict,
)

from .validation import (
    ValidationError,
    validate_staffing_request,
    validate_achievable_request,
)

# -----------------------------
# Analytic models
# -----------------------------
from .erlangb import erlang_b, required_lines

from .erlangc import (
    traffic_intensity,
    erlang_c,
    service_level,
    average_speed_of_answer,
    occupancy,
    total_fte,
    solve_agents,
)

from .erlanga import (
    abandonment_probability,
    service_level_with_abandonment,
    asa_with_abandonment,
    solve_agents_abandonment,
)

from .erlangx import (
    retrial_probability,
    virtual_traffic,
    solve_equilibrium_abandonment,
    service_level_retrial,
    solve_agents_retrial,
)

# -----------------------------
# Interval tables
# -----------------------------
from .intervals import compute_interval_staffing

# -----------------------------
# Simulation
# -----------------------------
from .simulation import (
    SimulationConfig,
    SimulationEngine,
    Snapshot,
    ContactRecord,
    validate_config,
)

from .presets import PRESET_SCENARIOS, get_preset

from .crosscheck import run_replications, compare_with_erlang_c, compare_with_erlang_a

__all__ = [
    # Dispatcher
    "ErlangModel",
    "Workload",
    "Constraints",
    "Behavior",
    "StaffingRequest",
    "AchievableRequest",
    "normalize_model",
    "StaffingResult",
    "calculate_staffing",
    "calculate_achievable_metrics",
    "result_to_dict",
    "ValidationError",
    "validate_staffing_request",
    "validate_achievable_request",
    # Erlang B
    "erlang_b",
    "required_lines",
    # Erlang C
    "traffic_intensity",
    "erlang_c",
    "service_level",
    "average_speed_of_answer",
    "occupancy",
    "total_fte",
    "solve_agents",
    # Erlang A
    "abandonment_probability",
    "service_level_with_abandonment",
    "asa_with_abandonment",
    "solve_agents_abandonment",
    # Erlang X
    "retrial_probability",
    "virtual_traffic",
    "solve_equilibrium_abandonment",
    "service_level_retrial",
    "solve_agents_retrial",
    # Intervals
    "compute_interval_staffing",
    # Simulation
    "SimulationConfig",
    "SimulationEngine",
    "Snapshot",
    "ContactRecord",
    "validate_config",
    "PRESET_SCENARIOS",
    "get_preset",
    "run_replications",
    "compare_with_erlang_c",
    "compare_with_erlang_a",
]
