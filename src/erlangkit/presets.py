# src/erlangkit/presets.py
"""Ready-made simulation scenarios spanning light load to overload."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable

from .simulation import SimulationConfig


@dataclass(frozen=True)
class PresetScenario:
    name: str
    description: str
    config: SimulationConfig


PRESET_SCENARIOS: Dict[str, PresetScenario] = {
    p.name: p
    for p in (
        PresetScenario(
            name="Low Load",
            description="Light traffic, servers mostly idle (rho ~ 0.5)",
            config=SimulationConfig(arrival_rate=5, service_rate=2, servers=5, max_time=100),
        ),
        PresetScenario(
            name="Balanced",
            description="Moderate load, good service levels (rho ~ 0.75)",
            config=SimulationConfig(arrival_rate=15, service_rate=2, servers=10, max_time=100),
        ),
        PresetScenario(
            name="Near Capacity",
            description="High utilisation, queues forming (rho ~ 0.90)",
            config=SimulationConfig(arrival_rate=18, service_rate=2, servers=10, max_time=100),
        ),
        PresetScenario(
            name="Overloaded",
            description="Arrivals exceed service capacity (rho = 1.25), queue grows without bound",
            # shorter horizon, the queue explodes
            config=SimulationConfig(arrival_rate=25, service_rate=2, servers=10, max_time=50),
        ),
        PresetScenario(
            name="Single Server",
            description="Classic M/M/1 queue (rho ~ 0.8)",
            config=SimulationConfig(arrival_rate=0.8, service_rate=1, servers=1, max_time=100),
        ),
        PresetScenario(
            name="Call Centre",
            description="30 agents, 30s calls, 48 calls/min, one hour (rho ~ 0.8)",
            config=SimulationConfig(arrival_rate=48, service_rate=2, servers=30, max_time=60),
        ),
    )
}


def calculate_utilisation(arrival_rate: float, service_rate: float, servers: int) -> float:
    """rho = lambda / (c * mu)"""
    return arrival_rate / (servers * service_rate)


def list_presets() -> Iterable[str]:
    return list(PRESET_SCENARIOS.keys())


def get_preset(name: str) -> PresetScenario:
    """Case-insensitive lookup; raises KeyError for unknown names."""
    for key, preset in PRESET_SCENARIOS.items():
        if key.lower() == name.strip().lower():
            return preset
    raise KeyError(f"Preset '{name}' is not defined. Available: {list_presets()}")


__all__ = [
    "PRESET_SCENARIOS",
    "PresetScenario",
    "calculate_utilisation",
    "get_preset",
    "list_presets",
]
