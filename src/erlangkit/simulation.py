# src/erlangkit/simulation.py
"""
Discrete-event simulation of an M/M/c queue.

Poisson arrivals, exponential service, c identical servers, unlimited waiting room,
FIFO discipline. The engine is stepped from outside: a playback loop calls
`process_until` with increasing times and reads `snapshot()` in between.
"""
from __future__ import annotations

import dataclasses
import heapq
import logging
import math
from collections import deque
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Deque, Dict, List, Literal, Optional, TypeAlias, cast

import numpy as np

from .io import contact_records_to_csv, historical_data_statements
from .settings import load_settings

logger = logging.getLogger(__name__)

Channel: TypeAlias = Literal["voice", "chat", "email", "video", "social", "sms"]

# Channels whose agents may work several contacts at once.
CONCURRENT_CHANNELS = ("chat", "email")

# Minimum simulated time between two time-series samples.
SAMPLE_INTERVAL: float = 0.5


# -----------------------------
# Data model
# -----------------------------
@dataclass(frozen=True)
class SimulationConfig:
    arrival_rate: float  # lambda, arrivals per time unit
    service_rate: float  # mu, completions per server per time unit
    servers: int  # c
    max_time: float  # horizon
    channel: Optional[Channel] = None  # None -> settings default
    campaign_id: Optional[int] = None
    skill_id: Optional[int] = None
    seed: Optional[int] = None  # None -> settings seed, else fresh entropy


class EventKind(str, Enum):
    ARRIVAL = "ARRIVAL"
    SERVICE_END = "SERVICE_END"


@dataclass(frozen=True, order=True)
class Event:
    # Ordered by (time, seq): simultaneous events run in scheduling order.
    time: float
    seq: int
    kind: EventKind = field(compare=False)
    customer_id: int = field(compare=False)


@dataclass
class Customer:
    id: int
    arrival_time: float
    service_start_time: Optional[float] = None
    service_end_time: Optional[float] = None
    server_id: Optional[int] = None


@dataclass
class Server:
    id: int
    busy: bool = False
    customer_id: Optional[int] = None
    release_time: Optional[float] = None


@dataclass(frozen=True)
class TimeSeriesPoint:
    time: float
    queue_length: int
    in_service: int


@dataclass(frozen=True)
class Snapshot:
    now: float
    queue_length: int
    in_service: int
    serviced_count: int
    avg_wait_time: float
    max_queue_length: int
    time_series: List[TimeSeriesPoint]


@dataclass(frozen=True)
class ContactRecord:
    """Completed customer journey."""

    customer_id: int
    arrival_time: float
    queue_join_time: float
    queue_wait_time: float
    service_start_time: float
    service_end_time: float
    total_time_in_system: float
    server_id: int
    was_queued: bool
    service_time: float
    time_to_answer: float
    channel: str
    campaign_id: Optional[int] = None
    skill_id: Optional[int] = None
    concurrent_contacts: Optional[int] = None
    abandoned: bool = False


def validate_config(config: SimulationConfig) -> List[str]:
    """Human-readable problems with `config`; empty when it can be simulated."""
    errors: List[str] = []
    if not (config.arrival_rate > 0 and math.isfinite(config.arrival_rate)):
        errors.append("Arrival rate must be positive")
    if not (config.service_rate > 0 and math.isfinite(config.service_rate)):
        errors.append("Service rate must be positive")
    if int(config.servers) != config.servers:
        errors.append("Number of servers must be an integer")
    if config.servers < 1:
        errors.append("Number of servers must be at least 1")
    if not (config.max_time > 0):
        errors.append("Simulation time must be positive")
    return errors


# -----------------------------
# Engine
# -----------------------------
@dataclass
class _EngineState:
    servers: List[Server]
    now: float = 0.0
    events: List[Event] = field(default_factory=list)
    event_seq: int = 0
    waiting: Deque[int] = field(default_factory=deque)  # customer ids, FIFO
    customers: List[Customer] = field(default_factory=list)  # index = id - 1
    next_customer_id: int = 1
    serviced_count: int = 0
    total_wait_time: float = 0.0
    max_queue_length: int = 0
    time_series: List[TimeSeriesPoint] = field(default_factory=list)
    contact_records: List[ContactRecord] = field(default_factory=list)


class SimulationEngine:
    """
    Steppable M/M/c simulator.

    Not thread-safe: one driver owns an engine and calls `process_until` at its own
    cadence. Each call runs synchronously to the requested time.
    """

    def __init__(self, config: SimulationConfig):
        self._config = self._checked(config)
        self._channel: str = self._config.channel or load_settings().default_channel
        self._rng = self._make_rng(self._config)
        self._initialize()

    # -- lifecycle -------------------------------------------------------

    def reset(self, config: Optional[SimulationConfig] = None) -> None:
        """Discards all state and starts over, optionally with a new config."""
        if config is not None:
            self._config = self._checked(config)
            self._channel = self._config.channel or load_settings().default_channel
        self._rng = self._make_rng(self._config)
        self._initialize()
        logger.debug("Simulation reset: %s", self._config)

    @property
    def config(self) -> SimulationConfig:
        return self._config

    def process_until(self, t_max: float) -> None:
        """
        Processes every pending event up to `t_max` (clamped to the horizon) and
        moves the clock there. Can be called repeatedly with increasing times;
        targets behind the current clock are ignored.
        """
        s = self._state
        target = min(float(t_max), float(self._config.max_time))
        if target < s.now:
            return

        start = s.now
        while s.events and s.events[0].time <= target:
            event = heapq.heappop(s.events)
            s.now = event.time

            if event.kind is EventKind.ARRIVAL:
                self._handle_arrival(event)
            else:
                self._handle_service_end(event)

            if not s.time_series or s.now - s.time_series[-1].time >= SAMPLE_INTERVAL:
                self._record_point()

        s.now = target
        if target > start and (not s.time_series or s.time_series[-1].time < s.now):
            self._record_point()

    def is_finished(self) -> bool:
        return self._state.now >= self._config.max_time

    # -- read-only views -------------------------------------------------

    def snapshot(self) -> Snapshot:
        s = self._state
        avg_wait = s.total_wait_time / s.serviced_count if s.serviced_count > 0 else 0.0
        return Snapshot(
            now=s.now,
            queue_length=len(s.waiting),
            in_service=self._busy_count(),
            serviced_count=s.serviced_count,
            avg_wait_time=avg_wait,
            max_queue_length=s.max_queue_length,
            time_series=list(s.time_series),
        )

    def servers(self) -> List[Server]:
        return [dataclasses.replace(srv) for srv in self._state.servers]

    def waiting_queue(self) -> List[Customer]:
        s = self._state
        return [dataclasses.replace(s.customers[cid - 1]) for cid in s.waiting]

    def contact_records(self) -> List[ContactRecord]:
        return list(self._state.contact_records)

    def simulation_metadata(self) -> Dict[str, Any]:
        records = self._state.contact_records
        return {
            "config": dataclasses.asdict(self._config),
            "total_contacts": len(records),
            "channels": sorted({r.channel for r in records}),
            "campaigns": sorted({r.campaign_id for r in records if r.campaign_id is not None}),
            "skills": sorted({r.skill_id for r in records if r.skill_id is not None}),
        }

    # -- exports ---------------------------------------------------------

    def export_contact_records_csv(self) -> str:
        return contact_records_to_csv(self._state.contact_records)

    def export_historical_data_sql(self, record_date: Optional[date] = None) -> List[str]:
        return historical_data_statements(self._state.contact_records, record_date=record_date)

    # -- internals -------------------------------------------------------

    @staticmethod
    def _checked(config: SimulationConfig) -> SimulationConfig:
        errors = validate_config(config)
        if errors:
            raise ValueError(f"Invalid simulation config: {'; '.join(errors)}")
        return config

    @staticmethod
    def _make_rng(config: SimulationConfig) -> np.random.Generator:
        seed = config.seed if config.seed is not None else load_settings().simulation_seed
        return np.random.default_rng(seed)

    def _initialize(self) -> None:
        self._state = _EngineState(servers=[Server(id=i) for i in range(int(self._config.servers))])
        self._schedule_arrival()

    def _exponential(self, rate: float) -> float:
        # Inverse transform: -ln(U) / rate, U in (0, 1]
        return -math.log(1.0 - self._rng.random()) / rate

    def _schedule(self, time: float, kind: EventKind, customer_id: int) -> None:
        s = self._state
        heapq.heappush(s.events, Event(time=time, seq=s.event_seq, kind=kind, customer_id=customer_id))
        s.event_seq += 1

    def _schedule_arrival(self) -> None:
        s = self._state
        arrival_time = s.now + self._exponential(self._config.arrival_rate)
        if arrival_time <= self._config.max_time:
            self._schedule(arrival_time, EventKind.ARRIVAL, s.next_customer_id)
            s.next_customer_id += 1

    def _handle_arrival(self, event: Event) -> None:
        s = self._state
        customer = Customer(id=event.customer_id, arrival_time=s.now)
        s.customers.append(customer)

        free = next((srv for srv in s.servers if not srv.busy), None)
        if free is not None:
            self._start_service(customer, free)
        else:
            s.waiting.append(customer.id)
            if len(s.waiting) > s.max_queue_length:
                s.max_queue_length = len(s.waiting)

        # Keeps the Poisson stream going until the horizon.
        self._schedule_arrival()

    def _handle_service_end(self, event: Event) -> None:
        s = self._state
        customer = s.customers[event.customer_id - 1]
        customer.service_end_time = s.now
        server = s.servers[cast(int, customer.server_id)]
        server.busy = False
        server.customer_id = None
        server.release_time = s.now

        wait = cast(float, customer.service_start_time) - customer.arrival_time
        s.serviced_count += 1
        s.total_wait_time += wait
        s.contact_records.append(self._finalize(customer, server.id, wait))

        if s.waiting:
            self._start_service(s.customers[s.waiting.popleft() - 1], server)

    def _start_service(self, customer: Customer, server: Server) -> None:
        s = self._state
        customer.service_start_time = s.now
        customer.server_id = server.id
        server.busy = True
        server.customer_id = customer.id
        self._schedule(s.now + self._exponential(self._config.service_rate), EventKind.SERVICE_END, customer.id)

    def _finalize(self, customer: Customer, server_id: int, wait: float) -> ContactRecord:
        start = cast(float, customer.service_start_time)
        end = cast(float, customer.service_end_time)
        return ContactRecord(
            customer_id=customer.id,
            arrival_time=customer.arrival_time,
            queue_join_time=customer.arrival_time,
            queue_wait_time=wait,
            service_start_time=start,
            service_end_time=end,
            total_time_in_system=end - customer.arrival_time,
            server_id=server_id,
            was_queued=wait > 0,
            service_time=end - start,
            time_to_answer=wait,
            channel=self._channel,
            campaign_id=self._config.campaign_id,
            skill_id=self._config.skill_id,
            concurrent_contacts=1 if self._channel in CONCURRENT_CHANNELS else None,
        )

    def _busy_count(self) -> int:
        return sum(1 for srv in self._state.servers if srv.busy)

    def _record_point(self) -> None:
        s = self._state
        s.time_series.append(TimeSeriesPoint(time=s.now, queue_length=len(s.waiting), in_service=self._busy_count()))


__all__ = [
    "CONCURRENT_CHANNELS",
    "Channel",
    "ContactRecord",
    "Customer",
    "Event",
    "EventKind",
    "SAMPLE_INTERVAL",
    "Server",
    "SimulationConfig",
    "SimulationEngine",
    "Snapshot",
    "TimeSeriesPoint",
    "validate_config",
]
