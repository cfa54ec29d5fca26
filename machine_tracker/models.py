"""
Machine Domain Model

MachineState = mutable current snapshot (exactly one per machine id)
Sample       = immutable history record (appended on every commit)

CRITICAL RULES:
- cycle_time_seconds == 0 whenever status != RUNNING
- production_count never negative
- timestamps are timezone-aware UTC
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from .errors import InvariantViolation


class MachineStatus(str, Enum):
    """Operational status reported for a CNC machine"""
    RUNNING = "Running"
    STOPPED = "Stopped"
    ALARM = "Alarm"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _check_fields(machine_id: str, status: MachineStatus, production_count: int,
                  cycle_time_seconds: float, timestamp: datetime):
    if not machine_id:
        raise InvariantViolation("machine id must be a non-empty string")
    if not isinstance(status, MachineStatus):
        raise InvariantViolation(f"{machine_id}: unknown status {status!r}")
    if production_count < 0:
        raise InvariantViolation(f"{machine_id}: production_count must be >= 0, got {production_count}")
    if cycle_time_seconds < 0:
        raise InvariantViolation(f"{machine_id}: cycle_time_seconds must be >= 0, got {cycle_time_seconds}")
    if status != MachineStatus.RUNNING and cycle_time_seconds != 0:
        raise InvariantViolation(
            f"{machine_id}: cycle_time_seconds must be 0 while {status.value}, got {cycle_time_seconds}"
        )
    if timestamp.tzinfo is None:
        raise InvariantViolation(f"{machine_id}: timestamp must be timezone-aware")


@dataclass
class MachineState:
    """Current snapshot of one machine."""
    id: str
    status: MachineStatus
    production_count: int
    cycle_time_seconds: float
    timestamp: datetime

    def __post_init__(self):
        _check_fields(self.id, self.status, self.production_count,
                      self.cycle_time_seconds, self.timestamp)

    def to_sample(self) -> "Sample":
        return Sample(
            machine_id=self.id,
            status=self.status,
            production_count=self.production_count,
            cycle_time_seconds=self.cycle_time_seconds,
            timestamp=self.timestamp,
        )


@dataclass(frozen=True)
class Sample:
    """Immutable history record. Never mutated after append."""
    machine_id: str
    status: MachineStatus
    production_count: int
    cycle_time_seconds: float
    timestamp: datetime

    def __post_init__(self):
        _check_fields(self.machine_id, self.status, self.production_count,
                      self.cycle_time_seconds, self.timestamp)
