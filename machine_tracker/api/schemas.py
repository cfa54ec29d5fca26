from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel

from ..models import MachineState, Sample


class MachineDto(BaseModel):
    id: str
    status: str
    production_count: int
    cycle_time_seconds: float
    timestamp: datetime


class MachineHistoryDto(BaseModel):
    id: str
    samples: List[MachineDto]


class ErrorDto(BaseModel):
    error: str
    message: str


def status_label(status_value: str, labels: Optional[Dict[str, str]] = None) -> str:
    """Display label for a status value; falls back to the value itself."""
    return (labels or {}).get(status_value, status_value)


def to_dto(machine: MachineState, labels: Optional[Dict[str, str]] = None) -> MachineDto:
    return MachineDto(
        id=machine.id,
        status=status_label(machine.status.value, labels),
        production_count=machine.production_count,
        cycle_time_seconds=machine.cycle_time_seconds,
        timestamp=machine.timestamp,
    )


def sample_to_dto(sample: Sample, labels: Optional[Dict[str, str]] = None) -> MachineDto:
    return MachineDto(
        id=sample.machine_id,
        status=status_label(sample.status.value, labels),
        production_count=sample.production_count,
        cycle_time_seconds=sample.cycle_time_seconds,
        timestamp=sample.timestamp,
    )
