import logging
from datetime import timedelta
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from ..errors import AdapterError, ConfigurationError
from ..settings import TrackerSettings
from ..simulation import SimulationEngine
from .schemas import ErrorDto, MachineDto, MachineHistoryDto, sample_to_dto, to_dto

logger = logging.getLogger("MachinesAPI")

router = APIRouter(prefix="/api/machines", tags=["machines"])

MAX_WINDOW_MINUTES = timedelta.max // timedelta(minutes=1)


def _engine(request: Request) -> SimulationEngine:
    return request.app.state.engine


def _settings(request: Request) -> TrackerSettings:
    return request.app.state.settings


@router.get("", response_model=List[MachineDto])
def list_machines(request: Request):
    """Current snapshot of every known machine."""
    labels = _settings(request).status_labels
    return [to_dto(m, labels) for m in _engine(request).get_all()]


@router.get("/{machine_id}", response_model=MachineDto)
def get_machine(machine_id: str, request: Request):
    machine = _engine(request).get_latest(machine_id)
    if machine is None:
        raise HTTPException(status_code=404, detail=f"Machine with ID '{machine_id}' not found")
    return to_dto(machine, _settings(request).status_labels)


@router.get("/{machine_id}/history", response_model=MachineHistoryDto)
def get_history(machine_id: str, request: Request, minutes: Optional[int] = Query(None, gt=0)):
    """Samples within the last `minutes` (default: history_window_minutes), newest first."""
    engine = _engine(request)
    settings = _settings(request)
    if engine.get_latest(machine_id) is None:
        raise HTTPException(status_code=404, detail=f"Machine with ID '{machine_id}' not found")

    window = timedelta(minutes=min(minutes or settings.history_window_minutes, MAX_WINDOW_MINUTES))
    samples = engine.get_history(machine_id, window)
    return MachineHistoryDto(
        id=machine_id,
        samples=[sample_to_dto(s, settings.status_labels) for s in samples],
    )


@router.post("/{machine_id}/simulate", response_model=MachineDto)
def simulate(machine_id: str, request: Request):
    machine = _engine(request).advance(machine_id)
    return to_dto(machine, _settings(request).status_labels)


@router.post(
    "/{machine_id}/refresh",
    response_model=MachineDto,
    responses={501: {"model": ErrorDto}, 502: {"model": ErrorDto}},
)
def refresh(machine_id: str, request: Request):
    """Pull the machine's state from the bound device client."""
    try:
        machine = _engine(request).refresh_from_device(machine_id)
    except ConfigurationError as e:
        return JSONResponse(
            status_code=501,
            content=ErrorDto(error="Device integration not enabled", message=str(e)).model_dump(),
        )
    except AdapterError as e:
        logger.warning(f"Refresh failed: {e}")
        return JSONResponse(
            status_code=502,
            content=ErrorDto(error="Device read failed", message=str(e)).model_dump(),
        )
    return to_dto(machine, _settings(request).status_labels)
