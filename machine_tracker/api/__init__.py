from .routes import router
from .schemas import MachineDto, MachineHistoryDto, ErrorDto, to_dto, sample_to_dto

__all__ = [
    'router',
    'MachineDto',
    'MachineHistoryDto',
    'ErrorDto',
    'to_dto',
    'sample_to_dto'
]
