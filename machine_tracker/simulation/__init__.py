from .engine import SimulationEngine, Baseline
from .factory import build_engine, build_device_client

__all__ = [
    'SimulationEngine',
    'Baseline',
    'build_engine',
    'build_device_client'
]
