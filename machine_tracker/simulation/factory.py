import random
from datetime import timedelta
from typing import Optional

from ..devices import DeviceClient, FocasDeviceClient, MockDeviceClient
from ..errors import ConfigurationError
from ..settings import TrackerSettings
from ..store import MachineStore
from .engine import SimulationEngine


def build_device_client(settings: TrackerSettings) -> Optional[DeviceClient]:
    """
    Bind the device client named in settings.

    "none" -> None (refresh will raise ConfigurationError)
    """
    name = settings.device_client
    if name == "none":
        return None
    if name == "mock":
        return MockDeviceClient()
    if name == "focas":
        return FocasDeviceClient(settings.focas_machines)
    raise ConfigurationError(f"Unknown device client '{name}'")


def build_engine(settings: TrackerSettings, rng: Optional[random.Random] = None) -> SimulationEngine:
    """
    Assemble store + device client + engine from settings.

    This function ONLY wires components. Seed machines are registered by the caller.
    """
    store = MachineStore(
        retention=timedelta(minutes=settings.retention_minutes),
        retention_floor=settings.retention_floor,
    )
    return SimulationEngine(store, device_client=build_device_client(settings), rng=rng)
