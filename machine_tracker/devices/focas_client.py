"""
FANUC FOCAS Device Client (scaffold)

Resolves per-machine connection settings. The FOCAS wire protocol itself
is NOT implemented here: a configured machine raises NotImplementedError,
an unconfigured one raises DeviceConfigError. The engine wraps both into
AdapterError for the caller.
"""

from typing import Dict

from pydantic import BaseModel

from ..models import MachineState
from .port import DeviceClient


class FocasMachineConfig(BaseModel):
    """Connection settings for one FANUC controller"""
    ip_address: str
    port: int = 8193
    username: str = "FANUC"
    password: str = "FANUC"
    description: str = ""


class DeviceConfigError(Exception):
    """No connection settings for the requested machine."""
    pass


class FocasDeviceClient(DeviceClient):

    def __init__(self, machines: Dict[str, FocasMachineConfig]):
        self.machines = dict(machines)

    def connection_for(self, machine_id: str) -> FocasMachineConfig:
        config = self.machines.get(machine_id)
        if config is None:
            raise DeviceConfigError(f"No FOCAS connection configured for machine '{machine_id}'")
        return config

    def read_current(self, machine_id: str) -> MachineState:
        config = self.connection_for(machine_id)
        raise NotImplementedError(
            f"FOCAS integration not available for {config.ip_address}:{config.port}. "
            "Install the FANUC FOCAS library and implement the controller read."
        )
