"""
Device Clients

Port through which the engine pulls real readings from the machine floor.
Concrete protocol handling lives behind DeviceClient and is opaque to the engine.
"""

from .port import DeviceClient
from .mock_client import MockDeviceClient
from .focas_client import FocasDeviceClient, FocasMachineConfig, DeviceConfigError

__all__ = [
    'DeviceClient',
    'MockDeviceClient',
    'FocasDeviceClient',
    'FocasMachineConfig',
    'DeviceConfigError'
]
