from abc import ABC, abstractmethod

from ..models import MachineState


class DeviceClient(ABC):
    """
    Interface for machine-floor integrations (e.g. FANUC FOCAS, mock).
    Wire format, timeouts and retries are the client's own business.
    """
    @abstractmethod
    def read_current(self, machine_id: str) -> MachineState:
        """
        Reads the machine's current state from the device.
        Returns a fully-populated MachineState or raises.
        """
        pass
