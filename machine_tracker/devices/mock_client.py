import random
from typing import Callable, Optional
from datetime import datetime

from ..models import MachineState, MachineStatus, utc_now
from .port import DeviceClient


class MockDeviceClient(DeviceClient):
    """
    Produces realistic device readings without hardware.
    Used when no real controller integration is available.
    """

    STATUSES = [MachineStatus.RUNNING, MachineStatus.STOPPED, MachineStatus.ALARM]

    def __init__(self, rng: Optional[random.Random] = None, clock: Callable[[], datetime] = utc_now):
        self.rng = rng or random.Random()
        self._clock = clock

    def read_current(self, machine_id: str) -> MachineState:
        status = self.rng.choice(self.STATUSES)
        production_count = self.rng.randrange(100, 1000)
        cycle_time = float(self.rng.randrange(25, 41)) if status == MachineStatus.RUNNING else 0.0

        return MachineState(
            id=machine_id,
            status=status,
            production_count=production_count,
            cycle_time_seconds=cycle_time,
            timestamp=self._clock(),
        )
