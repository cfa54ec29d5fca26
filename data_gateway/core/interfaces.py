from abc import ABC, abstractmethod
from typing import Any, Dict, Union

# "M001.status" -> "Running", "M001.production_count" -> 42, ...
Tags = Dict[str, Any]
# Tag name -> SCADA channel number
TagMapping = Dict[str, int]
# What a sink receives: Tags, or channel-keyed values once a TagMapping is applied
Channels = Dict[Union[str, int], Any]


def machine_tag(machine_id: str, field: str) -> str:
    return f"{machine_id}.{field}"


class ISource(ABC):
    """Produces one flat Tags snapshot per poll."""
    @abstractmethod
    def read(self) -> Tags:
        """Empty dict when nothing could be read this cycle."""


class ISink(ABC):
    @abstractmethod
    def write(self, data: Channels) -> None:
        pass


class IAdapter(ABC):
    """Source or sink holding an external connection (HTTP session, broker, file)."""
    @abstractmethod
    def connect(self):
        pass

    @abstractmethod
    def disconnect(self):
        pass
