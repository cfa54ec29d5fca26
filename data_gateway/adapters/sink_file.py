import logging
import os
from data_gateway.core.interfaces import Channels, ISink, IAdapter

logger = logging.getLogger("file_sink")

class RapidScadaFileSink(ISink, IAdapter):
    """
    Writes data to a generic text file for Rapid SCADA Import.
    Format:
    ChannelID;Value
    """
    def __init__(self, file_path: str):
        self.file_path = file_path
        self.temp_path = file_path + ".tmp"

    def connect(self):
        os.makedirs(os.path.dirname(os.path.abspath(self.file_path)), exist_ok=True)

    def disconnect(self):
        pass

    def write(self, data: Channels) -> None:
        if not data:
            return

        try:
            # Write to tmp first, then swap in atomically
            with open(self.temp_path, "w") as f:
                for channel_id, value in data.items():
                    # SCADA expects 1/0 for booleans
                    if isinstance(value, bool):
                        val_str = "1" if value else "0"
                    else:
                        val_str = str(value)
                    f.write(f"{channel_id};{val_str}\n")

            os.replace(self.temp_path, self.file_path)
        except OSError as e:
            logger.error(f"File Sink Write Failed: {e}")
