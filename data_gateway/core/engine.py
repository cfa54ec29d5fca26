import logging
import time
from typing import Optional
from data_gateway.core.interfaces import Channels, ISource, ISink, TagMapping, Tags

logger = logging.getLogger("DataEngine")

class DataEngine:
    """
    Core Logic: Read -> Map -> Write.
    Stateless apart from the running flag.
    """
    def __init__(self, source: ISource, sink: ISink, mapping: Optional[TagMapping] = None):
        self.source = source
        self.sink = sink
        self.mapping = mapping
        self.running = False

    def step(self) -> int:
        """One poll. Returns the number of values written."""
        raw_data = self.source.read()
        if not raw_data:
            return 0

        processed = self.process(raw_data)
        if not processed:
            return 0

        self.sink.write(processed)
        return len(processed)

    def process(self, raw_data: Tags) -> Channels:
        """
        Maps tag names to channel ids.
        If mapping is None, returns raw data as-is; unmapped tags are dropped.
        """
        if self.mapping is None:
            return raw_data

        return {self.mapping[tag]: value for tag, value in raw_data.items() if tag in self.mapping}

    def run(self, interval: float = 1.0, max_steps: Optional[int] = None):
        self.running = True
        steps = 0
        logger.info(f">>> Gateway Started. Polling every {interval}s...")
        try:
            while self.running:
                self.step()
                steps += 1
                if max_steps is not None and steps >= max_steps:
                    break
                time.sleep(interval)
        except KeyboardInterrupt:
            pass
        finally:
            self.running = False
            logger.info(">>> Gateway Stopped.")

    def stop(self):
        self.running = False
