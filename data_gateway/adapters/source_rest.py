import logging
from typing import Any, Dict, List

import requests
from data_gateway.core.interfaces import ISource, IAdapter, Tags, machine_tag

logger = logging.getLogger("rest_source")

FIELDS = ("status", "production_count", "cycle_time_seconds", "timestamp")


def flatten_machines(machines: List[Dict[str, Any]]) -> Tags:
    """[{"id": "M001", "status": ...}] -> {"M001.status": ..., ...}"""
    tags: Tags = {}
    for machine in machines:
        machine_id = machine.get("id")
        if not machine_id:
            continue
        for field in FIELDS:
            if field in machine:
                tags[machine_tag(machine_id, field)] = machine[field]
    return tags


class RestSourceAdapter(ISource, IAdapter):
    """
    Reads machine snapshots from the tracker REST API (GET /api/machines).
    """
    def __init__(self, url: str, timeout: float = 2.0):
        self.url = url
        self.timeout = timeout
        self.session = None

    def connect(self):
        self.session = requests.Session()

    def disconnect(self):
        if self.session is not None:
            self.session.close()
            self.session = None

    def read(self) -> Tags:
        client = self.session or requests
        try:
            response = client.get(self.url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"REST Source Read Failed: {e}")
            return {}

        if response.status_code != 200:
            logger.warning(f"REST Source returned {response.status_code}")
            return {}
        return flatten_machines(response.json())
