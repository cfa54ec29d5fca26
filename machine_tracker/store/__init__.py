"""
Machine State Store

In-memory, process-lifetime storage for machine snapshots and history.
"""

from .machine_store import MachineStore, DEFAULT_RETENTION, DEFAULT_RETENTION_FLOOR

__all__ = [
    'MachineStore',
    'DEFAULT_RETENTION',
    'DEFAULT_RETENTION_FLOOR'
]
