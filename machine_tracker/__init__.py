"""
CNC Machine Tracker

Tracks status, production count and cycle time of CNC machines.
A synthetic simulator stands in for the machine-floor integration.
"""

from .models import MachineState, MachineStatus, Sample
from .errors import MachineTrackerError, ConfigurationError, AdapterError, InvariantViolation

__all__ = [
    'MachineState',
    'MachineStatus',
    'Sample',
    'MachineTrackerError',
    'ConfigurationError',
    'AdapterError',
    'InvariantViolation'
]
