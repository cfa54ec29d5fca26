import logging
import random
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Tuple

from ..devices.port import DeviceClient
from ..errors import AdapterError, ConfigurationError
from ..models import MachineState, MachineStatus, Sample, utc_now
from ..store import MachineStore
from . import policies

logger = logging.getLogger("SimulationEngine")


@dataclass(frozen=True)
class Baseline:
    """Per-machine reference values, derived once per engine instance."""
    base_cycle_time_seconds: float
    initial_state: MachineState


class SimulationEngine:
    """
    Derives and commits the next synthetic state of each machine.

    Owns:
    - the baseline cache (lifetime = this engine instance)
    - one lock per machine id, held across read -> compute -> commit

    A fresh engine over an existing store re-seeds baselines from the
    stored snapshots, so keep one engine per process.
    """

    def __init__(self, store: MachineStore, device_client: Optional[DeviceClient] = None,
                 rng: Optional[random.Random] = None, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.device_client = device_client
        self.rng = rng or random.Random()
        self._clock = clock

        self._baselines: Dict[str, Baseline] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._rng_lock = threading.Lock()  # guards draws from the shared generator

    @property
    def has_device_client(self) -> bool:
        return self.device_client is not None

    # ============================================================
    # QUERY SURFACE (delegates to the store)
    # ============================================================

    def get_all(self) -> List[MachineState]:
        return self.store.get_all()

    def get_latest(self, machine_id: str) -> Optional[MachineState]:
        return self.store.get_latest(machine_id)

    def get_history(self, machine_id: str, window: timedelta) -> List[Sample]:
        return self.store.get_history(machine_id, window)

    def known_ids(self) -> List[str]:
        return self.store.known_ids()

    # ============================================================
    # COMMANDS
    # ============================================================

    def register(self, machine_id: str) -> MachineState:
        """Make sure the machine exists and has a baseline, without advancing it."""
        with self._lock_for(machine_id):
            baseline = self._ensure_baseline(machine_id)
            return self.store.get_latest(machine_id) or baseline.initial_state

    def advance(self, machine_id: str) -> MachineState:
        """
        Produce and commit the next synthetic state for `machine_id`.

        Unseen ids are created on the fly with a random initial state.
        """
        with self._lock_for(machine_id):
            baseline = self._ensure_baseline(machine_id)
            current = self.store.get_latest(machine_id) or baseline.initial_state

            with self._rng_lock:
                new_status = policies.next_status(current.status, self.rng)
                new_count = policies.next_production_count(current.production_count, new_status, self.rng)
                new_cycle_time = policies.next_cycle_time(new_status, baseline.base_cycle_time_seconds, self.rng)

            updated = MachineState(
                id=machine_id,
                status=new_status,
                production_count=new_count,
                cycle_time_seconds=new_cycle_time,
                timestamp=self._clock(),
            )
            self.store.upsert(updated, updated.to_sample())
            return updated

    def advance_all(self) -> List[MachineState]:
        """Advance every known machine once. Used by the auto-simulation loop."""
        return [self.advance(machine_id) for machine_id in self.store.known_ids()]

    def refresh_from_device(self, machine_id: str) -> MachineState:
        """
        Pull a real reading through the bound device client and commit it.

        Raises:
            ConfigurationError: no device client bound
            AdapterError: the client failed or returned a reading for another id
        """
        if self.device_client is None:
            raise ConfigurationError(
                "No device client is configured. Set device_client to 'mock' or 'focas' in settings."
            )

        # The device read happens outside the per-id lock: a failed read leaves no lock behind
        try:
            reading = self.device_client.read_current(machine_id)
        except Exception as e:
            logger.error(f"Device read failed for {machine_id}: {e}")
            raise AdapterError(machine_id, e) from e

        if reading.id != machine_id:
            raise AdapterError(machine_id, message=f"device returned a reading for '{reading.id}'")

        with self._lock_for(machine_id):
            self.store.upsert(reading, reading.to_sample())
            return reading

    # ============================================================
    # INTERNALS
    # ============================================================

    def _lock_for(self, machine_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(machine_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[machine_id] = lock
            return lock

    def _ensure_baseline(self, machine_id: str) -> Baseline:
        """Caller must hold the machine's lock."""
        baseline = self._baselines.get(machine_id)
        if baseline is not None:
            return baseline

        existing = self.store.get_latest(machine_id)
        if existing is None:
            initial, base = self._synthesize_initial_state(machine_id)
            if self.store.ensure_exists(machine_id, initial):
                existing = initial
                logger.info(f"Created machine {machine_id}: {initial.status.value}, base cycle {base}s")
            else:
                # Committed concurrently by a writer outside this engine
                existing = self.store.get_latest(machine_id) or initial
                base = self._base_from(existing)
        else:
            base = self._base_from(existing)

        baseline = Baseline(base_cycle_time_seconds=base, initial_state=existing)
        self._baselines[machine_id] = baseline
        return baseline

    def _base_from(self, snapshot: MachineState) -> float:
        """Re-seed a baseline from a stored snapshot. Non-running snapshots carry no cycle time."""
        if snapshot.status == MachineStatus.RUNNING and snapshot.cycle_time_seconds > 0:
            return snapshot.cycle_time_seconds
        with self._rng_lock:
            return policies.draw_base_cycle_time(self.rng)

    def _synthesize_initial_state(self, machine_id: str) -> Tuple[MachineState, float]:
        with self._rng_lock:
            status = self.rng.choice(list(MachineStatus))
            production_count = self.rng.randrange(0, 100)
            base = policies.draw_base_cycle_time(self.rng)

        initial = MachineState(
            id=machine_id,
            status=status,
            production_count=production_count,
            cycle_time_seconds=base if status == MachineStatus.RUNNING else 0.0,
            timestamp=self._clock(),
        )
        return initial, base
