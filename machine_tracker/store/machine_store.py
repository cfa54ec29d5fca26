import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from ..errors import InvariantViolation
from ..models import MachineState, Sample, utc_now

logger = logging.getLogger("MachineStore")

DEFAULT_RETENTION = timedelta(minutes=60)
DEFAULT_RETENTION_FLOOR = 10

EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class _MachineRecord:
    """Snapshot + history for one machine, guarded by a single lock."""
    snapshot: MachineState
    history: List[Sample] = field(default_factory=list)
    lock: threading.Lock = field(default_factory=threading.Lock)


class MachineStore:
    """
    Single Source of Truth for machine state.
    Thread-safe storage of the latest snapshot and a bounded,
    time-windowed history per machine id.

    Each id owns one record {snapshot, history}; a commit replaces the
    snapshot and appends the sample under that record's lock, so readers
    never see one without the other.
    """

    def __init__(self, retention: timedelta = DEFAULT_RETENTION,
                 retention_floor: int = DEFAULT_RETENTION_FLOOR,
                 clock: Callable[[], datetime] = utc_now):
        if retention <= timedelta(0):
            raise ValueError("retention must be positive")
        if retention_floor < 0:
            raise ValueError("retention_floor must be >= 0")

        self.retention = retention
        self.retention_floor = retention_floor
        self._clock = clock
        self._records: Dict[str, _MachineRecord] = {}
        self._registry_lock = threading.Lock()  # guards record creation only

    # ============================================================
    # READS
    # ============================================================

    def get_all(self) -> List[MachineState]:
        """Current snapshot of every known machine. Order not guaranteed."""
        with self._registry_lock:
            records = list(self._records.values())

        snapshots = []
        for record in records:
            with record.lock:
                snapshots.append(replace(record.snapshot))
        return snapshots

    def get_latest(self, machine_id: str) -> Optional[MachineState]:
        """Current snapshot, or None if the machine is unknown."""
        record = self._records.get(machine_id)
        if record is None:
            return None
        with record.lock:
            return replace(record.snapshot)

    def get_history(self, machine_id: str, window: timedelta) -> List[Sample]:
        """
        Samples with now - window <= timestamp <= now, newest first.

        Unknown id or nothing in range -> empty list (not an error).
        """
        record = self._records.get(machine_id)
        if record is None:
            return []

        now = self._clock()
        try:
            cutoff = now - window
        except OverflowError:
            # Window reaches past year 1: everything up to now qualifies
            cutoff = EARLIEST
        with record.lock:
            recent = [s for s in record.history if cutoff <= s.timestamp <= now]

        recent.sort(key=lambda s: s.timestamp, reverse=True)
        return recent

    def known_ids(self) -> List[str]:
        with self._registry_lock:
            return list(self._records.keys())

    # ============================================================
    # WRITES
    # ============================================================

    def ensure_exists(self, machine_id: str, initial: MachineState) -> bool:
        """
        Register `initial` as the snapshot for `machine_id` only if absent.

        Idempotent: never overwrites an existing snapshot.
        Returns True when a new record was created.
        """
        if initial.id != machine_id:
            raise InvariantViolation(
                f"ensure_exists id mismatch: '{machine_id}' vs snapshot '{initial.id}'"
            )

        with self._registry_lock:
            if machine_id in self._records:
                return False
            self._records[machine_id] = _MachineRecord(snapshot=replace(initial))

        logger.debug(f"Registered machine {machine_id}")
        return True

    def upsert(self, snapshot: MachineState, sample: Sample) -> None:
        """
        Atomically replace the snapshot for snapshot.id and append `sample`
        to its history, then apply retention.
        """
        if snapshot.id != sample.machine_id:
            raise InvariantViolation(
                f"upsert id mismatch: snapshot '{snapshot.id}' vs sample '{sample.machine_id}'"
            )

        record = self._get_or_create(snapshot)
        with record.lock:
            record.snapshot = replace(snapshot)
            record.history.append(sample)
            record.history = self._apply_retention(snapshot.id, record.history)

    def _get_or_create(self, snapshot: MachineState) -> _MachineRecord:
        with self._registry_lock:
            record = self._records.get(snapshot.id)
            if record is None:
                record = _MachineRecord(snapshot=replace(snapshot))
                self._records[snapshot.id] = record
            return record

    def _apply_retention(self, machine_id: str, history: List[Sample]) -> List[Sample]:
        """
        Drop samples older than the retention horizon, unless fewer than
        `retention_floor` would remain while at least that many existed:
        then keep the most recent `retention_floor` regardless of age.
        """
        now = self._clock()
        try:
            cutoff = now - self.retention
        except OverflowError:
            cutoff = EARLIEST
        kept = [s for s in history if s.timestamp >= cutoff]

        if len(kept) < self.retention_floor and len(history) >= self.retention_floor:
            newest_first = sorted(history, key=lambda s: s.timestamp, reverse=True)
            kept = sorted(newest_first[:self.retention_floor], key=lambda s: s.timestamp)

        dropped = len(history) - len(kept)
        if dropped:
            logger.debug(f"Retention trimmed {dropped} sample(s) for {machine_id}")
        return kept
