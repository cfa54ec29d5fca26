"""
Simulation Engine Tests

Validates:
1. First advance creates the machine and one history sample
2. Status / cycle-time invariant on every produced state
3. Production never decreases
4. Device refresh: ConfigurationError, AdapterError, no partial commit
5. Per-id serialization of concurrent advances
"""

import random
import threading
from datetime import timedelta

import pytest

from machine_tracker.devices import DeviceClient, MockDeviceClient
from machine_tracker.errors import AdapterError, ConfigurationError
from machine_tracker.models import MachineState, MachineStatus
from machine_tracker.simulation import SimulationEngine
from machine_tracker.store import MachineStore


class FailingClient(DeviceClient):
    def read_current(self, machine_id):
        raise ConnectionError("controller unreachable")


class WrongIdClient(DeviceClient):
    def __init__(self, clock):
        self.clock = clock

    def read_current(self, machine_id):
        return MachineState("OTHER", MachineStatus.STOPPED, 5, 0.0, self.clock())


@pytest.fixture
def store(clock):
    return MachineStore(clock=clock)


@pytest.fixture
def engine(store, clock):
    return SimulationEngine(store, rng=random.Random(42), clock=clock)


def _running(machine_id, clock, count=50, cycle=30.0):
    return MachineState(machine_id, MachineStatus.RUNNING, count, cycle, clock())


def test_first_advance_creates_machine_with_one_sample(engine, store):
    machine = engine.advance("M100")

    assert machine.id == "M100"
    assert machine.status in set(MachineStatus)
    assert 0 <= machine.production_count < 105
    assert store.get_latest("M100") == machine

    history = store.get_history("M100", timedelta(minutes=10))
    assert len(history) == 1
    assert history[0].machine_id == "M100"


def test_register_creates_machine_without_history(engine, store):
    initial = engine.register("M200")

    assert store.get_latest("M200") == initial
    assert 0 <= initial.production_count < 100
    assert store.get_history("M200", timedelta(minutes=10)) == []
    if initial.status != MachineStatus.RUNNING:
        assert initial.cycle_time_seconds == 0
    else:
        assert 25 <= initial.cycle_time_seconds <= 40


def test_every_state_respects_cycle_time_invariant(engine):
    for machine_id in ("M1", "M2", "M3"):
        for _ in range(300):
            state = engine.advance(machine_id)
            if state.status == MachineStatus.RUNNING:
                assert 10 <= state.cycle_time_seconds <= 120
            else:
                assert state.cycle_time_seconds == 0


def test_production_never_decreases(engine):
    previous = engine.advance("M1").production_count
    for _ in range(300):
        current = engine.advance("M1").production_count
        assert current >= previous
        previous = current


def test_running_cycle_time_stays_near_baseline(engine, store, clock):
    store.ensure_exists("M1", _running("M1", clock, cycle=30.0))
    for _ in range(200):
        state = engine.advance("M1")
        if state.status == MachineStatus.RUNNING:
            assert 27.0 <= state.cycle_time_seconds <= 33.0


def test_running_fraction_from_running_start(engine, store, clock):
    store.ensure_exists("M1", _running("M1", clock))
    states = [engine.advance("M1") for _ in range(100)]

    running = sum(1 for s in states if s.status == MachineStatus.RUNNING)
    assert running / len(states) > 0.2


def test_advance_all_advances_every_known_machine(engine, store):
    for machine_id in ("A", "B", "C"):
        engine.register(machine_id)

    advanced = engine.advance_all()

    assert sorted(m.id for m in advanced) == ["A", "B", "C"]
    for machine_id in ("A", "B", "C"):
        assert len(store.get_history(machine_id, timedelta(minutes=10))) == 1


def test_fresh_engine_reseeds_baseline_from_store(store, clock):
    store.ensure_exists("M1", _running("M1", clock, cycle=36.0))

    engine = SimulationEngine(store, rng=random.Random(1), clock=clock)
    engine.register("M1")
    assert engine._baselines["M1"].base_cycle_time_seconds == 36.0

    stopped = MachineState("M2", MachineStatus.STOPPED, 3, 0.0, clock())
    store.ensure_exists("M2", stopped)
    engine.register("M2")
    assert 25 <= engine._baselines["M2"].base_cycle_time_seconds <= 40


def test_baseline_is_cached_per_engine(engine):
    engine.advance("M1")
    first = engine._baselines["M1"]
    for _ in range(10):
        engine.advance("M1")
    assert engine._baselines["M1"] is first


# ============================================================
# DEVICE REFRESH
# ============================================================

def test_refresh_without_client_is_configuration_error(engine, store):
    before = engine.advance("M1")
    history_before = store.get_history("M1", timedelta(minutes=10))

    with pytest.raises(ConfigurationError):
        engine.refresh_from_device("M1")

    assert store.get_latest("M1") == before
    assert store.get_history("M1", timedelta(minutes=10)) == history_before


def test_refresh_commits_device_reading(store, clock):
    engine = SimulationEngine(store, device_client=MockDeviceClient(random.Random(9), clock=clock), clock=clock)

    reading = engine.refresh_from_device("M1")

    assert reading.id == "M1"
    assert 100 <= reading.production_count < 1000
    assert store.get_latest("M1") == reading
    history = store.get_history("M1", timedelta(minutes=10))
    assert len(history) == 1
    assert history[0] == reading.to_sample()


def test_refresh_failure_is_adapter_error_without_commit(store, clock):
    engine = SimulationEngine(store, device_client=FailingClient(), rng=random.Random(2), clock=clock)
    before = engine.advance("M1")

    with pytest.raises(AdapterError) as excinfo:
        engine.refresh_from_device("M1")

    assert excinfo.value.machine_id == "M1"
    assert isinstance(excinfo.value.cause, ConnectionError)
    assert isinstance(excinfo.value.__cause__, ConnectionError)
    assert "M1" in str(excinfo.value)
    assert store.get_latest("M1") == before
    assert len(store.get_history("M1", timedelta(minutes=10))) == 1


def test_refresh_rejects_reading_for_other_machine(store, clock):
    engine = SimulationEngine(store, device_client=WrongIdClient(clock), clock=clock)

    with pytest.raises(AdapterError):
        engine.refresh_from_device("M1")

    assert store.get_latest("M1") is None
    assert store.get_latest("OTHER") is None


def test_failed_refresh_leaves_no_lock_for_unknown_id(store, clock):
    for client in (FailingClient(), WrongIdClient(clock)):
        engine = SimulationEngine(store, device_client=client, clock=clock)

        with pytest.raises(AdapterError):
            engine.refresh_from_device("M9")

        assert "M9" not in engine._locks
        assert engine.known_ids() == []


def test_successful_refresh_creates_lock(store, clock):
    engine = SimulationEngine(store, device_client=MockDeviceClient(random.Random(3), clock=clock), clock=clock)

    engine.refresh_from_device("M9")

    assert "M9" in engine._locks


# ============================================================
# CONCURRENCY
# ============================================================

def test_concurrent_advances_on_same_machine_are_serialized(engine, store):
    workers, per_worker = 8, 40
    barrier = threading.Barrier(workers)

    def worker():
        barrier.wait()
        for _ in range(per_worker):
            engine.advance("M1")

    threads = [threading.Thread(target=worker) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    history = store.get_history("M1", timedelta(minutes=10))
    assert len(history) == workers * per_worker

    # Serialized read-modify-commit: counts never go backwards in commit order
    oldest_first = list(reversed(history))
    for earlier, later in zip(oldest_first, oldest_first[1:]):
        assert later.production_count >= earlier.production_count
    assert store.get_latest("M1").production_count == history[0].production_count


def test_different_machines_advance_in_parallel(engine, store):
    ids = [f"M{i:03d}" for i in range(20)]

    def worker(machine_id):
        for _ in range(25):
            engine.advance(machine_id)

    threads = [threading.Thread(target=worker, args=(m,)) for m in ids]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(engine.known_ids()) == ids
    for machine_id in ids:
        assert len(store.get_history(machine_id, timedelta(minutes=10))) == 25
