"""
Simulation Policies

Pure functions deriving the next machine state from the current one.
Randomness comes ONLY from the `rng` passed in (seed it for reproducibility).

Status: first-order Markov chain with self-transition bias.
Production: accrues while Running, occasionally finishes an in-flight part after stop.
Cycle time: noise around the machine's baseline while Running, 0 otherwise.
"""

import random
from typing import Dict, Tuple

from ..models import MachineStatus

# (stay_threshold, first_exit_threshold) -> (stay, first_exit, second_exit)
TRANSITION_TABLE: Dict[MachineStatus, Tuple[Tuple[float, float], Tuple[MachineStatus, MachineStatus, MachineStatus]]] = {
    MachineStatus.RUNNING: ((0.80, 0.95), (MachineStatus.RUNNING, MachineStatus.STOPPED, MachineStatus.ALARM)),
    MachineStatus.STOPPED: ((0.80, 0.95), (MachineStatus.STOPPED, MachineStatus.RUNNING, MachineStatus.ALARM)),
    MachineStatus.ALARM: ((0.70, 0.85), (MachineStatus.ALARM, MachineStatus.STOPPED, MachineStatus.RUNNING)),
}

RUNNING_PARTS_MIN = 1
RUNNING_PARTS_MAX = 5
STOPPED_FINISH_PROBABILITY = 0.1

CYCLE_TIME_NOISE = 0.10  # +/- 10% around baseline
CYCLE_TIME_MIN = 10.0
CYCLE_TIME_MAX = 120.0

BASE_CYCLE_TIME_MIN = 25  # inclusive
BASE_CYCLE_TIME_MAX = 41  # exclusive


def next_status(current: MachineStatus, rng: random.Random) -> MachineStatus:
    """
    One Markov step. Draws exactly one uniform value in [0, 1).
    Unknown statuses fall back to STOPPED.
    """
    entry = TRANSITION_TABLE.get(current)
    if entry is None:
        return MachineStatus.STOPPED

    (stay, first_exit), targets = entry
    r = rng.random()
    if r < stay:
        return targets[0]
    if r < first_exit:
        return targets[1]
    return targets[2]


def next_production_count(current_count: int, new_status: MachineStatus, rng: random.Random) -> int:
    if new_status == MachineStatus.RUNNING:
        return current_count + rng.randint(RUNNING_PARTS_MIN, RUNNING_PARTS_MAX)
    if new_status == MachineStatus.STOPPED:
        # In-flight part occasionally completes after stop
        return current_count + (1 if rng.random() < STOPPED_FINISH_PROBABILITY else 0)
    return current_count


def next_cycle_time(new_status: MachineStatus, base_cycle_time: float, rng: random.Random) -> float:
    """base * (1 + noise), noise in [-0.10, 0.10), clamped to [10, 120], 1 decimal."""
    if new_status != MachineStatus.RUNNING:
        return 0.0

    noise = (rng.random() - 0.5) * 2 * CYCLE_TIME_NOISE
    cycle_time = base_cycle_time * (1 + noise)
    cycle_time = max(CYCLE_TIME_MIN, min(CYCLE_TIME_MAX, cycle_time))
    return round(cycle_time, 1)


def draw_base_cycle_time(rng: random.Random) -> float:
    return float(rng.randrange(BASE_CYCLE_TIME_MIN, BASE_CYCLE_TIME_MAX))
