"""Observation vector handed to the learning agent.

The ordering and the normalisation caps below are what trained policies
were fitted against. Changing either invalidates saved weights.
"""
from typing import Dict, Iterable, List
from ecosignal.domain.models import Direction, Intersection, Phase, TrafficSide, Vehicle
from ecosignal.domain import config

QUEUE_CAP = 20
STOPPED_CAP = 20
SPEED_CAP = 5
WAIT_CAP = 100
IMBALANCE_CAP = 20
TOTAL_STOPPED_CAP = 40

def normalize(value: float, cap: float) -> float:
    return min(max(value / cap, 0.0), 1.0)

def direction_counts(vehicles: Iterable[Vehicle]) -> Dict[Direction, int]:
    """Unfinished (not yet passed) vehicles per approach."""
    counts = {d: 0 for d in Direction}
    for v in vehicles:
        if not v.passed:
            counts[v.direction] += 1
    return counts

def phase_level(intersection: Intersection) -> float:
    if intersection.phase == Phase.GREEN:
        return 1.0
    if intersection.phase == Phase.YELLOW:
        return 0.5
    return 0.0

def build_observation(vehicles: List[Vehicle], intersection: Intersection, weather_factor: float) -> List[float]:
    queues = {d: 0 for d in Direction}
    stopped = {d: 0 for d in Direction}
    speed_sum = 0.0
    max_wait = 0.0
    unfinished = 0

    for v in vehicles:
        if v.passed:
            continue
        unfinished += 1
        queues[v.direction] += 1
        speed_sum += v.current_speed
        if v.current_speed < config.STOP_THRESHOLD:
            stopped[v.direction] += 1
        max_wait = max(max_wait, v.waiting)

    avg_speed = speed_sum / unfinished if unfinished else 0.0
    ns_queue = queues[Direction.N] + queues[Direction.S]
    ew_queue = queues[Direction.E] + queues[Direction.W]

    return [
        normalize(ns_queue, QUEUE_CAP),
        normalize(ew_queue, QUEUE_CAP),
        normalize(stopped[Direction.N] + stopped[Direction.S], STOPPED_CAP),
        normalize(stopped[Direction.E] + stopped[Direction.W], STOPPED_CAP),
        1.0 if intersection.active_side == TrafficSide.NS else 0.0,
        phase_level(intersection),
        normalize(intersection.timer, config.MAX_GREEN_TIME),
        normalize(avg_speed, SPEED_CAP),
        min(max(weather_factor, 0.0), 1.0),
        normalize(max_wait, WAIT_CAP),
        normalize(abs(ns_queue - ew_queue), IMBALANCE_CAP),
        normalize(sum(stopped.values()), TOTAL_STOPPED_CAP),
    ]
