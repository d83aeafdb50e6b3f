import logging
import random
from typing import List, Optional, Tuple
from ecosignal.domain.models import Direction, Intersection, Phase, SIDE_OF, Vehicle, VehicleClass
from ecosignal.domain.state import SimulationState
from ecosignal.domain import config

logger = logging.getLogger(__name__)

# Entry point (x, y), unit velocity (vx, vy) and heading per approach
ENTRY_POINTS = {
    Direction.N: (config.CENTER_X - config.LANE_OFFSET, -config.SPAWN_OFFSET, 0.0, 1.0, 90.0),
    Direction.S: (config.CENTER_X + config.LANE_OFFSET, config.CANVAS_HEIGHT + config.SPAWN_OFFSET, 0.0, -1.0, 270.0),
    Direction.E: (-config.SPAWN_OFFSET, config.CENTER_Y + config.LANE_OFFSET, 1.0, 0.0, 0.0),
    Direction.W: (config.CANVAS_WIDTH + config.SPAWN_OFFSET, config.CENTER_Y - config.LANE_OFFSET, -1.0, 0.0, 180.0),
}

def has_right_of_way(v: Vehicle, intersection: Intersection) -> bool:
    return SIDE_OF[v.direction] == intersection.active_side and intersection.phase == Phase.GREEN

def in_stop_zone(v: Vehicle) -> bool:
    near, far = config.STOP_ZONE_NEAR, config.STOP_ZONE_FAR
    if v.direction == Direction.N:
        return config.CENTER_Y - far < v.y < config.CENTER_Y - near
    if v.direction == Direction.S:
        return config.CENTER_Y + near < v.y < config.CENTER_Y + far
    if v.direction == Direction.E:
        return config.CENTER_X - far < v.x < config.CENTER_X - near
    return config.CENTER_X + near < v.x < config.CENTER_X + far

def is_ahead(v: Vehicle, other: Vehicle) -> bool:
    """True when `other` is strictly further along v's travel axis."""
    if v.direction == Direction.N: return other.y > v.y
    if v.direction == Direction.S: return other.y < v.y
    if v.direction == Direction.E: return other.x > v.x
    return other.x < v.x

def find_blocker(v: Vehicle, vehicles: List[Vehicle]) -> Optional[Vehicle]:
    for o in vehicles:
        if o.id == v.id or o.direction != v.direction:
            continue
        if not is_ahead(v, o):
            continue
        dx, dy = abs(v.x - o.x), abs(v.y - o.y)
        min_gap = config.HEAVY_MIN_GAP if (v.is_heavy or o.is_heavy) else config.MIN_GAP
        if v.direction in (Direction.N, Direction.S):
            if dx < config.LATERAL_TOLERANCE and dy < min_gap:
                return o
        elif dy < config.LATERAL_TOLERANCE and dx < min_gap:
            return o
    return None

def should_stop(v: Vehicle, intersection: Intersection, vehicles: List[Vehicle]) -> bool:
    if not v.passed and in_stop_zone(v):
        if SIDE_OF[v.direction] != intersection.active_side:
            return True
        if intersection.phase != Phase.GREEN:
            return True
    return find_blocker(v, vehicles) is not None

def has_passed_center(v: Vehicle) -> bool:
    if v.direction == Direction.N: return v.y > config.CENTER_Y
    if v.direction == Direction.S: return v.y < config.CENTER_Y
    if v.direction == Direction.E: return v.x > config.CENTER_X
    return v.x < config.CENTER_X

def integrate_speed(speed: float, target: float) -> float:
    if speed < target:
        return min(target, speed + config.ACCELERATION)
    if speed > target:
        return max(target, speed - config.BRAKING_FORCE)
    return speed

def emission_rate(v: Vehicle, previous_speed: float) -> float:
    mult = config.CO2_HEAVY_MULT if v.is_heavy else 1.0
    if v.current_speed < config.STOP_THRESHOLD:
        return config.CO2_IDLE * mult
    if v.current_speed > previous_speed + config.ACCEL_EPSILON:
        return config.CO2_ACCEL * mult
    return config.CO2_RUNNING * mult

def in_bounds(v: Vehicle) -> bool:
    m = config.BOUNDS_MARGIN
    return -m < v.x < config.CANVAS_WIDTH + m and -m < v.y < config.CANVAS_HEIGHT + m

class VehicleSystem:
    def update(self, state: SimulationState, dt: float) -> float:
        """Advance every vehicle one frame. Returns the emissions produced this frame."""
        dt = max(0.0, min(dt, config.MAX_FRAME_DT))
        vehicles = state.vehicles
        intersection = state.intersection

        # Decide against the start-of-frame positions, then apply
        stops = [should_stop(v, intersection, vehicles) for v in vehicles]

        frame_emissions = 0.0
        for v, stop in zip(vehicles, stops):
            previous_speed = v.current_speed
            target_speed = 0.0 if stop else v.max_speed
            v.current_speed = integrate_speed(previous_speed, target_speed)
            frame_emissions += emission_rate(v, previous_speed) * dt

            if not stop:
                v.x += v.vx * v.current_speed
                v.y += v.vy * v.current_speed

            if not v.passed and has_passed_center(v):
                v.passed = True

            v.is_stopping = stop
            v.waiting = v.waiting + dt if stop else 0.0

        self._remove_out_of_bounds(state)

        state.metrics.total_emissions += frame_emissions
        state.episode.step_emissions += frame_emissions
        return frame_emissions

    def _remove_out_of_bounds(self, state: SimulationState):
        kept = []
        for v in state.vehicles:
            if in_bounds(v):
                kept.append(v)
            elif v.passed:
                state.metrics.vehicles_passed += 1
        state.vehicles = kept

    def spawn(self, state: SimulationState, direction: Direction) -> Optional[Vehicle]:
        x, y, vx, vy, angle = ENTRY_POINTS[direction]
        if self._entry_blocked(state.vehicles, (x, y)):
            logger.debug("Spawn skipped at %s: entry point occupied", direction.value)
            return None

        heavy = random.random() < config.HEAVY_PROBABILITY
        factor = config.SPEED_FACTOR_MIN + random.random() * config.SPEED_FACTOR_SPAN
        vehicle = Vehicle(
            id=f"v-{random.getrandbits(40):010x}",
            x=x, y=y, vx=vx, vy=vy, angle=angle,
            direction=direction,
            vehicle_class=VehicleClass.HEAVY if heavy else VehicleClass.STANDARD,
            length=config.TRUCK_LENGTH if heavy else config.CAR_LENGTH,
            max_speed=state.weather.speed * factor,
            color="#475569" if heavy else f"hsl({random.randint(0, 359)}, 50%, 45%)",
        )
        state.vehicles.append(vehicle)
        return vehicle

    def _entry_blocked(self, vehicles: List[Vehicle], entry: Tuple[float, float]) -> bool:
        x, y = entry
        return any(abs(v.x - x) < config.SPAWN_CLEARANCE and abs(v.y - y) < config.SPAWN_CLEARANCE
                   for v in vehicles)
