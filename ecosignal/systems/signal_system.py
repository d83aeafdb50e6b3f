import logging
from ecosignal.domain.models import Intersection, Phase, SignalState, TrafficSide
from ecosignal.domain import config

logger = logging.getLogger(__name__)

def opposite_side(side: TrafficSide) -> TrafficSide:
    return TrafficSide.EW if side == TrafficSide.NS else TrafficSide.NS

class SignalSystem:
    def initial_state(self) -> Intersection:
        return Intersection(active_side=TrafficSide.NS, phase=Phase.GREEN, timer=config.MIN_GREEN_TIME)

    def reset(self, intersection: Intersection):
        intersection.active_side = TrafficSide.NS
        intersection.phase = Phase.GREEN
        intersection.timer = config.MIN_GREEN_TIME

    def countdown(self, intersection: Intersection) -> bool:
        """Decrement the timer by one second. Returns True when the phase has expired."""
        intersection.timer -= 1
        return intersection.timer <= 0

    def apply_action(self, intersection: Intersection, action: int):
        # Cycle: GREEN(side) -> YELLOW(side) -> GREEN(opposite)
        if intersection.phase == Phase.GREEN:
            if action == 0:
                intersection.phase = Phase.YELLOW
                intersection.timer = config.YELLOW_TIME
            elif action == 1:
                intersection.timer = config.SHORT_EXTENSION
            elif action == 2:
                intersection.timer = config.LONG_EXTENSION
            else:
                raise ValueError(f"Unknown action index {action}")
        else:
            # Yellow is non-discretionary; the action is ignored
            intersection.phase = Phase.GREEN
            intersection.active_side = opposite_side(intersection.active_side)
            intersection.timer = config.MIN_GREEN_TIME

        logger.debug("Signal -> %s(%s) for %ss", intersection.phase.value,
                     intersection.active_side.value, intersection.timer)

    def signal_for(self, intersection: Intersection, side: TrafficSide) -> SignalState:
        if side != intersection.active_side:
            return SignalState.RED
        if intersection.phase == Phase.GREEN:
            return SignalState.GREEN
        return SignalState.YELLOW

    def display_timer(self, intersection: Intersection) -> int:
        return max(0, int(intersection.timer))
