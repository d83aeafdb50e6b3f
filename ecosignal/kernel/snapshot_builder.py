from typing import List
from ecosignal.domain.models import (
    DecisionTelemetry, IntersectionView, Metrics, SimulationSnapshot, TrafficSide, Vehicle
)
from ecosignal.domain.state import SimulationState
from ecosignal.learning.featurizer import direction_counts
from ecosignal.systems.signal_system import SignalSystem

class SnapshotBuilder:
    """Read-only copies of the simulation state for the presentation layer."""

    def __init__(self, signal_system: SignalSystem):
        self.signal_system = signal_system

    def build(self, state: SimulationState) -> SimulationSnapshot:
        return SimulationSnapshot(
            frame=state.frame_id,
            step=state.decision_step,
            paused=state.paused,
            autoSpawn=state.auto_spawn,
            weather=state.weather_mode,
            intersection=self.intersection(state),
            vehicles=self.vehicles(state),
            stats=direction_counts(state.vehicles),
            metrics=self.metrics(state),
            decision=self.decision(state),
        )

    def intersection(self, state: SimulationState) -> IntersectionView:
        i = state.intersection
        return IntersectionView(
            activeSide=i.active_side,
            phase=i.phase,
            nsSignal=self.signal_system.signal_for(i, TrafficSide.NS),
            ewSignal=self.signal_system.signal_for(i, TrafficSide.EW),
            timer=self.signal_system.display_timer(i),
        )

    def vehicles(self, state: SimulationState) -> List[Vehicle]:
        return [v.model_copy() for v in state.vehicles]

    def metrics(self, state: SimulationState) -> Metrics:
        return state.metrics.model_copy(deep=True)

    def decision(self, state: SimulationState) -> DecisionTelemetry:
        return state.decision.model_copy(deep=True)
