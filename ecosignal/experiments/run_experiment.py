import json
import logging
import os
import time
from typing import Any, Dict, List, Optional

from ecosignal.agents.factory import create_agent, save_agent
from ecosignal.kernel.simulation_kernel import SimulationKernel
from ecosignal.logging_setup import setup_logging
from ecosignal.domain import config

logger = logging.getLogger(__name__)

DEFAULTS = {"seed": 42, "decisions": 300, "weather": config.DEFAULT_WEATHER, "agent": "dqn", "model_path": None}

def load_experiment_config(config_path: Optional[str]) -> Dict[str, Any]:
    settings = dict(DEFAULTS)
    if config_path and os.path.exists(config_path):
        with open(config_path) as f:
            settings.update(json.load(f))
    return settings

def run_headless(kernel: SimulationKernel, decisions: int, fps: int = config.TARGET_FPS) -> List[Dict[str, Any]]:
    """Drive the kernel on simulated time: fps frames per decision second,
    with autospawn emulated every SPAWN_INTERVAL seconds."""
    frame_dt = 1.0 / fps
    sim_time = 0.0
    next_spawn = config.SPAWN_INTERVAL
    results = []

    second = 0
    while len(results) < decisions:
        for _ in range(fps):
            kernel.process_commands()
            kernel.run_frame(frame_dt)
            sim_time += frame_dt
            if sim_time >= next_spawn:
                next_spawn += config.SPAWN_INTERVAL
                if kernel.state.auto_spawn:
                    kernel.spawn_random_vehicle()
        second += 1

        outcome = kernel.run_decision_tick(learn=True)
        if outcome is None:
            continue
        state = kernel.state
        results.append({
            "second": second,
            "step": state.decision_step,
            "action": config.ACTIONS[outcome.action],
            "reward": round(outcome.reward, 4),
            "phase": state.intersection.phase.value,
            "activeSide": state.intersection.active_side.value,
            "queue": sum(1 for v in state.vehicles if not v.passed),
            "totalEmissions": round(state.metrics.total_emissions, 4),
            "vehiclesPassed": state.metrics.vehicles_passed,
            "episodes": state.metrics.episodes,
            "degraded": outcome.degraded,
        })
    return results

def run_headless_experiment(config_path: Optional[str], output_path: str):
    settings = load_experiment_config(config_path)

    kernel = SimulationKernel(agent=create_agent(settings["agent"], settings["model_path"]))
    kernel.initialize(seed=settings["seed"], weather_mode=settings["weather"])

    start_time = time.time()
    results = run_headless(kernel, settings["decisions"])
    end_time = time.time()
    logger.info("Experiment finished in %.4fs (%d decisions, %d episodes)",
                end_time - start_time, len(results), kernel.state.metrics.episodes)

    with open(output_path, 'w') as f:
        json.dump({"settings": settings, "metrics": kernel.get_metrics().model_dump(), "decisions": results},
                  f, indent=2)
    save_agent(kernel.agent, settings["model_path"])
    kernel.shutdown()

if __name__ == "__main__":
    import sys
    setup_logging(log_file=None)
    if len(sys.argv) > 2:
        run_headless_experiment(sys.argv[1], sys.argv[2])
    else:
        print("Usage: python -m ecosignal.experiments.run_experiment <config.json> <output.json>")
