import asyncio
import logging
import time
from typing import List, Optional

from ecosignal.kernel.commands import SpawnRandomVehicleCommand
from ecosignal.kernel.simulation_kernel import SimulationKernel
from ecosignal.domain import config

logger = logging.getLogger(__name__)

class SimulationRuntime:
    """Drives a kernel from asyncio tasks.

    frame loop    -> commands + kinematics at TARGET_FPS
    decision loop -> one timer tick per DECISION_INTERVAL
    spawn loop    -> random spawn every SPAWN_INTERVAL while autospawn is on

    Learning runs on a worker thread. The frame loop never waits for it; the
    decision loop only waits for the previous update before submitting the
    next one, so at most one learning step is in flight.
    """

    def __init__(self, kernel: SimulationKernel, fps: float = config.TARGET_FPS,
                 decision_interval: float = config.DECISION_INTERVAL,
                 spawn_interval: float = config.SPAWN_INTERVAL):
        self.kernel = kernel
        self.frame_interval = 1.0 / fps
        self.decision_interval = decision_interval
        self.spawn_interval = spawn_interval
        self._tasks: List[asyncio.Task] = []
        self._learning: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._tasks)

    def start(self):
        if self.running:
            return
        self._tasks = [
            asyncio.create_task(self._frame_loop(), name="ecosignal-frames"),
            asyncio.create_task(self._decision_loop(), name="ecosignal-decisions"),
            asyncio.create_task(self._spawn_loop(), name="ecosignal-spawner"),
        ]
        logger.info("Runtime started (%.0f fps, decisions every %.1fs)",
                    1.0 / self.frame_interval, self.decision_interval)

    async def stop(self):
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        await self.wait_for_learning()
        self._learning = None
        logger.info("Runtime stopped")

    async def _frame_loop(self):
        last = time.monotonic()
        while True:
            start_time = time.monotonic()
            # Wall-clock delta; the kernel clamps it to MAX_FRAME_DT
            dt = start_time - last
            last = start_time

            self.kernel.process_commands()
            self.kernel.run_frame(dt)

            elapsed = time.monotonic() - start_time
            await asyncio.sleep(max(0.0, self.frame_interval - elapsed))

    async def _decision_loop(self):
        while True:
            await asyncio.sleep(self.decision_interval)
            outcome = self.kernel.run_decision_tick(learn=False)
            if outcome is not None and outcome.transition_recorded:
                await self.submit_learning()

    async def _spawn_loop(self):
        while True:
            await asyncio.sleep(self.spawn_interval)
            state = self.kernel.state
            if state.auto_spawn and not state.paused:
                self.kernel.queue_command(SpawnRandomVehicleCommand())

    async def wait_for_learning(self):
        """Block until the in-flight learning step (if any) has finished."""
        if self._learning is not None:
            await asyncio.gather(self._learning, return_exceptions=True)

    async def submit_learning(self):
        """Wait for the in-flight update (if any), then start the next one."""
        await self.wait_for_learning()
        agent = self.kernel.agent
        if agent is None or agent.is_disposed:
            self._learning = None
            return
        self._learning = asyncio.create_task(self._learn(agent))

    async def _learn(self, agent):
        controller = self.kernel.controller
        try:
            await asyncio.to_thread(agent.learn_step)
        except Exception:
            logger.exception("Learning step failed")
            controller.note_learning_failure()
            self.kernel.state.decision.degraded = True
        else:
            controller.note_learning_success()
