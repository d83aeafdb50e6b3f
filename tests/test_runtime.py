import asyncio
import unittest
from ecosignal.kernel.runtime import SimulationRuntime
from ecosignal.kernel.simulation_kernel import SimulationKernel
from ecosignal.domain import config
from scripted_agent import ScriptedAgent, SlowLearningAgent

class BrokenLearner(ScriptedAgent):
    def learn_step(self):
        raise RuntimeError("optimizer diverged")

class FlakyLearner(ScriptedAgent):
    def __init__(self, failures=1, **kwargs):
        super().__init__(**kwargs)
        self.failures = failures

    def learn_step(self):
        self.learn_calls += 1
        if self.failures:
            self.failures -= 1
            raise RuntimeError("transient optimizer failure")

class TestSimulationRuntime(unittest.IsolatedAsyncioTestCase):
    async def test_loops_run_and_learning_never_overlaps(self):
        agent = SlowLearningAgent(learn_seconds=0.03)
        kernel = SimulationKernel(agent=agent)
        kernel.initialize(seed=11)
        kernel.state.intersection.timer = 1
        runtime = SimulationRuntime(kernel, fps=200, decision_interval=0.01, spawn_interval=0.05)

        runtime.start()
        self.assertTrue(runtime.running)
        await asyncio.sleep(0.6)
        await runtime.stop()

        self.assertFalse(runtime.running)
        self.assertGreater(kernel.state.frame_id, 0)
        self.assertGreaterEqual(kernel.state.decision_step, 2)
        self.assertGreaterEqual(agent.learn_calls, 1)
        self.assertEqual(agent.max_in_flight, 1)
        self.assertEqual(agent.in_flight, 0)

    async def test_paused_kernel_does_not_advance(self):
        kernel = SimulationKernel(agent=ScriptedAgent())
        kernel.initialize(seed=11)
        kernel.toggle_pause()
        runtime = SimulationRuntime(kernel, fps=200, decision_interval=0.01, spawn_interval=0.01)

        runtime.start()
        await asyncio.sleep(0.1)
        await runtime.stop()

        self.assertEqual(kernel.state.frame_id, 0)
        self.assertEqual(kernel.state.vehicles, [])
        self.assertEqual(len(kernel.command_queue), 0)

    async def test_failed_learning_marks_decision_degraded(self):
        kernel = SimulationKernel(agent=BrokenLearner())
        kernel.initialize(seed=11)
        runtime = SimulationRuntime(kernel)

        with self.assertLogs("ecosignal.kernel.runtime", level="ERROR"):
            await runtime.submit_learning()
            await runtime.stop()
        self.assertTrue(kernel.state.decision.degraded)

    async def drive_decisions(self, kernel, runtime, count):
        """Run decisions the way the decision loop does, forcing the timer to expire each time."""
        outcomes = []
        for _ in range(count):
            kernel.state.intersection.timer = 1
            outcome = kernel.run_decision_tick(learn=False)
            if outcome.transition_recorded:
                await runtime.submit_learning()
                await runtime.wait_for_learning()
            outcomes.append(outcome)
        return outcomes

    async def test_persistent_learning_failure_keeps_decisions_degraded(self):
        agent = BrokenLearner(fallback_action=1)
        kernel = SimulationKernel(agent=agent)
        kernel.initialize(seed=11)
        runtime = SimulationRuntime(kernel)

        with self.assertLogs("ecosignal.kernel.runtime", level="ERROR"):
            outcomes = await self.drive_decisions(kernel, runtime, 6)
        await runtime.stop()

        self.assertFalse(outcomes[0].degraded)
        self.assertFalse(outcomes[1].degraded)
        for outcome in outcomes[2:]:
            self.assertTrue(outcome.degraded)
            self.assertEqual(outcome.action, config.DEFAULT_ACTION)
            self.assertTrue(outcome.transition_recorded)
        self.assertTrue(kernel.controller.degraded)
        self.assertTrue(kernel.state.decision.degraded)
        self.assertEqual(kernel.state.decision.confidence, "0")

    async def test_successful_learning_clears_degraded_mode(self):
        agent = FlakyLearner(failures=1, fallback_action=1)
        kernel = SimulationKernel(agent=agent)
        kernel.initialize(seed=11)
        runtime = SimulationRuntime(kernel)

        with self.assertLogs("ecosignal.kernel.runtime", level="ERROR"):
            outcomes = await self.drive_decisions(kernel, runtime, 4)
        await runtime.stop()

        # decision 2 submits the failing step, decision 3 runs degraded and submits a good one
        self.assertTrue(outcomes[2].degraded)
        self.assertFalse(outcomes[3].degraded)
        self.assertFalse(kernel.controller.degraded)
        self.assertEqual(agent.learn_calls, 3)

    async def test_no_learning_for_disposed_agent(self):
        agent = SlowLearningAgent()
        kernel = SimulationKernel(agent=agent)
        kernel.initialize(seed=11)
        kernel.shutdown()
        runtime = SimulationRuntime(kernel)
        await runtime.submit_learning()
        await runtime.stop()
        self.assertEqual(agent.learn_calls, 0)

if __name__ == '__main__':
    unittest.main()
