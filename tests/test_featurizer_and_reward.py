import unittest
from ecosignal.domain.models import Direction, Intersection, Phase, TrafficSide
from ecosignal.learning.featurizer import build_observation, direction_counts, normalize
from ecosignal.learning.reward import evaluate_reward
from ecosignal.domain import config
from test_vehicle_system import make_vehicle

class TestFeaturizer(unittest.TestCase):
    def test_empty_population(self):
        obs = build_observation([], Intersection(active_side=TrafficSide.EW, phase=Phase.YELLOW, timer=3), 0.5)
        self.assertEqual(len(obs), config.OBSERVATION_SIZE)
        self.assertEqual(obs[:4], [0.0, 0.0, 0.0, 0.0])
        self.assertEqual(obs[4], 0.0)
        self.assertEqual(obs[5], 0.5)
        self.assertAlmostEqual(obs[6], 3 / config.MAX_GREEN_TIME)
        self.assertEqual(obs[7], 0.0)
        self.assertEqual(obs[8], 0.5)
        self.assertEqual(obs[9:], [0.0, 0.0, 0.0])

    def test_component_order_and_values(self):
        vehicles = [
            make_vehicle("n1", Direction.N, y=100, speed=0.0),
            make_vehicle("n2", Direction.N, y=10, speed=2.0),
            make_vehicle("s1", Direction.S, y=600, speed=0.05),
            make_vehicle("e1", Direction.E, x=100, speed=3.0),
            make_vehicle("w1", Direction.W, x=700, speed=1.0),
        ]
        vehicles[0].waiting = 50.0
        done = make_vehicle("done", Direction.W, x=100, speed=4.0)
        done.passed = True
        done.waiting = 90.0
        vehicles.append(done)

        obs = build_observation(vehicles, Intersection(active_side=TrafficSide.NS, phase=Phase.GREEN, timer=15), 0.0)
        expected = [
            3 / 20, 2 / 20,          # queues
            2 / 20, 0 / 20,          # stopped per axis
            1.0, 1.0, 15 / 30,       # side, phase, timer
            (0.0 + 2.0 + 0.05 + 3.0 + 1.0) / 5 / 5,
            0.0,                     # weather
            50 / 100,                # longest wait among unfinished
            1 / 20,                  # imbalance
            2 / 40,                  # total stopped
        ]
        for got, want in zip(obs, expected):
            self.assertAlmostEqual(got, want)

    def test_components_are_capped(self):
        vehicles = [make_vehicle(f"n{i}", Direction.N, y=-i * 10.0) for i in range(30)]
        for v in vehicles:
            v.waiting = 500.0
        obs = build_observation(vehicles, Intersection(timer=99), 1.7)
        self.assertTrue(all(0.0 <= x <= 1.0 for x in obs))
        self.assertEqual(obs[0], 1.0)
        self.assertEqual(obs[6], 1.0)
        self.assertEqual(obs[8], 1.0)
        self.assertEqual(obs[9], 1.0)
        self.assertEqual(obs[11], 30 / 40)

    def test_normalize_and_direction_counts(self):
        self.assertEqual(normalize(-5, 10), 0.0)
        self.assertEqual(normalize(25, 10), 1.0)
        v = make_vehicle("a", Direction.E, x=0)
        p = make_vehicle("b", Direction.E, x=10)
        p.passed = True
        counts = direction_counts([v, p])
        self.assertEqual(counts, {Direction.N: 0, Direction.S: 0, Direction.E: 1, Direction.W: 0})

class TestReward(unittest.TestCase):
    def test_quiet_interval_scores_exactly_zero(self):
        result = evaluate_reward([], set(), 0.0)
        self.assertEqual(result.reward, 0)
        self.assertEqual(result.newly_credited, [])

    def test_reward_terms(self):
        queued = make_vehicle("q", Direction.N, y=0)
        passed_new = make_vehicle("p1", Direction.N, y=500)
        passed_new.passed = True
        passed_old = make_vehicle("p2", Direction.S, y=100)
        passed_old.passed = True

        result = evaluate_reward([queued, passed_new, passed_old], {"p2"}, 12.0)
        self.assertEqual(result.newly_credited, ["p1"])
        self.assertEqual(result.queue_length, 1)
        expected = (config.REWARD_VEHICLE_PASSED
                    + config.REWARD_QUEUE_PENALTY * 1
                    + config.REWARD_EMISSION_PENALTY * 12.0)
        self.assertAlmostEqual(result.reward, expected)

    def test_evaluation_has_no_side_effects(self):
        passed = make_vehicle("p", Direction.N, y=500)
        passed.passed = True
        credited = set()
        first = evaluate_reward([passed], credited, 1.0)
        second = evaluate_reward([passed], credited, 1.0)
        self.assertEqual(credited, set())
        self.assertEqual(first, second)

if __name__ == '__main__':
    unittest.main()
