import unittest
from ecosignal.domain.models import Phase, SignalState, TrafficSide
from ecosignal.systems.signal_system import SignalSystem
from ecosignal.domain import config

class TestSignalSystem(unittest.TestCase):
    def setUp(self):
        self.signals = SignalSystem()
        self.intersection = self.signals.initial_state()

    def test_initial_state_is_green_north_south(self):
        self.assertEqual(self.intersection.active_side, TrafficSide.NS)
        self.assertEqual(self.intersection.phase, Phase.GREEN)
        self.assertEqual(self.intersection.timer, config.MIN_GREEN_TIME)

    def test_green_actions(self):
        self.signals.apply_action(self.intersection, 1)
        self.assertEqual((self.intersection.phase, self.intersection.timer), (Phase.GREEN, config.SHORT_EXTENSION))
        self.signals.apply_action(self.intersection, 2)
        self.assertEqual((self.intersection.phase, self.intersection.timer), (Phase.GREEN, config.LONG_EXTENSION))
        self.signals.apply_action(self.intersection, 0)
        self.assertEqual((self.intersection.phase, self.intersection.timer), (Phase.YELLOW, config.YELLOW_TIME))
        self.assertEqual(self.intersection.active_side, TrafficSide.NS)

    def test_yellow_ignores_action_and_flips_side(self):
        self.signals.apply_action(self.intersection, 0)
        self.signals.apply_action(self.intersection, 2)
        self.assertEqual(self.intersection.phase, Phase.GREEN)
        self.assertEqual(self.intersection.active_side, TrafficSide.EW)
        self.assertEqual(self.intersection.timer, config.MIN_GREEN_TIME)

    def test_side_alternates_every_full_cycle(self):
        for n in range(1, 7):
            self.signals.apply_action(self.intersection, 0)
            self.signals.apply_action(self.intersection, 0)
            expected = TrafficSide.NS if n % 2 == 0 else TrafficSide.EW
            self.assertEqual(self.intersection.active_side, expected)

    def test_unknown_action_rejected(self):
        with self.assertRaises(ValueError):
            self.signals.apply_action(self.intersection, 5)

    def test_countdown_and_display_clamp(self):
        self.intersection.timer = 2
        self.assertFalse(self.signals.countdown(self.intersection))
        self.assertTrue(self.signals.countdown(self.intersection))
        self.intersection.timer = -3
        self.assertEqual(self.signals.display_timer(self.intersection), 0)

    def test_inactive_side_is_always_red(self):
        self.assertEqual(self.signals.signal_for(self.intersection, TrafficSide.NS), SignalState.GREEN)
        self.assertEqual(self.signals.signal_for(self.intersection, TrafficSide.EW), SignalState.RED)
        self.signals.apply_action(self.intersection, 0)
        self.assertEqual(self.signals.signal_for(self.intersection, TrafficSide.NS), SignalState.YELLOW)
        self.assertEqual(self.signals.signal_for(self.intersection, TrafficSide.EW), SignalState.RED)

if __name__ == '__main__':
    unittest.main()
