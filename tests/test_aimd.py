import random
from unittest import TestCase

from datagrump.configuration import ControllerConfiguration, Scheme
from datagrump.congestion.aimd import AimdCongestionControl
from datagrump.congestion.base import K_MINIMUM_WINDOW

from .utils import create_controller


class AimdCongestionControlTest(TestCase):
    def setUp(self):
        self.cc = AimdCongestionControl(
            configuration=ControllerConfiguration(scheme=Scheme.AIMD)
        )

    def ack(self, now):
        self.cc.on_ack_received(
            sequence_number=0, send_timestamp=0, recv_timestamp=0, now=now
        )

    def test_additive_increase(self):
        previous = self.cc.congestion_window
        for i in range(1, 100):
            self.ack(i * 10)
            self.assertGreater(self.cc.congestion_window, previous)
            previous = self.cc.congestion_window

    def test_multiplicative_decrease(self):
        self.assertEqual(self.cc.congestion_window, 15.0)
        self.ack(200)
        self.assertEqual(self.cc.congestion_window, 7.5)
        self.assertEqual(self.cc.previous_ack_time, 200)

    def test_gap_equal_to_timeout(self):
        self.ack(100)
        self.assertAlmostEqual(self.cc.congestion_window, 15.0 + 1.0 / 15.0)

    def test_floor(self):
        for i in range(1, 20):
            self.ack(i * 1000)
        self.assertEqual(self.cc.congestion_window, K_MINIMUM_WINDOW)

    def test_floor_random(self):
        rng = random.Random(1)
        now = 0
        for i in range(2000):
            now += rng.choice([1, 5, 50, 150, 400])
            self.ack(now)
            self.assertGreaterEqual(self.cc.congestion_window, 1.0)

    def test_get_log_data(self):
        self.ack(50)
        self.assertEqual(
            self.cc.get_log_data(),
            {"cwnd": self.cc.congestion_window, "previous_ack_time": 50},
        )


class AimdControllerTest(TestCase):
    def test_scenario(self):
        controller = create_controller(Scheme.AIMD)
        self.assertEqual(controller.timeout_ms(), 100)

        controller.ack_received(0, 0, 25, 50)
        self.assertAlmostEqual(controller.congestion_window, 15.0 + 1.0 / 15.0)
        self.assertEqual(controller.window_size(), 15)

        controller.ack_received(1, 100, 175, 250)
        self.assertAlmostEqual(
            controller.congestion_window, (15.0 + 1.0 / 15.0) * 0.5
        )
        self.assertAlmostEqual(controller.congestion_window, 7.533, places=3)
        self.assertEqual(controller.window_size(), 7)
