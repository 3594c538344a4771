import math
import unittest

import numpy as np

from pipeline_sim.core.variates import gaussian, make_random_source, sample_duration


class ConstantSource:
    def __init__(self, value: float) -> None:
        self.value = value

    def random(self) -> float:
        return self.value


HALF_Z = -math.sqrt(-2.0 * math.log(0.5))  # Box-Muller z for u = v = 0.5


class GaussianTests(unittest.TestCase):
    def test_box_muller_with_half_draws(self) -> None:
        value = gaussian(10.0, 1.0, ConstantSource(0.5))
        self.assertAlmostEqual(value, 10.0 + HALF_Z)
        self.assertAlmostEqual(value, 8.8225899775, places=8)

    def test_zero_draw_does_not_hit_log_domain(self) -> None:
        # u = 1 - 0 = 1 -> z = 0
        self.assertAlmostEqual(gaussian(7.0, 3.0, ConstantSource(0.0)), 7.0)

    def test_draw_of_one_is_defended(self) -> None:
        value = gaussian(0.0, 1.0, ConstantSource(1.0))
        self.assertTrue(math.isfinite(value))

    def test_zero_std_dev_returns_mean(self) -> None:
        rng = make_random_source(3)
        for _ in range(20):
            self.assertEqual(gaussian(5.0, 0.0, rng), 5.0)

    def test_sample_moments_match_parameters(self) -> None:
        rng = make_random_source(42)
        samples = np.array([gaussian(50.0, 5.0, rng) for _ in range(20000)])
        self.assertAlmostEqual(float(samples.mean()), 50.0, delta=0.2)
        self.assertAlmostEqual(float(samples.std()), 5.0, delta=0.2)


class SampleDurationTests(unittest.TestCase):
    def test_negative_draws_are_floored(self) -> None:
        # 0.5/0.5 gives z < 0, so a large spread pushes the sample below zero
        self.assertEqual(sample_duration(1.0, 10.0, ConstantSource(0.5)), 0.0)

    def test_zero_mean_stays_non_negative(self) -> None:
        rng = make_random_source(11)
        self.assertTrue(all(sample_duration(0.0, 0.0, rng) == 0.0 for _ in range(10)))

    def test_seeded_sources_are_reproducible(self) -> None:
        first = [sample_duration(30.0, 3.0, make_random_source(7)) for _ in range(3)]
        second = [sample_duration(30.0, 3.0, make_random_source(7)) for _ in range(3)]
        self.assertEqual(first, second)


if __name__ == "__main__":
    unittest.main()
