"""
Tests for the configuration models.
"""
import unittest

from pydantic import ValidationError

from sailprop import SOIConfig, PredictorConfig, CacheConfig


class TestConfig(unittest.TestCase):

    def test_defaults(self):
        soi = SOIConfig()
        self.assertEqual(soi.exit_multiplier, 1.01)
        self.assertEqual(soi.cooldown_days, 0.1)

        predictor = PredictorConfig()
        self.assertEqual(predictor.duration_days, 60.0)
        self.assertEqual(predictor.steps, 200)
        self.assertEqual(predictor.max_distance, 10.0)
        self.assertEqual(predictor.min_distance, 0.01)
        self.assertEqual(predictor.soi_truncation_multiplier, 1.1)

        cache = CacheConfig()
        self.assertEqual(cache.ttl_seconds, 0.5)

    def test_rejects_invalid(self):
        for kwargs in [dict(exit_multiplier=0.9), dict(cooldown_days=-1.0),
                       dict(exit_multiplier=float('nan'))]:
            with self.assertRaises(ValidationError):
                SOIConfig(**kwargs)
        for kwargs in [dict(steps=0), dict(duration_days=0.0), dict(max_distance=float('inf')),
                       dict(min_distance=6.0), dict(extreme_eccentricity=1.0)]:
            with self.assertRaises(ValidationError):
                PredictorConfig(**kwargs)
        with self.assertRaises(ValidationError):
            CacheConfig(max_entries=0)

    def test_frozen_and_hashable(self):
        config = PredictorConfig(steps=50)
        with self.assertRaises(ValidationError):
            config.steps = 10
        self.assertEqual(hash(config), hash(PredictorConfig(steps=50)))


if __name__ == '__main__':
    unittest.main()
