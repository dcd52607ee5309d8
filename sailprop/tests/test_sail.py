"""
Tests for the solar sail thrust model.
"""
import math
import unittest

import numpy as np
import pytest
from pydantic import ValidationError

from sailprop import (
    SailConfiguration,
    InvalidConfigurationError,
    solar_pressure,
    sail_force,
    thrust_direction,
    sail_acceleration,
)
from sailprop.constants import ACCEL_CONVERSION, SOLAR_PRESSURE_1AU
from sailprop.sail import (
    characteristic_acceleration,
    optimal_sail_angle,
    estimate_delta_a_per_orbit,
    ecliptic_to_rtn,
    sail_thrust,
    sail_acceleration_coefficient,
)


def make_sail(**kwargs):
    params = dict(area=1.0e6, reflectivity=0.9, yaw=0.0, pitch=0.0,
                  deployment=100.0, condition=100.0, sail_count=1)
    params.update(kwargs)
    return SailConfiguration(**params)


class TestSailForce(unittest.TestCase):

    def test_closed_form_at_one_au(self):
        force = sail_force(make_sail(), 1.0)
        expected = 2.0 * 4.56e-6 * 1.0e6 * 0.9
        self.assertLess(abs(force - expected) / expected, 0.01)
        self.assertAlmostEqual(force, 8.208, places=6)

    def test_inverse_square(self):
        sail = make_sail()
        self.assertAlmostEqual(sail_force(sail, 0.5) / sail_force(sail, 1.0), 4.0, places=10)
        self.assertAlmostEqual(sail_force(sail, 2.0) / sail_force(sail, 1.0), 0.25, places=10)

    def test_pressure_floor(self):
        self.assertEqual(solar_pressure(0.001), solar_pressure(0.01))
        self.assertEqual(solar_pressure(0.0), solar_pressure(0.01))
        self.assertAlmostEqual(solar_pressure(1.0), SOLAR_PRESSURE_1AU)

    def test_inactive_sails_produce_nothing(self):
        for sail in [make_sail(deployment=0.0), make_sail(condition=0.0),
                     make_sail(area=0.0), make_sail(sail_count=0), make_sail(sail_count=-2)]:
            self.assertFalse(sail.is_active)
            self.assertEqual(sail_force(sail, 1.0), 0.0)

    def test_partial_deployment_and_condition(self):
        full = sail_force(make_sail(), 1.0)
        self.assertAlmostEqual(sail_force(make_sail(deployment=50.0), 1.0), 0.5 * full)
        self.assertAlmostEqual(sail_force(make_sail(deployment=50.0, condition=50.0), 1.0), 0.25 * full)

    def test_edge_on_sail(self):
        for yaw in [math.pi / 2.0, -math.pi / 2.0, 2.0, -3.0]:
            force = sail_force(make_sail(yaw=yaw), 1.0)
            self.assertGreaterEqual(force, 0.0)
            self.assertLess(force, 1e-20)
        force = sail_force(make_sail(pitch=math.pi / 2.0), 1.0)
        self.assertGreaterEqual(force, 0.0)
        self.assertLess(force, 1e-20)

    def test_angles_beyond_edge_on_are_clamped(self):
        full = sail_acceleration_coefficient(make_sail(), 1000.0)
        for angle in [2.0, -2.5, 4.0]:
            # cos^2 of the raw angle would leave a sizable force
            self.assertGreater(math.cos(angle)**2, 0.1)
            self.assertLess(sail_acceleration_coefficient(make_sail(yaw=angle), 1000.0), 1e-30 * full)
            self.assertLess(sail_acceleration_coefficient(make_sail(pitch=angle), 1000.0), 1e-30 * full)
        for name in ('yaw', 'pitch'):
            self.assertIn('clamped', SailConfiguration.model_fields[name].description)

    def test_attitude_scaling(self):
        full = sail_force(make_sail(), 1.0)
        force = sail_force(make_sail(yaw=0.6, pitch=0.2), 1.0)
        self.assertAlmostEqual(force, full * math.cos(0.6)**2 * math.cos(0.2)**2, places=12)


@pytest.mark.parametrize("count", range(1, 21))
def test_sail_count_linearity(count):
    single = sail_force(make_sail(yaw=0.6), 0.8)
    multi = sail_force(make_sail(yaw=0.6, sail_count=count), 0.8)
    assert abs(multi - count * single) <= 1e-12 * count * single


class TestSailConfiguration(unittest.TestCase):

    def test_clamping(self):
        sail = make_sail(reflectivity=1.5, deployment=150.0, condition=-5.0)
        self.assertEqual(sail.reflectivity, 1.0)
        self.assertEqual(sail.deployment, 100.0)
        self.assertEqual(sail.condition, 0.0)

    def test_non_finite_rejected(self):
        for field in ['area', 'reflectivity', 'yaw', 'pitch', 'deployment', 'condition']:
            with self.assertRaises(ValidationError):
                make_sail(**{field: float('nan')})
        with self.assertRaises(ValidationError):
            make_sail(area=float('inf'))
        with self.assertRaises(ValidationError):
            make_sail(area=-1.0)

    def test_frozen_and_hashable(self):
        sail = make_sail()
        with self.assertRaises(ValidationError):
            sail.yaw = 0.3
        self.assertEqual(hash(sail), hash(make_sail()))
        self.assertNotEqual(sail, make_sail(yaw=0.1))


class TestThrustDirection(unittest.TestCase):

    def setUp(self):
        self.r = np.array([1.0, 0.0, 0.0])
        self.v = np.array([0.0, 0.0172, 0.0])

    def test_axes(self):
        np.testing.assert_allclose(thrust_direction(self.r, self.v, 0.0, 0.0), [1.0, 0.0, 0.0], atol=1e-15)
        np.testing.assert_allclose(thrust_direction(self.r, self.v, math.pi / 2, 0.0), [0.0, 1.0, 0.0], atol=1e-15)
        np.testing.assert_allclose(thrust_direction(self.r, self.v, -math.pi / 2, 0.0), [0.0, -1.0, 0.0], atol=1e-15)
        np.testing.assert_allclose(thrust_direction(self.r, self.v, 0.0, math.pi / 2), [0.0, 0.0, 1.0], atol=1e-15)

    def test_unit_length(self):
        r = np.array([0.3, -0.9, 0.1])
        v = np.array([0.015, 0.004, -0.001])
        for yaw in np.linspace(-1.5, 1.5, 5):
            for pitch in np.linspace(-1.5, 1.5, 5):
                u = np.asarray(thrust_direction(r, v, yaw, pitch))
                self.assertAlmostEqual(np.linalg.norm(u), 1.0, places=12)

    def test_radial_motion_falls_back_to_z_normal(self):
        u = np.asarray(thrust_direction(self.r, np.array([0.01, 0.0, 0.0]), 0.0, math.pi / 2))
        np.testing.assert_allclose(u, [0.0, 0.0, 1.0], atol=1e-15)

    def test_acceleration_vector(self):
        sail = make_sail(area=3.0e6, yaw=0.6)
        mass = 10000.0
        a = sail_acceleration(sail, self.r, self.v, mass)
        expected = sail_force(sail, 1.0) / mass * ACCEL_CONVERSION
        self.assertAlmostEqual(np.linalg.norm(a) / expected, 1.0, places=12)
        # Positive yaw pushes prograde
        self.assertGreater(a[1], 0.0)
        self.assertAlmostEqual(sail_acceleration_coefficient(sail, mass), expected, places=15)

    def test_thrust_vector(self):
        sail = make_sail(yaw=0.3)
        f = sail_thrust(sail, self.r * 2.0, self.v)
        self.assertAlmostEqual(np.linalg.norm(f), sail_force(sail, 2.0), places=12)

    def test_invalid_mass(self):
        for mass in [0.0, -1.0, float('nan'), float('inf')]:
            with self.assertRaises(InvalidConfigurationError):
                sail_acceleration(make_sail(), self.r, self.v, mass)

    def test_inactive_sail_zero_vector(self):
        a = sail_acceleration(make_sail(deployment=0.0), self.r, self.v, 1000.0)
        np.testing.assert_array_equal(a, np.zeros(3))


class TestManeuverHelpers(unittest.TestCase):

    def test_characteristic_acceleration_scaling(self):
        base = characteristic_acceleration(1e6, 0.9, 10000.0)
        self.assertGreater(base, 0.0)
        self.assertAlmostEqual(characteristic_acceleration(2e6, 0.9, 10000.0) / base, 2.0)
        self.assertAlmostEqual(characteristic_acceleration(1e6, 0.9, 20000.0) / base, 0.5)
        self.assertAlmostEqual(characteristic_acceleration(1e6, 0.45, 10000.0) / base, 0.5)

    def test_optimal_angle(self):
        angle = optimal_sail_angle()
        self.assertAlmostEqual(math.degrees(angle), 35.264, places=3)
        # maximizes cos^2 sin
        f = lambda x: math.cos(x)**2 * math.sin(x)
        self.assertGreater(f(angle), f(angle - 0.01))
        self.assertGreater(f(angle), f(angle + 0.01))

    def test_delta_a_sign(self):
        accel = characteristic_acceleration(3e6, 0.9, 10000.0)
        self.assertGreater(estimate_delta_a_per_orbit(1.0, accel, 0.6), 0.0)
        self.assertLess(estimate_delta_a_per_orbit(1.0, accel, -0.6), 0.0)
        self.assertEqual(estimate_delta_a_per_orbit(1.0, accel, 0.0), 0.0)

    def test_ecliptic_to_rtn(self):
        r = [1.0, 0.0, 0.0]
        v = [0.0, 0.0172, 0.0]
        np.testing.assert_allclose(ecliptic_to_rtn([1.0, 0.0, 0.0], r, v), [1.0, 0.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(ecliptic_to_rtn([0.0, 1.0, 0.0], r, v), [0.0, 1.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(ecliptic_to_rtn([0.0, 0.0, 1.0], r, v), [0.0, 0.0, 1.0], atol=1e-12)
        rtn = ecliptic_to_rtn([0.5, 0.5, 0.7071], r, v)
        self.assertAlmostEqual(np.linalg.norm(rtn), np.linalg.norm([0.5, 0.5, 0.7071]))


if __name__ == '__main__':
    unittest.main()
