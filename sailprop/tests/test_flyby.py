"""
Tests for the flyby helpers.
"""
import math
import unittest

import numpy as np

from sailprop import (
    OrbitalElements,
    hyperbolic_excess_velocity,
    turning_angle,
    predict_gravity_assist,
    compute_v_infinity,
)
from sailprop.constants import J2000, MU_SUN
from sailprop.flyby import asymptotic_angle, b_plane_parameter

EARTH_MU = 8.887692445e-10


class TestFlyby(unittest.TestCase):

    def test_excess_velocity(self):
        hyperbola = OrbitalElements(a=-2.0, e=1.5, i=0.0, Omega=0.0, omega=0.0, M0=0.0,
                                    epoch=J2000, mu=MU_SUN)
        self.assertAlmostEqual(hyperbolic_excess_velocity(hyperbola), math.sqrt(MU_SUN / 2.0))
        self.assertEqual(hyperbolic_excess_velocity(hyperbola._replace(a=2.0, e=0.5)), 0.0)

    def test_turning_angle_limits(self):
        v_inf = 0.003
        self.assertAlmostEqual(turning_angle(v_inf, 0.0, EARTH_MU), math.pi)
        self.assertLess(turning_angle(v_inf, 1.0, EARTH_MU), 1e-3)
        self.assertEqual(turning_angle(0.0, 1e-4, EARTH_MU), 0.0)
        # Lower periapsis turns more
        self.assertGreater(turning_angle(v_inf, 5e-5, EARTH_MU), turning_angle(v_inf, 1e-4, EARTH_MU))

    def test_gravity_assist_preserves_relative_speed(self):
        v_planet = np.array([0.0, 0.0172, 0.0])
        v_approach = np.array([0.002, 0.015, 0.0005])
        assist = predict_gravity_assist(v_approach, 5e-5, v_planet, EARTH_MU)
        v_rel_in = v_approach - v_planet
        v_rel_out = assist.v_exit - v_planet
        self.assertAlmostEqual(np.linalg.norm(v_rel_out[:2]), np.linalg.norm(v_rel_in[:2]), places=14)
        self.assertAlmostEqual(v_rel_out[2], v_rel_in[2])
        expected = 2.0 * np.linalg.norm(v_rel_in[:2]) * math.sin(assist.turning_angle / 2.0)
        self.assertAlmostEqual(assist.delta_v, expected, places=12)

    def test_no_relative_velocity(self):
        v = np.array([0.0, 0.0172, 0.0])
        assist = predict_gravity_assist(v, 1e-4, v, EARTH_MU)
        self.assertEqual(assist.delta_v, 0.0)
        np.testing.assert_array_equal(assist.v_exit, v)

    def test_v_infinity_vector(self):
        v_inf, v_inf_mag = compute_v_infinity(np.array([0.01, 0.02, 0.0]), np.array([0.0, 0.02, 0.0]))
        np.testing.assert_allclose(v_inf, [0.01, 0.0, 0.0])
        self.assertAlmostEqual(float(v_inf_mag), 0.01)

    def test_geometry(self):
        self.assertAlmostEqual(asymptotic_angle(2.0), 2.0 * math.pi / 3.0)
        self.assertEqual(asymptotic_angle(0.5), 0.0)
        rp, v_inf = 1e-4, 0.003
        self.assertGreater(b_plane_parameter(v_inf, rp, EARTH_MU), rp)


if __name__ == '__main__':
    unittest.main()
