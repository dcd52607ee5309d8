"""
Tests for thrust kicks applied to orbital elements.
"""
import math
import unittest

import numpy as np
import pytest

from sailprop import (
    OrbitalElements,
    SailConfiguration,
    InvalidConfigurationError,
    apply_thrust,
    apply_sail_thrust,
    elements_to_state,
)
from sailprop.constants import J2000, MU_SUN


EARTH_LIKE = OrbitalElements(a=1.0, e=0.0167, i=0.0, Omega=0.0, omega=1.8, M0=0.3,
                             epoch=J2000, mu=MU_SUN)
ECCENTRIC = OrbitalElements(a=1.8, e=0.45, i=0.3, Omega=2.0, omega=0.7, M0=4.0,
                            epoch=J2000, mu=MU_SUN)


@pytest.mark.parametrize("magnitude", [1e-12, 1e-9, 1e-6, 1e-4, 1e-3])
@pytest.mark.parametrize("elements", [EARTH_LIKE, ECCENTRIC])
def test_position_continuous_across_kick(elements, magnitude):
    t = J2000 + 12.5
    direction = np.array([0.3, -0.8, 0.52])
    direction /= np.linalg.norm(direction)
    before = elements_to_state(elements, t)

    kicked = apply_thrust(elements, magnitude * direction, 1.0, t)
    after = elements_to_state(kicked, t)

    assert kicked.epoch == t
    assert np.linalg.norm(after.r - before.r) < 1e-9 * max(1.0, before.distance)
    dv = after.v - before.v
    np.testing.assert_allclose(dv, magnitude * direction, atol=1e-12)


CIRCULAR = OrbitalElements(a=1.0, e=0.0, i=0.0, Omega=0.0, omega=0.0, M0=0.0, epoch=J2000, mu=MU_SUN)


@pytest.mark.parametrize("excess", [-5e-5, -1e-7, 0.0, 1e-7, 5e-5])
def test_position_continuous_across_kick_to_escape_speed(excess):
    # v**2 = (2 + excess) * mu / r lands the kicked orbit next to e = 1
    before = elements_to_state(CIRCULAR, J2000)
    speed = np.linalg.norm(before.v)
    target = math.sqrt((2.0 + excess) * MU_SUN / before.distance)
    prograde = before.v / speed

    kicked = apply_thrust(CIRCULAR, (target - speed) * prograde, 1.0, J2000)
    after = elements_to_state(kicked, J2000)

    assert abs(kicked.e - 1.0) < 1e-4
    assert (kicked.a < 0.0) == (kicked.e > 1.0)
    assert np.linalg.norm(after.r - before.r) < 1e-9
    np.testing.assert_allclose(after.v, target * prograde, atol=1e-12)


class TestApplyThrust(unittest.TestCase):

    def test_below_floor_returns_input(self):
        kicked = apply_thrust(EARTH_LIKE, [1e-22, 0.0, 0.0], 1.0, J2000 + 3.0)
        self.assertIs(kicked, EARTH_LIKE)
        kicked = apply_thrust(EARTH_LIKE, [1e-8, 0.0, 0.0], 1.0, J2000 + 3.0, floor=1e-6)
        self.assertIs(kicked, EARTH_LIKE)

    def test_prograde_thrust_raises_semi_major_axis(self):
        t = J2000 + 5.0
        state = elements_to_state(EARTH_LIKE, t)
        prograde = state.v / np.linalg.norm(state.v)
        raised = apply_thrust(EARTH_LIKE, 1e-6 * prograde, 1.0, t)
        lowered = apply_thrust(EARTH_LIKE, -1e-6 * prograde, 1.0, t)
        self.assertGreater(raised.a, EARTH_LIKE.a)
        self.assertLess(lowered.a, EARTH_LIKE.a)

    def test_escape_produces_hyperbola(self):
        t = J2000
        state = elements_to_state(EARTH_LIKE, t)
        prograde = state.v / np.linalg.norm(state.v)
        escaped = apply_thrust(EARTH_LIKE, 0.01 * prograde, 1.0, t)
        self.assertGreater(escaped.e, 1.0)
        self.assertLess(escaped.a, 0.0)
        after = elements_to_state(escaped, t)
        np.testing.assert_allclose(after.r, state.r, atol=1e-9)

    def test_invalid_step(self):
        with self.assertRaises(InvalidConfigurationError):
            apply_thrust(EARTH_LIKE, [1e-6, 0.0, 0.0], float('nan'), J2000)
        with self.assertRaises(InvalidConfigurationError):
            apply_thrust(EARTH_LIKE, [1e-6, 0.0, 0.0], 1.0, float('inf'))


class TestApplySailThrust(unittest.TestCase):

    def setUp(self):
        self.sail = SailConfiguration(area=3.0e6, reflectivity=0.9, yaw=0.6)
        self.mass = 10000.0

    def test_stowed_sail_leaves_elements(self):
        stowed = self.sail.model_copy(update={'deployment': 0.0})
        self.assertIs(apply_sail_thrust(EARTH_LIKE, stowed, self.mass, 1.0, J2000), EARTH_LIKE)

    def test_prograde_yaw_raises_orbit(self):
        elements = EARTH_LIKE
        t = J2000
        for _ in range(10):
            elements = apply_sail_thrust(elements, self.sail, self.mass, 1.0, t)
            t += 1.0
        self.assertGreater(elements.a, EARTH_LIKE.a)
        self.assertEqual(elements.epoch, J2000 + 9.0)

    def test_position_continuous(self):
        t = J2000 + 2.0
        before = elements_to_state(ECCENTRIC, t)
        after = elements_to_state(apply_sail_thrust(ECCENTRIC, self.sail, self.mass, 1.0, t), t)
        np.testing.assert_allclose(after.r, before.r, atol=1e-9)

    def test_distance_override(self):
        t = J2000
        nominal = apply_sail_thrust(EARTH_LIKE, self.sail, self.mass, 1.0, t)
        closer = apply_sail_thrust(EARTH_LIKE, self.sail, self.mass, 1.0, t, distance=0.5)
        # Four times the pressure at half the distance
        self.assertGreater(closer.a - EARTH_LIKE.a, 3.0 * (nominal.a - EARTH_LIKE.a))

    def test_frame_offset_uses_heliocentric_direction(self):
        # A tiny planetocentric orbit: the kick direction follows the parent's
        # heliocentric position and velocity, not the local state
        local = OrbitalElements(a=0.005, e=0.1, i=0.2, Omega=0.0, omega=0.0, M0=1.0,
                                epoch=J2000, mu=8.887692445e-10)
        t = J2000
        parent_r = np.array([1.0, 0.0, 0.0])
        parent_v = np.array([0.0, math.sqrt(MU_SUN), 0.0])
        sail = self.sail.model_copy(update={'yaw': 0.0})
        before = elements_to_state(local, t)
        kicked = apply_sail_thrust(local, sail, self.mass, 0.1, t, distance=1.0,
                                   frame_offset=(parent_r, parent_v))
        after = elements_to_state(kicked, t)
        dv = after.v - before.v
        # Sun-facing sail at yaw 0 pushes along the heliocentric radial (+x)
        self.assertGreater(dv[0], 0.0)
        self.assertLess(abs(dv[1]), 1e-2 * dv[0])
        self.assertLess(abs(dv[2]), 1e-2 * dv[0])

    def test_invalid_mass(self):
        with self.assertRaises(InvalidConfigurationError):
            apply_sail_thrust(EARTH_LIKE, self.sail, 0.0, 1.0, J2000)


if __name__ == '__main__':
    unittest.main()
