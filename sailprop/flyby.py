"""
Patched-conic flyby helpers.
"""
import math
from typing import NamedTuple, Tuple

import jax.numpy as jnp
import numpy as np
from jax import jit

from .kepler import hyperbolic_true_anomaly_limit
from .orbital_elements import OrbitalElements


class GravityAssist(NamedTuple):
    """
    Attributes:
        v_exit: Heliocentric velocity after the flyby (AU/day)
        delta_v: Magnitude of the velocity change (AU/day)
        turning_angle: Rotation of the excess velocity (radians)
    """
    v_exit: np.ndarray
    delta_v: float
    turning_angle: float


def hyperbolic_excess_velocity(elements: OrbitalElements) -> float:
    """
    v_inf = sqrt(-mu / a) for hyperbolic elements (AU/day).

    Bound and parabolic orbits have no excess velocity and return 0.
    """
    e = float(elements.e)
    if e < 1.0 or abs(e - 1.0) < 1e-10:
        return 0.0
    return math.sqrt(-float(elements.mu) / float(elements.a))


def turning_angle(v_inf: float, rp: float, mu: float) -> float:
    """
    Deflection of the excess velocity for a flyby with periapsis rp.

    delta = 2 asin(1 / (1 + rp v_inf^2 / mu))
    """
    if v_inf < 1e-15:
        return 0.0
    argument = 1.0 / (1.0 + rp * v_inf**2 / mu)
    return 2.0 * math.asin(min(max(argument, -1.0), 1.0))


def asymptotic_angle(e: float) -> float:
    """True anomaly of the asymptote, arccos(-1/e); 0 for bound orbits."""
    if e < 1.0:
        return 0.0
    return float(hyperbolic_true_anomaly_limit(e))


def b_plane_parameter(v_inf: float, rp: float, mu: float) -> float:
    """Impact parameter B (AU) from B^2 = rp^2 + 2 rp mu / v_inf^2."""
    return math.sqrt(rp**2 + 2.0 * rp * mu / v_inf**2)


@jit
def compute_v_infinity(v_sc: jnp.ndarray, v_body: jnp.ndarray) -> Tuple[jnp.ndarray, float]:
    """
    Compute hyperbolic excess velocity vector and magnitude.

    Returns:
        (v_infinity_vector, v_infinity_magnitude)
    """
    v_inf = v_sc - v_body
    v_inf_mag = jnp.linalg.norm(v_inf)
    return v_inf, v_inf_mag


def predict_gravity_assist(v_approach, rp: float, v_planet, mu: float) -> GravityAssist:
    """
    Exit velocity of an in-plane flyby.

    The planet-relative velocity is rotated about +z by the turning angle; the
    z component is left unchanged.

    Args:
        v_approach: Heliocentric ship velocity before the flyby (AU/day)
        rp: Periapsis distance (AU)
        v_planet: Heliocentric planet velocity (AU/day)
        mu: Gravitational parameter of the planet (AU^3/day^2)
    """
    v_approach = np.asarray(v_approach, dtype=float)
    v_planet = np.asarray(v_planet, dtype=float)
    v_rel = v_approach - v_planet
    v_inf = float(np.linalg.norm(v_rel))
    if v_inf < 1e-15:
        return GravityAssist(v_exit=v_approach.copy(), delta_v=0.0, turning_angle=0.0)

    delta = turning_angle(v_inf, rp, mu)
    cos_d, sin_d = math.cos(delta), math.sin(delta)
    rotated = np.array([
        v_rel[0] * cos_d - v_rel[1] * sin_d,
        v_rel[0] * sin_d + v_rel[1] * cos_d,
        v_rel[2],
    ])
    v_exit = rotated + v_planet
    return GravityAssist(v_exit=v_exit, delta_v=float(np.linalg.norm(v_exit - v_approach)),
                         turning_angle=delta)
