"""
Solar sail thrust model.

Thrust magnitude follows the flat-plate radiation pressure law

    F = 2 P(r) A cos^2(yaw) cos^2(pitch) reflectivity deployment condition count

and the direction is built in the local RTN frame from the yaw (in-plane) and
pitch (out-of-plane) angles.
"""
import math
from typing import Tuple

import jax
import jax.numpy as jnp
import numpy as np
from jax import jit
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import (
    ACCEL_CONVERSION, MIN_PRESSURE_DISTANCE, MU_SUN, R0, SOLAR_PRESSURE_1AU, TWO_PI,
)
from .errors import InvalidConfigurationError

HALF_PI = 0.5 * math.pi


class SailConfiguration(BaseModel):
    """
    Sail geometry and attitude. Owned by the caller and read-only here.
    """
    model_config = ConfigDict(frozen=True)

    area: float = Field(
        ...,
        ge=0.0,
        allow_inf_nan=False,
        description="Total sail area per sail in m^2"
    )
    reflectivity: float = Field(
        0.9,
        allow_inf_nan=False,
        description="Fraction of incident photons reflected, clamped to [0, 1]"
    )
    yaw: float = Field(
        0.0,
        allow_inf_nan=False,
        description=("In-plane angle from the sun line in radians; positive is prograde. "
                     "Values beyond +/-pi/2 are clamped to +/-pi/2, where the sail is "
                     "edge-on and gives no thrust")
    )
    pitch: float = Field(
        0.0,
        allow_inf_nan=False,
        description=("Out-of-plane angle in radians; positive is along the orbit normal. "
                     "Values beyond +/-pi/2 are clamped to +/-pi/2, where the sail is "
                     "edge-on and gives no thrust")
    )
    deployment: float = Field(
        100.0,
        allow_inf_nan=False,
        description="Deployed fraction in percent, clamped to [0, 100]"
    )
    condition: float = Field(
        100.0,
        allow_inf_nan=False,
        description="Sail health in percent, clamped to [0, 100]"
    )
    sail_count: int = Field(
        1,
        description="Number of identical sails; values below 1 produce no thrust"
    )

    @field_validator('reflectivity')
    @classmethod
    def clamp_reflectivity(cls, v):
        return min(max(v, 0.0), 1.0)

    @field_validator('deployment', 'condition')
    @classmethod
    def clamp_percent(cls, v):
        return min(max(v, 0.0), 100.0)

    @property
    def is_active(self) -> bool:
        """False when the sail cannot produce any thrust."""
        return (self.deployment > 0.0 and self.condition > 0.0
                and self.area > 0.0 and self.sail_count >= 1)


# Sail used when the caller does not supply one
DEFAULT_SAIL = SailConfiguration(area=3.0e6, reflectivity=0.9, yaw=0.6)


def _clamp_angle(angle: float) -> float:
    """Limit a sail angle to [-pi/2, pi/2]; the ends are edge-on."""
    return min(max(angle, -HALF_PI), HALF_PI)


def _check_mass(mass: float) -> float:
    if not math.isfinite(mass) or mass <= 0.0:
        raise InvalidConfigurationError(f"mass must be finite and positive, got {mass}")
    return float(mass)


def solar_pressure(distance: float) -> float:
    """
    Solar radiation pressure (N/m^2) at a heliocentric distance in AU.

    The distance is floored at MIN_PRESSURE_DISTANCE so the pressure stays
    bounded near the Sun.
    """
    r = max(distance, MIN_PRESSURE_DISTANCE)
    return SOLAR_PRESSURE_1AU * (R0 / r)**2


def _force_at_reference(sail: SailConfiguration) -> float:
    """Thrust magnitude (N) at R0 for the configured attitude."""
    if not sail.is_active:
        return 0.0
    cos2_yaw = min(max(math.cos(_clamp_angle(sail.yaw))**2, 0.0), 1.0)
    cos2_pitch = min(max(math.cos(_clamp_angle(sail.pitch))**2, 0.0), 1.0)
    return (2.0 * SOLAR_PRESSURE_1AU * sail.area * cos2_yaw * cos2_pitch
            * sail.reflectivity * (sail.deployment / 100.0) * (sail.condition / 100.0)
            * sail.sail_count)


def sail_force(sail: SailConfiguration, distance: float) -> float:
    """Thrust magnitude in newtons at a heliocentric distance (AU)."""
    force = _force_at_reference(sail)
    if force == 0.0:
        return 0.0
    return force * solar_pressure(distance) / SOLAR_PRESSURE_1AU


def sail_acceleration_coefficient(sail: SailConfiguration, mass: float) -> float:
    """
    Acceleration magnitude (AU/day^2) the sail produces at R0.

    Scaling this by (R0 / r)^2 gives the magnitude at distance r.
    """
    mass = _check_mass(mass)
    return _force_at_reference(sail) / mass * ACCEL_CONVERSION


@jit
def thrust_direction(r: jnp.ndarray, v: jnp.ndarray, yaw: float, pitch: float) -> jnp.ndarray:
    """
    Unit thrust direction in the heliocentric frame.

    The local frame is R (anti-sunward), N (orbit normal, +z when the angular
    momentum vanishes) and T = N x R. yaw rotates from R toward T, pitch
    rotates out of plane toward N.

    Args:
        r: heliocentric position (AU)
        v: heliocentric velocity (AU/day)
        yaw: in-plane angle (radians)
        pitch: out-of-plane angle (radians)
    """
    r_mag = jnp.linalg.norm(r)
    R = jnp.where(r_mag > 1e-10, r / jnp.where(r_mag > 1e-10, r_mag, 1.0),
                  jnp.array([1.0, 0.0, 0.0]))

    h = jnp.cross(r, v)
    h_mag = jnp.linalg.norm(h)
    N = jnp.where(h_mag > 1e-10, h / jnp.where(h_mag > 1e-10, h_mag, 1.0),
                  jnp.array([0.0, 0.0, 1.0]))
    T = jnp.cross(N, R)

    in_plane = jnp.cos(yaw) * R + jnp.sin(yaw) * T
    return jnp.cos(pitch) * in_plane + jnp.sin(pitch) * N


def acceleration_vector(r, v, accel_ref, yaw, pitch, distance=0.0):
    """
    Sail acceleration (AU/day^2) for use inside jitted kernels.

    Args:
        r, v: heliocentric state
        accel_ref: acceleration magnitude at R0, see sail_acceleration_coefficient
        yaw, pitch: sail angles (radians)
        distance: heliocentric distance for the pressure term; <= 0 uses |r|
    """
    d = jnp.where(distance > 0.0, distance, jnp.linalg.norm(r))
    scale = (R0 / jnp.maximum(d, MIN_PRESSURE_DISTANCE))**2
    return accel_ref * scale * thrust_direction(r, v, yaw, pitch)


def sail_acceleration(sail: SailConfiguration, r, v, mass: float) -> np.ndarray:
    """
    Heliocentric sail acceleration vector (AU/day^2).

    Raises:
        InvalidConfigurationError: mass is not finite and positive
    """
    accel_ref = sail_acceleration_coefficient(sail, mass)
    if accel_ref == 0.0:
        return np.zeros(3)
    a = acceleration_vector(jnp.asarray(r, dtype=float), jnp.asarray(v, dtype=float),
                            accel_ref, _clamp_angle(sail.yaw), _clamp_angle(sail.pitch))
    return np.asarray(jax.device_get(a))


def sail_thrust(sail: SailConfiguration, r, v) -> np.ndarray:
    """Heliocentric sail force vector (N)."""
    r = np.asarray(r, dtype=float)
    force = sail_force(sail, float(np.linalg.norm(r)))
    if force == 0.0:
        return np.zeros(3)
    u = thrust_direction(jnp.asarray(r), jnp.asarray(v, dtype=float),
                         _clamp_angle(sail.yaw), _clamp_angle(sail.pitch))
    return force * np.asarray(jax.device_get(u))


def characteristic_acceleration(area: float, reflectivity: float, mass: float) -> float:
    """Sun-facing acceleration (AU/day^2) of a single sail at 1 AU."""
    mass = _check_mass(mass)
    return 2.0 * SOLAR_PRESSURE_1AU * area * reflectivity / mass * ACCEL_CONVERSION


def optimal_sail_angle() -> float:
    """
    Yaw maximizing the transverse thrust component cos^2(yaw) sin(yaw).

    arctan(1/sqrt(2)), about 35.26 degrees.
    """
    return math.atan(1.0 / math.sqrt(2.0))


def estimate_delta_a_per_orbit(a: float, char_accel: float, sail_angle: float,
                               mu: float = MU_SUN) -> float:
    """
    Approximate change in semi-major axis (AU) over one circular orbit.

    Args:
        a: semi-major axis (AU)
        char_accel: characteristic acceleration at 1 AU (AU/day^2)
        sail_angle: yaw (radians)
        mu: gravitational parameter of the central body
    """
    period = TWO_PI * math.sqrt(a**3 / mu)
    tangential = char_accel / a**2 * math.cos(sail_angle) * math.sin(sail_angle)
    h = math.sqrt(mu * a)
    return 2.0 * a**2 / h * tangential * period


def ecliptic_to_rtn(vector, r, v) -> Tuple[float, float, float]:
    """Components of an ecliptic-frame vector along the local R, T and N axes."""
    r = np.asarray(r, dtype=float)
    v = np.asarray(v, dtype=float)
    u_r = r / np.linalg.norm(r)
    h = np.cross(r, v)
    u_n = h / np.linalg.norm(h)
    u_t = np.cross(u_n, u_r)
    vector = np.asarray(vector, dtype=float)
    return float(vector @ u_r), float(vector @ u_t), float(vector @ u_n)


def solar_sail_ode(t: float, y: np.ndarray, args) -> np.ndarray:
    """
    Derivatives for Keplerian motion with a fixed-attitude solar sail.
    y = [x, y, z, vx, vy, vz]
    args = (mu, accel_ref, yaw, pitch)

    Meant for reference integration with scipy.integrate.solve_ivp.
    """
    mu, accel_ref, yaw, pitch = args
    r = y[:3]
    v = y[3:]
    r_mag = np.linalg.norm(r)

    a_grav = -mu * r / r_mag**3
    a_sail = np.asarray(acceleration_vector(jnp.asarray(r), jnp.asarray(v), accel_ref, yaw, pitch))

    return np.concatenate([v, a_grav + a_sail])
