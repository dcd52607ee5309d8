import logging
import math
from typing import Union

import jax
import jax.numpy as jnp
import numpy as np
from jax import jit, lax

from .cartesian_state import CartesianState
from .constants import HELIOCENTRIC, TWO_PI
from .errors import InvalidConfigurationError
from .frames import FramedElements, StateVector
from .kepler import (
    _mean_motion, propagate_mean_anomaly,
    solve_kepler_elliptic, solve_kepler_hyperbolic,
    eccentric_to_true_anomaly, true_to_eccentric_anomaly,
    hyperbolic_to_true_anomaly, true_to_hyperbolic_anomaly,
    hyperbolic_true_anomaly_limit,
)
from .orbital_elements import OrbitalElements

logger = logging.getLogger(__name__)

# Semi-latus rectum floor (AU)
P_MIN = 1e-12

# Fraction of the asymptotic true anomaly a hyperbolic state may reach
NU_LIMIT_MARGIN = 1e-9

# Band around e = 1 classified as parabolic; a comes from p / (1 - e^2) inside it
PARABOLIC_BAND = 1e-4

# Closest a converted eccentricity may come to exactly 1
PARABOLIC_EPS = 1e-12

# Relative tolerance below which node and eccentricity vectors are degenerate
DEGENERATE_TOL = 1e-10


def _elliptic_true_anomaly(M, e):
    E = solve_kepler_elliptic(M, e).anomaly
    return jnp.asarray(eccentric_to_true_anomaly(E, e), dtype=float)


def _hyperbolic_true_anomaly(M, e):
    H = solve_kepler_hyperbolic(M, e).anomaly
    nu = hyperbolic_to_true_anomaly(H, e)
    nu_max = hyperbolic_true_anomaly_limit(e) * (1.0 - NU_LIMIT_MARGIN)
    return jnp.asarray(jnp.clip(nu, -nu_max, nu_max), dtype=float)


@jit
def elements_to_cartesian(elements: OrbitalElements, t: float) -> CartesianState:
    """
    Convert orbital elements to a Cartesian state at time t.

    t is an absolute Julian date; the mean anomaly is propagated from
    elements.epoch. Elliptic and hyperbolic orbits are both supported, the
    branch is selected from the eccentricity.
    """
    a, e, i, Omega, omega, M0, epoch, mu = elements
    e = jnp.asarray(e, dtype=float)
    hyperbolic = e >= 1.0

    # Mean anomaly at time t
    n = _mean_motion(a, mu)
    M = jnp.asarray(propagate_mean_anomaly(M0, n, t - epoch, hyperbolic), dtype=float)

    # True anomaly
    nu = lax.cond(hyperbolic, _hyperbolic_true_anomaly, _elliptic_true_anomaly, M, e)

    # Distance
    p = jnp.maximum(a * (1.0 - e**2), P_MIN)
    cos_nu = jnp.cos(nu)
    sin_nu = jnp.sin(nu)
    r_mag = p / (1.0 + e * cos_nu)

    # Perifocal basis rotated by Rz(Omega) Rx(i) Rz(omega)
    cos_O, sin_O = jnp.cos(Omega), jnp.sin(Omega)
    cos_w, sin_w = jnp.cos(omega), jnp.sin(omega)
    cos_i, sin_i = jnp.cos(i), jnp.sin(i)

    P = jnp.array([
        cos_O * cos_w - sin_O * sin_w * cos_i,
        sin_O * cos_w + cos_O * sin_w * cos_i,
        sin_w * sin_i,
    ])
    Q = jnp.array([
        -cos_O * sin_w - sin_O * cos_w * cos_i,
        -sin_O * sin_w + cos_O * cos_w * cos_i,
        cos_w * sin_i,
    ])

    r = r_mag * (cos_nu * P + sin_nu * Q)
    v = jnp.sqrt(mu / p) * (-sin_nu * P + (e + cos_nu) * Q)

    return CartesianState(r=r, v=v)


# Positions of one body at many times
ephemeris = jit(jax.vmap(elements_to_cartesian, in_axes=(None, 0)))


def _angle_about(ref, vec, axis):
    """Signed angle from ref to vec measured counterclockwise about axis."""
    return jnp.arctan2(jnp.dot(jnp.cross(ref, vec), axis), jnp.dot(ref, vec))


@jit
def cartesian_to_elements(r, v, mu, t) -> OrbitalElements:
    """
    Convert a Cartesian state to orbital elements with epoch t.

    Degenerate geometry follows fixed conventions:
      - equatorial orbits (no node line) get Omega = 0 and omega is measured
        from +x
      - circular orbits get omega = 0 and the anomaly is measured from the
        node line, or from +x when the orbit is also equatorial
      - the eccentricity is kept as computed, except that it is moved
        PARABOLIC_EPS away from exactly 1; within PARABOLIC_BAND of 1 the
        semi-major axis is taken from the semi-latus rectum, so a < 0 exactly
        when e > 1 and a(1 - e^2) reproduces the input radius

    Hyperbolic true anomaly is signed: negative while approaching periapsis.
    """
    r = jnp.asarray(r, dtype=float)
    v = jnp.asarray(v, dtype=float)

    r_mag = jnp.linalg.norm(r)
    v2 = jnp.dot(v, v)
    r_dot_v = jnp.dot(r, v)

    # Angular momentum and node vectors
    h_vec = jnp.cross(r, v)
    h = jnp.linalg.norm(h_vec)
    has_h = h > 1e-15
    h_hat = jnp.where(has_h, h_vec / jnp.where(has_h, h, 1.0), jnp.array([0.0, 0.0, 1.0]))
    n_vec = jnp.array([-h_vec[1], h_vec[0], 0.0])
    n = jnp.linalg.norm(n_vec)
    inclined = n > DEGENERATE_TOL * jnp.maximum(h, 1e-300)

    # Eccentricity vector
    e_vec = ((v2 - mu / r_mag) * r - r_dot_v * v) / mu
    e_raw = jnp.linalg.norm(e_vec)
    eccentric = e_raw > DEGENERATE_TOL

    near_parabolic = jnp.abs(e_raw - 1.0) <= PARABOLIC_BAND
    e = jnp.where(jnp.abs(e_raw - 1.0) < PARABOLIC_EPS,
                  jnp.where(e_raw < 1.0, 1.0 - PARABOLIC_EPS, 1.0 + PARABOLIC_EPS),
                  e_raw)
    hyperbolic = e > 1.0

    # Semi-major axis from vis-viva, falling back to p / (1 - e^2) near e = 1
    # or when the energy sign disagrees with the eccentricity
    energy = v2 / 2.0 - mu / r_mag
    a_energy = -mu / (2.0 * energy)
    p = h**2 / mu
    a_latus = p / (1.0 - e**2)
    consistent = (jnp.where(hyperbolic, a_energy < 0.0, a_energy > 0.0)
                  & jnp.isfinite(a_energy) & ~near_parabolic)
    a = jnp.where(consistent, a_energy, a_latus)
    a = jnp.where(jnp.isfinite(a) & (a != 0.0), a, jnp.where(hyperbolic, -r_mag, r_mag))

    # Orientation
    i = jnp.arccos(jnp.clip(h_hat[2], -1.0, 1.0))
    Omega = jnp.where(inclined, jnp.mod(jnp.arctan2(n_vec[1], n_vec[0]), TWO_PI), 0.0)
    node_ref = jnp.where(inclined, n_vec, jnp.array([1.0, 0.0, 0.0]))
    omega = jnp.where(eccentric, jnp.mod(_angle_about(node_ref, e_vec, h_hat), TWO_PI), 0.0)

    # True anomaly from periapsis, or from the reference direction when circular
    anomaly_ref = jnp.where(eccentric, e_vec, node_ref)
    nu = _angle_about(anomaly_ref, r, h_hat)

    # Mean anomaly
    E = true_to_eccentric_anomaly(nu, e)
    M_elliptic = jnp.mod(E - e * jnp.sin(E), TWO_PI)
    H = true_to_hyperbolic_anomaly(nu, e)
    M_hyperbolic = e * jnp.sinh(H) - H
    M0 = jnp.where(hyperbolic, M_hyperbolic, M_elliptic)

    return OrbitalElements(a=a, e=e, i=i, Omega=Omega, omega=omega, M0=M0,
                           epoch=jnp.asarray(t, dtype=float), mu=jnp.asarray(mu, dtype=float))


def validate_elements(elements: OrbitalElements) -> OrbitalElements:
    """Host copy of elements, raising InvalidConfigurationError if unusable."""
    elements = elements.to_host()
    if not elements.is_finite():
        raise InvalidConfigurationError(f"orbital elements must be finite, got {elements}")
    if elements.a == 0.0:
        raise InvalidConfigurationError("semi-major axis must be non-zero")
    if elements.mu <= 0.0:
        raise InvalidConfigurationError(f"gravitational parameter must be positive, got {elements.mu}")
    if elements.e < 0.0:
        raise InvalidConfigurationError(f"eccentricity must be non-negative, got {elements.e}")
    if (elements.a > 0.0) != (elements.e < 1.0):
        raise InvalidConfigurationError(
            f"semi-major axis sign does not match eccentricity (a={elements.a}, e={elements.e})")
    return elements


def elements_to_state(elements: Union[OrbitalElements, FramedElements], t: float) -> StateVector:
    """
    Host-side state at time t, tagged with the frame of the elements.

    Args:
        elements: Bare elements (taken as heliocentric) or framed elements
        t: Julian date

    Raises:
        InvalidConfigurationError: Non-finite elements, a == 0, mu <= 0 or e < 0
    """
    frame = HELIOCENTRIC
    if not isinstance(elements, OrbitalElements):
        frame = elements.frame
        elements = elements.elements
    if not math.isfinite(t):
        raise InvalidConfigurationError(f"time must be finite, got {t}")
    elements = validate_elements(elements)
    r, v = jax.device_get(tuple(elements_to_cartesian(elements, t)))
    state = StateVector(r=np.asarray(r), v=np.asarray(v), frame=frame)
    if not state.is_finite():
        logger.warning("Non-finite state from elements %s at t=%.6f; using origin", elements, t)
        state = StateVector(r=np.zeros(3), v=np.zeros(3), frame=frame)
    return state


def state_to_elements(r, v, mu: float, t: float) -> OrbitalElements:
    """
    Host-side elements for a Cartesian state, with epoch t.

    Raises:
        InvalidConfigurationError: Non-finite state, zero radius or mu <= 0
    """
    r = np.asarray(r, dtype=float)
    v = np.asarray(v, dtype=float)
    if not (np.all(np.isfinite(r)) and np.all(np.isfinite(v))):
        raise InvalidConfigurationError("position and velocity must be finite")
    if not np.linalg.norm(r) > 0.0:
        raise InvalidConfigurationError("position must be non-zero")
    if not math.isfinite(mu) or mu <= 0.0:
        raise InvalidConfigurationError(f"gravitational parameter must be positive, got {mu}")
    if not math.isfinite(t):
        raise InvalidConfigurationError(f"time must be finite, got {t}")
    return cartesian_to_elements(r, v, mu, t).to_host()


def is_hyperbolic(elements: OrbitalElements) -> bool:
    return float(elements.e) >= 1.0


def orbit_type(elements: OrbitalElements) -> str:
    """'circular', 'elliptic', 'parabolic' or 'hyperbolic'."""
    e = float(elements.e)
    if e < 1e-6:
        return 'circular'
    if e < 1.0 - PARABOLIC_BAND:
        return 'elliptic'
    if e < 1.0 + PARABOLIC_BAND:
        return 'parabolic'
    return 'hyperbolic'


def periapsis(elements: OrbitalElements) -> float:
    """Periapsis distance |a| * |1 - e| (AU)."""
    return abs(float(elements.a)) * abs(1.0 - float(elements.e))


def apoapsis(elements: OrbitalElements) -> float:
    """Apoapsis distance a * (1 + e) (AU); infinite for open orbits."""
    if is_hyperbolic(elements):
        return math.inf
    return float(elements.a) * (1.0 + float(elements.e))


def orbital_period(elements: OrbitalElements) -> float:
    """Orbital period (days); infinite for open orbits."""
    if is_hyperbolic(elements):
        return math.inf
    return TWO_PI * math.sqrt(float(elements.a)**3 / float(elements.mu))


def specific_energy(elements: OrbitalElements) -> float:
    """Specific orbital energy -mu / 2a (AU^2/day^2)."""
    return -float(elements.mu) / (2.0 * float(elements.a))


def true_anomaly_at(elements: OrbitalElements, t: float) -> float:
    """True anomaly (radians) at Julian date t."""
    a, e, _, _, _, M0, epoch, mu = validate_elements(elements)
    hyperbolic = e >= 1.0
    M = propagate_mean_anomaly(M0, _mean_motion(a, mu), t - epoch, hyperbolic)
    if hyperbolic:
        return float(_hyperbolic_true_anomaly(M, e))
    return float(_elliptic_true_anomaly(M, e))
