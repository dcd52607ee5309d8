"""
Continuous thrust applied as small velocity kicks.

Each kick holds the position fixed, adds a*dt to the velocity and re-derives
the orbital elements with the epoch moved to the kick time. Position is
therefore continuous across every kick by construction.
"""
import logging
import math
from typing import NamedTuple, Optional

import jax
import jax.numpy as jnp
import numpy as np
from jax import jit

from .astrodynamics import cartesian_to_elements, elements_to_cartesian
from .cartesian_state import CartesianState
from .errors import InvalidConfigurationError
from .orbital_elements import OrbitalElements
from .sail import SailConfiguration, _clamp_angle, acceleration_vector, sail_acceleration_coefficient

logger = logging.getLogger(__name__)

# Accelerations below this (AU/day^2) leave the elements untouched
THRUST_FLOOR = 1e-20


class SailStep(NamedTuple):
    """
    Output of one fused propagation/thrust kernel call.

    Attributes:
        state: State in the working frame at the step time
        acceleration: Heliocentric sail acceleration (AU/day^2)
        elements: Elements after the velocity kick, epoch = step time
    """
    state: CartesianState
    acceleration: jnp.ndarray
    elements: OrbitalElements


@jit
def _kick(elements: OrbitalElements, acceleration, dt, t):
    state = elements_to_cartesian(elements, t)
    kicked = cartesian_to_elements(state.r, state.v + acceleration * dt, elements.mu, t)
    return state, kicked


@jit
def sail_step(elements: OrbitalElements, t, dt, accel_ref, yaw, pitch,
              frame_r, frame_v, distance=0.0) -> SailStep:
    """
    Propagate to t and apply one sail kick of duration dt.

    The sail acceleration is evaluated from the heliocentric state, i.e. the
    working-frame state plus the parent offset (frame_r, frame_v), which is
    zero for heliocentric elements.
    """
    state = elements_to_cartesian(elements, t)
    acceleration = acceleration_vector(state.r + frame_r, state.v + frame_v,
                                       accel_ref, yaw, pitch, distance)
    kicked = cartesian_to_elements(state.r, state.v + acceleration * dt, elements.mu, t)
    return SailStep(state=state, acceleration=acceleration, elements=kicked)


def _check_step(dt: float, t: float):
    if not math.isfinite(dt) or not math.isfinite(t):
        raise InvalidConfigurationError(f"time step and time must be finite, got dt={dt}, t={t}")


def apply_thrust(elements: OrbitalElements, acceleration, dt: float, t: float,
                 floor: float = THRUST_FLOOR) -> OrbitalElements:
    """
    Apply a constant acceleration for dt at fixed position.

    Args:
        elements: Current elements
        acceleration: Acceleration vector in the frame of the elements (AU/day^2)
        dt: Kick duration (days)
        t: Julian date of the kick; becomes the epoch of the result

    Returns:
        New elements, or the input elements when the acceleration is below
        floor or the state at t is not finite.
    """
    _check_step(dt, t)
    acceleration = np.asarray(acceleration, dtype=float)
    if not np.linalg.norm(acceleration) >= floor:
        return elements

    state, kicked = jax.device_get(_kick(elements, acceleration, dt, t))
    if not (np.all(np.isfinite(state.r)) and np.all(np.isfinite(state.v))):
        logger.warning("Non-finite state at t=%.6f, thrust not applied", t)
        return elements
    return kicked.to_host()


def apply_sail_thrust(elements: OrbitalElements, sail: SailConfiguration, mass: float,
                      dt: float, t: float, distance: Optional[float] = None,
                      frame_offset=None, floor: float = THRUST_FLOOR) -> OrbitalElements:
    """
    Apply the sail acceleration for dt.

    Args:
        elements: Current elements, heliocentric or about a parent body
        sail: Sail configuration
        mass: Ship mass (kg)
        dt: Kick duration (days)
        t: Julian date of the kick
        distance: Heliocentric distance (AU) for the pressure term. Defaults to
            the distance of the heliocentric state.
        frame_offset: (r, v) of the parent body when the elements are
            planetocentric, so that the thrust is computed heliocentrically

    Raises:
        InvalidConfigurationError: mass, dt or t invalid
    """
    _check_step(dt, t)
    accel_ref = sail_acceleration_coefficient(sail, mass)
    if accel_ref == 0.0:
        return elements

    if frame_offset is None:
        frame_r, frame_v = np.zeros(3), np.zeros(3)
    else:
        frame_r, frame_v = (np.asarray(x, dtype=float) for x in frame_offset)
    d = 0.0 if distance is None else float(distance)

    step = jax.device_get(sail_step(elements, t, dt, accel_ref,
                                    _clamp_angle(sail.yaw), _clamp_angle(sail.pitch),
                                    frame_r, frame_v, d))
    if not (np.all(np.isfinite(step.state.r)) and np.all(np.isfinite(step.state.v))):
        logger.warning("Non-finite state at t=%.6f, sail thrust not applied", t)
        return elements
    if not np.linalg.norm(step.acceleration) >= floor:
        return elements
    return step.elements.to_host()
