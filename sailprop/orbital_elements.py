"""
Orbital elements representation for ships and celestial bodies.
"""
import math
from typing import NamedTuple

import jax


class OrbitalElements(NamedTuple):
    """
    Keplerian orbital elements about a central body.

    All angular quantities are in radians. The gravitational parameter of the
    central body travels with the elements so that a stale value can never be
    picked up after a change of reference frame.

    Attributes:
        a: Semi-major axis (AU), negative for hyperbolic orbits
        e: Eccentricity (dimensionless)
        i: Inclination relative to the ecliptic (radians)
        Omega: Longitude of the ascending node (radians)
        omega: Argument of periapsis (radians)
        M0: Mean anomaly at epoch (radians)
        epoch: Julian date at which M0 is valid
        mu: Gravitational parameter of the central body (AU^3/day^2)

    Note:
        - For elliptical orbits: 0 ≤ e < 1 and a > 0
        - For hyperbolic orbits: e > 1 and a < 0
        - Elements are replaced wholesale, never patched field by field
    """
    a: float  # semi-major axis (AU)
    e: float  # eccentricity
    i: float  # inclination (rad)
    Omega: float  # longitude of ascending node (rad)
    omega: float  # argument of periapsis (rad)
    M0: float  # mean anomaly at epoch (rad)
    epoch: float  # Julian date
    mu: float  # gravitational parameter (AU^3/day^2)

    def to_host(self) -> 'OrbitalElements':
        """Return a copy whose fields are plain python floats."""
        return OrbitalElements(*(float(x) for x in jax.device_get(tuple(self))))

    def is_finite(self) -> bool:
        """Check that every element is a finite number."""
        return all(math.isfinite(x) for x in self.to_host())
