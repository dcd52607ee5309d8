"""
Encounter detection on predicted trajectories.

Trajectories are treated as piecewise-linear between samples. Body motion
within a segment is also taken as linear, which is accurate enough at the
default sampling for the planets.
"""
import logging
import math
from typing import Iterable, List, NamedTuple, Optional

import numpy as np

from .bodies import CelestialBody
from .trajectory import Trajectory

logger = logging.getLogger(__name__)

# Bodies more eccentric than this are also checked at perihelion and aphelion
ECCENTRICITY_THRESHOLD = 0.05


class Encounter(NamedTuple):
    body_id: str
    time: float
    distance: float
    ship_position: np.ndarray
    body_position: np.ndarray


class OrbitCrossing(NamedTuple):
    body_id: str
    time: float
    radius: float
    ship_position: np.ndarray
    body_position: np.ndarray


def segment_closest_approach(p1, p2, b1, b2):
    """
    Closest approach between two linearly moving points over one segment.

    Minimizes |W + s V| over s in [0, 1] with W = p1 - b1 and
    V = (p2 - p1) - (b2 - b1).

    Returns:
        (s, distance, ship_position, body_position)
    """
    W = p1 - b1
    ship_delta = p2 - p1
    body_delta = b2 - b1
    V = ship_delta - body_delta
    VV = V @ V
    if VV < 1e-20:
        s = 0.0
    else:
        s = min(max(-(W @ V) / VV, 0.0), 1.0)
    ship = p1 + s * ship_delta
    body = b1 + s * body_delta
    return s, float(np.linalg.norm(ship - body)), ship, body


def closest_approach(trajectory: Trajectory, body: CelestialBody) -> Optional[Encounter]:
    """Closest approach of the trajectory to body, or None for fewer than 2 samples."""
    if len(trajectory.samples) < 2:
        return None
    positions = trajectory.positions()
    times = trajectory.times()
    body_positions = body.positions(times)

    best = None
    for k in range(len(times) - 1):
        s, distance, ship, body_r = segment_closest_approach(
            positions[k], positions[k + 1], body_positions[k], body_positions[k + 1])
        if best is None or distance < best.distance:
            t = times[k] + s * (times[k + 1] - times[k])
            best = Encounter(body_id=body.id, time=float(t), distance=distance,
                             ship_position=ship, body_position=body_r)
    return best


def _radius_crossing(p1, p2, r1, r2, radius) -> Optional[float]:
    """Fraction along p1 -> p2 at which |p| = radius, if the segment straddles it."""
    if not ((r1 < radius < r2) or (r2 < radius < r1)):
        return None
    d = p2 - p1
    A = d @ d
    if A < 1e-20:
        return None
    B = 2.0 * (p1 @ d)
    C = r1 * r1 - radius * radius
    disc = B * B - 4.0 * A * C
    if disc < 0.0:
        return None
    sqrt_disc = math.sqrt(disc)
    for s in ((-B - sqrt_disc) / (2.0 * A), (-B + sqrt_disc) / (2.0 * A)):
        if 0.0 <= s <= 1.0:
            return s
    # roundoff at a segment end
    return (radius - r1) / (r2 - r1)


def orbit_crossings(trajectory: Trajectory, body: CelestialBody,
                    after: float = -math.inf) -> List[OrbitCrossing]:
    """
    Points where the trajectory crosses the orbital radius of body.

    The semi-major axis is always checked; for eccentric orbits perihelion and
    aphelion are checked as well when they differ from it by more than 0.01 AU.
    The crossing is solved exactly on the linear segment, and the body position
    is evaluated from its ephemeris at the crossing time.

    Args:
        trajectory: Predicted path
        body: Body whose orbit is tested
        after: Ignore segments ending before this Julian date
    """
    if len(trajectory.samples) < 2:
        return []
    a, e = body.elements.a, body.elements.e
    radii = [a]
    if e > ECCENTRICITY_THRESHOLD:
        for r in (a * (1.0 - e), a * (1.0 + e)):
            if abs(r - a) > 0.01:
                radii.append(r)

    positions = trajectory.positions()
    times = trajectory.times()
    distances = np.linalg.norm(positions, axis=1)

    found = []
    seen = set()
    for k in range(len(times) - 1):
        if times[k + 1] < after:
            continue
        for radius in radii:
            s = _radius_crossing(positions[k], positions[k + 1], distances[k], distances[k + 1], radius)
            if s is None:
                continue
            t = float(times[k] + s * (times[k + 1] - times[k]))
            key = round(t * 1000)
            if key in seen:
                continue
            seen.add(key)
            found.append((t, radius, positions[k] + s * (positions[k + 1] - positions[k])))

    crossings = []
    if found:
        body_positions = body.positions([t for t, _, _ in found])
        for (t, radius, ship), body_r in zip(found, body_positions):
            if not np.all(np.isfinite(body_r)):
                continue
            crossings.append(OrbitCrossing(body_id=body.id, time=t, radius=radius,
                                           ship_position=ship, body_position=body_r))
    return crossings


def detect_intersections(trajectory: Trajectory, bodies: Iterable[CelestialBody],
                         current_time: float = -math.inf, soi_body: Optional[str] = None,
                         limit: int = 20) -> List[OrbitCrossing]:
    """
    Orbit crossings of all bodies, in time order.

    Args:
        trajectory: Predicted path
        bodies: Bodies to test
        current_time: Crossings in segments that end before this are skipped
        soi_body: When set, only this body is tested
        limit: Maximum number of crossings returned
    """
    crossings = []
    for body in bodies:
        if soi_body is not None and body.id != soi_body:
            continue
        crossings.extend(orbit_crossings(trajectory, body, after=current_time))
    crossings.sort(key=lambda c: c.time)
    logger.debug("Found %d orbit crossings", len(crossings))
    return crossings[:limit]
