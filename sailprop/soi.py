"""
Sphere of influence (SOI) transitions.

A ship is either heliocentric or inside the SOI of exactly one body. Entry
happens inside soi_radius, exit only beyond soi_radius * exit_multiplier, and
after any transition no further transition is evaluated until a cooldown has
elapsed. Together these keep a ship skimming the boundary from flickering
between frames.
"""
import logging
import math
from enum import Enum
from typing import NamedTuple, Optional

import numpy as np

from .astrodynamics import elements_to_state, state_to_elements
from .bodies import BodyCatalog, CelestialBody
from .config import SOIConfig
from .constants import HELIOCENTRIC, MU_SUN
from .errors import UnknownBodyReferenceError
from .frames import (
    FramedElements, Heliocentric, Planetocentric,
    helio_to_planetocentric, planetocentric_to_helio,
)

logger = logging.getLogger(__name__)


class SOIState(NamedTuple):
    """
    Attributes:
        is_in_soi: True while the ship is planetocentric
        current_body: Parent body id, or HELIOCENTRIC
        cooldown_until: Simulation time before which no transition is evaluated
    """
    is_in_soi: bool = False
    current_body: str = HELIOCENTRIC
    cooldown_until: float = -math.inf

    def cooldown_active(self, t: float) -> bool:
        return t < self.cooldown_until


class TransitionKind(str, Enum):
    ENTRY = 'entry'
    EXIT = 'exit'
    FAIL_OPEN = 'fail_open'


class Transition(NamedTuple):
    kind: TransitionKind
    body_id: str
    time: float


class EntryCandidate(NamedTuple):
    """
    Attributes:
        body_id: Body whose SOI is entered
        distance: Current distance from the body (AU)
        time_offset: Days from the query time until the entry point is reached
        position: Heliocentric entry point (AU)
    """
    body_id: str
    distance: float
    time_offset: float
    position: np.ndarray


class SOIUpdate(NamedTuple):
    soi_state: SOIState
    framed: FramedElements
    transition: Optional[Transition] = None


def enter_soi(framed: Heliocentric, body: CelestialBody, t: float) -> Planetocentric:
    """Re-express heliocentric elements about body at time t."""
    ship = elements_to_state(framed, t)
    parent = body.get_state(t)
    relative = helio_to_planetocentric(ship, parent.r, parent.v, body.id)
    return Planetocentric(body.id, state_to_elements(relative.r, relative.v, body.mu, t))


def exit_soi(framed: Planetocentric, body: CelestialBody, t: float) -> Heliocentric:
    """Re-express planetocentric elements about the Sun at time t."""
    ship = elements_to_state(framed, t)
    parent = body.get_state(t)
    helio = planetocentric_to_helio(ship, parent.r, parent.v)
    return Heliocentric(state_to_elements(helio.r, helio.v, MU_SUN, t))


def fail_open(framed: FramedElements, t: float) -> Heliocentric:
    """
    Heliocentric stand-in for elements whose parent cannot be resolved.

    The state relative to the missing parent is reinterpreted as heliocentric
    and re-derived with the Sun's mu. The result is degraded but usable.
    """
    state = elements_to_state(framed, t)
    if state.distance == 0.0:
        return Heliocentric(framed.elements._replace(mu=MU_SUN))
    return Heliocentric(state_to_elements(state.r, state.v, MU_SUN, t))


def _segment_sphere_entry(offset: np.ndarray, segment: np.ndarray, radius: float) -> Optional[float]:
    """
    Fraction s in [0, 1] at which offset + s * segment first reaches the
    sphere of the given radius, or None if the segment misses it.
    """
    A = segment @ segment
    if A == 0.0:
        return None
    B = 2.0 * (offset @ segment)
    C = offset @ offset - radius**2
    disc = B * B - 4.0 * A * C
    if disc < 0.0:
        return None
    s = (-B - math.sqrt(disc)) / (2.0 * A)
    if 0.0 <= s <= 1.0:
        return s
    return None


class SOIManager:
    """
    Decides SOI entry and exit and performs the frame conversions.

    Args:
        catalog: Bodies that may capture the ship
        config: Hysteresis and cooldown settings
    """

    def __init__(self, catalog: BodyCatalog, config: Optional[SOIConfig] = None):
        self.catalog = catalog
        self.config = config or SOIConfig()

    def detect_entry(self, position, t: float, velocity=None, dt: float = 0.0) -> Optional[EntryCandidate]:
        """
        Find the SOI a heliocentric ship is in, or will enter within dt.

        A body qualifies when the ship is inside its SOI, or when velocity and
        dt are given and the straight segment position -> position + velocity*dt
        crosses the SOI sphere. The earliest entry wins; among bodies entered at
        the same time the nearest wins, then the larger mu, then the smaller id.
        """
        position = np.asarray(position, dtype=float)
        segment = None
        if velocity is not None and dt > 0.0:
            segment = np.asarray(velocity, dtype=float) * dt

        candidates = []
        for body in self.catalog.with_soi():
            if body.mu <= 0.0:
                continue
            offset = position - body.position(t)
            distance = float(np.linalg.norm(offset))
            if distance < body.soi_radius:
                candidates.append((0.0, distance, -body.mu, body.id, position))
            elif segment is not None:
                s = _segment_sphere_entry(offset, segment, body.soi_radius)
                if s is not None:
                    candidates.append((s * dt, distance, -body.mu, body.id, position + s * segment))

        if not candidates:
            return None
        time_offset, distance, _, body_id, entry_point = min(candidates, key=lambda c: c[:4])
        return EntryCandidate(body_id=body_id, distance=distance, time_offset=time_offset,
                              position=entry_point)

    def should_exit(self, relative_position, body_id: str) -> bool:
        """
        True once the planetocentric distance reaches soi_radius * exit_multiplier.

        Raises:
            UnknownBodyReferenceError: body_id is not in the catalog
        """
        body = self.catalog.get(body_id)
        if not body.has_soi:
            return True
        distance = float(np.linalg.norm(relative_position))
        return distance >= body.soi_radius * self.config.exit_multiplier

    def update(self, soi_state: SOIState, framed: FramedElements, t: float, dt: float = 0.0) -> SOIUpdate:
        """
        Evaluate SOI transitions at time t.

        The frame tag of the elements is authoritative; an SOIState that
        disagrees with it is resynchronized and logged. With dt > 0 a
        heliocentric ship is also captured by an SOI it would cross during the
        next dt, at the crossing time.
        """
        if soi_state.cooldown_active(t):
            return SOIUpdate(soi_state, framed)

        if isinstance(framed, Planetocentric):
            if not soi_state.is_in_soi or soi_state.current_body != framed.parent_id:
                logger.warning("SOI state %s disagrees with frame %s; following the frame",
                               soi_state.current_body, framed.parent_id)
                soi_state = soi_state._replace(is_in_soi=True, current_body=framed.parent_id)
            return self._update_planetocentric(soi_state, framed, t)

        if soi_state.is_in_soi:
            logger.warning("SOI state %s disagrees with heliocentric frame; following the frame",
                           soi_state.current_body)
            soi_state = soi_state._replace(is_in_soi=False, current_body=HELIOCENTRIC)
        return self._update_heliocentric(soi_state, framed, t, dt)

    def _update_planetocentric(self, soi_state, framed, t):
        try:
            body = self.catalog.get(framed.parent_id)
        except UnknownBodyReferenceError as err:
            logger.error("%s; falling back to heliocentric frame", err)
            new_state = SOIState(False, HELIOCENTRIC, soi_state.cooldown_until)
            return SOIUpdate(new_state, fail_open(framed, t),
                             Transition(TransitionKind.FAIL_OPEN, framed.parent_id, t))

        state = elements_to_state(framed, t)
        if not self.should_exit(state.r, body.id):
            return SOIUpdate(soi_state, framed)

        logger.info("Exiting SOI of %s at t=%.6f (distance %.6g AU)", body.id, t, state.distance)
        new_state = SOIState(False, HELIOCENTRIC, t + self.config.cooldown_days)
        return SOIUpdate(new_state, exit_soi(framed, body, t),
                         Transition(TransitionKind.EXIT, body.id, t))

    def _update_heliocentric(self, soi_state, framed, t, dt):
        state = elements_to_state(framed, t)
        candidate = self.detect_entry(state.r, t, state.v if dt > 0.0 else None, dt)
        if candidate is None:
            return SOIUpdate(soi_state, framed)

        body = self.catalog.get(candidate.body_id)
        t_entry = t + candidate.time_offset
        logger.info("Entering SOI of %s at t=%.6f", body.id, t_entry)
        new_state = SOIState(True, body.id, t_entry + self.config.cooldown_days)
        return SOIUpdate(new_state, enter_soi(framed, body, t_entry),
                         Transition(TransitionKind.ENTRY, body.id, t_entry))
