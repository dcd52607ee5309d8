"""
Reference frame tagging for orbital elements and Cartesian states.

A ship's elements are either heliocentric or planetocentric about a named
parent body. The tag travels with the elements so that the frame can never be
inferred from stale side state.
"""
from typing import NamedTuple, Union

import numpy as np

from .constants import HELIOCENTRIC
from .orbital_elements import OrbitalElements


class StateVector(NamedTuple):
    """
    Host-side position and velocity tagged with the frame they are expressed in.

    Attributes:
        r: Position [x, y, z] (AU)
        v: Velocity [vx, vy, vz] (AU/day)
        frame: HELIOCENTRIC or the id of the parent body
    """
    r: np.ndarray
    v: np.ndarray
    frame: str = HELIOCENTRIC

    @property
    def distance(self) -> float:
        return float(np.linalg.norm(self.r))

    @property
    def speed(self) -> float:
        return float(np.linalg.norm(self.v))

    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(self.r)) and np.all(np.isfinite(self.v)))


class Heliocentric(NamedTuple):
    """Elements about the Sun."""
    elements: OrbitalElements

    @property
    def frame(self) -> str:
        return HELIOCENTRIC


class Planetocentric(NamedTuple):
    """Elements about the body identified by parent_id."""
    parent_id: str
    elements: OrbitalElements

    @property
    def frame(self) -> str:
        return self.parent_id


FramedElements = Union[Heliocentric, Planetocentric]


def helio_to_planetocentric(state: StateVector, parent_r, parent_v, parent_id: str) -> StateVector:
    """
    Express a heliocentric state relative to a parent body.

    Args:
        state: Heliocentric ship state
        parent_r: Heliocentric position of the parent (AU)
        parent_v: Heliocentric velocity of the parent (AU/day)
        parent_id: Id used to tag the result
    """
    return StateVector(
        r=np.asarray(state.r, dtype=float) - np.asarray(parent_r, dtype=float),
        v=np.asarray(state.v, dtype=float) - np.asarray(parent_v, dtype=float),
        frame=parent_id,
    )


def planetocentric_to_helio(state: StateVector, parent_r, parent_v) -> StateVector:
    """Inverse of helio_to_planetocentric."""
    return StateVector(
        r=np.asarray(state.r, dtype=float) + np.asarray(parent_r, dtype=float),
        v=np.asarray(state.v, dtype=float) + np.asarray(parent_v, dtype=float),
        frame=HELIOCENTRIC,
    )
