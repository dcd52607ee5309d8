import logging
import math
from typing import Dict, Iterable, Iterator, List, Optional

import jax
import numpy as np
import pydantic
from pydantic import ConfigDict, Field, field_validator

from .astrodynamics import elements_to_cartesian, ephemeris
from .cartesian_state import CartesianState
from .constants import J2000, KM_PER_AU, MU_SUN, TWO_PI
from .errors import UnknownBodyReferenceError
from .orbital_elements import OrbitalElements

logger = logging.getLogger(__name__)


class CelestialBody(pydantic.BaseModel):
    """
    A body that can own a sphere of influence.

    Attributes:
        id: Unique identifier used as the planetocentric frame tag (e.g. "EARTH")
        name: Display name
        mu: Gravitational parameter GM (AU^3/day^2)
        radius: Physical radius of the body (AU)
        soi_radius: Sphere of influence radius (AU); 0 disables capture
        elements: Heliocentric orbital elements of the body
    """
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)  # Allow OrbitalElements (NamedTuple)

    id: str
    name: str = ''
    mu: float = Field(..., ge=0.0, allow_inf_nan=False)
    radius: float = Field(0.0, ge=0.0, allow_inf_nan=False)
    soi_radius: float = Field(0.0, ge=0.0, allow_inf_nan=False)
    elements: OrbitalElements

    @field_validator('elements', mode='before')
    @classmethod
    def validate_elements(cls, v):
        v = OrbitalElements(*v).to_host()
        if not v.is_finite():
            raise ValueError("elements must be finite")
        return v

    def get_state(self, t: float) -> CartesianState:
        """
        Heliocentric Cartesian state of the body at Julian date t, in AU and AU/day.

        Examples:
            >>> state = earth.get_state(J2000)
        """
        r, v = jax.device_get(tuple(elements_to_cartesian(self.elements, t)))
        return CartesianState(r=np.asarray(r), v=np.asarray(v))

    def position(self, t: float) -> np.ndarray:
        """Heliocentric position (AU) at Julian date t."""
        return self.get_state(t).r

    def positions(self, times) -> np.ndarray:
        """Heliocentric positions (AU), shape (n, 3), at an array of Julian dates."""
        states = ephemeris(self.elements, np.asarray(times, dtype=float))
        return np.asarray(jax.device_get(states.r))

    @property
    def has_soi(self) -> bool:
        return self.soi_radius > 0.0


def laplace_soi_radius(a: float, mu_body: float, mu_central: float = MU_SUN) -> float:
    """Laplace sphere of influence radius r = a (mu_body / mu_central)^0.4."""
    return a * (mu_body / mu_central)**0.4


class BodyCatalog:
    """
    Mapping from body id to CelestialBody.

    The catalog is owned by the caller, who may replace bodies between calls.
    """

    def __init__(self, bodies: Iterable[CelestialBody] = ()):
        self._bodies: Dict[str, CelestialBody] = {}
        for body in bodies:
            self.add(body)

    def add(self, body: CelestialBody):
        """Add or replace a body."""
        self._bodies[body.id] = body

    def get(self, body_id: str) -> CelestialBody:
        try:
            return self._bodies[body_id]
        except KeyError:
            raise UnknownBodyReferenceError(body_id) from None

    def find(self, body_id: str) -> Optional[CelestialBody]:
        return self._bodies.get(body_id)

    def with_soi(self) -> List[CelestialBody]:
        """Bodies that can capture a ship, ordered by id."""
        return [self._bodies[k] for k in sorted(self._bodies) if self._bodies[k].has_soi]

    def __contains__(self, body_id) -> bool:
        return body_id in self._bodies

    def __iter__(self) -> Iterator[CelestialBody]:
        return iter(self._bodies.values())

    def __len__(self) -> int:
        return len(self._bodies)


# J2000 heliocentric elements of the planets:
# name: (a [AU], e, i [deg], Omega [deg], omega [deg], M0 [deg], GM [AU^3/day^2], radius [km])
PLANET_DATA = {
    'MERCURY': (0.387098, 0.205630, 7.005, 48.331, 29.124, 174.796, 4.9125e-12, 2439.7),
    'VENUS': (0.723332, 0.006772, 3.39458, 76.680, 54.884, 50.115, 7.2435e-10, 6051.8),
    'EARTH': (1.000001018, 0.0167086, 0.00005, -11.26064, 114.20783, 358.617, 8.887692445e-10, 6371.0),
    'MARS': (1.523679, 0.0934, 1.850, 49.558, 286.502, 19.373, 9.549535105e-11, 3389.5),
    'JUPITER': (5.2044, 0.0489, 1.303, 100.464, 273.867, 20.020, 2.824760519e-7, 69911.0),
    'SATURN': (9.5826, 0.0565, 2.485, 113.665, 339.392, 317.020, 8.4597151e-8, 58232.0),
    'URANUS': (19.2184, 0.0457, 0.773, 74.006, 96.998, 142.238, 1.2920249e-8, 25362.0),
    'NEPTUNE': (30.110387, 0.0113, 1.770, 131.784, 276.336, 256.228, 1.5243596e-8, 24622.0),
}


def solar_system_catalog(soi_radii: Optional[Dict[str, float]] = None) -> BodyCatalog:
    """
    Catalog of the eight planets at J2000.

    Args:
        soi_radii: Optional SOI radius overrides (AU) by body id. Bodies not
            listed use the Laplace sphere of influence.
    """
    soi_radii = soi_radii or {}
    bodies = []
    for body_id, (a, e, i, Omega, omega, M0, mu, radius_km) in PLANET_DATA.items():
        elements = OrbitalElements(
            a=a, e=e,
            i=math.radians(i),
            Omega=math.radians(Omega) % TWO_PI,
            omega=math.radians(omega),
            M0=math.radians(M0),
            epoch=J2000,
            mu=MU_SUN,
        )
        bodies.append(CelestialBody(
            id=body_id,
            name=body_id.capitalize(),
            mu=mu,
            radius=radius_km / KM_PER_AU,
            soi_radius=soi_radii.get(body_id, laplace_soi_radius(a, mu)),
            elements=elements,
        ))
    logger.debug("Built solar system catalog with %d bodies", len(bodies))
    return BodyCatalog(bodies)
