# Configure JAX to use double precision (64-bit floats) throughout the package
import jax
jax.config.update("jax_enable_x64", True)

from .orbital_elements import OrbitalElements
from .cartesian_state import CartesianState

from .constants import (
    # Constants
    M_PER_AU,
    KM_PER_AU,
    DAY,
    YEAR,
    J2000,
    MU_SUN,
    SOLAR_PRESSURE_1AU,
    R0,
    DEFAULT_SHIP_MASS,
    HELIOCENTRIC,
)

from .errors import (
    SailPropError,
    InvalidConfigurationError,
    UnknownBodyReferenceError,
)

from .kepler import (
    # Kepler solver
    KeplerSolution,
    mean_motion,
    solve_kepler,
    solve_anomaly,
)

from .frames import (
    # Frame-tagged values
    StateVector,
    Heliocentric,
    Planetocentric,
    helio_to_planetocentric,
    planetocentric_to_helio,
)

from .astrodynamics import (
    # State conversion
    elements_to_cartesian,
    elements_to_state,
    cartesian_to_elements,
    state_to_elements,
    orbit_type,
    periapsis,
    apoapsis,
    orbital_period,
)

from .sail import (
    # Thrust model
    SailConfiguration,
    DEFAULT_SAIL,
    solar_pressure,
    sail_force,
    thrust_direction,
    sail_acceleration,
    solar_sail_ode,
)

from .perturbation import (
    apply_thrust,
    apply_sail_thrust,
)

from .bodies import (
    # Bodies
    CelestialBody,
    BodyCatalog,
    solar_system_catalog,
)

from .config import (
    SOIConfig,
    PredictorConfig,
    CacheConfig,
)

from .soi import (
    # SOI transitions
    SOIState,
    SOIManager,
    SOIUpdate,
    enter_soi,
    exit_soi,
)

from .cache import TrajectoryCache

from .trajectory import (
    # Prediction
    TruncationReason,
    TrajectorySample,
    Trajectory,
    PredictionRequest,
    predict_trajectory,
    TrajectoryPredictor,
)

from .flyby import (
    GravityAssist,
    hyperbolic_excess_velocity,
    turning_angle,
    predict_gravity_assist,
    compute_v_infinity,
)

from .encounters import (
    closest_approach,
    orbit_crossings,
    detect_intersections,
)

__all__ = [
    # Constants
    "M_PER_AU",
    "KM_PER_AU",
    "DAY",
    "YEAR",
    "J2000",
    "MU_SUN",
    "SOLAR_PRESSURE_1AU",
    "R0",
    "DEFAULT_SHIP_MASS",
    "HELIOCENTRIC",

    # Errors
    "SailPropError",
    "InvalidConfigurationError",
    "UnknownBodyReferenceError",

    # Named tuples
    "OrbitalElements",
    "CartesianState",
    "KeplerSolution",
    "StateVector",
    "Heliocentric",
    "Planetocentric",

    # Kepler solver
    "mean_motion",
    "solve_kepler",
    "solve_anomaly",

    # State conversion
    "elements_to_cartesian",
    "elements_to_state",
    "cartesian_to_elements",
    "state_to_elements",
    "helio_to_planetocentric",
    "planetocentric_to_helio",
    "orbit_type",
    "periapsis",
    "apoapsis",
    "orbital_period",

    # Thrust model
    "SailConfiguration",
    "DEFAULT_SAIL",
    "solar_pressure",
    "sail_force",
    "thrust_direction",
    "sail_acceleration",
    "solar_sail_ode",
    "apply_thrust",
    "apply_sail_thrust",

    # Bodies
    "CelestialBody",
    "BodyCatalog",
    "solar_system_catalog",

    # Configuration
    "SOIConfig",
    "PredictorConfig",
    "CacheConfig",

    # SOI transitions
    "SOIState",
    "SOIManager",
    "SOIUpdate",
    "enter_soi",
    "exit_soi",

    # Prediction
    "TrajectoryCache",
    "TruncationReason",
    "TrajectorySample",
    "Trajectory",
    "PredictionRequest",
    "predict_trajectory",
    "TrajectoryPredictor",

    # Flyby and encounters
    "GravityAssist",
    "hyperbolic_excess_velocity",
    "turning_angle",
    "predict_gravity_assist",
    "compute_v_infinity",
    "closest_approach",
    "orbit_crossings",
    "detect_intersections",
]
