"""
Forward prediction of a sailing ship's path.

The prediction alternates exact Keplerian propagation with small sail kicks
(see sailprop.perturbation) and emits heliocentric samples at a fixed step.
It stops early, marking the last sample, when the path leaves the region in
which the model is meaningful.
"""
import logging
import math
from enum import Enum
from typing import Hashable, NamedTuple, Optional, Tuple, Union

import jax
import numpy as np

from .astrodynamics import elements_to_state, ephemeris, validate_elements
from .bodies import BodyCatalog, CelestialBody
from .cache import TrajectoryCache
from .config import PredictorConfig
from .constants import DEFAULT_SHIP_MASS
from .errors import InvalidConfigurationError
from .frames import FramedElements, Heliocentric, Planetocentric
from .orbital_elements import OrbitalElements
from .perturbation import sail_step
from .sail import SailConfiguration, _clamp_angle, sail_acceleration_coefficient
from .soi import SOIState, fail_open

logger = logging.getLogger(__name__)


class TruncationReason(str, Enum):
    SOI_EXIT = 'soi_exit'
    MAX_DISTANCE = 'max_distance'
    SUN_APPROACH = 'sun_approach'
    INVALID_POSITION = 'invalid_position'
    ORBITAL_INSTABILITY = 'orbital_instability'
    ECCENTRIC_INSTABILITY = 'eccentric_instability'


class TrajectorySample(NamedTuple):
    """
    Attributes:
        position: Heliocentric position (AU)
        time: Julian date
        truncated: True on the last sample of a prediction that stopped early
        truncation_reason: Why the prediction stopped
    """
    position: Tuple[float, float, float]
    time: float
    truncated: bool = False
    truncation_reason: Optional[TruncationReason] = None


class Trajectory(NamedTuple):
    samples: Tuple[TrajectorySample, ...]
    linear_fallback: bool = False

    @property
    def truncated(self) -> bool:
        return bool(self.samples) and self.samples[-1].truncated

    @property
    def truncation_reason(self) -> Optional[TruncationReason]:
        return self.samples[-1].truncation_reason if self.samples else None

    def positions(self) -> np.ndarray:
        """Sample positions, shape (n, 3)."""
        return np.array([s.position for s in self.samples], dtype=float).reshape(-1, 3)

    def times(self) -> np.ndarray:
        return np.array([s.time for s in self.samples], dtype=float)


class PredictionRequest(NamedTuple):
    """
    Inputs of one prediction.

    Attributes:
        elements: Start elements; bare OrbitalElements are taken as heliocentric
        sail: Sail configuration, held fixed over the prediction
        start_time: Julian date of the first sample
        mass: Ship mass (kg)
        duration: Days to predict; None uses the configured default
        steps: Number of samples; None uses the configured default
        soi_state: SOI state of the ship, if known
        extreme_regime: Extrapolate in a straight line from the start
    """
    elements: Union[FramedElements, OrbitalElements]
    sail: SailConfiguration
    start_time: float
    mass: float = DEFAULT_SHIP_MASS
    duration: Optional[float] = None
    steps: Optional[int] = None
    soi_state: Optional[SOIState] = None
    extreme_regime: bool = False


def _as_framed(elements) -> FramedElements:
    if isinstance(elements, (Heliocentric, Planetocentric)):
        return elements
    return Heliocentric(OrbitalElements(*elements))


def _resolve(request: PredictionRequest, config: PredictorConfig):
    duration = config.duration_days if request.duration is None else request.duration
    steps = config.steps if request.steps is None else request.steps
    if not math.isfinite(request.mass) or request.mass <= 0.0:
        raise InvalidConfigurationError(f"mass must be finite and positive, got {request.mass}")
    if not math.isfinite(request.start_time):
        raise InvalidConfigurationError(f"start time must be finite, got {request.start_time}")
    if not math.isfinite(duration) or duration <= 0.0:
        raise InvalidConfigurationError(f"duration must be finite and positive, got {duration}")
    if isinstance(steps, bool) or int(steps) != steps or steps < 1:
        raise InvalidConfigurationError(f"steps must be a positive integer, got {steps}")
    framed = _as_framed(request.elements)
    framed = framed._replace(elements=validate_elements(framed.elements))
    return framed, float(duration), int(steps)


def prediction_key(request: PredictionRequest, config: PredictorConfig, cache: TrajectoryCache) -> Hashable:
    """Cache key of a request, with the start time bucketed."""
    framed = _as_framed(request.elements)
    duration = config.duration_days if request.duration is None else request.duration
    steps = config.steps if request.steps is None else request.steps
    return (
        framed.frame,
        framed.elements.to_host(),
        request.sail,
        float(request.mass),
        cache.bucket(request.start_time),
        float(duration),
        int(steps),
        request.soi_state,
        bool(request.extreme_regime),
        config,
    )


def _truncation(r: np.ndarray, helio_r: np.ndarray, parent: Optional[CelestialBody],
                config: PredictorConfig) -> Optional[TruncationReason]:
    if not np.all(np.isfinite(r)):
        return TruncationReason.INVALID_POSITION
    if parent is not None and parent.has_soi:
        if np.linalg.norm(r) > parent.soi_radius * config.soi_truncation_multiplier:
            return TruncationReason.SOI_EXIT
        return None
    distance = np.linalg.norm(helio_r)
    if distance > config.max_distance:
        return TruncationReason.MAX_DISTANCE
    if distance < 2.0 * config.min_distance:
        return TruncationReason.SUN_APPROACH
    return None


def _check_soi_state(soi_state: Optional[SOIState], framed: FramedElements):
    if soi_state is None:
        return
    if isinstance(framed, Planetocentric):
        if not soi_state.is_in_soi or soi_state.current_body != framed.parent_id:
            logger.warning("SOI state %s disagrees with frame %s; following the frame",
                           soi_state.current_body, framed.parent_id)
    elif soi_state.is_in_soi:
        logger.warning("SOI state %s disagrees with heliocentric frame; following the frame",
                       soi_state.current_body)


def predict_trajectory(request: PredictionRequest, catalog: Optional[BodyCatalog] = None,
                       config: Optional[PredictorConfig] = None) -> Trajectory:
    """
    Predict the heliocentric path of a ship under constant sail attitude.

    Each step propagates the current elements to the step time in the working
    frame (planetocentric inside an SOI), checks the truncation limits, emits
    the heliocentric sample and applies a sail kick of one step duration to
    get the next elements. Eccentricities above config.extreme_eccentricity,
    or request.extreme_regime, switch to straight-line extrapolation without
    thrust.

    The frame tag of request.elements decides the working frame; a
    request.soi_state that disagrees with it is logged and otherwise only
    feeds the cache key.

    Raises:
        InvalidConfigurationError: invalid mass, time, duration, steps or
            start elements
    """
    config = config if config is not None else PredictorConfig()
    framed, duration, steps = _resolve(request, config)
    _check_soi_state(request.soi_state, framed)
    t0 = float(request.start_time)
    dt = duration / steps
    times = t0 + dt * np.arange(steps)

    parent = None
    if isinstance(framed, Planetocentric):
        parent = catalog.find(framed.parent_id) if catalog is not None else None
        if parent is None:
            logger.error("Unknown body id '%s'; predicting heliocentrically", framed.parent_id)
            framed = fail_open(framed, t0)

    if parent is not None:
        offsets = jax.device_get(ephemeris(parent.elements, times))
        frame_r, frame_v = np.asarray(offsets.r), np.asarray(offsets.v)
    else:
        frame_r, frame_v = np.zeros((steps, 3)), np.zeros((steps, 3))

    accel_ref = sail_acceleration_coefficient(request.sail, request.mass)
    yaw = _clamp_angle(request.sail.yaw)
    pitch = _clamp_angle(request.sail.pitch)

    elements = framed.elements
    linear = None
    if request.extreme_regime or elements.e > config.extreme_eccentricity:
        start = elements_to_state(elements, t0)
        linear = (start.r, start.v, t0)
        logger.info("Extreme regime (e=%.6g), extrapolating linearly", elements.e)

    samples = []
    reason = None
    for k in range(steps):
        t = float(times[k])
        step = None
        if linear is None:
            step = jax.device_get(sail_step(elements, t, dt, accel_ref, yaw, pitch,
                                            frame_r[k], frame_v[k]))
            r = np.asarray(step.state.r)
            v = np.asarray(step.state.v)
        else:
            r0, v0, t_lin = linear
            r = r0 + v0 * (t - t_lin)

        helio_r = r + frame_r[k]
        reason = _truncation(r, helio_r, parent, config)
        if reason is not None:
            break
        samples.append(TrajectorySample(position=tuple(float(x) for x in helio_r), time=t))

        if step is None or accel_ref == 0.0:
            continue
        if not np.linalg.norm(step.acceleration) >= config.thrust_floor:
            continue

        new_elements = step.elements.to_host()
        if not new_elements.is_finite():
            reason = TruncationReason.ORBITAL_INSTABILITY
            break
        if new_elements.e < 0.0:
            reason = TruncationReason.ECCENTRIC_INSTABILITY
            break
        if new_elements.e > config.extreme_eccentricity:
            logger.info("Eccentricity %.6g exceeds %.6g at t=%.6f, extrapolating linearly",
                        new_elements.e, config.extreme_eccentricity, t)
            linear = (r, v, t)
            continue
        elements = new_elements

    if reason is not None and samples:
        samples[-1] = samples[-1]._replace(truncated=True, truncation_reason=reason)
    logger.debug("Predicted %d/%d samples in frame %s (truncation: %s)",
                 len(samples), steps, framed.frame, reason)
    return Trajectory(samples=tuple(samples), linear_fallback=linear is not None)


class TrajectoryPredictor:
    """
    Prediction with a caller-owned cache.

    Args:
        catalog: Bodies used to resolve planetocentric parents
        config: Prediction settings
        cache: Cache to use; a private one is created when omitted
    """

    def __init__(self, catalog: Optional[BodyCatalog] = None,
                 config: Optional[PredictorConfig] = None,
                 cache: Optional[TrajectoryCache] = None):
        self.catalog = catalog
        self.config = config if config is not None else PredictorConfig()
        self.cache = cache if cache is not None else TrajectoryCache()

    def predict(self, request: PredictionRequest) -> Trajectory:
        self.cache.notify_sail_changed(request.sail)
        key = prediction_key(request, self.config, self.cache)
        return self.cache.get_or_compute(
            key, lambda: predict_trajectory(request, self.catalog, self.config))
