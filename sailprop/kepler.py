"""
Kepler's equation in its elliptic and hyperbolic forms.

The solvers are written with jax.lax control flow so that they can be called
from inside the jitted state conversion kernels as well as on their own.
"""
import logging
import math
from typing import NamedTuple

import jax.numpy as jnp
from jax import jit, lax

from .constants import TWO_PI
from .errors import InvalidConfigurationError

logger = logging.getLogger(__name__)

KEPLER_TOL = 1e-10
KEPLER_MAX_ITER = 30

# |tanh(H/2)| must stay below 1 for atanh to be defined
ATANH_LIMIT = 0.9999999


class KeplerSolution(NamedTuple):
    """
    Result of a Kepler solve.

    Attributes:
        anomaly: Eccentric anomaly E (elliptic) or hyperbolic anomaly H
        iterations: Newton iterations used
        converged: False when the iteration cap was reached first
    """
    anomaly: jnp.ndarray
    iterations: jnp.ndarray
    converged: jnp.ndarray


def _mean_motion(a, mu):
    return jnp.sqrt(mu / jnp.abs(a)**3)


def mean_motion(a: float, mu: float) -> float:
    """
    Mean motion n = sqrt(mu / |a|^3) in radians/day.

    The absolute value of a is used so that hyperbolic orbits (a < 0) get the
    analogous hyperbolic mean motion.

    Raises:
        InvalidConfigurationError: a is zero or not finite, or mu is not a
            finite positive number.
    """
    if not math.isfinite(a) or a == 0.0:
        raise InvalidConfigurationError(f"semi-major axis must be finite and non-zero, got {a}")
    if not math.isfinite(mu) or mu <= 0.0:
        raise InvalidConfigurationError(f"gravitational parameter must be finite and positive, got {mu}")
    return math.sqrt(mu / abs(a)**3)


def propagate_mean_anomaly(M0, n, dt, hyperbolic=False):
    """
    Propagate mean anomaly: M = M0 + n * dt.

    Elliptic results are normalized to [0, 2pi). Hyperbolic mean anomaly is
    not periodic and is returned as is (negative while approaching periapsis).
    """
    M = M0 + n * dt
    return jnp.where(hyperbolic, M, jnp.mod(M, TWO_PI))


def _newton(f_and_fprime, x0, tol, max_iter):
    """Newton-Raphson until |step| < tol or max_iter steps have been taken."""
    x0 = jnp.asarray(x0, dtype=float)

    def cond_fn(carry):
        _, delta, it = carry
        return (jnp.abs(delta) >= tol) & (it < max_iter)

    def body_fn(carry):
        x, _, it = carry
        f, fp = f_and_fprime(x)
        fp = jnp.where(jnp.abs(fp) < 1e-15, 1e-15, fp)
        delta = f / fp
        return x - delta, delta, it + 1

    init = (x0, jnp.full_like(x0, jnp.inf), jnp.zeros((), dtype=jnp.int32))
    x, delta, it = lax.while_loop(cond_fn, body_fn, init)
    return KeplerSolution(x, it, jnp.abs(delta) < tol)


def solve_kepler_elliptic(M, e, tol=KEPLER_TOL, max_iter=KEPLER_MAX_ITER) -> KeplerSolution:
    """
    Solve M = E - e*sin(E) for the eccentric anomaly E (0 <= e < 1).

    The initial guess is E0 = M, or for e >= 0.8 a bound on the root taken
    from E - sin(E) >= E**3 / pi**2 on [0, pi], capped at pi. f is convex on
    [0, pi] and concave on [pi, 2pi], so from that bound Newton converges
    monotonically, including near e = 1 where f'(E) vanishes at periapsis.
    """
    M = jnp.mod(M, TWO_PI)
    half = jnp.minimum(jnp.cbrt(jnp.pi**2 * jnp.minimum(M, TWO_PI - M)), jnp.pi)
    E0 = jnp.where(e < 0.8, M, jnp.where(M <= jnp.pi, half, TWO_PI - half))

    def f_and_fprime(E):
        return E - e * jnp.sin(E) - M, 1.0 - e * jnp.cos(E)

    return _newton(f_and_fprime, E0, tol, max_iter)


def solve_kepler_hyperbolic(M, e, tol=KEPLER_TOL, max_iter=KEPLER_MAX_ITER) -> KeplerSolution:
    """
    Solve M = e*sinh(H) - H for the hyperbolic anomaly H (e > 1).

    f(H) is monotonic and convex for H > 0. Both cbrt(6|M|) and
    asinh(|M|/(e-1)) bound |H| from above, so Newton starts from the smaller
    of the two and converges monotonically. The cube root keeps the start
    close to the root for near-parabolic orbits.
    """
    M_abs = jnp.abs(M)
    bound = jnp.minimum(jnp.cbrt(6.0 * M_abs),
                        jnp.arcsinh(M_abs / jnp.maximum(e - 1.0, 1e-300)))
    H0 = jnp.sign(M) * bound

    def f_and_fprime(H):
        return e * jnp.sinh(H) - H - M, e * jnp.cosh(H) - 1.0

    return _newton(f_and_fprime, H0, tol, max_iter)


@jit
def solve_kepler(M, e) -> KeplerSolution:
    """
    Solve Kepler's equation for the anomaly matching mean anomaly M.

    Dispatches on eccentricity: eccentric anomaly for e < 1, hyperbolic
    anomaly otherwise.
    """
    M = jnp.asarray(M, dtype=float)
    e = jnp.asarray(e, dtype=float)
    return lax.cond(e < 1.0, solve_kepler_elliptic, solve_kepler_hyperbolic, M, e)


def solve_anomaly(M: float, e: float) -> float:
    """
    Host-side Kepler solve returning a float.

    Reaching the iteration cap is not an error: the last iterate is returned
    and a warning is logged.
    """
    solution = solve_kepler(M, e)
    if not bool(solution.converged):
        logger.warning("Kepler iteration cap reached (M=%.6g, e=%.6g); using last iterate",
                       M, e)
    return float(solution.anomaly)


def eccentric_to_true_anomaly(E, e):
    """True anomaly from eccentric anomaly (elliptic orbits)."""
    return 2.0 * jnp.arctan2(
        jnp.sqrt(1.0 + e) * jnp.sin(E / 2.0),
        jnp.sqrt(1.0 - e) * jnp.cos(E / 2.0)
    )


def true_to_eccentric_anomaly(nu, e):
    """Eccentric anomaly from true anomaly (elliptic orbits)."""
    return jnp.arctan2(jnp.sqrt(1.0 - e**2) * jnp.sin(nu), e + jnp.cos(nu))


def hyperbolic_to_true_anomaly(H, e):
    """
    True anomaly from hyperbolic anomaly.

    tan(nu/2) = sqrt((e+1)/(e-1)) * tanh(H/2). The tanh form saturates
    instead of overflowing for large |H|.
    """
    return 2.0 * jnp.arctan(jnp.sqrt((e + 1.0) / (e - 1.0)) * jnp.tanh(H / 2.0))


def true_to_hyperbolic_anomaly(nu, e):
    """
    Hyperbolic anomaly from true anomaly.

    The atanh argument is clamped to +/-ATANH_LIMIT so that true anomalies at
    or beyond the asymptote still map to a finite H.
    """
    tanh_half = jnp.sqrt((e - 1.0) / (e + 1.0)) * jnp.tan(nu / 2.0)
    tanh_half = jnp.clip(tanh_half, -ATANH_LIMIT, ATANH_LIMIT)
    return 2.0 * jnp.arctanh(tanh_half)


def hyperbolic_true_anomaly_limit(e):
    """Asymptotic true anomaly arccos(-1/e) of a hyperbola."""
    return jnp.arccos(-1.0 / e)
