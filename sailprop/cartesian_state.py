"""
Cartesian position/velocity representation.
"""
from typing import NamedTuple
import jax.numpy as jnp


class CartesianState(NamedTuple):
    """
    Cartesian state of a spacecraft or celestial body.

    This is the frame-free value produced and consumed by the jitted
    kernels. It is compatible with JAX transformations.

    Attributes:
        r: Position vector [x, y, z] in AU
        v: Velocity vector [vx, vy, vz] in AU/day

    Examples:
        >>> import jax.numpy as jnp
        >>> state = CartesianState(
        ...     r=jnp.array([1.0, 0.0, 0.0]),     # 1 AU from the sun
        ...     v=jnp.array([0.0, 0.0172, 0.0])   # ~30 km/s orbital velocity
        ... )
    """
    r: jnp.ndarray  # position [x, y, z] (AU)
    v: jnp.ndarray  # velocity [vx, vy, vz] (AU/day)
