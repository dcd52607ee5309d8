"""
Exceptions raised by sailprop.

Only configuration problems are raised to the caller. Numerical trouble
(non-convergence, degenerate orbits, extreme eccentricity) and unknown body
references are recovered locally and logged.
"""


class SailPropError(Exception):
    """Base class for sailprop errors."""


class InvalidConfigurationError(SailPropError, ValueError):
    """A non-finite or out-of-range input reached a public entry point."""


class UnknownBodyReferenceError(SailPropError, KeyError):
    """A body id could not be resolved in the catalog."""

    def __init__(self, body_id):
        super().__init__(body_id)
        self.body_id = body_id

    def __str__(self) -> str:
        return f"Unknown body id '{self.body_id}'"
