"""
Exception Hierarchy for the Projection Engine.

Three kinds of failure are distinguished:

- Configuration errors are raised when a projection, ellipsoid or datum
  shift is constructed from parameters that cannot describe a valid
  transformation (unknown names, degenerate standard parallels, ...).
- Convergence errors are raised when a bounded iterative solver runs out
  of iterations before reaching its tolerance.
- Domain errors are NOT exceptions. A transform returns ``None`` for an
  input outside the projection's valid region.
"""

from typing import Optional


class ProjectionError(Exception):
    """Base class for all projection engine errors."""


class ConfigurationError(ProjectionError, ValueError):
    """Invalid or unsupported projection configuration.

    Raised at construction time, never deferred to the first transform.
    """


class ConvergenceError(ProjectionError, ArithmeticError):
    """An iterative solver failed to reach its tolerance.

    Attributes
    ----------
    iterations : int
        Number of iterations performed before giving up.
    residual : float, optional
        Magnitude of the last correction (or residual), in the solver's units.
    """

    def __init__(
        self,
        message: str,
        iterations: int,
        residual: Optional[float] = None
    ):
        super().__init__(message)
        self.iterations = iterations
        self.residual = residual
