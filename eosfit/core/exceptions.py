"""Exception and warning types raised by the equation of state routines."""

from typing import Optional, Sequence


class EquationOfStateError(Exception):
    """Base class of all errors raised by ``eosfit``."""


class UnsupportedRelationError(EquationOfStateError, NotImplementedError):
    """Raised when a family has no closed form for the requested property."""

    def __init__(self, family: str, prop: str):
        super(UnsupportedRelationError, self).__init__(
            '{0} does not define a closed form for the {1}'.format(family, prop))
        self.family = family
        self.prop = prop


class UnitMismatchError(EquationOfStateError, ValueError):
    """Raised when unit-bearing and unitless values are mixed or dimensions do not match."""


class FitNotConvergedError(EquationOfStateError, RuntimeError):
    """
    Raised when the least-squares solver stops without a converged fit.

    Attributes
    ----------
    parameters : Optional[Sequence[float]]
        Last iterate of the solver (canonical units), if one exists.
    residual_norm : float
        Euclidean norm of the residuals at ``parameters``.
    iterations : int
        Number of model evaluations spent.
    """

    def __init__(self, message: str, parameters: Optional[Sequence[float]] = None,
                 residual_norm: float = float('nan'), iterations: int = 0):
        super(FitNotConvergedError, self).__init__(
            '{0} (residual norm = {1:g}, evaluations = {2})'.format(message, residual_norm, iterations))
        self.message = message
        self.parameters = None if parameters is None else tuple(parameters)
        self.residual_norm = residual_norm
        self.iterations = iterations


class RootNotFoundError(EquationOfStateError, RuntimeError):
    """Raised when none of the attempted root-finding methods converged."""

    def __init__(self, methods: Sequence, errors: Sequence[str] = ()):
        names = ', '.join(str(m) for m in methods)
        super(RootNotFoundError, self).__init__('No root found with any method (tried: {0})'.format(names))
        self.methods = tuple(methods)
        self.errors = tuple(errors)


class LinearFitError(EquationOfStateError, RuntimeError):
    """Raised when the strain polynomial has no local minimum."""


class DomainWarning(UserWarning):
    """Result is mathematically valid but lies outside the physical domain."""
