"""
Nonlinear least-squares fitting of equation of state parameters to (volume, observable) data.
"""

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

import numpy as np
from scipy.optimize import least_squares

from eosfit.collections import EquationOfState, strip_units, attach_units
from eosfit.core.common import DotDict
from eosfit.core.config import Config
from eosfit.core.exceptions import FitNotConvergedError, UnitMismatchError
from eosfit.evaluate import Property, relation
from eosfit.units import UnitRegistry, get_registry, is_quantity, VOLUME

__all__ = ["FitOptions", "fit"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FitOptions:
    """
    Settings of the least-squares solver.

    Parameters
    ----------
    tolerance : float
        Used for the relative change of the cost (``ftol``), of the parameters (``xtol``) and for the
        gradient norm (``gtol``).
    max_iterations : Optional[int]
        Maximum number of residual evaluations. ``None`` leaves the choice to the solver (``100 * (n + 1)``).
    debug : bool
        Return the raw solver trace instead of a parameter record.
    """
    tolerance: float = 1e-12
    max_iterations: Optional[int] = None
    debug: bool = False

    def __post_init__(self):
        if not self.tolerance > 0:
            raise ValueError('The tolerance must be positive, got {}'.format(self.tolerance))
        if self.max_iterations is not None and int(self.max_iterations) < 1:
            raise ValueError('max_iterations must be at least 1, got {}'.format(self.max_iterations))

    def replace(self, **kwargs) -> 'FitOptions':
        return dataclasses.replace(self, **kwargs)

    @classmethod
    def from_config(cls, path: Optional[str] = None) -> 'FitOptions':
        """
        Reads the ``fitting`` section of a config file, see :func:`eosfit.core.config.load_config`
        for how the file is located. Keys which are not present keep their default value.
        """
        section = Config(path).section('fitting')
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = set(section) - known
        if unknown:
            raise ValueError('Unknown keys in the "fitting" section: {}'.format(', '.join(sorted(unknown))))
        return cls(**section)


def _bare_data(prop: Property, trial: EquationOfState, volumes: Any, observed: Any,
               registry: Optional[UnitRegistry]) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    if trial.unitful:
        if not (is_quantity(volumes) and is_quantity(observed)):
            raise UnitMismatchError('The trial parameters carry units, hence volumes and observed values must be '
                                    'quantities as well')
        registry = get_registry(registry)
        params, _ = strip_units(trial, registry)
        v = registry.to_canonical(volumes, VOLUME)
        y = registry.to_canonical(observed, prop.dimension)
        return np.asarray(params, dtype=float), np.atleast_1d(v).astype(float), np.atleast_1d(y).astype(float)

    if is_quantity(volumes) or is_quantity(observed):
        raise UnitMismatchError('The trial parameters are unitless, hence volumes and observed values must be '
                                'plain numbers')
    v = np.atleast_1d(np.asarray(volumes))
    y = np.atleast_1d(np.asarray(observed))
    x0 = np.asarray(trial.to_vector())
    dtype = np.result_type(v, y, x0, np.float64)
    return x0.astype(dtype), v.astype(dtype), y.astype(dtype)


def _covariance(jacobian: np.ndarray, cost: float, n_data: int) -> np.ndarray:
    # same estimate as scipy.optimize.curve_fit: pseudo inverse of J^T J scaled by the reduced chi^2
    _, s, vt = np.linalg.svd(jacobian, full_matrices=False)
    threshold = np.finfo(float).eps * max(jacobian.shape) * s[0]
    s = s[s > threshold]
    vt = vt[:s.size]
    covariance = np.dot(vt.T / s ** 2, vt)
    n_params = jacobian.shape[1]
    if n_data > n_params:
        return covariance * (2 * cost / (n_data - n_params))
    covariance.fill(np.inf)
    return covariance


def fit(prop: Union[Property, str], trial: EquationOfState, volumes: Any, observed: Any,
        options: Optional[FitOptions] = None, registry: Optional[UnitRegistry] = None,
        **kwargs) -> Union[EquationOfState, DotDict]:
    """
    Fits the parameters of an equation of state to observed energies, pressures or bulk moduli using the
    Levenberg-Marquardt algorithm (MINPACK, via :func:`scipy.optimize.least_squares`).

    Parameters
    ----------
    prop : Union[Property, str]
        The property which has been observed.
    trial : EquationOfState
        Starting guess. It is never modified; the result is a new record of the same family.
    volumes : Any
        Volumes of the data points, quantities if {trial} carries units.
    observed : Any
        Observed values at {volumes}, quantities if {trial} carries units.
    options : Optional[FitOptions], optional
        Solver settings, defaults to ``FitOptions()``.
    registry : Optional[UnitRegistry], optional
        Unit registry used to strip and re-attach units.
    kwargs
        Overrides of individual fields of {options}, e.g. ``debug=True``.

    Returns
    -------
    Union[EquationOfState, DotDict]
        The fitted record, with every field in the unit of the corresponding field of {trial}. In debug mode the
        raw (unit-stripped, canonical units) solver trace with the keys ``parameters``, ``residuals``,
        ``jacobian``, ``covariance``, ``converged``, ``iterations``, ``status``, ``message`` and ``cost``.

    Raises
    ------
    UnsupportedRelationError
        If {trial}'s family has no closed form for {prop}.
    UnitMismatchError
        If the data and the trial parameters disagree about units.
    ValueError
        If {volumes} and {observed} differ in length or there are fewer data points than parameters.
    FitNotConvergedError
        If the residuals are not finite at the trial point, the solver runs out of evaluations or ends up with
        non-finite parameters. In debug mode only the first case raises.
    """
    prop = Property.of(prop)
    options = options or FitOptions()
    if kwargs:
        options = options.replace(**kwargs)
    func = relation(type(trial), prop)
    x0, v, y = _bare_data(prop, trial, volumes, observed, registry)

    if v.shape != y.shape:
        raise ValueError('Got {} volumes but {} observed values'.format(v.size, y.size))
    if v.size < x0.size:
        raise ValueError('{} needs at least {} data points, got {}'.format(type(trial).__name__, x0.size, v.size))

    def residuals(x):
        with np.errstate(invalid='ignore', divide='ignore', over='ignore'):
            return np.asarray(func(tuple(x), v), dtype=float) - y

    r0 = residuals(x0)
    if not np.all(np.isfinite(r0)):
        raise FitNotConvergedError('Residuals are not finite at the trial parameters {}'.format(trial),
                                   parameters=x0, residual_norm=float(np.linalg.norm(r0)))

    logger.debug('Fitting %s of %s to %d data points', prop.value, type(trial).__name__, v.size)
    max_nfev = None if options.max_iterations is None else int(options.max_iterations)
    result = least_squares(residuals, x0.astype(float), method='lm', x_scale='jac', ftol=options.tolerance,
                           xtol=options.tolerance, gtol=options.tolerance, max_nfev=max_nfev)
    converged = result.status > 0 and np.all(np.isfinite(result.x)) and np.all(np.isfinite(result.fun))
    residual_norm = float(np.linalg.norm(result.fun))
    logger.debug('Solver finished after %d evaluations with status %d: %s', result.nfev, result.status,
                 result.message)

    if options.debug:
        return DotDict(
            parameters=result.x,
            residuals=result.fun,
            jacobian=result.jac,
            covariance=_covariance(result.jac, result.cost, v.size),
            converged=bool(converged),
            iterations=result.nfev,
            status=result.status,
            message=result.message,
            cost=result.cost
        )

    if not converged:
        raise FitNotConvergedError('The fit of {} did not converge: {}'.format(type(trial).__name__, result.message),
                                   parameters=result.x, residual_norm=residual_norm, iterations=result.nfev)
    return attach_units(result.x.tolist(), trial, registry)
