"""
Numerical inversion of the equations of state: find the volume at which the energy, pressure or bulk modulus takes
a given value.
"""

import enum
import warnings
from typing import Any, Callable, Iterable, Optional, Sequence, Tuple, Union

import numpy as np
from scipy.optimize import root_scalar

from eosfit.collections import EquationOfState, strip_units
from eosfit.core.common import LoggerMixin
from eosfit.core.config import Config
from eosfit.core.exceptions import RootNotFoundError, UnitMismatchError, UnsupportedRelationError, DomainWarning
from eosfit.evaluate import Property, relation, apply_relation
from eosfit.units import Quantity, UnitRegistry, get_registry, is_quantity, VOLUME

__all__ = ["Method", "VolumeFinder", "find_volume"]


class Method(enum.Enum):
    """
    Root-finding algorithms of :func:`scipy.optimize.root_scalar`. Bracketing methods need an interval with a sign
    change and are guaranteed to converge, the others iterate from a starting point.
    """
    TOMS748 = ('toms748', True)
    BISECT = ('bisect', True)
    BRENTQ = ('brentq', True)
    BRENTH = ('brenth', True)
    RIDDER = ('ridder', True)
    HALLEY = ('halley', False)
    NEWTON = ('newton', False)
    SECANT = ('secant', False)

    def __init__(self, solver: str, bracketing: bool):
        self.solver = solver
        self.bracketing = bracketing

    def __str__(self):
        return self.solver

    @classmethod
    def of(cls, method: Union['Method', str]) -> 'Method':
        if isinstance(method, cls):
            return method
        name = str(method).lower()
        for member in cls:
            if member.solver == name:
                return member
        raise ValueError('Unknown root-finding method "{}"'.format(method))


DEFAULT_METHODS = tuple(m for m in Method if m.bracketing) + tuple(m for m in Method if not m.bracketing)


class _InvalidObjective(ValueError):
    pass


def _central_difference(g: Callable[[float], float], v: float) -> float:
    h = 1e-6 * max(abs(v), 1.0)
    return (g(v + h) - g(v - h)) / (2 * h)


class _Objective:
    """
    ``v -> prop(v) - target`` on bare numbers in canonical units, together with its first two volume derivatives.
    """

    def __init__(self, prop: Property, family: type, params: Sequence[float], target: float):
        self.prop = prop
        self.params = tuple(params)
        self.target = target
        self._func = relation(family, prop)
        self._family = family

    def _optional(self, prop: Property):
        try:
            return relation(self._family, prop)
        except UnsupportedRelationError:
            return None

    def __call__(self, v: float) -> float:
        value = apply_relation(self._func, self.params, v) - self.target
        if not np.isfinite(value):
            raise _InvalidObjective('{} is not finite at a volume of {:g}'.format(self.prop.value, v))
        return value

    def derivative(self, v: float) -> float:
        if self.prop is Property.ENERGY:
            func = self._optional(Property.PRESSURE)
            if func is not None:
                return -apply_relation(func, self.params, v)
        elif self.prop is Property.PRESSURE:
            func = self._optional(Property.BULK_MODULUS)
            if func is not None:
                return -apply_relation(func, self.params, v) / v
        return _central_difference(self, v)

    def second_derivative(self, v: float) -> float:
        if self.prop is Property.ENERGY:
            func = self._optional(Property.BULK_MODULUS)
            if func is not None:
                return apply_relation(func, self.params, v) / v
        return _central_difference(self.derivative, v)


class VolumeFinder(LoggerMixin):
    """
    Finds volumes by trying a sequence of root-finding methods until one converges.

    Parameters
    ----------
    methods : Optional[Iterable[Union[Method, str]]], optional
        The methods to try, in this order. Defaults to all bracketing methods followed by all others.
    xtol : float, optional
        Absolute tolerance of the volume (canonical units).
    rtol : float, optional
        Relative tolerance of the volume.
    maxiter : int, optional
        Maximum number of iterations per method.
    registry : Optional[UnitRegistry], optional
        Unit registry used to strip and re-attach units.

    Example:
    ```
    finder = VolumeFinder(methods=['brentq', 'secant'])
    finder.find('pressure', eos, Quantity(10, 'GPa'), (Quantity(100, 'angstrom^3'), Quantity(200, 'angstrom^3')))
    ```
    """

    def __init__(self, methods: Optional[Iterable[Union[Method, str]]] = None, xtol: float = 1e-12,
                 rtol: float = 4 * np.finfo(float).eps, maxiter: int = 100,
                 registry: Optional[UnitRegistry] = None):
        super(VolumeFinder, self).__init__()
        self.methods: Tuple[Method, ...] = tuple(Method.of(m) for m in (DEFAULT_METHODS if methods is None
                                                                          else methods))
        if not self.methods:
            raise ValueError('At least one root-finding method is needed')
        self.xtol = xtol
        self.rtol = rtol
        self.maxiter = maxiter
        self.registry = get_registry(registry)

    @classmethod
    def from_config(cls, path: Optional[str] = None, registry: Optional[UnitRegistry] = None) -> 'VolumeFinder':
        """
        Reads the ``find_volume`` section (``methods``, ``xtol``, ``rtol``, ``maxiter``) of a config file.
        """
        section = Config(path).section('find_volume')
        unknown = set(section) - {'methods', 'xtol', 'rtol', 'maxiter'}
        if unknown:
            raise ValueError('Unknown keys in the "find_volume" section: {}'.format(', '.join(sorted(unknown))))
        return cls(registry=registry, **section)

    def _bare(self, prop: Property, eos: EquationOfState, target: Any, seed: Any) -> Tuple[Tuple[float, ...], float,
                                                                                          np.ndarray]:
        if eos.unitful:
            if not isinstance(target, Quantity) or not is_quantity(seed):
                raise UnitMismatchError('{} carries units, hence target and seed must be quantities'.format(
                    type(eos).__name__))
            params, _ = strip_units(eos, self.registry)
            target = float(self.registry.to_canonical(target, prop.dimension))
            points = np.atleast_1d(self.registry.to_canonical(seed, VOLUME))
            return params, target, points
        if isinstance(target, Quantity) or is_quantity(seed):
            raise UnitMismatchError('{} is unitless, hence target and seed must be plain numbers'.format(
                type(eos).__name__))
        params, _ = strip_units(eos)
        return params, float(target), np.atleast_1d(np.asarray(seed, dtype=float))

    def _solve(self, method: Method, objective: _Objective, points: np.ndarray, explicit: bool = False) -> float:
        lo, hi = float(np.min(points)), float(np.max(points))
        options = dict(xtol=self.xtol, rtol=self.rtol, maxiter=self.maxiter)
        if method.bracketing:
            if not lo < hi:
                raise ValueError('{} needs an interval but got a single volume {:g}'.format(method, lo))
            result = root_scalar(objective, method=method.solver, bracket=(lo, hi), **options)
        else:
            x0 = (lo + hi) / 2
            if method is Method.SECANT:
                if explicit and lo < hi:
                    x0, x1 = lo, hi
                else:
                    x1 = x0 + 1e-4 * max(abs(x0), 1.0)
                result = root_scalar(objective, method=method.solver, x0=x0, x1=x1, **options)
            elif method is Method.NEWTON:
                result = root_scalar(objective, method=method.solver, x0=x0, fprime=objective.derivative, **options)
            else:
                result = root_scalar(objective, method=method.solver, x0=x0, fprime=objective.derivative,
                                     fprime2=objective.second_derivative, **options)
        if not result.converged:
            raise RuntimeError('{} did not converge: {}'.format(method, result.flag))
        root = float(result.root)
        # a converged step can still land where the relation is undefined
        objective(root)
        return root

    def find(self, prop: Union[Property, str], eos: EquationOfState, target: Any, seed: Any,
             method: Optional[Union[Method, str]] = None) -> Union[float, Quantity]:
        """
        Finds a volume at which {prop} of {eos} equals {target}.

        Parameters
        ----------
        prop : Union[Property, str]
            The property to invert.
        eos : EquationOfState
            The parameter record.
        target : Any
            The value {prop} should take, a quantity if {eos} carries units.
        seed : Any
            Starting volume(s). Bracketing methods use ``[min(seed), max(seed)]``, the others start from the
            midpoint of that interval. The secant method, when requested explicitly, starts from both ends.
        method : Optional[Union[Method, str]], optional
            If given, only this method is tried and its failure is raised. Otherwise all methods of the finder are
            tried in order and the first result is returned.

        Returns
        -------
        Union[float, Quantity]
            The volume, in the unit of ``eos.v0`` if {eos} carries units. If the interval contains several roots
            it is not specified which one is returned.

        Raises
        ------
        RootNotFoundError
            If no method converged.
        """
        prop = Property.of(prop)
        params, target_value, points = self._bare(prop, eos, target, seed)
        objective = _Objective(prop, type(eos), params, target_value)

        methods = self.methods if method is None else (Method.of(method),)
        errors = []
        root = None
        last_error = None
        for m in methods:
            self.logger.info('Trying to find the volume using the %s method', m)
            try:
                root = self._solve(m, objective, points, explicit=method is not None)
            except (ValueError, RuntimeError, ArithmeticError) as e:
                self.logger.info('Method %s failed: %s', m, e)
                errors.append('{}: {}'.format(m, e))
                last_error = e
                continue
            self.logger.info('Method %s converged to a volume of %g', m, root)
            break

        if root is None:
            raise RootNotFoundError(methods, errors) from last_error
        if root < 0:
            warnings.warn('The volume found is negative ({:g}), which is not physical'.format(root), DomainWarning)
        if eos.unitful:
            return self.registry.from_canonical(root, eos.v0.unit)
        return root


def find_volume(prop: Union[Property, str], eos: EquationOfState, target: Any, seed: Any,
                method: Optional[Union[Method, str]] = None, registry: Optional[UnitRegistry] = None,
                **kwargs) -> Union[float, Quantity]:
    """
    Shorthand for ``VolumeFinder(registry=registry, **kwargs).find(prop, eos, target, seed, method)``.
    """
    return VolumeFinder(registry=registry, **kwargs).find(prop, eos, target, seed, method=method)
