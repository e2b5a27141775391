"""
Parameter records of the supported equation of state families.

Every family is an immutable dataclass holding a fixed, ordered set of scalar fields. The order is declared
explicitly in ``fields`` and is the order used by :meth:`EquationOfState.to_vector` and
:meth:`EquationOfState.from_vector`, i.e. the order in which the least-squares solver sees the parameters.
``dimensions`` declares the physical dimension of each field, which is needed to strip and restore units.

Either all fields are plain numbers, or all fields are :class:`~eosfit.units.Quantity` objects. Bare numbers
mixed into a unit-bearing record are promoted to dimensionless quantities (a bare zero is accepted for any
dimension, so that the reference energy may be omitted).
"""

import numbers
from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional, Sequence, Tuple

import numpy as np

from eosfit.core.exceptions import UnitMismatchError
from eosfit.units import Quantity, UnitRegistry, get_registry, default_registry, VOLUME, PRESSURE, ENERGY, \
    INVERSE_PRESSURE, DIMENSIONLESS

__all__ = ["EquationOfState", "Murnaghan", "Birch", "BirchMurnaghan2nd", "BirchMurnaghan3rd", "BirchMurnaghan4th",
           "PoirierTarantola2nd", "PoirierTarantola3rd", "PoirierTarantola4th", "Vinet", "AntonSchmidt",
           "BreenanStacey", "Polynomial", "FAMILIES", "is_unitful", "strip_units", "attach_units"]


def _as_number(value: Any) -> numbers.Number:
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise TypeError('Equation of state parameters must be real numbers or quantities, got {!r}'.format(value))
    return value


def _is_zero(value: Any) -> bool:
    return not isinstance(value, Quantity) and _as_number(value) == 0


def _promote(family: str, names: Sequence[str], dimensions: Sequence[str], values: Sequence[Any]) -> Tuple:
    if any(isinstance(v, Quantity) for v in values):
        promoted = []
        for name, dimension, value in zip(names, dimensions, values):
            if isinstance(value, Quantity):
                if value.unit in default_registry and default_registry.dimension(value.unit) != dimension:
                    raise UnitMismatchError('{}.{} must have the dimension "{}", got "{}"'.format(
                        family, name, dimension, value.unit))
                promoted.append(value)
            elif dimension == DIMENSIONLESS:
                promoted.append(Quantity(_as_number(value), ''))
            elif _is_zero(value):
                promoted.append(Quantity(_as_number(value), default_registry.canonical_unit(dimension)))
            else:
                raise UnitMismatchError('{}.{} is a bare number in a record carrying units'.format(family, name))
        return tuple(promoted)
    numbers_ = [_as_number(v) for v in values]
    if all(isinstance(v, numbers.Integral) for v in numbers_):
        return tuple(int(v) for v in numbers_)
    return tuple(float(v) for v in numbers_)


@dataclass(frozen=True)
class EquationOfState:
    """
    Common behaviour of all parameter records. Not meant to be instantiated directly.
    """

    fields: ClassVar[Tuple[str, ...]] = ()
    dimensions: ClassVar[Tuple[str, ...]] = ()

    def __post_init__(self):
        values = tuple(getattr(self, name) for name in self.fields)
        for name, value in zip(self.fields, _promote(type(self).__name__, self.fields, self.dimensions, values)):
            object.__setattr__(self, name, value)

    def to_vector(self) -> Tuple:
        """
        Returns the field values in the declared order.
        """
        return tuple(getattr(self, name) for name in self.fields)

    @classmethod
    def from_vector(cls, values: Sequence[Any]) -> 'EquationOfState':
        """
        Builds a record from field values given in the declared order.
        """
        values = tuple(values)
        if len(values) != len(cls.fields):
            raise ValueError('{} expects {} parameters, got {}'.format(cls.__name__, len(cls.fields), len(values)))
        return cls(*values)

    @property
    def unitful(self) -> bool:
        return isinstance(self.to_vector()[0], Quantity)


@dataclass(frozen=True)
class Murnaghan(EquationOfState):
    """
    Murnaghan equation of state, F. D. Murnaghan, PNAS 30, 244 (1944).

    Parameters
    ----------
    v0 : equilibrium volume
    b0 : bulk modulus at ``v0``
    bp0 : pressure derivative of the bulk modulus at ``v0``
    e0 : energy at ``v0`` (default is zero)
    """
    v0: Any
    b0: Any
    bp0: Any
    e0: Any = 0

    fields: ClassVar[Tuple[str, ...]] = ('v0', 'b0', 'bp0', 'e0')
    dimensions: ClassVar[Tuple[str, ...]] = (VOLUME, PRESSURE, DIMENSIONLESS, ENERGY)


@dataclass(frozen=True)
class Birch(EquationOfState):
    """
    Birch equation of state, F. Birch, J. Geophys. Res. 83, 1257 (1978). Same fields as :class:`Murnaghan`.
    """
    v0: Any
    b0: Any
    bp0: Any
    e0: Any = 0

    fields: ClassVar[Tuple[str, ...]] = ('v0', 'b0', 'bp0', 'e0')
    dimensions: ClassVar[Tuple[str, ...]] = (VOLUME, PRESSURE, DIMENSIONLESS, ENERGY)


@dataclass(frozen=True)
class BirchMurnaghan2nd(EquationOfState):
    """Second order Birch-Murnaghan equation of state (implies ``bp0 = 4``)."""
    v0: Any
    b0: Any
    e0: Any = 0

    fields: ClassVar[Tuple[str, ...]] = ('v0', 'b0', 'e0')
    dimensions: ClassVar[Tuple[str, ...]] = (VOLUME, PRESSURE, ENERGY)


@dataclass(frozen=True)
class BirchMurnaghan3rd(EquationOfState):
    """Third order Birch-Murnaghan equation of state."""
    v0: Any
    b0: Any
    bp0: Any
    e0: Any = 0

    fields: ClassVar[Tuple[str, ...]] = ('v0', 'b0', 'bp0', 'e0')
    dimensions: ClassVar[Tuple[str, ...]] = (VOLUME, PRESSURE, DIMENSIONLESS, ENERGY)


@dataclass(frozen=True)
class BirchMurnaghan4th(EquationOfState):
    """
    Fourth order Birch-Murnaghan equation of state. ``bpp0`` is the second pressure derivative of the bulk
    modulus and therefore carries the dimension of an inverse pressure.
    """
    v0: Any
    b0: Any
    bp0: Any
    bpp0: Any
    e0: Any = 0

    fields: ClassVar[Tuple[str, ...]] = ('v0', 'b0', 'bp0', 'bpp0', 'e0')
    dimensions: ClassVar[Tuple[str, ...]] = (VOLUME, PRESSURE, DIMENSIONLESS, INVERSE_PRESSURE, ENERGY)


@dataclass(frozen=True)
class PoirierTarantola2nd(EquationOfState):
    """Second order Poirier-Tarantola (logarithmic) equation of state (implies ``bp0 = 2``)."""
    v0: Any
    b0: Any
    e0: Any = 0

    fields: ClassVar[Tuple[str, ...]] = ('v0', 'b0', 'e0')
    dimensions: ClassVar[Tuple[str, ...]] = (VOLUME, PRESSURE, ENERGY)


@dataclass(frozen=True)
class PoirierTarantola3rd(EquationOfState):
    """Third order Poirier-Tarantola equation of state, Phys. Earth Planet. Inter. 109, 1 (1998)."""
    v0: Any
    b0: Any
    bp0: Any
    e0: Any = 0

    fields: ClassVar[Tuple[str, ...]] = ('v0', 'b0', 'bp0', 'e0')
    dimensions: ClassVar[Tuple[str, ...]] = (VOLUME, PRESSURE, DIMENSIONLESS, ENERGY)


@dataclass(frozen=True)
class PoirierTarantola4th(EquationOfState):
    """Fourth order Poirier-Tarantola equation of state."""
    v0: Any
    b0: Any
    bp0: Any
    bpp0: Any
    e0: Any = 0

    fields: ClassVar[Tuple[str, ...]] = ('v0', 'b0', 'bp0', 'bpp0', 'e0')
    dimensions: ClassVar[Tuple[str, ...]] = (VOLUME, PRESSURE, DIMENSIONLESS, INVERSE_PRESSURE, ENERGY)


@dataclass(frozen=True)
class Vinet(EquationOfState):
    """Vinet (universal) equation of state, J. Geophys. Res. 92, 9319 (1987)."""
    v0: Any
    b0: Any
    bp0: Any
    e0: Any = 0

    fields: ClassVar[Tuple[str, ...]] = ('v0', 'b0', 'bp0', 'e0')
    dimensions: ClassVar[Tuple[str, ...]] = (VOLUME, PRESSURE, DIMENSIONLESS, ENERGY)


@dataclass(frozen=True)
class AntonSchmidt(EquationOfState):
    """
    Anton-Schmidt equation of state, Intermetallics 5, 449 (1997).

    Parameters
    ----------
    v0 : equilibrium volume
    beta : bulk modulus at ``v0``
    n : exponent of the volume dependence of the bulk modulus (about -2)
    e_inf : energy at infinite separation (default is zero); note ``E(v0) = e_inf - beta * v0 / (n + 1)**2``
    """
    v0: Any
    beta: Any
    n: Any
    e_inf: Any = 0

    fields: ClassVar[Tuple[str, ...]] = ('v0', 'beta', 'n', 'e_inf')
    dimensions: ClassVar[Tuple[str, ...]] = (VOLUME, PRESSURE, DIMENSIONLESS, ENERGY)


@dataclass(frozen=True)
class BreenanStacey(EquationOfState):
    """
    Breenan-Stacey equation of state, Geophys. J. R. Astr. Soc. 58, 1 (1979). Only defined for pressure and
    bulk modulus; ``gamma0`` is the Grüneisen parameter at ``v0``.
    """
    v0: Any
    b0: Any
    gamma0: Any
    e0: Any = 0

    fields: ClassVar[Tuple[str, ...]] = ('v0', 'b0', 'gamma0', 'e0')
    dimensions: ClassVar[Tuple[str, ...]] = (VOLUME, PRESSURE, DIMENSIONLESS, ENERGY)


@dataclass(frozen=True)
class Polynomial(EquationOfState):
    """
    Polynomial expansion of the energy around ``v0``:

    .. math:: E(V) = e_0 + \\sum_{n \\geq 2} c_n (V - v_0)^n

    ``coefficients`` holds :math:`c_2, c_3, \\ldots`. The expansion starts at second order, so ``v0`` is a
    stationary point. Only unitless parameters are supported.
    """
    v0: Any
    coefficients: Tuple = field(default=())
    e0: Any = 0

    def __post_init__(self):
        coefficients = tuple(self.coefficients)
        if not coefficients:
            raise ValueError('Polynomial needs at least one coefficient')
        values = (self.v0,) + coefficients + (self.e0,)
        if any(isinstance(v, Quantity) for v in values):
            raise UnitMismatchError('Polynomial does not support unit-bearing parameters')
        values = _promote('Polynomial', ('v0',) * len(values), (DIMENSIONLESS,) * len(values), values)
        object.__setattr__(self, 'v0', values[0])
        object.__setattr__(self, 'coefficients', values[1:-1])
        object.__setattr__(self, 'e0', values[-1])

    @property
    def order(self) -> int:
        return len(self.coefficients) + 1

    def to_vector(self) -> Tuple:
        return (self.v0,) + tuple(self.coefficients) + (self.e0,)

    @classmethod
    def from_vector(cls, values: Sequence[Any]) -> 'Polynomial':
        values = tuple(values)
        if len(values) < 3:
            raise ValueError('Polynomial expects at least 3 parameters, got {}'.format(len(values)))
        return cls(values[0], tuple(values[1:-1]), values[-1])

    @property
    def unitful(self) -> bool:
        return False


FAMILIES = (Murnaghan, Birch, BirchMurnaghan2nd, BirchMurnaghan3rd, BirchMurnaghan4th, PoirierTarantola2nd,
            PoirierTarantola3rd, PoirierTarantola4th, Vinet, AntonSchmidt, BreenanStacey, Polynomial)


def is_unitful(eos: EquationOfState) -> bool:
    return eos.unitful


def strip_units(eos: EquationOfState, registry: Optional[UnitRegistry] = None) -> Tuple[Tuple[float, ...],
                                                                                        Optional[Tuple[str, ...]]]:
    """
    Converts every field of {eos} into its canonical unit and strips it.

    Parameters
    ----------
    eos : EquationOfState
        The parameter record.
    registry : Optional[UnitRegistry], optional
        The unit registry to use (default is the ASE based default registry).

    Returns
    -------
    Tuple[Tuple[float, ...], Optional[Tuple[str, ...]]]
        The bare values in canonical units and the original units of the fields (``None`` if {eos} is unitless).
    """
    values = eos.to_vector()
    if not eos.unitful:
        return tuple(float(v) for v in values), None
    registry = get_registry(registry)
    stripped = tuple(float(registry.to_canonical(v, d)) for v, d in zip(values, type(eos).dimensions))
    return stripped, tuple(v.unit for v in values)


def attach_units(values: Sequence[float], template: EquationOfState,
                 registry: Optional[UnitRegistry] = None) -> EquationOfState:
    """
    Builds a record of the same family as {template} from bare values in canonical units, converting each field
    back into the unit the corresponding field of {template} carries.
    """
    family = type(template)
    if not template.unitful:
        return family.from_vector(values)
    registry = get_registry(registry)
    units = [v.unit for v in template.to_vector()]
    return family.from_vector([registry.from_canonical(x, u) for x, u in zip(values, units)])
