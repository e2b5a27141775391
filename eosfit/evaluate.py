"""
Closed-form energy, pressure and bulk modulus of the equation of state families.

The formulas are written in terms of bare (unit-stripped) parameter vectors, in the field order declared by the
parameter records, and are vectorised over the volume. Within one family the three relations are consistent,
:math:`P = -\\partial E / \\partial V` and :math:`B = -V \\partial P / \\partial V`.

Notation used below:

* Eulerian strain :math:`f = ((V_0/V)^{2/3} - 1) / 2` (Birch-Murnaghan family)
* natural strain :math:`\\xi = \\ln (V/V_0) / 3` (Poirier-Tarantola family)
* :math:`x = (V/V_0)^{1/3}` (Vinet)
"""

import enum
from typing import Any, Callable, Dict, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import ArrayLike

from eosfit.collections import EquationOfState, Murnaghan, Birch, BirchMurnaghan2nd, BirchMurnaghan3rd, \
    BirchMurnaghan4th, PoirierTarantola2nd, PoirierTarantola3rd, PoirierTarantola4th, Vinet, AntonSchmidt, \
    BreenanStacey, Polynomial, strip_units
from eosfit.core.exceptions import UnsupportedRelationError, UnitMismatchError
from eosfit.units import Quantity, UnitRegistry, get_registry, is_quantity, VOLUME, ENERGY, PRESSURE

__all__ = ["Property", "evaluate", "energy", "pressure", "bulk_modulus", "eos_function", "relation",
           "supported_properties", "apply_relation"]

Formula = Callable[[Sequence[float], np.ndarray], np.ndarray]


class Property(enum.Enum):
    """
    Selects which closed-form relation of an equation of state is used.
    """
    ENERGY = 'energy'
    PRESSURE = 'pressure'
    BULK_MODULUS = 'bulk_modulus'

    @property
    def dimension(self) -> str:
        return ENERGY if self is Property.ENERGY else PRESSURE

    @classmethod
    def of(cls, prop: Union['Property', str]) -> 'Property':
        if isinstance(prop, cls):
            return prop
        try:
            return cls(str(prop).lower().replace(' ', '_'))
        except ValueError:
            raise ValueError('Unknown physical property "{}"'.format(prop)) from None


# ---------------------------------------------------------------------------------------------------------------------
# Murnaghan and Birch
# ---------------------------------------------------------------------------------------------------------------------
def _murnaghan_energy(p, v):
    v0, b0, bp0, e0 = p
    x = bp0 - 1
    y = (v0 / v) ** bp0
    return e0 + b0 / bp0 * v * (y / x + 1) - v0 * b0 / x


def _murnaghan_pressure(p, v):
    v0, b0, bp0 = p[:3]
    return b0 / bp0 * ((v0 / v) ** bp0 - 1)


def _murnaghan_bulk_modulus(p, v):
    v0, b0, bp0 = p[:3]
    return b0 * (v0 / v) ** bp0


def _birch_energy(p, v):
    v0, b0, bp0, e0 = p
    x = (v0 / v) ** (2 / 3) - 1
    xi = 9 / 16 * b0 * v0 * x ** 2
    return e0 + 2 * xi + (bp0 - 4) * xi * x


def _birch_pressure(p, v):
    v0, b0, bp0 = p[:3]
    x = v0 / v
    xi = x ** (2 / 3) - 1
    return 3 / 8 * b0 * x ** (5 / 3) * xi * (4 + 3 * (bp0 - 4) * xi)


# ---------------------------------------------------------------------------------------------------------------------
# Birch-Murnaghan
# ---------------------------------------------------------------------------------------------------------------------
def _eulerian(v0, v):
    return ((v0 / v) ** (2 / 3) - 1) / 2


def _bm2_energy(p, v):
    v0, b0, e0 = p
    f = _eulerian(v0, v)
    return e0 + 9 / 2 * b0 * v0 * f ** 2


def _bm2_pressure(p, v):
    v0, b0 = p[:2]
    f = _eulerian(v0, v)
    return 3 * b0 * f * (1 + 2 * f) ** (5 / 2)


def _bm2_bulk_modulus(p, v):
    v0, b0 = p[:2]
    f = _eulerian(v0, v)
    return b0 * (1 + 2 * f) ** (5 / 2) * (1 + 7 * f)


def _bm3_energy(p, v):
    v0, b0, bp0, e0 = p
    f = _eulerian(v0, v)
    return e0 + 9 / 2 * b0 * v0 * f ** 2 * (1 + (bp0 - 4) * f)


def _bm3_pressure(p, v):
    v0, b0, bp0 = p[:3]
    f = _eulerian(v0, v)
    return 3 * b0 * f * (1 + 2 * f) ** (5 / 2) * (1 + 3 / 2 * (bp0 - 4) * f)


def _bm3_bulk_modulus(p, v):
    v0, b0, bp0 = p[:3]
    f = _eulerian(v0, v)
    return b0 * (1 + 2 * f) ** (5 / 2) * (1 + (3 * bp0 - 5) * f + 27 / 2 * (bp0 - 4) * f ** 2)


def _bm4_coefficient(b0, bp0, bpp0):
    # coefficient of the quartic strain term, with h = b0 * bpp0 + bp0**2
    h = b0 * bpp0 + bp0 ** 2
    return 9 * h - 63 * bp0 + 143


def _bm4_energy(p, v):
    v0, b0, bp0, bpp0, e0 = p
    f = _eulerian(v0, v)
    a = _bm4_coefficient(b0, bp0, bpp0)
    return e0 + 3 / 8 * v0 * b0 * f ** 2 * (a * f ** 2 + 12 * (bp0 - 4) * f + 12)


def _bm4_pressure(p, v):
    v0, b0, bp0, bpp0 = p[:4]
    f = _eulerian(v0, v)
    a = _bm4_coefficient(b0, bp0, bpp0)
    return b0 / 2 * f * (1 + 2 * f) ** (5 / 2) * (a * f ** 2 + 9 * (bp0 - 4) * f + 6)


def _bm4_bulk_modulus(p, v):
    v0, b0, bp0, bpp0 = p[:4]
    f = _eulerian(v0, v)
    a = _bm4_coefficient(b0, bp0, bpp0)
    return b0 / 6 * (1 + 2 * f) ** (5 / 2) * (11 * a * f ** 3 + (3 * a + 81 * (bp0 - 4)) * f ** 2
                                               + (18 * bp0 - 30) * f + 6)


# ---------------------------------------------------------------------------------------------------------------------
# Poirier-Tarantola
#
# E = e0 + 9 b0 v0 (xi^2 / 2 + c3 xi^3 + c4 xi^4) with c3 = (2 - bp0) / 2 and c4 = 3 (h - 3 bp0 + 3) / 8,
# the lower orders follow from c4 = 0 (3rd) and c3 = c4 = 0 (2nd).
# ---------------------------------------------------------------------------------------------------------------------
def _natural(v0, v):
    return np.log(v / v0) / 3


def _pt_energy(v0, b0, c3, c4, e0, v):
    xi = _natural(v0, v)
    return e0 + 9 * b0 * v0 * (xi ** 2 / 2 + c3 * xi ** 3 + c4 * xi ** 4)


def _pt_pressure(v0, b0, c3, c4, v):
    xi = _natural(v0, v)
    return -3 * b0 * (v0 / v) * (xi + 3 * c3 * xi ** 2 + 4 * c4 * xi ** 3)


def _pt_bulk_modulus(v0, b0, c3, c4, v):
    xi = _natural(v0, v)
    return b0 * (v0 / v) * (1 + (6 * c3 - 3) * xi + (12 * c4 - 9 * c3) * xi ** 2 - 12 * c4 * xi ** 3)


def _pt4_c4(b0, bp0, bpp0):
    h = b0 * bpp0 + bp0 ** 2
    return 3 / 8 * (h - 3 * bp0 + 3)


def _pt2_energy(p, v):
    v0, b0, e0 = p
    return _pt_energy(v0, b0, 0, 0, e0, v)


def _pt2_pressure(p, v):
    v0, b0 = p[:2]
    return _pt_pressure(v0, b0, 0, 0, v)


def _pt2_bulk_modulus(p, v):
    v0, b0 = p[:2]
    return _pt_bulk_modulus(v0, b0, 0, 0, v)


def _pt3_energy(p, v):
    v0, b0, bp0, e0 = p
    return _pt_energy(v0, b0, (2 - bp0) / 2, 0, e0, v)


def _pt3_pressure(p, v):
    v0, b0, bp0 = p[:3]
    return _pt_pressure(v0, b0, (2 - bp0) / 2, 0, v)


def _pt3_bulk_modulus(p, v):
    v0, b0, bp0 = p[:3]
    return _pt_bulk_modulus(v0, b0, (2 - bp0) / 2, 0, v)


def _pt4_energy(p, v):
    v0, b0, bp0, bpp0, e0 = p
    return _pt_energy(v0, b0, (2 - bp0) / 2, _pt4_c4(b0, bp0, bpp0), e0, v)


def _pt4_pressure(p, v):
    v0, b0, bp0, bpp0 = p[:4]
    return _pt_pressure(v0, b0, (2 - bp0) / 2, _pt4_c4(b0, bp0, bpp0), v)


def _pt4_bulk_modulus(p, v):
    v0, b0, bp0, bpp0 = p[:4]
    return _pt_bulk_modulus(v0, b0, (2 - bp0) / 2, _pt4_c4(b0, bp0, bpp0), v)


# ---------------------------------------------------------------------------------------------------------------------
# Vinet, Anton-Schmidt, Breenan-Stacey
# ---------------------------------------------------------------------------------------------------------------------
def _vinet_energy(p, v):
    v0, b0, bp0, e0 = p
    x = (v / v0) ** (1 / 3)
    xi = 3 / 2 * (bp0 - 1)
    return e0 + 9 * b0 * v0 / xi ** 2 * (1 + (xi * (1 - x) - 1) * np.exp(xi * (1 - x)))


def _vinet_pressure(p, v):
    v0, b0, bp0 = p[:3]
    x = (v / v0) ** (1 / 3)
    xi = 3 / 2 * (bp0 - 1)
    return 3 * b0 / x ** 2 * (1 - x) * np.exp(xi * (1 - x))


def _vinet_bulk_modulus(p, v):
    v0, b0, bp0 = p[:3]
    x = (v / v0) ** (1 / 3)
    xi = 3 / 2 * (bp0 - 1)
    return -b0 / (2 * x ** 2) * (3 * x * (x - 1) * (bp0 - 1) + 2 * (x - 2)) * np.exp(-xi * (x - 1))


def _anton_schmidt_energy(p, v):
    v0, beta, n, e_inf = p
    x = v / v0
    eta = n + 1
    return e_inf + beta * v0 / eta * x ** eta * (np.log(x) - 1 / eta)


def _anton_schmidt_pressure(p, v):
    v0, beta, n = p[:3]
    x = v / v0
    return -beta * x ** n * np.log(x)


def _anton_schmidt_bulk_modulus(p, v):
    v0, beta, n = p[:3]
    x = v / v0
    return beta * x ** n * (1 + n * np.log(x))


def _breenan_stacey_pressure(p, v):
    v0, b0, gamma0 = p[:3]
    x = v0 / v
    return b0 / (2 * gamma0) * x ** (4 / 3) * (np.exp(2 * gamma0 * (x - 1)) - 1)


def _breenan_stacey_bulk_modulus(p, v):
    v0, b0, gamma0 = p[:3]
    x = v0 / v
    e = np.exp(2 * gamma0 * (x - 1))
    return b0 / (2 * gamma0) * x ** (4 / 3) * (4 / 3 * (e - 1) + 2 * gamma0 * x * e)


# ---------------------------------------------------------------------------------------------------------------------
# Polynomial, parameter vector (v0, c2, c3, ..., e0)
# ---------------------------------------------------------------------------------------------------------------------
def _polynomial_energy(p, v):
    v0, coefficients, e0 = p[0], p[1:-1], p[-1]
    d = v - v0
    return e0 + sum(c * d ** n for n, c in enumerate(coefficients, start=2))


def _polynomial_pressure(p, v):
    v0, coefficients = p[0], p[1:-1]
    d = v - v0
    return -sum(n * c * d ** (n - 1) for n, c in enumerate(coefficients, start=2))


def _polynomial_bulk_modulus(p, v):
    v0, coefficients = p[0], p[1:-1]
    d = v - v0
    return v * sum(n * (n - 1) * c * d ** (n - 2) for n, c in enumerate(coefficients, start=2))


_RELATIONS: Dict[Tuple[type, Property], Formula] = {
    (Murnaghan, Property.ENERGY): _murnaghan_energy,
    (Murnaghan, Property.PRESSURE): _murnaghan_pressure,
    (Murnaghan, Property.BULK_MODULUS): _murnaghan_bulk_modulus,
    (Birch, Property.ENERGY): _birch_energy,
    (Birch, Property.PRESSURE): _birch_pressure,
    (BirchMurnaghan2nd, Property.ENERGY): _bm2_energy,
    (BirchMurnaghan2nd, Property.PRESSURE): _bm2_pressure,
    (BirchMurnaghan2nd, Property.BULK_MODULUS): _bm2_bulk_modulus,
    (BirchMurnaghan3rd, Property.ENERGY): _bm3_energy,
    (BirchMurnaghan3rd, Property.PRESSURE): _bm3_pressure,
    (BirchMurnaghan3rd, Property.BULK_MODULUS): _bm3_bulk_modulus,
    (BirchMurnaghan4th, Property.ENERGY): _bm4_energy,
    (BirchMurnaghan4th, Property.PRESSURE): _bm4_pressure,
    (BirchMurnaghan4th, Property.BULK_MODULUS): _bm4_bulk_modulus,
    (PoirierTarantola2nd, Property.ENERGY): _pt2_energy,
    (PoirierTarantola2nd, Property.PRESSURE): _pt2_pressure,
    (PoirierTarantola2nd, Property.BULK_MODULUS): _pt2_bulk_modulus,
    (PoirierTarantola3rd, Property.ENERGY): _pt3_energy,
    (PoirierTarantola3rd, Property.PRESSURE): _pt3_pressure,
    (PoirierTarantola3rd, Property.BULK_MODULUS): _pt3_bulk_modulus,
    (PoirierTarantola4th, Property.ENERGY): _pt4_energy,
    (PoirierTarantola4th, Property.PRESSURE): _pt4_pressure,
    (PoirierTarantola4th, Property.BULK_MODULUS): _pt4_bulk_modulus,
    (Vinet, Property.ENERGY): _vinet_energy,
    (Vinet, Property.PRESSURE): _vinet_pressure,
    (Vinet, Property.BULK_MODULUS): _vinet_bulk_modulus,
    (AntonSchmidt, Property.ENERGY): _anton_schmidt_energy,
    (AntonSchmidt, Property.PRESSURE): _anton_schmidt_pressure,
    (AntonSchmidt, Property.BULK_MODULUS): _anton_schmidt_bulk_modulus,
    (BreenanStacey, Property.PRESSURE): _breenan_stacey_pressure,
    (BreenanStacey, Property.BULK_MODULUS): _breenan_stacey_bulk_modulus,
    (Polynomial, Property.ENERGY): _polynomial_energy,
    (Polynomial, Property.PRESSURE): _polynomial_pressure,
    (Polynomial, Property.BULK_MODULUS): _polynomial_bulk_modulus,
}


def relation(family: type, prop: Union[Property, str]) -> Formula:
    """
    Looks up the closed form of {prop} for the equation of state {family}.

    Parameters
    ----------
    family : type
        A parameter record class, e.g. :class:`~eosfit.collections.Vinet`.
    prop : Union[Property, str]
        The physical property.

    Returns
    -------
    Formula
        A function ``(parameter vector, volumes) -> values`` working on bare numbers in canonical units.

    Raises
    ------
    UnsupportedRelationError
        If {family} has no closed form for {prop}.
    """
    prop = Property.of(prop)
    try:
        return _RELATIONS[(family, prop)]
    except KeyError:
        raise UnsupportedRelationError(family.__name__, prop.value.replace('_', ' ')) from None


def supported_properties(family: type) -> Tuple[Property, ...]:
    return tuple(prop for prop in Property if (family, prop) in _RELATIONS)


def apply_relation(func: Formula, params: Sequence[float], volume: ArrayLike) -> Union[float, np.ndarray]:
    v = np.asarray(volume, dtype=float)
    with np.errstate(invalid='ignore', divide='ignore', over='ignore'):
        result = np.asarray(func(tuple(params), v), dtype=float)
    return float(result) if result.ndim == 0 else result


def evaluate(prop: Union[Property, str], eos: EquationOfState, volume: Any,
             registry: Optional[UnitRegistry] = None) -> Union[float, np.ndarray, Quantity]:
    """
    Evaluates the energy, pressure or bulk modulus of {eos} at {volume}.

    Parameters
    ----------
    prop : Union[Property, str]
        Which relation to evaluate.
    eos : EquationOfState
        The parameter record.
    volume : Any
        A volume or an array of volumes. Must be a :class:`~eosfit.units.Quantity` (or a sequence of quantities)
        if and only if {eos} carries units.
    registry : Optional[UnitRegistry], optional
        Unit registry used for the conversion into canonical units.

    Returns
    -------
    Union[float, np.ndarray, Quantity]
        The value(s). Unit-bearing results are returned in the canonical unit of the property (eV or eV/Å^3).

    Notes
    -----
    Non-positive volumes are not guarded against; they produce ``nan`` (or a meaningless number), which the caller
    has to detect.
    """
    prop = Property.of(prop)
    func = relation(type(eos), prop)
    if eos.unitful:
        if not is_quantity(volume):
            raise UnitMismatchError('{} carries units, hence the volume must be a quantity'.format(type(eos).__name__))
        registry = get_registry(registry)
        params, _ = strip_units(eos, registry)
        value = apply_relation(func, params, registry.to_canonical(volume, VOLUME))
        return registry.canonical(value, prop.dimension)
    if is_quantity(volume):
        raise UnitMismatchError('{} is unitless, hence the volume must be a plain number'.format(type(eos).__name__))
    return apply_relation(func, [float(x) for x in eos.to_vector()], volume)


def energy(eos: EquationOfState, volume: Any, registry: Optional[UnitRegistry] = None):
    return evaluate(Property.ENERGY, eos, volume, registry=registry)


def pressure(eos: EquationOfState, volume: Any, registry: Optional[UnitRegistry] = None):
    return evaluate(Property.PRESSURE, eos, volume, registry=registry)


def bulk_modulus(eos: EquationOfState, volume: Any, registry: Optional[UnitRegistry] = None):
    return evaluate(Property.BULK_MODULUS, eos, volume, registry=registry)


def eos_function(prop: Union[Property, str], eos: EquationOfState,
                 registry: Optional[UnitRegistry] = None) -> Callable[[Any], Any]:
    """
    Binds {prop} and {eos} and returns a function of the volume only, e.g. for mapping over volumes.

    Example:
    ```
    e = eos_function('energy', BirchMurnaghan3rd(40.98, 0.537, 4.18, -10.84))
    energies = e(np.linspace(30, 50))
    ```
    """
    prop = Property.of(prop)
    relation(type(eos), prop)
    return lambda volume: evaluate(prop, eos, volume, registry=registry)
