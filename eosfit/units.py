"""
Physical quantities and the unit registry used to strip and restore units.

All numerical work is carried out in ASE's native unit system (eV, Å), hence the canonical
units of the dimensions used by the equations of state are

=================  ==================
dimension          canonical unit
=================  ==================
volume             angstrom^3
pressure           eV/angstrom^3
energy             eV
inverse_pressure   angstrom^3/eV
dimensionless      (empty string)
=================  ==================

The conversion factors are taken from :mod:`ase.units`.
"""

import numbers
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

import numpy as np
from ase import units as aseunits
from numpy.typing import ArrayLike

from eosfit.core.exceptions import UnitMismatchError

VOLUME = 'volume'
PRESSURE = 'pressure'
ENERGY = 'energy'
INVERSE_PRESSURE = 'inverse_pressure'
DIMENSIONLESS = 'dimensionless'

EV_PER_ANG3_TO_GPA = 1.0 / aseunits.GPa

__all__ = ["Quantity", "UnitRegistry", "default_registry", "get_registry", "is_quantity", "VOLUME", "PRESSURE",
           "ENERGY", "INVERSE_PRESSURE", "DIMENSIONLESS", "EV_PER_ANG3_TO_GPA"]


def _normalize(unit: str) -> str:
    return unit.replace(' ', '').replace('**', '^')


class UnitRegistry:
    """
    An immutable table mapping unit names onto their dimension and the factor which converts a magnitude in that
    unit into the canonical unit of the dimension.

    Parameters
    ----------
    units : Mapping[str, Tuple[str, float]]
        ``{unit name: (dimension, factor to canonical unit)}``.
    canonical : Mapping[str, str]
        ``{dimension: canonical unit name}``. Each canonical unit must be part of ``units`` with factor one.
    aliases : Optional[Mapping[str, str]], optional
        Alternative spellings, ``{alias: unit name}``.
    """

    def __init__(self, units: Mapping[str, Tuple[str, float]], canonical: Mapping[str, str],
                 aliases: Optional[Mapping[str, str]] = None):
        self._units: Dict[str, Tuple[str, float]] = {_normalize(k): (d, float(f)) for k, (d, f) in units.items()}
        self._aliases: Dict[str, str] = {_normalize(k): _normalize(v) for k, v in (aliases or {}).items()}
        self._canonical: Dict[str, str] = {}
        for dimension, unit in canonical.items():
            unit = _normalize(unit)
            if self._units.get(unit) != (dimension, 1.0):
                raise ValueError('Canonical unit "{}" of "{}" must have a factor of one'.format(unit, dimension))
            self._canonical[dimension] = unit

    def __contains__(self, unit: str) -> bool:
        try:
            self._lookup(unit)
        except UnitMismatchError:
            return False
        return True

    def _lookup(self, unit: str) -> Tuple[str, float]:
        key = _normalize(unit)
        key = self._aliases.get(key, key)
        try:
            return self._units[key]
        except KeyError:
            raise UnitMismatchError('Unknown unit "{}"'.format(unit)) from None

    @property
    def dimensions(self) -> Tuple[str, ...]:
        return tuple(self._canonical)

    def dimension(self, unit: str) -> str:
        return self._lookup(unit)[0]

    def factor(self, unit: str) -> float:
        return self._lookup(unit)[1]

    def canonical_unit(self, dimension: str) -> str:
        try:
            return self._canonical[dimension]
        except KeyError:
            raise UnitMismatchError('Unknown dimension "{}"'.format(dimension)) from None

    def convert(self, magnitude: Any, from_unit: str, to_unit: str) -> Any:
        """
        Converts a bare magnitude between two units of the same dimension.
        """
        from_dimension, from_factor = self._lookup(from_unit)
        to_dimension, to_factor = self._lookup(to_unit)
        if from_dimension != to_dimension:
            raise UnitMismatchError('Cannot convert "{}" ({}) into "{}" ({})'.format(
                from_unit, from_dimension, to_unit, to_dimension))
        if from_factor == to_factor:
            return magnitude
        return magnitude * (from_factor / to_factor)

    def to_canonical(self, value: Any, dimension: Optional[str] = None) -> Union[float, np.ndarray]:
        """
        Strips the unit of {value} after converting it into the canonical unit. {value} may be a scalar
        :class:`Quantity`, a :class:`Quantity` holding an array or an iterable of scalar quantities.

        Parameters
        ----------
        value : Any
            The quantity (or quantities) to convert.
        dimension : Optional[str], optional
            If given, the dimension {value} is required to have.

        Returns
        -------
        Union[float, np.ndarray]
            The bare magnitude(s) in canonical units.
        """
        if isinstance(value, Quantity):
            unit_dimension, factor = self._lookup(value.unit)
            if dimension is not None and unit_dimension != dimension:
                raise UnitMismatchError('Expected a quantity of dimension "{}" but got "{}" ({})'.format(
                    dimension, value.unit, unit_dimension))
            return value.magnitude * factor
        if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
            raise UnitMismatchError('Expected a quantity but got {!r}'.format(value))
        return np.array([self.to_canonical(item, dimension) for item in value], dtype=float)

    def from_canonical(self, magnitude: Any, unit: str) -> 'Quantity':
        """
        Re-attaches {unit} to a magnitude expressed in canonical units.
        """
        return Quantity(magnitude / self.factor(unit), unit)

    def canonical(self, magnitude: Any, dimension: str) -> 'Quantity':
        return Quantity(magnitude, self.canonical_unit(dimension))


def _build_default_registry() -> UnitRegistry:
    ang3 = aseunits.Ang ** 3
    bohr3 = aseunits.Bohr ** 3
    units = {
        # volume
        'angstrom^3': (VOLUME, ang3),
        'bohr^3': (VOLUME, bohr3),
        'nm^3': (VOLUME, aseunits.nm ** 3),
        # energy
        'eV': (ENERGY, aseunits.eV),
        'meV': (ENERGY, 1e-3 * aseunits.eV),
        'Ry': (ENERGY, aseunits.Ry),
        'mRy': (ENERGY, 1e-3 * aseunits.Ry),
        'hartree': (ENERGY, aseunits.Hartree),
        'kJ/mol': (ENERGY, aseunits.kJ / aseunits.mol),
        'J': (ENERGY, aseunits.J),
        # pressure
        'eV/angstrom^3': (PRESSURE, aseunits.eV / ang3),
        'GPa': (PRESSURE, aseunits.GPa),
        'kbar': (PRESSURE, 1e3 * aseunits.bar),
        'bar': (PRESSURE, aseunits.bar),
        'Pa': (PRESSURE, aseunits.Pascal),
        'Ry/bohr^3': (PRESSURE, aseunits.Ry / bohr3),
        'hartree/bohr^3': (PRESSURE, aseunits.Hartree / bohr3),
        # inverse pressure, e.g. the second pressure derivative of the bulk modulus
        'angstrom^3/eV': (INVERSE_PRESSURE, ang3 / aseunits.eV),
        '1/GPa': (INVERSE_PRESSURE, 1.0 / aseunits.GPa),
        '1/kbar': (INVERSE_PRESSURE, 1.0 / (1e3 * aseunits.bar)),
        'bohr^3/Ry': (INVERSE_PRESSURE, bohr3 / aseunits.Ry),
        'bohr^3/hartree': (INVERSE_PRESSURE, bohr3 / aseunits.Hartree),
        # dimensionless
        '': (DIMENSIONLESS, 1.0),
    }
    aliases = {
        'Å^3': 'angstrom^3', 'A^3': 'angstrom^3', 'Ang^3': 'angstrom^3',
        'Bohr^3': 'bohr^3',
        'Rydberg': 'Ry', 'Ha': 'hartree', 'Hartree': 'hartree',
        'eV/Å^3': 'eV/angstrom^3', 'eV/A^3': 'eV/angstrom^3', 'eV/Ang^3': 'eV/angstrom^3',
        'Pascal': 'Pa', 'Ha/bohr^3': 'hartree/bohr^3',
        'Å^3/eV': 'angstrom^3/eV', 'A^3/eV': 'angstrom^3/eV', 'GPa^-1': '1/GPa',
        'dimensionless': '', '1': '',
    }
    canonical = {
        VOLUME: 'angstrom^3',
        ENERGY: 'eV',
        PRESSURE: 'eV/angstrom^3',
        INVERSE_PRESSURE: 'angstrom^3/eV',
        DIMENSIONLESS: '',
    }
    return UnitRegistry(units, canonical, aliases)


default_registry = _build_default_registry()


def get_registry(registry: Optional[UnitRegistry] = None) -> UnitRegistry:
    return default_registry if registry is None else registry


class Quantity(object):
    """
    A magnitude (scalar or array) tagged with a unit name known to a :class:`UnitRegistry`.

    Quantities are immutable. Arithmetic is limited to scaling by plain numbers, which is all the
    equation of state code needs; everything else happens on bare magnitudes in canonical units.

    Example:
    ```
    v0 = Quantity(167, 'angstrom^3')
    v0.to('bohr^3')
    1.3 * v0
    ```
    """

    __slots__ = ('_magnitude', '_unit')

    def __init__(self, magnitude: Union[numbers.Number, ArrayLike], unit: str = ''):
        if isinstance(magnitude, Quantity):
            raise TypeError('Cannot nest quantities, use Quantity.to() instead')
        if not isinstance(unit, str):
            raise TypeError('The unit must be given as a string, got {}'.format(type(unit).__name__))
        if isinstance(magnitude, np.generic):
            magnitude = magnitude.item()
        elif not isinstance(magnitude, numbers.Number):
            magnitude = np.array(magnitude, dtype=float)
            magnitude.setflags(write=False)
        object.__setattr__(self, '_magnitude', magnitude)
        object.__setattr__(self, '_unit', _normalize(unit))

    def __setattr__(self, key, value):
        raise AttributeError('Quantity objects are immutable')

    @property
    def magnitude(self):
        return self._magnitude

    @property
    def unit(self) -> str:
        return self._unit

    @property
    def dimension(self) -> str:
        return default_registry.dimension(self._unit)

    def to(self, unit: str, registry: Optional[UnitRegistry] = None) -> 'Quantity':
        return Quantity(get_registry(registry).convert(self._magnitude, self._unit, unit), unit)

    def canonical(self, registry: Optional[UnitRegistry] = None) -> 'Quantity':
        registry = get_registry(registry)
        return self.to(registry.canonical_unit(registry.dimension(self._unit)), registry)

    def __mul__(self, other):
        if isinstance(other, (numbers.Number, np.ndarray)):
            return Quantity(self._magnitude * other, self._unit)
        return NotImplemented

    __rmul__ = __mul__

    def __truediv__(self, other):
        if isinstance(other, (numbers.Number, np.ndarray)):
            return Quantity(self._magnitude / other, self._unit)
        return NotImplemented

    def __neg__(self):
        return Quantity(-self._magnitude, self._unit)

    def __len__(self):
        if np.ndim(self._magnitude) == 0:
            raise TypeError('Scalar quantity has no len()')
        return len(self._magnitude)

    def __iter__(self):
        if np.ndim(self._magnitude) == 0:
            raise TypeError('Scalar quantity is not iterable')
        return (Quantity(m, self._unit) for m in self._magnitude)

    def __getitem__(self, item):
        return Quantity(self._magnitude[item], self._unit)

    def _compare(self, other, op):
        if not isinstance(other, Quantity):
            return NotImplemented
        return op(default_registry.to_canonical(self), default_registry.to_canonical(other, self.dimension))

    def __lt__(self, other):
        return self._compare(other, np.less)

    def __le__(self, other):
        return self._compare(other, np.less_equal)

    def __gt__(self, other):
        return self._compare(other, np.greater)

    def __ge__(self, other):
        return self._compare(other, np.greater_equal)

    def __eq__(self, other):
        if not isinstance(other, Quantity):
            return NotImplemented
        return self._unit == other._unit and np.array_equal(self._magnitude, other._magnitude)

    def __hash__(self):
        if np.ndim(self._magnitude) != 0:
            raise TypeError("unhashable type: 'Quantity' with an array magnitude")
        return hash((self._magnitude, self._unit))

    def __repr__(self):
        return 'Quantity({!r}, {!r})'.format(self._magnitude, self._unit)

    def __str__(self):
        return '{} {}'.format(self._magnitude, self._unit).rstrip()


def is_quantity(value: Any) -> bool:
    """
    Returns ``True`` if {value} is a :class:`Quantity` or a non-empty iterable made of quantities.
    """
    if isinstance(value, Quantity):
        return True
    if isinstance(value, (str, bytes, np.ndarray)) or not isinstance(value, Iterable):
        return False
    items = list(value)
    return bool(items) and all(isinstance(item, Quantity) for item in items)
