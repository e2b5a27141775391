import pytest
import numpy as np
from ase import units as aseunits
from eosfit.units import Quantity, UnitRegistry, default_registry, is_quantity, VOLUME, PRESSURE, ENERGY, \
    INVERSE_PRESSURE, DIMENSIONLESS
from eosfit.core.exceptions import UnitMismatchError


class TestQuantity:

    def test_conversion(self):
        v = Quantity(1.0, 'bohr^3')
        assert v.to('angstrom^3').magnitude == pytest.approx(aseunits.Bohr ** 3)
        assert v.to('angstrom^3').unit == 'angstrom^3'
        assert Quantity(1, 'GPa').to('kbar').magnitude == pytest.approx(10.0)
        assert Quantity(1, 'Ry').to('eV').magnitude == pytest.approx(aseunits.Ry)

    def test_canonical(self):
        b = Quantity(160.21766208, 'GPa').canonical()
        assert b.unit == 'eV/angstrom^3'
        assert b.magnitude == pytest.approx(1.0, rel=1e-6)

    def test_aliases_and_dimension(self):
        assert Quantity(1, 'Å^3').dimension == VOLUME
        assert Quantity(1, 'eV/Å^3').dimension == PRESSURE
        assert Quantity(1, 'Ha').dimension == ENERGY
        assert Quantity(1, '1/GPa').dimension == INVERSE_PRESSURE
        assert Quantity(4).dimension == DIMENSIONLESS

    def test_incompatible_conversion(self):
        with pytest.raises(UnitMismatchError):
            Quantity(1, 'GPa').to('eV')
        with pytest.raises(UnitMismatchError):
            Quantity(1, 'furlong').to('angstrom^3')

    def test_immutable(self):
        q = Quantity([1.0, 2.0], 'eV')
        with pytest.raises(AttributeError):
            q.unit = 'Ry'
        with pytest.raises(ValueError):
            q.magnitude[0] = 3.0

    def test_arithmetic(self):
        q = Quantity(2.0, 'GPa')
        assert (3 * q) == Quantity(6.0, 'GPa')
        assert (q / 2) == Quantity(1.0, 'GPa')
        assert -q == Quantity(-2.0, 'GPa')
        assert Quantity(1, 'GPa') < Quantity(20, 'kbar')
        assert Quantity(1, 'bohr^3') > Quantity(0.1, 'angstrom^3')

    def test_arrays(self):
        q = Quantity(np.array([1.0, 2.0, 3.0]), 'angstrom^3')
        assert len(q) == 3
        assert [x.magnitude for x in q] == [1.0, 2.0, 3.0]
        assert q[1] == Quantity(2.0, 'angstrom^3')
        with pytest.raises(TypeError):
            hash(q)

    def test_is_quantity(self):
        assert is_quantity(Quantity(1, 'eV'))
        assert is_quantity([Quantity(1, 'eV'), Quantity(2, 'Ry')])
        assert not is_quantity([1.0, 2.0])
        assert not is_quantity(np.array([1.0, 2.0]))
        assert not is_quantity([])
        assert not is_quantity(3.0)


class TestUnitRegistry:

    def test_to_canonical(self):
        values = [Quantity(1, 'bohr^3'), Quantity(2, 'bohr^3')]
        np.testing.assert_allclose(default_registry.to_canonical(values, VOLUME),
                                   np.array([1.0, 2.0]) * aseunits.Bohr ** 3)
        assert default_registry.to_canonical(Quantity(1, 'eV')) == 1.0

    def test_dimension_check(self):
        with pytest.raises(UnitMismatchError):
            default_registry.to_canonical(Quantity(1, 'eV'), VOLUME)
        with pytest.raises(UnitMismatchError):
            default_registry.to_canonical(1.0, VOLUME)

    def test_round_trip_of_unit(self):
        q = default_registry.from_canonical(1.0, 'GPa')
        assert q.unit == 'GPa'
        assert q.magnitude == pytest.approx(1 / aseunits.GPa)

    def test_custom_registry(self):
        registry = UnitRegistry({'m^3': (VOLUME, 1.0), 'l': (VOLUME, 1e-3)}, {VOLUME: 'm^3'}, aliases={'liter': 'l'})
        assert 'liter' in registry
        assert 'angstrom^3' not in registry
        assert registry.convert(1.0, 'liter', 'm^3') == pytest.approx(1e-3)
        with pytest.raises(ValueError):
            UnitRegistry({'l': (VOLUME, 1e-3)}, {VOLUME: 'l'})
