import pytest
import numpy as np
from eosfit.collections import Murnaghan, Birch, BirchMurnaghan2nd, BirchMurnaghan3rd, BirchMurnaghan4th, \
    PoirierTarantola2nd, PoirierTarantola3rd, PoirierTarantola4th, Vinet, AntonSchmidt, BreenanStacey, Polynomial
from eosfit.evaluate import Property, evaluate, energy, pressure, bulk_modulus, eos_function, supported_properties
from eosfit.core.exceptions import UnsupportedRelationError, UnitMismatchError
from eosfit.units import Quantity, EV_PER_ANG3_TO_GPA

EQUATIONS_OF_STATE = [
    Murnaghan(40, 0.5, 4, -10),
    Birch(40, 0.5, 4, -10),
    BirchMurnaghan2nd(40, 0.5, -10),
    BirchMurnaghan3rd(40, 0.5, 4, -10),
    BirchMurnaghan4th(40, 0.5, 4, -12, -10),
    PoirierTarantola2nd(40, 0.5, -10),
    PoirierTarantola3rd(40, 0.5, 4, -10),
    PoirierTarantola4th(40, 0.5, 4, -12, -10),
    Vinet(40, 0.5, 4, -10),
    AntonSchmidt(40, 0.5, -2, -10),
    BreenanStacey(40, 0.5, 1.5, -10),
    Polynomial(40, (0.25, -0.01, 1e-3), -10),
]

VOLUMES = np.linspace(30, 55, 11)


def _supports(eos, prop):
    return prop in supported_properties(type(eos))


def _name(eos):
    return type(eos).__name__


class TestZeroStrain:

    @pytest.mark.parametrize('eos', [e for e in EQUATIONS_OF_STATE
                                     if _supports(e, Property.ENERGY) and not isinstance(e, AntonSchmidt)], ids=_name)
    def test_energy(self, eos):
        assert energy(eos, eos.v0) == pytest.approx(eos.e0, abs=1e-12)

    @pytest.mark.parametrize('eos', EQUATIONS_OF_STATE, ids=_name)
    def test_pressure(self, eos):
        assert pressure(eos, eos.v0) == pytest.approx(0.0, abs=1e-12)

    @pytest.mark.parametrize('eos', [e for e in EQUATIONS_OF_STATE
                                     if _supports(e, Property.BULK_MODULUS) and not isinstance(e, Polynomial)],
                             ids=_name)
    def test_bulk_modulus(self, eos):
        b0 = eos.beta if isinstance(eos, AntonSchmidt) else eos.b0
        assert bulk_modulus(eos, eos.v0) == pytest.approx(b0, rel=1e-12)

    def test_anton_schmidt_energy(self):
        eos = AntonSchmidt(40, 0.5, -2, -10)
        assert energy(eos, eos.v0) == pytest.approx(eos.e_inf - eos.beta * eos.v0 / (eos.n + 1) ** 2)

    def test_polynomial_bulk_modulus(self):
        eos = Polynomial(40, (0.25, -0.01), -10)
        assert bulk_modulus(eos, 40) == pytest.approx(40 * 2 * 0.25)


class TestConsistency:

    @pytest.mark.parametrize('eos', [e for e in EQUATIONS_OF_STATE if _supports(e, Property.ENERGY)], ids=_name)
    def test_pressure_is_negative_energy_derivative(self, eos):
        h = 1e-5
        derivative = (energy(eos, VOLUMES + h) - energy(eos, VOLUMES - h)) / (2 * h)
        np.testing.assert_allclose(pressure(eos, VOLUMES), -derivative, rtol=1e-6, atol=1e-9)

    @pytest.mark.parametrize('eos', [e for e in EQUATIONS_OF_STATE if _supports(e, Property.BULK_MODULUS)],
                             ids=_name)
    def test_bulk_modulus_definition(self, eos):
        h = 1e-5
        derivative = (pressure(eos, VOLUMES + h) - pressure(eos, VOLUMES - h)) / (2 * h)
        np.testing.assert_allclose(bulk_modulus(eos, VOLUMES), -VOLUMES * derivative, rtol=1e-6, atol=1e-9)

    def test_bm4_reduces_to_bm3(self):
        b0, bp0 = 0.5, 4.5
        bpp0 = -((3 - bp0) * (4 - bp0) + 35 / 9) / b0
        bm3 = BirchMurnaghan3rd(40, b0, bp0, -10)
        bm4 = BirchMurnaghan4th(40, b0, bp0, bpp0, -10)
        for prop in Property:
            np.testing.assert_allclose(evaluate(prop, bm4, VOLUMES), evaluate(prop, bm3, VOLUMES), rtol=1e-10)

    def test_second_order_limits(self):
        np.testing.assert_allclose(energy(BirchMurnaghan2nd(40, 0.5, -10), VOLUMES),
                                   energy(BirchMurnaghan3rd(40, 0.5, 4, -10), VOLUMES), rtol=1e-12)
        np.testing.assert_allclose(pressure(PoirierTarantola2nd(40, 0.5, -10), VOLUMES),
                                   pressure(PoirierTarantola3rd(40, 0.5, 2, -10), VOLUMES), rtol=1e-12)


class TestEvaluate:

    def test_scalar_and_array(self):
        eos = Vinet(40, 0.5, 4, -10)
        assert isinstance(energy(eos, 35), float)
        values = energy(eos, [35, 40, 45])
        assert isinstance(values, np.ndarray)
        assert values[1] == pytest.approx(-10)

    def test_property_names(self):
        eos = Vinet(40, 0.5, 4, -10)
        assert evaluate('energy', eos, 35) == evaluate(Property.ENERGY, eos, 35)
        assert evaluate('bulk modulus', eos, 35) == bulk_modulus(eos, 35)
        with pytest.raises(ValueError):
            evaluate('enthalpy', eos, 35)

    def test_unsupported(self):
        with pytest.raises(UnsupportedRelationError):
            energy(BreenanStacey(40, 0.5, 1.5), 35)
        with pytest.raises(UnsupportedRelationError):
            bulk_modulus(Birch(40, 0.5, 4), 35)
        with pytest.raises(NotImplementedError):
            eos_function(Property.ENERGY, BreenanStacey(40, 0.5, 1.5))

    def test_eos_function(self):
        eos = BirchMurnaghan3rd(40, 0.5, 4, -10)
        f = eos_function(Property.PRESSURE, eos)
        np.testing.assert_allclose(f(VOLUMES), pressure(eos, VOLUMES))
        assert list(map(f, [35.0, 45.0])) == [pressure(eos, 35.0), pressure(eos, 45.0)]

    def test_non_positive_volume(self):
        assert np.isnan(pressure(BirchMurnaghan3rd(40, 0.5, 4, -10), -1.0))

    def test_units(self):
        eos = BirchMurnaghan3rd(Quantity(40, 'angstrom^3'), Quantity(0.5 * EV_PER_ANG3_TO_GPA, 'GPa'), 4,
                                Quantity(-10, 'eV'))
        reference = BirchMurnaghan3rd(40, 0.5, 4, -10)
        e = energy(eos, Quantity(35, 'angstrom^3'))
        assert e.unit == 'eV'
        assert e.magnitude == pytest.approx(energy(reference, 35))
        p = pressure(eos, [Quantity(35, 'angstrom^3'), Quantity(45, 'angstrom^3')])
        assert p.unit == 'eV/angstrom^3'
        np.testing.assert_allclose(p.magnitude, pressure(reference, [35, 45]))
        assert p.to('GPa').magnitude[0] == pytest.approx(pressure(reference, 35) * EV_PER_ANG3_TO_GPA)

    def test_unit_mismatch(self):
        with pytest.raises(UnitMismatchError):
            energy(Vinet(Quantity(40, 'angstrom^3'), Quantity(80, 'GPa'), 4), 35)
        with pytest.raises(UnitMismatchError):
            energy(Vinet(40, 0.5, 4), Quantity(35, 'angstrom^3'))
        with pytest.raises(UnitMismatchError):
            energy(Vinet(Quantity(40, 'angstrom^3'), Quantity(80, 'GPa'), 4), Quantity(35, 'eV'))
