import pytest
import numpy as np
from eosfit.collections import BirchMurnaghan3rd, BirchMurnaghan4th
from eosfit.evaluate import energy, pressure, bulk_modulus
from eosfit.linear import Strain, energy_volume_derivatives, linear_fit
from eosfit.core.exceptions import LinearFitError, DomainWarning


class TestStrain:

    @pytest.mark.parametrize('strain', list(Strain), ids=str)
    def test_inverse(self, strain):
        v = np.linspace(30, 50, 9)
        np.testing.assert_allclose(strain.to_volume(40.0, strain.from_volume(40.0, v)), v, rtol=1e-12)
        assert strain.from_volume(40.0, 40.0) == pytest.approx(0.0, abs=1e-15)

    @pytest.mark.parametrize('strain', list(Strain), ids=str)
    @pytest.mark.parametrize('order', [1, 2, 3])
    def test_volume_derivative(self, strain, order):
        v0, v, h = 40.0, 35.0, 1e-4
        if order == 1:
            g = lambda x: strain.from_volume(v0, x)
        else:
            g = lambda x: strain.volume_derivative(v0, x, order - 1)
        expected = (g(v + h) - g(v - h)) / (2 * h)
        assert strain.volume_derivative(v0, v, order) == pytest.approx(expected, rel=1e-6)

    def test_of(self):
        assert Strain.of('Eulerian') is Strain.EULERIAN
        with pytest.raises(ValueError):
            Strain.of('green')


class TestEnergyVolumeDerivatives:

    def test_bulk_modulus_from_expansion(self):
        # the 3rd order Birch-Murnaghan energy is a cubic polynomial in the Eulerian strain
        eos = BirchMurnaghan3rd(40.0, 0.5, 4.2, -10.0)
        f = Strain.EULERIAN.from_volume(40.0, np.linspace(30, 50, 9))
        poly = np.poly1d(np.polyfit(f, energy(eos, Strain.EULERIAN.to_volume(40.0, f)), 3))
        d1, d2 = energy_volume_derivatives(Strain.EULERIAN, 40.0, 36.0, poly, 2)
        assert -d1 == pytest.approx(pressure(eos, 36.0), rel=1e-8)
        assert 36.0 * d2 == pytest.approx(bulk_modulus(eos, 36.0), rel=1e-8)

    def test_order(self):
        with pytest.raises(ValueError):
            energy_volume_derivatives(Strain.NATURAL, 40.0, 36.0, np.poly1d([1.0, 0.0, 0.0]), 5)


class TestLinearFit:

    @pytest.mark.parametrize('reference', [None, 38.0])
    def test_birch_murnaghan_data(self, reference):
        eos = BirchMurnaghan3rd(40.0, 0.5, 4.2, -10.0)
        v = np.linspace(32, 50, 13)
        result = linear_fit(v, energy(eos, v), strain=Strain.EULERIAN, degree=3, reference=reference)
        assert result.v0 == pytest.approx(40.0, rel=1e-8)
        assert result.e0 == pytest.approx(-10.0, rel=1e-8)
        assert result.b0 == pytest.approx(0.5, rel=1e-6)
        assert result.bp0 == pytest.approx(4.2, rel=1e-6)
        implied = -((3 - 4.2) * (4 - 4.2) + 35 / 9) / 0.5
        assert result.bpp0 == pytest.approx(implied, rel=1e-5)
        assert result.to_eos().to_vector() == pytest.approx(eos.to_vector(), rel=1e-6)

    def test_fourth_order(self, volumes, energies):
        result = linear_fit(volumes, energies, degree=4)
        eos = result.to_eos()
        assert isinstance(eos, BirchMurnaghan4th)
        assert eos.v0 == pytest.approx(40.95, rel=5e-3)
        assert eos.b0 == pytest.approx(0.54, rel=5e-2)

    # a cubic in the Lagrangian strain overshoots the minimum energy of this data set
    @pytest.mark.parametrize('strain, rel', [(Strain.EULERIAN, 2e-3), (Strain.LAGRANGIAN, 5e-3),
                                             (Strain.NATURAL, 2e-3), (Strain.INFINITESIMAL, 2e-3)], ids=str)
    def test_strains_on_reference_data(self, strain, rel, volumes, energies):
        result = linear_fit(volumes, energies, strain=strain, degree=3)
        assert result.v0 == pytest.approx(40.95, rel=1e-2)
        assert result.e0 == pytest.approx(-10.845, rel=rel)
        assert result.strain is strain

    def test_minimum_at_negative_volume(self):
        # the infinitesimal strain maps f > 1 to negative volumes
        v = np.linspace(30, 50, 9)
        f = Strain.INFINITESIMAL.from_volume(40.0, v)
        with pytest.warns(DomainWarning):
            with pytest.raises(LinearFitError):
                linear_fit(v, (f - 1.5) ** 2, strain=Strain.INFINITESIMAL, degree=2, reference=40.0)

    def test_lower_minimum_at_negative_volume(self):
        v = np.linspace(30, 50, 13)
        f = Strain.INFINITESIMAL.from_volume(40.0, v)
        with pytest.warns(DomainWarning):
            result = linear_fit(v, f ** 2 * (f - 1.5) ** 2 - 0.1 * f, strain=Strain.INFINITESIMAL, degree=4,
                                reference=40.0)
        assert 30.0 < result.v0 < 50.0
        assert result.b0 > 0

    def test_no_minimum(self):
        v = np.linspace(30, 50, 9)
        with pytest.raises(LinearFitError):
            linear_fit(v, -(v - 40.0) ** 2, strain='natural', degree=2)

    def test_complex_critical_points(self):
        v = np.linspace(30, 50, 9)
        f = Strain.NATURAL.from_volume(40.0, v)
        with pytest.warns(DomainWarning):
            with pytest.raises(LinearFitError):
                linear_fit(v, f ** 3 + f, strain=Strain.NATURAL, degree=3, reference=40.0)

    def test_invalid_input(self, volumes, energies):
        with pytest.raises(ValueError):
            linear_fit(volumes, energies[:-1])
        with pytest.raises(ValueError):
            linear_fit(volumes, energies, degree=1)
        with pytest.raises(ValueError):
            linear_fit(volumes[:3], energies[:3], degree=3)
