"""
Linear fitting of energy-volume data: the energy is expanded as a polynomial in a finite strain, which is fitted by
linear least squares. The equilibrium is the lowest local minimum of the polynomial, and the bulk modulus and its
pressure derivatives follow from the volume derivatives of the expansion at that point.
"""

import enum
import logging
import math
import warnings
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from numpy.typing import ArrayLike

from eosfit.collections import BirchMurnaghan3rd, BirchMurnaghan4th, EquationOfState
from eosfit.core.exceptions import LinearFitError, DomainWarning

__all__ = ["Strain", "energy_volume_derivatives", "LinearFitResult", "linear_fit"]

logger = logging.getLogger(__name__)

# imaginary parts below this (relative to the root) are numerical noise
_IMAGINARY_TOLERANCE = 1e-10


class Strain(enum.Enum):
    """
    Finite strain measures as a function of the reference volume ``v0`` and the volume ``v``:

    * Eulerian :math:`f = ((v_0/v)^{2/3} - 1) / 2`
    * Lagrangian :math:`f = ((v/v_0)^{2/3} - 1) / 2`
    * Natural :math:`f = \\ln(v/v_0) / 3`
    * Infinitesimal :math:`f = 1 - (v_0/v)^{1/3}`
    """
    EULERIAN = 'eulerian'
    LAGRANGIAN = 'lagrangian'
    NATURAL = 'natural'
    INFINITESIMAL = 'infinitesimal'

    @classmethod
    def of(cls, strain) -> 'Strain':
        if isinstance(strain, cls):
            return strain
        try:
            return cls(str(strain).lower())
        except ValueError:
            raise ValueError('Unknown strain measure "{}"'.format(strain)) from None

    def _power(self) -> Tuple[float, float]:
        # all but the natural strain are of the form a * (v / v0)**k + const
        return {
            Strain.EULERIAN: (0.5, -2 / 3),
            Strain.LAGRANGIAN: (0.5, 2 / 3),
            Strain.INFINITESIMAL: (-1.0, -1 / 3),
        }[self]

    def from_volume(self, v0: float, v: ArrayLike):
        v = np.asarray(v, dtype=float)
        if self is Strain.EULERIAN:
            return ((v0 / v) ** (2 / 3) - 1) / 2
        if self is Strain.LAGRANGIAN:
            return ((v / v0) ** (2 / 3) - 1) / 2
        if self is Strain.NATURAL:
            return np.log(v / v0) / 3
        return 1 - (v0 / v) ** (1 / 3)

    def to_volume(self, v0: float, f: ArrayLike):
        f = np.asarray(f, dtype=float)
        if self is Strain.EULERIAN:
            return v0 * (2 * f + 1) ** (-3 / 2)
        if self is Strain.LAGRANGIAN:
            return v0 * (2 * f + 1) ** (3 / 2)
        if self is Strain.NATURAL:
            return v0 * np.exp(3 * f)
        return v0 * (1 - f) ** (-3)

    def volume_derivative(self, v0: float, v: float, order: int) -> float:
        """
        The {order}-th derivative of the strain with respect to the volume at {v}.
        """
        if order < 1:
            raise ValueError('The order of the derivative must be positive, got {}'.format(order))
        if self is Strain.NATURAL:
            return (-1) ** (order - 1) * math.factorial(order - 1) / (3 * v ** order)
        a, k = self._power()
        falling = np.prod([k - i for i in range(order)])
        return a * falling * (v / v0) ** k / v ** order


def _chain_rule(e: np.ndarray, f: np.ndarray, order: int) -> float:
    # Faa di Bruno: d^n E / dV^n from d^m E / df^m (e[m - 1]) and d^m f / dV^m (f[m - 1])
    if order == 1:
        return e[0] * f[0]
    if order == 2:
        return e[1] * f[0] ** 2 + e[0] * f[1]
    if order == 3:
        return e[2] * f[0] ** 3 + 3 * e[1] * f[0] * f[1] + e[0] * f[2]
    if order == 4:
        return (e[3] * f[0] ** 4 + 6 * e[2] * f[0] ** 2 * f[1] + e[1] * (3 * f[1] ** 2 + 4 * f[0] * f[2])
                + e[0] * f[3])
    raise ValueError('Volume derivatives are only available up to 4th order, got {}'.format(order))


def energy_volume_derivatives(strain: Strain, v0: float, v: float, poly: np.poly1d, order: int) -> np.ndarray:
    """
    Derivatives of the energy with respect to the volume, from first up to {order}-th, of an energy given as a
    polynomial in the strain.

    Parameters
    ----------
    strain : Strain
        The strain measure the polynomial is expressed in.
    v0 : float
        Reference volume of the strain.
    v : float
        Volume at which the derivatives are taken.
    poly : np.poly1d
        Energy as a function of the strain.
    order : int
        Highest derivative, between 1 and 4.

    Returns
    -------
    np.ndarray
        ``[dE/dV, d^2E/dV^2, ...]``
    """
    strain = Strain.of(strain)
    if not 1 <= order <= 4:
        raise ValueError('The order must be within 1 and 4, got {}'.format(order))
    x = float(strain.from_volume(v0, v))
    e = np.array([np.polyder(poly, m)(x) for m in range(1, order + 1)], dtype=float)
    f = np.array([strain.volume_derivative(v0, v, m) for m in range(1, order + 1)], dtype=float)
    return np.array([_chain_rule(e, f, m) for m in range(1, order + 1)])


@dataclass(frozen=True)
class LinearFitResult:
    """
    Equilibrium properties obtained by :func:`linear_fit`, in the units of the data (``b0`` in energy per volume).
    """
    v0: float
    e0: float
    b0: float
    bp0: float
    bpp0: float
    coefficients: Tuple[float, ...]
    strain: Strain
    reference: float

    @property
    def polynomial(self) -> np.poly1d:
        return np.poly1d(self.coefficients)

    def to_eos(self, order: Optional[int] = None) -> EquationOfState:
        """
        The equivalent Birch-Murnaghan equation of state, 4th order if the polynomial has at least degree 4.
        """
        if order is None:
            order = 4 if len(self.coefficients) > 4 else 3
        if order == 3:
            return BirchMurnaghan3rd(self.v0, self.b0, self.bp0, self.e0)
        if order == 4:
            return BirchMurnaghan4th(self.v0, self.b0, self.bp0, self.bpp0, self.e0)
        raise ValueError('Only 3rd and 4th order equations of state are available, got {}'.format(order))


def _local_minima(poly: np.poly1d) -> np.ndarray:
    critical = np.roots(np.polyder(poly))
    real = np.abs(critical.imag) <= _IMAGINARY_TOLERANCE * np.maximum(np.abs(critical), 1.0)
    if not np.all(real):
        warnings.warn('Discarding {} complex critical point(s) of the strain polynomial'.format(np.sum(~real)),
                      DomainWarning)
    critical = critical[real].real
    return critical[np.polyder(poly, 2)(critical) > 0]


def linear_fit(volumes: ArrayLike, energies: ArrayLike, strain: Strain = Strain.EULERIAN, degree: int = 3,
               reference: Optional[float] = None) -> LinearFitResult:
    """
    Fits the energy as a polynomial in a finite strain.

    Parameters
    ----------
    volumes : ArrayLike
        Volumes.
    energies : ArrayLike
        Energies.
    strain : Strain, optional
        The strain measure, by default Eulerian.
    degree : int, optional
        Degree of the polynomial, by default 3.
    reference : Optional[float], optional
        Reference volume of the strain, by default the volume with the lowest energy.

    Returns
    -------
    LinearFitResult
        Equilibrium volume, energy, bulk modulus and its first two pressure derivatives.

    Raises
    ------
    LinearFitError
        If the polynomial has no local minimum at a positive volume.
    """
    strain = Strain.of(strain)
    v = np.asarray(volumes, dtype=float)
    e = np.asarray(energies, dtype=float)
    if v.shape != e.shape:
        raise ValueError('Got {} volumes but {} energies'.format(v.size, e.size))
    if degree < 2:
        raise ValueError('The degree of the polynomial must be at least 2, got {}'.format(degree))
    if v.size <= degree:
        raise ValueError('A polynomial of degree {} needs more than {} data points'.format(degree, degree))
    if reference is None:
        reference = float(v[np.argmin(e)])

    poly = np.poly1d(np.polyfit(strain.from_volume(reference, v), e, degree))
    minima = _local_minima(poly)
    with np.errstate(invalid='ignore', divide='ignore'):
        candidates = strain.to_volume(reference, minima)
    physical = np.isfinite(candidates) & (candidates > 0)
    if not np.all(physical):
        warnings.warn('Discarding {} minimum(s) of the strain polynomial at a non-positive volume'.format(
            np.sum(~physical)), DomainWarning)
    minima = minima[physical]
    if minima.size == 0:
        raise LinearFitError('The {} strain polynomial of degree {} has no local minimum'.format(strain.value, degree))
    f0 = minima[np.argmin(poly(minima))]
    v0 = float(strain.to_volume(reference, f0))
    logger.debug('Linear fit: minimum at strain %g, volume %g', f0, v0)

    _, e2, e3, e4 = energy_volume_derivatives(strain, reference, v0, poly, 4)
    b0 = v0 * e2
    bp0 = -1 - v0 * e3 / e2
    bpp0 = e3 / e2 ** 2 + v0 * (e4 * e2 - e3 ** 2) / e2 ** 3
    return LinearFitResult(v0=v0, e0=float(poly(f0)), b0=float(b0), bp0=float(bp0), bpp0=float(bpp0),
                           coefficients=tuple(float(c) for c in poly.coeffs), strain=strain,
                           reference=reference)
