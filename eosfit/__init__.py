from eosfit.units import Quantity, UnitRegistry, default_registry
from eosfit.collections import EquationOfState, Murnaghan, Birch, BirchMurnaghan2nd, BirchMurnaghan3rd, \
    BirchMurnaghan4th, PoirierTarantola2nd, PoirierTarantola3rd, PoirierTarantola4th, Vinet, AntonSchmidt, \
    BreenanStacey, Polynomial
from eosfit.evaluate import Property, evaluate, energy, pressure, bulk_modulus, eos_function
from eosfit.fitting import FitOptions, fit
from eosfit.find import Method, VolumeFinder, find_volume
from eosfit.linear import Strain, linear_fit
from eosfit.core import EquationOfStateError, UnsupportedRelationError, UnitMismatchError, FitNotConvergedError, \
    RootNotFoundError, LinearFitError, DomainWarning

__all__ = ["Quantity", "UnitRegistry", "default_registry", "EquationOfState", "Murnaghan", "Birch",
           "BirchMurnaghan2nd", "BirchMurnaghan3rd", "BirchMurnaghan4th", "PoirierTarantola2nd",
           "PoirierTarantola3rd", "PoirierTarantola4th", "Vinet", "AntonSchmidt", "BreenanStacey", "Polynomial",
           "Property", "evaluate", "energy", "pressure", "bulk_modulus", "eos_function", "FitOptions", "fit",
           "Method", "VolumeFinder", "find_volume", "Strain", "linear_fit", "EquationOfStateError",
           "UnsupportedRelationError", "UnitMismatchError", "FitNotConvergedError", "RootNotFoundError",
           "LinearFitError", "DomainWarning"]

__version__ = '0.3'
