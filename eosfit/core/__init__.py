from eosfit.core.config import Config, load_config
from eosfit.core.common import LoggerMixin, DotDict
from eosfit.core.utils import override_environ
from eosfit.core.exceptions import EquationOfStateError, UnsupportedRelationError, UnitMismatchError, \
    FitNotConvergedError, RootNotFoundError, LinearFitError, DomainWarning

__all__ = ["Config", "load_config", "LoggerMixin", "DotDict", "override_environ", "EquationOfStateError",
           "UnsupportedRelationError", "UnitMismatchError", "FitNotConvergedError", "RootNotFoundError",
           "LinearFitError", "DomainWarning"]
