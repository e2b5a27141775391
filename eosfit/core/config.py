import os
import yaml
from typing import Optional, Any, Dict


CONFIG_FILE_NAME = ".eosfit.conf.yaml"
CONFIG_ENV_VARIABLE = "EOSFIT_CONFIG_FILE"


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Loads a YAML config file from the specified path. If the path is not specified,
    the routine will try to load "~/.eosfit.conf.yaml" in case it exists. Otherwise,
    it uses the value from the environment variable `EOSFIT_CONFIG_FILE`. If all options fail,
    a `FileNotFoundError` is raised.

    Parameters
    ----------
    path : Optional[str], optional
        Path to the config file.

    Returns
    -------
    Dict[str, Any]
        Configuration dictionary.
    """
    if path is None:
        default_path = os.path.join(os.path.expanduser("~"), CONFIG_FILE_NAME)
        if os.path.exists(default_path):
            path = default_path
        else:
            env_path = os.environ.get(CONFIG_ENV_VARIABLE)
            if env_path is None or not os.path.exists(env_path):
                raise FileNotFoundError("No config file was specified")
            else:
                path = env_path

    with open(path) as config_handle:
        return dict(yaml.safe_load(config_handle) or {})


class Config:
    """
    Configuration class that loads settings from a YAML file.

    A typical file looks like

    .. code-block:: yaml

        fitting:
          tolerance: 1.0e-10
          max_iterations: 2000
        find_volume:
          methods: [brentq, bisect, secant]
          xtol: 1.0e-12

    Parameters
    ----------
    path : Optional[str], optional
        Path to the config file.

    Attributes
    ----------
    _config : Dict[str, Any]
        Configuration dictionary.
    """
    def __init__(self, path: Optional[str] = None):
        self._config: Dict[str, Any] = load_config(path)

    def get(self, items: str) -> Any:
        """
        Retrieve a value from the configuration.

        Parameters
        ----------
        items : str
            Configuration item key.

        Returns
        -------
        Any
            Value associated with the specified key.
        """
        return self._config.get(items)

    def section(self, name: str) -> Dict[str, Any]:
        """
        Retrieve a whole section of the configuration, an empty dictionary if it is absent.

        Parameters
        ----------
        name : str
            Section name, e.g. ``"fitting"`` or ``"find_volume"``.

        Returns
        -------
        Dict[str, Any]
            The section's key-value pairs.
        """
        value = self._config.get(name)
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ValueError('Config section "{}" must be a mapping'.format(name))
        return dict(value)
