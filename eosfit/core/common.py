import logging
from typing import Any


class LoggerMixin(object):
    """
    A mixin providing a logger named after the fully qualified class name
    """

    def __init__(self, **kwargs):
        super(LoggerMixin, self).__init__(**kwargs)

    @property
    def logger(self) -> logging.Logger:
        return logging.getLogger(self.fullname())

    @classmethod
    def fullname(cls) -> str:
        name = '.'.join([
            cls.__module__,
            cls.__name__
        ])
        return name


class DotDict(dict):
    """
    A dictionary whose items can also be read as attributes. Used for the raw solver traces.

    Example:
    ```
    trace = DotDict(converged=True, iterations=12)
    trace.iterations  # 12
    ```
    """

    def __getattr__(self, attr: str) -> Any:
        if attr in self:
            return self[attr]
        raise AttributeError(f"'{type(self).__name__}' object has no attribute '{attr}'")
