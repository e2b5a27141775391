import os
import contextlib
from typing import Iterator


@contextlib.contextmanager
def override_environ(*remove: str, **update: str) -> Iterator[None]:
    """
    Temporarily sets and/or removes environment variables, e.g. to point ``EOSFIT_CONFIG_FILE`` to another
    config file. ``os.environ`` is modified in-place and restored on exit.

    Parameters
    ----------
    remove : str
        Names of the variables to remove.
    update : str
        Variables to add or overwrite.
    """
    env = os.environ
    touched = set(update) | set(remove)
    previous = {k: env[k] for k in touched if k in env}
    try:
        env.update(update)
        for k in remove:
            env.pop(k, None)
        yield
    finally:
        for k in touched:
            if k in previous:
                env[k] = previous[k]
            else:
                env.pop(k, None)
