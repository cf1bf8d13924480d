"""hostasis.core

Core primitives: configuration, errors, hex validation, logging.

Nothing in here performs network I/O.
"""

from .config import Config
from .exceptions import HostasisError
from .hexutil import ZERO_TOPIC, require_hex32

__all__ = [
    "Config",
    "HostasisError",
    "ZERO_TOPIC",
    "require_hex32",
]
