"""hostasis — reserve-owned content on Swarm, feeds signed locally.

The reserve key pays. The project key signs. Neither leaves the machine.
"""

from __future__ import annotations

__all__ = [
    "__version__",
    "DEFAULT_GATEWAY_URL",
    "DEFAULT_GNOSIS_RPC_URL",
]

__version__ = "0.3.0"

DEFAULT_GATEWAY_URL = "https://bzz.sh"
DEFAULT_GNOSIS_RPC_URL = "https://rpc.gnosis.gateway.fm"
