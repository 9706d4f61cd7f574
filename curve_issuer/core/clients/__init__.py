from curve_issuer.core.clients.ChainClient import ChainClient
from curve_issuer.core.clients.protocols import ChainClientProtocol

__all__ = [
    "ChainClient",
    "ChainClientProtocol",
]
