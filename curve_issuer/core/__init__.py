from curve_issuer.core.clients import ChainClient, ChainClientProtocol

__all__ = [
    "ChainClient",
    "ChainClientProtocol",
]
