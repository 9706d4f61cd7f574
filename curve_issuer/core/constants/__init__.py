from curve_issuer.core.constants.base import MAX_BPS, MAX_UINT128, MAX_UINT256
from curve_issuer.core.constants.chains import (
    CHAIN_ID_BASE,
    CHAIN_ID_BASE_SEPOLIA,
    SUPPORTED_CHAINS,
)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

__all__ = [
    "CHAIN_ID_BASE",
    "CHAIN_ID_BASE_SEPOLIA",
    "MAX_BPS",
    "MAX_UINT128",
    "MAX_UINT256",
    "SUPPORTED_CHAINS",
    "ZERO_ADDRESS",
]
