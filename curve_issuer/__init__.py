__version__ = "0.1.0"

from curve_issuer.issuance import (
    BondingCurveConfig,
    IssuanceError,
    IssuanceResult,
    IssuanceState,
    TokenIdentity,
    issue_token,
)

__all__ = [
    "__version__",
    "BondingCurveConfig",
    "IssuanceError",
    "IssuanceResult",
    "IssuanceState",
    "TokenIdentity",
    "issue_token",
]
