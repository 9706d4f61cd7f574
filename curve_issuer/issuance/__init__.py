from curve_issuer.issuance.errors import (
    ChainReadError,
    ConfirmationTimeout,
    ExecutionReverted,
    IssuanceError,
    IssuanceErrorKind,
    SubmissionError,
    ValidationError,
)
from curve_issuer.issuance.fees import CreationFee, fetch_creation_fee
from curve_issuer.issuance.logs import extract_created_address
from curve_issuer.issuance.orchestrator import (
    IssuanceOrchestrator,
    IssuanceResult,
    IssuanceState,
    issue_token,
)
from curve_issuer.issuance.params import (
    BondingCurveConfig,
    CurveSpec,
    IssuanceSpec,
    TokenIdentity,
    resolve_curve_config,
    resolve_curve_from_spec,
    resolve_issuance_params,
    resolve_token_identity,
)
from curve_issuer.issuance.policy import RetryPolicy, issue_token_with_policy

__all__ = [
    "BondingCurveConfig",
    "ChainReadError",
    "ConfirmationTimeout",
    "CreationFee",
    "CurveSpec",
    "ExecutionReverted",
    "IssuanceError",
    "IssuanceErrorKind",
    "IssuanceOrchestrator",
    "IssuanceResult",
    "IssuanceSpec",
    "IssuanceState",
    "RetryPolicy",
    "SubmissionError",
    "TokenIdentity",
    "ValidationError",
    "extract_created_address",
    "fetch_creation_fee",
    "issue_token",
    "issue_token_with_policy",
    "resolve_curve_config",
    "resolve_curve_from_spec",
    "resolve_issuance_params",
    "resolve_token_identity",
]
