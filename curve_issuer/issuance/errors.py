from __future__ import annotations

from enum import StrEnum
from typing import Any


class IssuanceErrorKind(StrEnum):
    VALIDATION = "ValidationError"
    CHAIN_READ = "ChainReadError"
    SUBMISSION = "SubmissionError"
    EXECUTION_REVERTED = "ExecutionReverted"
    CONFIRMATION_TIMEOUT = "ConfirmationTimeout"


class IssuanceError(Exception):
    """Base of every failure the issuance pipeline surfaces.

    ``cause`` is the underlying exception, also chained as ``__cause__`` by the
    raiser.
    """

    kind: IssuanceErrorKind

    def __init__(self, message: str, *, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause

    def __str__(self) -> str:
        message = super().__str__()
        if self.cause is not None:
            return f"{message}: {self.cause}"
        return message


class ValidationError(IssuanceError, ValueError):
    kind = IssuanceErrorKind.VALIDATION

    def __init__(self, message: str, *, errors: list[str] | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.errors = errors or [message]


class ChainReadError(IssuanceError):
    kind = IssuanceErrorKind.CHAIN_READ


class SubmissionError(IssuanceError):
    kind = IssuanceErrorKind.SUBMISSION


class ExecutionReverted(IssuanceError):
    kind = IssuanceErrorKind.EXECUTION_REVERTED

    def __init__(
        self,
        tx_hash: str,
        *,
        reason: str | None = None,
        receipt: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ):
        self.tx_hash = tx_hash
        self.reason = reason
        self.receipt = receipt or {}
        message = f"Transaction reverted (status=0): {tx_hash}"
        if reason:
            message = f"{message} reason={reason}"
        super().__init__(message, cause=cause)


class ConfirmationTimeout(IssuanceError):
    kind = IssuanceErrorKind.CONFIRMATION_TIMEOUT

    def __init__(
        self, tx_hash: str, timeout: float, *, cause: BaseException | None = None
    ):
        self.tx_hash = tx_hash
        self.timeout = timeout
        super().__init__(
            f"No receipt for {tx_hash} within {timeout}s; "
            "the transaction may still confirm later",
            cause=cause,
        )
