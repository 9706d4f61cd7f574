from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

from loguru import logger

from curve_issuer.core.clients.protocols import ChainClientProtocol
from curve_issuer.core.constants.base import DEFAULT_TRANSACTION_TIMEOUT
from curve_issuer.core.utils.transaction import GasEstimationError
from curve_issuer.issuance.errors import IssuanceError, SubmissionError
from curve_issuer.issuance.fees import CreationFee
from curve_issuer.issuance.orchestrator import IssuanceResult, issue_token
from curve_issuer.issuance.params import BondingCurveConfig, TokenIdentity


def exponential_backoff_s(
    attempt: int, *, base_delay_s: float = 1.0, max_delay_s: float | None = None
) -> float:
    delay_s = base_delay_s * (2**attempt)
    if max_delay_s is not None:
        delay_s = min(delay_s, max_delay_s)
    return delay_s


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry around whole issuance attempts.

    A ``SubmissionError`` caused by a gas estimate that the node reported as a
    revert is final: the same call data would revert on every attempt.

    ``ConfirmationTimeout`` is not retried by default: the earlier transaction may
    still confirm, and a second attempt would then create a duplicate token or
    revert on the taken symbol.
    """

    max_attempts: int = 1
    base_delay_s: float = 1.0
    max_delay_s: float | None = 30.0
    retry_on: tuple[type[IssuanceError], ...] = field(
        default_factory=lambda: (SubmissionError,)
    )

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

    def should_retry(self, exc: Exception) -> bool:
        if not isinstance(exc, self.retry_on):
            return False
        # A gas estimate that reverts will revert again with the same inputs.
        cause = getattr(exc, "cause", None)
        return not (isinstance(cause, GasEstimationError) and cause.reverted)

    def delay_s(self, attempt: int) -> float:
        return exponential_backoff_s(
            attempt, base_delay_s=self.base_delay_s, max_delay_s=self.max_delay_s
        )


SINGLE_ATTEMPT = RetryPolicy()


T = TypeVar("T")


async def run_with_policy(
    fn: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    for attempt in range(policy.max_attempts):
        try:
            return await fn()
        except Exception as exc:
            if attempt >= policy.max_attempts - 1 or not policy.should_retry(exc):
                raise
            delay_s = policy.delay_s(attempt)
            logger.warning(
                f"Issuance attempt {attempt + 1}/{policy.max_attempts} failed "
                f"({type(exc).__name__}: {exc}); retrying in {delay_s}s"
            )
            await sleep(delay_s)

    raise RuntimeError("run_with_policy exhausted attempts")


async def issue_token_with_policy(
    client: ChainClientProtocol,
    factory_address: str,
    identity: TokenIdentity,
    curve: BondingCurveConfig,
    *,
    policy: RetryPolicy = SINGLE_ATTEMPT,
    timeout: float = DEFAULT_TRANSACTION_TIMEOUT,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    on_fee: Callable[[CreationFee], None] | None = None,
) -> IssuanceResult:
    """Run ``issue_token`` under ``policy``; each attempt re-reads the creation fee."""

    async def _attempt() -> IssuanceResult:
        return await issue_token(
            client,
            factory_address,
            identity,
            curve,
            timeout=timeout,
            on_fee=on_fee,
        )

    return await run_with_policy(_attempt, policy, sleep=sleep)
