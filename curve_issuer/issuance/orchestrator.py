"""Token issuance state machine.

One orchestrator instance drives exactly one ``createToken`` submission::

    IDLE -> FEE_ATTACHED -> SUBMITTED -> CONFIRMED -> RESOLVED

with IDLE, FEE_ATTACHED and SUBMITTED each able to move to FAILED.

Nothing here retries, bumps fees or resubmits; every failure is raised to the
caller as an ``IssuanceError`` after the machine moves to ``FAILED``. Retrying is
the job of ``curve_issuer.issuance.policy``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from enum import StrEnum
from typing import Any

from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector, to_checksum_address
from loguru import logger
from pydantic import BaseModel, ConfigDict
from web3.exceptions import TimeExhausted

from curve_issuer.core.clients.protocols import ChainClientProtocol
from curve_issuer.core.constants.base import DEFAULT_TRANSACTION_TIMEOUT
from curve_issuer.core.constants.mintclub_abi import MCV2_BOND_ABI
from curve_issuer.issuance.errors import (
    ConfirmationTimeout,
    ExecutionReverted,
    IssuanceError,
    SubmissionError,
    ValidationError,
)
from curve_issuer.issuance.fees import CreationFee, fetch_creation_fee
from curve_issuer.issuance.logs import extract_created_address
from curve_issuer.issuance.params import BondingCurveConfig, TokenIdentity

TOKEN_PARAMS_TYPE = "(string,string)"
BOND_PARAMS_TYPE = "(uint16,uint16,address,uint128,uint128[],uint128[])"
CREATE_TOKEN_SIGNATURE = f"createToken({TOKEN_PARAMS_TYPE},{BOND_PARAMS_TYPE})"
CREATE_TOKEN_SELECTOR = function_signature_to_4byte_selector(CREATE_TOKEN_SIGNATURE)


class IssuanceState(StrEnum):
    IDLE = "IDLE"
    FEE_ATTACHED = "FEE_ATTACHED"
    SUBMITTED = "SUBMITTED"
    CONFIRMED = "CONFIRMED"
    RESOLVED = "RESOLVED"
    FAILED = "FAILED"


_TRANSITIONS: dict[IssuanceState, frozenset[IssuanceState]] = {
    IssuanceState.IDLE: frozenset({IssuanceState.FEE_ATTACHED, IssuanceState.FAILED}),
    IssuanceState.FEE_ATTACHED: frozenset(
        {IssuanceState.SUBMITTED, IssuanceState.FAILED}
    ),
    IssuanceState.SUBMITTED: frozenset({IssuanceState.CONFIRMED, IssuanceState.FAILED}),
    IssuanceState.CONFIRMED: frozenset({IssuanceState.RESOLVED}),
    IssuanceState.RESOLVED: frozenset(),
    IssuanceState.FAILED: frozenset(),
}


class IssuanceResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    transaction_hash: str
    block_number: int
    # None when no TokenCreated log matched; the issuance still succeeded.
    token_address: str | None = None

    @property
    def degraded(self) -> bool:
        return self.token_address is None


def encode_create_token(identity: TokenIdentity, curve: BondingCurveConfig) -> str:
    args = encode(
        [TOKEN_PARAMS_TYPE, BOND_PARAMS_TYPE],
        [identity.as_abi_tuple(), curve.as_abi_tuple()],
    )
    return "0x" + (CREATE_TOKEN_SELECTOR + args).hex()


class IssuanceOrchestrator:
    def __init__(
        self,
        client: ChainClientProtocol,
        factory_address: str,
        *,
        timeout: float = DEFAULT_TRANSACTION_TIMEOUT,
    ) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.client = client
        self.factory_address = to_checksum_address(factory_address)
        self.timeout = timeout
        self.state = IssuanceState.IDLE
        self.history: list[IssuanceState] = [IssuanceState.IDLE]
        self.transaction: dict[str, Any] | None = None
        self.transaction_hash: str | None = None
        self.receipt: dict[str, Any] | None = None
        self.result: IssuanceResult | None = None
        self.error: IssuanceError | None = None
        self.logger = logger.bind(
            orchestrator=self.__class__.__name__, factory=self.factory_address
        )

    def _transition(self, new_state: IssuanceState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal issuance transition {self.state} -> {new_state}")
        self.logger.debug(f"{self.state} -> {new_state}")
        self.state = new_state
        self.history.append(new_state)

    def _fail(self, error: IssuanceError) -> IssuanceError:
        self.error = error
        self._transition(IssuanceState.FAILED)
        self.logger.error(f"Issuance failed ({error.kind}): {error}")
        return error

    def attach_fee(
        self, identity: TokenIdentity, curve: BondingCurveConfig, fee: CreationFee
    ) -> dict[str, Any]:
        try:
            data = encode_create_token(identity, curve)
        except Exception as exc:
            raise self._fail(
                ValidationError("createToken arguments could not be encoded", cause=exc)
            ) from exc

        self.transaction = {
            "to": self.factory_address,
            "data": data,
            "value": fee.amount_wei,
        }
        self._transition(IssuanceState.FEE_ATTACHED)
        return self.transaction

    async def submit(self) -> str:
        tx = self.transaction
        if tx is None:
            raise RuntimeError("No transaction attached")
        try:
            tx_hash = await self.client.submit_transaction(
                tx["to"], tx["data"], tx["value"]
            )
        except Exception as exc:
            raise self._fail(
                SubmissionError("createToken broadcast rejected", cause=exc)
            ) from exc

        self.transaction_hash = tx_hash
        self._transition(IssuanceState.SUBMITTED)
        self.logger.info(f"createToken submitted: {tx_hash}")
        return tx_hash

    async def confirm(self) -> dict[str, Any]:
        tx_hash = self.transaction_hash
        if tx_hash is None:
            raise RuntimeError("No transaction submitted")
        try:
            receipt = await asyncio.wait_for(
                self.client.wait_for_receipt(tx_hash, self.timeout),
                timeout=self.timeout,
            )
        except (TimeoutError, TimeExhausted) as exc:
            raise self._fail(
                ConfirmationTimeout(tx_hash, self.timeout, cause=exc)
            ) from exc
        except Exception as exc:
            # RPC failure while polling: no terminal status observed, tx may still land.
            self.logger.warning(f"Receipt polling for {tx_hash} failed: {exc}")
            raise self._fail(
                ConfirmationTimeout(tx_hash, self.timeout, cause=exc)
            ) from exc

        self.receipt = dict(receipt)
        if int(self.receipt.get("status", 0)) == 0:
            reason = await self._revert_reason(tx_hash, self.receipt.get("blockNumber"))
            raise self._fail(
                ExecutionReverted(tx_hash, reason=reason, receipt=self.receipt)
            )

        self._transition(IssuanceState.CONFIRMED)
        self.logger.info(
            f"createToken confirmed in block {self.receipt.get('blockNumber')}"
        )
        return self.receipt

    async def _revert_reason(self, tx_hash: str, block_number: Any) -> str | None:
        try:
            return await self.client.get_revert_reason(
                tx_hash, block_number, abi=MCV2_BOND_ABI
            )
        except Exception as exc:  # noqa: BLE001
            self.logger.debug(f"Revert reason unavailable for {tx_hash}: {exc}")
            return None

    def resolve(self) -> IssuanceResult:
        if self.receipt is None or self.transaction_hash is None:
            raise RuntimeError("No confirmed receipt")
        token_address = extract_created_address(
            self.receipt.get("logs") or [], self.factory_address
        )
        if token_address is None:
            self.logger.warning(
                f"No TokenCreated log from {self.factory_address} in "
                f"{self.transaction_hash}; token address unknown"
            )
        self.result = IssuanceResult(
            transaction_hash=self.transaction_hash,
            block_number=int(self.receipt.get("blockNumber") or 0),
            token_address=token_address,
        )
        self._transition(IssuanceState.RESOLVED)
        return self.result

    async def run(
        self, identity: TokenIdentity, curve: BondingCurveConfig, fee: CreationFee
    ) -> IssuanceResult:
        if self.state != IssuanceState.IDLE:
            raise RuntimeError("IssuanceOrchestrator instances are single-use")
        self.attach_fee(identity, curve, fee)
        await self.submit()
        await self.confirm()
        return self.resolve()


async def issue_token(
    client: ChainClientProtocol,
    factory_address: str,
    identity: TokenIdentity,
    curve: BondingCurveConfig,
    *,
    timeout: float = DEFAULT_TRANSACTION_TIMEOUT,
    on_fee: Callable[[CreationFee], None] | None = None,
) -> IssuanceResult:
    """Fetch a fresh creation fee and run one orchestrated issuance."""
    fee = await fetch_creation_fee(client, factory_address)
    if on_fee is not None:
        on_fee(fee)
    orchestrator = IssuanceOrchestrator(client, factory_address, timeout=timeout)
    return await orchestrator.run(identity, curve, fee)
