from __future__ import annotations

from datetime import UTC, datetime

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from curve_issuer.core.clients.protocols import ChainClientProtocol
from curve_issuer.core.constants.base import MAX_UINT256
from curve_issuer.core.constants.mintclub_abi import MCV2_BOND_ABI
from curve_issuer.issuance.errors import ChainReadError


class CreationFee(BaseModel):
    """Point-in-time snapshot of the factory's creation fee, in wei of the gas asset.

    Only valid for the submission immediately following the read; callers fetch a
    new one per attempt.
    """

    model_config = ConfigDict(frozen=True)

    amount_wei: int = Field(ge=0)
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


async def fetch_creation_fee(
    client: ChainClientProtocol, factory_address: str
) -> CreationFee:
    try:
        raw = await client.read_call(factory_address, MCV2_BOND_ABI, "creationFee")
    except Exception as exc:
        raise ChainReadError(
            f"creationFee() read failed on {factory_address}", cause=exc
        ) from exc

    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ChainReadError(
            f"creationFee() returned malformed data: {raw!r} ({type(raw).__name__})"
        )
    if not 0 <= raw <= MAX_UINT256:
        raise ChainReadError(f"creationFee() returned out-of-range value: {raw}")

    fee = CreationFee(amount_wei=raw)
    logger.info(f"Creation fee on {factory_address}: {fee.amount_wei} wei")
    return fee
