from __future__ import annotations

from curve_issuer.core.constants.chains import CHAIN_ID_TO_CODE
from curve_issuer.core.constants.mintclub_contracts import MINTCLUB_TOKEN_URL
from curve_issuer.core.utils.etherscan import (
    get_etherscan_address_link,
    get_etherscan_transaction_link,
)
from curve_issuer.core.utils.units import format_amount
from curve_issuer.issuance.errors import (
    ConfirmationTimeout,
    ExecutionReverted,
    IssuanceError,
    ValidationError,
)
from curve_issuer.issuance.fees import CreationFee
from curve_issuer.issuance.orchestrator import IssuanceResult
from curve_issuer.issuance.params import BondingCurveConfig, TokenIdentity


def format_issuance_plan(
    identity: TokenIdentity,
    curve: BondingCurveConfig,
    *,
    wallet: str | None = None,
    reserve_decimals: int = 18,
) -> str:
    lines = [f"Creating {identity.name} (${identity.symbol})..."]
    if wallet:
        lines.append(f"Wallet: {wallet}")
    lines += [
        "",
        "Token Config:",
        f"  Name: {identity.name}",
        f"  Symbol: {identity.symbol}",
        f"  Max Supply: {format_amount(curve.max_supply)} {identity.symbol}",
        f"  Reserve: {curve.reserve_asset}",
        f"  Royalties: mint {curve.mint_royalty_bps / 100:g}% / burn {curve.burn_royalty_bps / 100:g}%",
        "  Steps:",
    ]
    for upto, price in zip(curve.step_ranges, curve.step_prices, strict=True):
        lines.append(
            f"    up to {format_amount(upto)}: {format_amount(price, reserve_decimals)} per token"
        )
    return "\n".join(lines)


def format_creation_fee(fee: CreationFee) -> str:
    return f"Creation fee: {format_amount(fee.amount_wei)} ETH"


def format_issuance_result(
    result: IssuanceResult, *, chain_id: int, symbol: str
) -> str:
    lines = [f"Token created in block: {result.block_number}", f"TX: {result.transaction_hash}"]
    tx_link = get_etherscan_transaction_link(chain_id, result.transaction_hash)
    if tx_link:
        lines.append(f"Explorer: {tx_link}")

    if result.token_address is None:
        lines.append(
            "Token address: unknown (no TokenCreated log found in the receipt; "
            "look it up from the transaction on the explorer)"
        )
    else:
        lines.append(f"${symbol} Token Address: {result.token_address}")
        address_link = get_etherscan_address_link(chain_id, result.token_address)
        if address_link:
            lines.append(f"Explorer: {address_link}")

    network = CHAIN_ID_TO_CODE.get(chain_id)
    if network:
        lines.append(
            "Mint Club URL: " + MINTCLUB_TOKEN_URL.format(network=network, symbol=symbol)
        )
    return "\n".join(lines)


def format_issuance_error(error: IssuanceError) -> str:
    lines = [f"{error.kind}: {error}"]
    if isinstance(error, ValidationError) and len(error.errors) > 1:
        lines += [f"  - {e}" for e in error.errors]
    if isinstance(error, ExecutionReverted) and error.reason:
        lines.append(f"Revert reason: {error.reason}")
    if isinstance(error, ConfirmationTimeout):
        lines.append(
            f"Check {error.tx_hash} on the explorer before retrying; "
            "it may still be mined."
        )
    return "\n".join(lines)
