import asyncio
import math
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from loguru import logger
from web3 import AsyncWeb3

from curve_issuer.core.constants.base import (
    DEFAULT_RECEIPT_POLL_INTERVAL,
    DEFAULT_TRANSACTION_TIMEOUT,
    GAS_BUFFER_MULTIPLIER,
    MAX_BASE_FEE_GROWTH_MULTIPLIER,
    SUGGESTED_PRIORITY_FEE_MULTIPLIER,
)
from curve_issuer.core.utils.web3 import (
    get_transaction_chain_id,
    web3_from_chain_id,
    web3s_from_chain_id,
)

FEE_HISTORY_BLOCKS = 10
FEE_HISTORY_PERCENTILE = 80


class GasEstimationError(RuntimeError):
    def __init__(self, errors: list[str]):
        self.errors = errors
        detail = errors[-1] if errors else "no RPC responded"
        super().__init__(f"Gas estimation failed on all RPCs: {detail}")

    @property
    def reverted(self) -> bool:
        """True when an RPC reported that the call itself reverts."""
        return any("revert" in error.lower() for error in self.errors)


def _get_transaction_from_address(transaction: dict) -> str:
    if "from" not in transaction:
        raise ValueError("Transaction does not contain from address")
    return AsyncWeb3.to_checksum_address(transaction["from"])


def normalize_tx_hash(txn_hash: Any) -> str:
    if isinstance(txn_hash, (bytes, bytearray)):
        txn_hash = bytes(txn_hash).hex()
    txn_hash = str(txn_hash)
    if not txn_hash.startswith("0x"):
        txn_hash = f"0x{txn_hash}"
    return txn_hash


T = TypeVar("T")


async def _ask_every_rpc(
    chain_id: int, query: Callable[[AsyncWeb3], Awaitable[T]]
) -> list[T]:
    async with web3s_from_chain_id(chain_id) as web3s:
        return list(await asyncio.gather(*(query(web3) for web3 in web3s)))


async def nonce_transaction(transaction: dict) -> dict:
    """Set ``nonce`` to the highest pending transaction count any RPC reports."""
    sender = _get_transaction_from_address(transaction)
    counts = await _ask_every_rpc(
        get_transaction_chain_id(transaction),
        lambda web3: web3.eth.get_transaction_count(
            sender, block_identifier="pending"
        ),
    )
    return {**transaction, "nonce": max(counts)}


async def _fee_quote(web3: AsyncWeb3) -> tuple[int, int]:
    block = await web3.eth.get_block("latest")
    history = await web3.eth.fee_history(
        FEE_HISTORY_BLOCKS, "latest", [FEE_HISTORY_PERCENTILE]
    )
    tips = [reward[0] for reward in history.reward]
    priority_fee = sum(tips) // len(tips) if tips else 0
    return int(block.baseFeePerGas), int(priority_fee)


async def gas_price_transaction(transaction: dict) -> dict:
    """Fill EIP-1559 fee fields from the highest quote across RPCs."""
    quotes = await _ask_every_rpc(get_transaction_chain_id(transaction), _fee_quote)
    base_fee = max(base for base, _ in quotes)
    priority_fee = max(tip for _, tip in quotes)

    max_priority_fee = int(priority_fee * SUGGESTED_PRIORITY_FEE_MULTIPLIER)
    return {
        **transaction,
        "maxFeePerGas": int(
            base_fee * MAX_BASE_FEE_GROWTH_MULTIPLIER
            + priority_fee * SUGGESTED_PRIORITY_FEE_MULTIPLIER
        ),
        "maxPriorityFeePerGas": max_priority_fee,
    }


async def gas_limit_transaction(transaction: dict) -> dict:
    # An existing gas field would cap the RPC's estimate.
    request = {k: v for k, v in transaction.items() if k != "gas"}
    errors: list[str] = []

    async def _estimate(web3: AsyncWeb3) -> int:
        try:
            return await web3.eth.estimate_gas(request, block_identifier="latest")
        except Exception as exc:
            logger.info(f"Gas estimate via {web3.provider.endpoint_uri} failed: {exc}")
            errors.append(str(exc))
            return 0

    estimate = max(
        await _ask_every_rpc(get_transaction_chain_id(request), _estimate)
    )
    if estimate == 0:
        logger.error("Gas estimation failed on all RPCs")
        raise GasEstimationError(errors)
    return {**request, "gas": math.ceil(estimate * GAS_BUFFER_MULTIPLIER)}


async def broadcast_transaction(chain_id: int, signed_transaction: bytes) -> str:
    async with web3_from_chain_id(chain_id) as web3:
        tx_hash = await web3.eth.send_raw_transaction(signed_transaction)
        return normalize_tx_hash(tx_hash)


async def wait_for_transaction_receipt(
    chain_id: int,
    txn_hash: str,
    poll_interval: float = DEFAULT_RECEIPT_POLL_INTERVAL,
    timeout: float = DEFAULT_TRANSACTION_TIMEOUT,
) -> dict:
    """Wait for the receipt of ``txn_hash`` on every configured RPC.

    Returns the first receipt any RPC produces, whatever its status. An RPC that
    errors is dropped from the race; the last error is raised only once every RPC
    has failed (``web3.exceptions.TimeExhausted`` when they all ran out of time).
    """
    txn_hash = normalize_tx_hash(txn_hash)

    async with web3s_from_chain_id(chain_id) as web3s:
        pending = {
            asyncio.create_task(
                web3.eth.wait_for_transaction_receipt(
                    txn_hash, poll_latency=poll_interval, timeout=timeout
                )
            )
            for web3 in web3s
        }
        last_error: BaseException | None = None
        try:
            while pending:
                done, pending = await asyncio.wait(
                    pending, return_when=asyncio.FIRST_COMPLETED
                )
                for task in done:
                    error = task.exception()
                    if error is None:
                        return dict(task.result())
                    last_error = error
                    logger.info(f"Receipt lookup for {txn_hash} failed on one RPC: {error}")
        finally:
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

    if last_error is None:
        raise ValueError(f"No RPCs configured for chain ID {chain_id}")
    raise last_error


def build_call_transaction(
    *,
    chain_id: int,
    from_address: str,
    to: str,
    data: str,
    value: int = 0,
) -> dict[str, Any]:
    return {
        "chainId": int(chain_id),
        "from": AsyncWeb3.to_checksum_address(from_address),
        "to": AsyncWeb3.to_checksum_address(to),
        "data": data,
        "value": int(value),
    }
