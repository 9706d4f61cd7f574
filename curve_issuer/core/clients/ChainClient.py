from __future__ import annotations

import asyncio
from typing import Any

from eth_account import Account
from loguru import logger
from web3.exceptions import ContractLogicError

from curve_issuer.core.constants.base import (
    DEFAULT_RECEIPT_POLL_INTERVAL,
    DEFAULT_TRANSACTION_TIMEOUT,
)
from curve_issuer.core.utils.revert import decode_revert_data
from curve_issuer.core.utils.transaction import (
    broadcast_transaction,
    build_call_transaction,
    gas_limit_transaction,
    gas_price_transaction,
    nonce_transaction,
    normalize_tx_hash,
    wait_for_transaction_receipt,
)
from curve_issuer.core.utils.web3 import web3_from_chain_id

# Nonce fill, signing and broadcast are serialised per signing address so that
# concurrent callers in one process never reuse a pending nonce.
_SIGNER_LOCKS: dict[str, asyncio.Lock] = {}


def _signer_lock(address: str) -> asyncio.Lock:
    key = address.lower()
    lock = _SIGNER_LOCKS.get(key)
    if lock is None:
        lock = asyncio.Lock()
        _SIGNER_LOCKS[key] = lock
    return lock


class ChainClient:
    """Thin JSON-RPC adapter: reads, signed submission and receipt polling.

    Holds no connection between calls; every operation opens the configured
    RPCs for ``chain_id`` and disconnects afterwards.
    """

    def __init__(
        self,
        chain_id: int,
        private_key: str,
        *,
        poll_interval: float = DEFAULT_RECEIPT_POLL_INTERVAL,
    ) -> None:
        self.chain_id = int(chain_id)
        self.account = Account.from_key(private_key)
        self.address: str = self.account.address
        self.poll_interval = poll_interval
        self.logger = logger.bind(client=self.__class__.__name__, chain_id=chain_id)

    async def read_call(
        self,
        contract: str,
        abi: list[dict[str, Any]],
        fn_name: str,
        args: list[Any] | None = None,
    ) -> Any:
        async with web3_from_chain_id(self.chain_id) as web3:
            c = web3.eth.contract(address=web3.to_checksum_address(contract), abi=abi)
            fn = getattr(c.functions, fn_name)
            return await fn(*(args or [])).call(block_identifier="latest")

    async def submit_transaction(self, to: str, data: str, value: int) -> str:
        return await self.send_transaction(
            build_call_transaction(
                chain_id=self.chain_id,
                from_address=self.address,
                to=to,
                data=data,
                value=value,
            )
        )

    async def send_transaction(self, transaction: dict[str, Any]) -> str:
        """Fill gas, nonce and fee fields, sign and broadcast. Never resubmits."""
        async with _signer_lock(self.address):
            transaction = await gas_limit_transaction(transaction)
            transaction = await nonce_transaction(transaction)
            transaction = await gas_price_transaction(transaction)
            signed = self.account.sign_transaction(transaction)
            self.logger.info(
                f"Broadcasting transaction to {transaction.get('to') or '<create>'} "
                f"value={transaction['value']} nonce={transaction['nonce']}"
            )
            tx_hash = await broadcast_transaction(self.chain_id, signed.raw_transaction)
        self.logger.info(f"Transaction broadcasted: {tx_hash}")
        return tx_hash

    async def wait_for_receipt(
        self, tx_hash: str, timeout: float = DEFAULT_TRANSACTION_TIMEOUT
    ) -> dict[str, Any]:
        return await wait_for_transaction_receipt(
            self.chain_id,
            tx_hash,
            poll_interval=self.poll_interval,
            timeout=timeout,
        )

    async def get_revert_reason(
        self,
        tx_hash: str,
        block_number: int | None = None,
        abi: list[dict[str, Any]] | None = None,
    ) -> str | None:
        """Replay a mined transaction with ``eth_call`` to recover its revert reason."""
        async with web3_from_chain_id(self.chain_id) as web3:
            try:
                tx = await web3.eth.get_transaction(normalize_tx_hash(tx_hash))
            except Exception as exc:  # noqa: BLE001
                self.logger.debug(f"Could not load transaction {tx_hash}: {exc}")
                return None

            call = {
                "from": tx["from"],
                "to": tx["to"],
                "data": tx["input"],
                "value": tx.get("value", 0),
            }
            block = block_number if block_number is not None else tx.get("blockNumber")
            # Replay against the parent block: the state the transaction executed on.
            block_identifier = int(block) - 1 if block else "latest"
            try:
                await web3.eth.call(call, block_identifier=block_identifier)
            except ContractLogicError as exc:
                return decode_revert_data(exc.data, abi) or exc.message or None
            except Exception as exc:  # noqa: BLE001
                self.logger.debug(f"Replay of {tx_hash} failed: {exc}")
                return None
        return None
