"""Deployment of a single contract from a compiled artifact.

Uses ``ChainClient.send_transaction`` so nonce management, gas pricing and
broadcast follow the same path as every other transaction.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from eth_abi import encode
from eth_utils import to_checksum_address
from eth_utils.abi import collapse_if_tuple
from loguru import logger

from curve_issuer.core.clients.ChainClient import ChainClient
from curve_issuer.core.constants.base import DEFAULT_TRANSACTION_TIMEOUT
from curve_issuer.core.utils.etherscan import get_etherscan_transaction_link


class DeploymentError(RuntimeError):
    def __init__(self, message: str, *, tx_hash: str | None = None):
        self.tx_hash = tx_hash
        super().__init__(message)


def load_artifact(path: str | Path) -> dict[str, Any]:
    """Read a Hardhat-style artifact (``abi`` + ``bytecode``)."""
    artifact_path = Path(path).expanduser()
    if not artifact_path.exists():
        raise FileNotFoundError(f"Artifact not found: {artifact_path}")
    artifact = json.loads(artifact_path.read_text())
    if not isinstance(artifact, dict):
        raise ValueError(f"Artifact is not a JSON object: {artifact_path}")

    abi = artifact.get("abi")
    bytecode = artifact.get("bytecode")
    if isinstance(bytecode, dict):
        bytecode = bytecode.get("object")
    if not isinstance(abi, list):
        raise ValueError(f"Artifact has no ABI: {artifact_path}")
    bytecode = str(bytecode or "")
    if bytecode and not bytecode.startswith("0x"):
        bytecode = "0x" + bytecode
    if not bytecode or bytecode == "0x":
        raise ValueError(f"Artifact bytecode is empty: {artifact_path}")

    return {
        "contract_name": artifact.get("contractName") or artifact_path.stem,
        "abi": abi,
        "bytecode": bytecode,
    }


def get_constructor_inputs(abi: list[dict[str, Any]]) -> list[dict[str, Any]]:
    for entry in abi:
        if entry.get("type") == "constructor":
            return list(entry.get("inputs", []))
    return []


def build_deploy_transaction(
    *,
    abi: list[dict[str, Any]],
    bytecode: str,
    constructor_args: list[Any] | None = None,
    from_address: str,
    chain_id: int,
) -> dict[str, Any]:
    """Build an unsigned contract-creation transaction (no ``to``)."""
    inputs = get_constructor_inputs(abi)
    args = list(constructor_args or [])
    if len(args) != len(inputs):
        raise ValueError(
            f"Constructor expects {len(inputs)} argument(s), got {len(args)}"
        )

    data = bytecode
    if inputs:
        types = [collapse_if_tuple(i) for i in inputs]
        data = bytecode + encode(types, args).hex()

    return {
        "chainId": int(chain_id),
        "from": to_checksum_address(from_address),
        "data": data,
        "value": 0,
    }


async def deploy_contract(
    client: ChainClient,
    *,
    abi: list[dict[str, Any]],
    bytecode: str,
    constructor_args: list[Any] | None = None,
    timeout: float = DEFAULT_TRANSACTION_TIMEOUT,
) -> dict[str, Any]:
    """Deploy, wait for the receipt and return ``{"tx_hash", "contract_address"}``."""
    tx = build_deploy_transaction(
        abi=abi,
        bytecode=bytecode,
        constructor_args=constructor_args,
        from_address=client.address,
        chain_id=client.chain_id,
    )

    tx_hash = await client.send_transaction(tx)
    receipt = await client.wait_for_receipt(tx_hash, timeout)
    if int(receipt.get("status", 0)) == 0:
        raise DeploymentError(f"Deploy tx {tx_hash} reverted", tx_hash=tx_hash)

    contract_address = receipt.get("contractAddress")
    if not contract_address:
        raise DeploymentError(
            f"Deploy tx {tx_hash} succeeded but no contractAddress in receipt",
            tx_hash=tx_hash,
        )

    result: dict[str, Any] = {
        "tx_hash": tx_hash,
        "contract_address": to_checksum_address(contract_address),
    }
    explorer_link = get_etherscan_transaction_link(client.chain_id, tx_hash)
    if explorer_link:
        result["explorer_url"] = explorer_link

    logger.info(f"Contract deployed at {result['contract_address']} ({tx_hash})")
    return result
