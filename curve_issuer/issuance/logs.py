"""Best-effort extraction of the created token's address from receipt logs.

The match rule is the only place that knows the factory's event shape. Log
layout is owned by the protocol and may change across upgrades, so a miss
returns ``None`` rather than raising; the caller reports a degraded success.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from eth_utils import event_signature_to_log_topic, is_address, to_checksum_address
from loguru import logger

from curve_issuer.core.constants.mintclub_abi import TOKEN_CREATED_EVENT_SIGNATURE

TOKEN_CREATED_TOPIC = event_signature_to_log_topic(TOKEN_CREATED_EVENT_SIGNATURE)


def _as_bytes(value: Any) -> bytes | None:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        text = value[2:] if value.startswith("0x") else value
        try:
            return bytes.fromhex(text)
        except ValueError:
            return None
    return None


def _log_field(log: Any, name: str) -> Any:
    if isinstance(log, Mapping):
        return log.get(name)
    return getattr(log, name, None)


def _same_address(a: Any, b: str) -> bool:
    if not isinstance(a, str) or not is_address(a):
        return False
    return a.lower() == b.lower()


def extract_created_address(
    logs: Iterable[Any], factory_address: str
) -> str | None:
    """Return the token address from the first factory ``TokenCreated`` log."""
    for index, log in enumerate(logs or []):
        if not _same_address(_log_field(log, "address"), factory_address):
            continue
        topics = _log_field(log, "topics") or []
        if len(topics) < 2:
            continue
        if _as_bytes(topics[0]) != TOKEN_CREATED_TOPIC:
            continue
        token_topic = _as_bytes(topics[1])
        if token_topic is None or len(token_topic) != 32:
            logger.debug(f"Skipping malformed TokenCreated log at index {index}")
            continue
        return to_checksum_address(token_topic[-20:])
    return None
