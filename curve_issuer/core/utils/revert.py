"""Decoding of EVM revert payloads into readable reasons."""

from __future__ import annotations

from typing import Any

from eth_abi import decode
from eth_utils import function_signature_to_4byte_selector

_ERROR_STRING_SELECTOR = function_signature_to_4byte_selector("Error(string)")
_PANIC_SELECTOR = function_signature_to_4byte_selector("Panic(uint256)")

_PANIC_CODES = {
    0x01: "assertion failed",
    0x11: "arithmetic overflow or underflow",
    0x12: "division or modulo by zero",
    0x21: "invalid enum value",
    0x22: "invalid storage byte array",
    0x31: "pop on empty array",
    0x32: "array index out of bounds",
    0x41: "out of memory",
    0x51: "call to uninitialized function",
}


def _to_bytes(data: Any) -> bytes | None:
    if data is None:
        return None
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    text = str(data).strip()
    if text.startswith("0x"):
        text = text[2:]
    try:
        return bytes.fromhex(text)
    except ValueError:
        return None


def _error_signature(entry: dict[str, Any]) -> str:
    types = ",".join(str(i.get("type")) for i in entry.get("inputs", []))
    return f"{entry['name']}({types})"


def decode_revert_data(
    data: Any, abi: list[dict[str, Any]] | None = None
) -> str | None:
    """Decode revert data into a reason string.

    Understands ``Error(string)``, ``Panic(uint256)`` and any ``error`` entries in
    ``abi``. Returns ``None`` when the payload is empty or unknown.
    """
    raw = _to_bytes(data)
    if not raw or len(raw) < 4:
        return None

    selector, payload = raw[:4], raw[4:]
    try:
        if selector == _ERROR_STRING_SELECTOR:
            (reason,) = decode(["string"], payload)
            return str(reason)
        if selector == _PANIC_SELECTOR:
            (code,) = decode(["uint256"], payload)
            return f"panic: {_PANIC_CODES.get(int(code), hex(int(code)))}"
    except Exception:  # noqa: BLE001
        return None

    for entry in abi or []:
        if entry.get("type") != "error":
            continue
        signature = _error_signature(entry)
        if function_signature_to_4byte_selector(signature) != selector:
            continue
        types = [str(i.get("type")) for i in entry.get("inputs", [])]
        if not types:
            return entry["name"]
        try:
            values = decode(types, payload)
        except Exception:  # noqa: BLE001
            return entry["name"]
        return f"{entry['name']}({', '.join(str(v) for v in values)})"

    return None
