from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, InvalidOperation

from curve_issuer.core.constants.base import TOKEN_DECIMALS


def _to_decimal(value: str | int | float | Decimal) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return Decimal(value)
    return Decimal(str(value).strip())


def to_raw_amount(
    amount: str | int | float | Decimal, decimals: int = TOKEN_DECIMALS
) -> int:
    """Scale a human-readable amount to its fixed-point integer, rounding down."""
    if isinstance(amount, bool):
        raise ValueError(f"Invalid amount: {amount}")
    try:
        amt = _to_decimal(amount)
    except InvalidOperation as exc:
        raise ValueError(f"Invalid amount: {amount}") from exc
    if not amt.is_finite():
        raise ValueError(f"Invalid amount: {amount}")
    if amt < 0:
        raise ValueError("Amount must be non-negative")
    scale = Decimal(10) ** int(decimals)
    return int((amt * scale).to_integral_value(rounding=ROUND_DOWN))


def from_raw_amount(raw: int, decimals: int = TOKEN_DECIMALS) -> Decimal:
    return Decimal(int(raw)) / (Decimal(10) ** int(decimals))


def format_amount(raw: int, decimals: int = TOKEN_DECIMALS) -> str:
    value = from_raw_amount(raw, decimals)
    text = format(value.normalize(), "f")
    if "." in text:
        whole, frac = text.split(".", 1)
    else:
        whole, frac = text, ""
    whole = f"{int(whole):,}"
    return f"{whole}.{frac}" if frac else whole
