"""Parameter resolution for token issuance.

Builds the immutable ``TokenIdentity`` and ``BondingCurveConfig`` that the bond
factory's ``createToken`` consumes. Everything here is pure: no network access,
no global state, and every failure is a ``ValidationError``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, TypeVar

from eth_utils import is_address, to_checksum_address
from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from curve_issuer.core.constants import ZERO_ADDRESS
from curve_issuer.core.constants.base import (
    MAX_BPS,
    MAX_TOKEN_DECIMALS,
    MAX_UINT128,
    TOKEN_DECIMALS,
)
from curve_issuer.core.constants.mintclub_contracts import MAX_CURVE_STEPS
from curve_issuer.core.utils.units import to_raw_amount
from curve_issuer.issuance.errors import ValidationError

Amount = str | int | Decimal


class TokenIdentity(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    symbol: str

    @field_validator("name", "symbol", mode="before")
    @classmethod
    def _non_empty(cls, value: Any, info: ValidationInfo) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"{info.field_name} must be a non-empty string")
        if value != value.strip():
            raise ValueError(
                f"{info.field_name} must not have leading or trailing whitespace"
            )
        return value

    def as_abi_tuple(self) -> tuple[str, str]:
        return (self.name, self.symbol)


class BondingCurveConfig(BaseModel):
    """Step-wise bonding curve parameters, amounts as raw fixed-point integers.

    ``step_prices[i]`` is the reserve price per token for supply minted in the
    band ending at ``step_ranges[i]``.
    """

    model_config = ConfigDict(frozen=True)

    mint_royalty_bps: int
    burn_royalty_bps: int
    reserve_asset: str
    max_supply: int
    step_ranges: tuple[int, ...]
    step_prices: tuple[int, ...]

    @field_validator("mint_royalty_bps", "burn_royalty_bps", "max_supply", mode="before")
    @classmethod
    def _no_bool(cls, value: Any, info: ValidationInfo) -> Any:
        if isinstance(value, bool):
            raise ValueError(f"{info.field_name} must be an integer")
        return value

    @field_validator("mint_royalty_bps", "burn_royalty_bps")
    @classmethod
    def _royalty_in_range(cls, value: int, info: ValidationInfo) -> int:
        if not 0 <= value <= MAX_BPS:
            raise ValueError(
                f"{info.field_name} must be within [0, {MAX_BPS}] basis points, got {value}"
            )
        return value

    @field_validator("reserve_asset", mode="before")
    @classmethod
    def _valid_address(cls, value: Any) -> str:
        if not isinstance(value, str) or not is_address(value.strip()):
            raise ValueError(f"reserve_asset is not a valid address: {value!r}")
        address = to_checksum_address(value.strip())
        if address == ZERO_ADDRESS:
            raise ValueError("reserve_asset must not be the zero address")
        return address

    @model_validator(mode="after")
    def _curve_shape(self) -> BondingCurveConfig:
        ranges, prices = self.step_ranges, self.step_prices
        if not ranges:
            raise ValueError("step_ranges must not be empty")
        if len(ranges) != len(prices):
            raise ValueError(
                f"step_ranges and step_prices length mismatch: {len(ranges)} != {len(prices)}"
            )
        if len(ranges) > MAX_CURVE_STEPS:
            raise ValueError(f"at most {MAX_CURVE_STEPS} steps are allowed, got {len(ranges)}")
        if not 0 < self.max_supply <= MAX_UINT128:
            raise ValueError(f"max_supply must be within (0, uint128], got {self.max_supply}")
        for label, values in (("step_ranges", ranges), ("step_prices", prices)):
            for i, v in enumerate(values):
                if not 0 <= v <= MAX_UINT128:
                    raise ValueError(f"{label}[{i}] does not fit in uint128: {v}")
        if ranges[0] <= 0:
            raise ValueError("step_ranges[0] must be positive")
        for i in range(1, len(ranges)):
            if ranges[i] <= ranges[i - 1]:
                raise ValueError(
                    f"step_ranges must be strictly increasing: "
                    f"step_ranges[{i}]={ranges[i]} <= step_ranges[{i - 1}]={ranges[i - 1]}"
                )
        if ranges[-1] != self.max_supply:
            raise ValueError(
                f"last step range must equal max_supply: {ranges[-1]} != {self.max_supply}"
            )
        return self

    def as_abi_tuple(self) -> tuple[int, int, str, int, list[int], list[int]]:
        return (
            self.mint_royalty_bps,
            self.burn_royalty_bps,
            self.reserve_asset,
            self.max_supply,
            list(self.step_ranges),
            list(self.step_prices),
        )


@dataclass(frozen=True)
class CurveSpec:
    """Human-readable curve description; amounts in whole tokens."""

    reserve_asset: str
    max_supply: Amount
    step_ranges: Sequence[Amount]
    step_prices: Sequence[Amount]
    mint_royalty_bps: int = 0
    burn_royalty_bps: int = 0
    token_decimals: int = TOKEN_DECIMALS
    reserve_decimals: int = TOKEN_DECIMALS


@dataclass(frozen=True)
class IssuanceSpec:
    name: str
    symbol: str
    curve: CurveSpec

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> IssuanceSpec:
        try:
            curve = dict(data["curve"])
            return cls(
                name=data["name"],
                symbol=data["symbol"],
                curve=CurveSpec(
                    reserve_asset=curve["reserve_asset"],
                    max_supply=curve["max_supply"],
                    step_ranges=list(curve["step_ranges"]),
                    step_prices=list(curve["step_prices"]),
                    mint_royalty_bps=curve.get("mint_royalty_bps", 0),
                    burn_royalty_bps=curve.get("burn_royalty_bps", 0),
                    token_decimals=curve.get("token_decimals", TOKEN_DECIMALS),
                    reserve_decimals=curve.get("reserve_decimals", TOKEN_DECIMALS),
                ),
            )
        except KeyError as exc:
            raise ValidationError(f"Missing issuance field: {exc.args[0]}") from exc
        except TypeError as exc:
            raise ValidationError(f"Malformed issuance spec: {exc}") from exc


def _format_errors(exc: PydanticValidationError) -> list[str]:
    out: list[str] = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        msg = str(err.get("msg", "")).removeprefix("Value error, ")
        out.append(f"{loc}: {msg}" if loc else msg)
    return out


M = TypeVar("M", bound=BaseModel)


def _build(model: type[M], **values: Any) -> M:
    try:
        return model(**values)
    except PydanticValidationError as exc:
        errors = _format_errors(exc)
        raise ValidationError(
            f"Invalid {model.__name__}: " + "; ".join(errors), errors=errors
        ) from exc


def resolve_token_identity(name: str, symbol: str) -> TokenIdentity:
    return _build(TokenIdentity, name=name, symbol=symbol)


def resolve_curve_config(
    *,
    reserve_asset: str,
    max_supply: int,
    step_ranges: Sequence[int],
    step_prices: Sequence[int],
    mint_royalty_bps: int = 0,
    burn_royalty_bps: int = 0,
) -> BondingCurveConfig:
    return _build(
        BondingCurveConfig,
        mint_royalty_bps=mint_royalty_bps,
        burn_royalty_bps=burn_royalty_bps,
        reserve_asset=reserve_asset,
        max_supply=max_supply,
        step_ranges=tuple(step_ranges),
        step_prices=tuple(step_prices),
    )


def _scale(label: str, amount: Amount, decimals: int) -> int:
    try:
        raw = to_raw_amount(amount, decimals)
    except (ValueError, ArithmeticError) as exc:
        raise ValidationError(f"{label}: {exc}") from exc
    if raw == 0 and Decimal(str(amount)) != 0:
        raise ValidationError(
            f"{label}: {amount} is below the precision of {decimals} decimals"
        )
    return raw


def resolve_curve_from_spec(spec: CurveSpec) -> BondingCurveConfig:
    """Scale a human-readable ``CurveSpec`` and validate the result.

    Supply amounts use the new token's decimals; prices use the reserve's.
    """
    for label, decimals in (
        ("token_decimals", spec.token_decimals),
        ("reserve_decimals", spec.reserve_decimals),
    ):
        if (
            isinstance(decimals, bool)
            or not isinstance(decimals, int)
            or not 0 <= decimals <= MAX_TOKEN_DECIMALS
        ):
            raise ValidationError(
                f"{label} must be an integer within [0, {MAX_TOKEN_DECIMALS}], got {decimals!r}"
            )
    return resolve_curve_config(
        reserve_asset=spec.reserve_asset,
        max_supply=_scale("max_supply", spec.max_supply, spec.token_decimals),
        step_ranges=[
            _scale(f"step_ranges[{i}]", v, spec.token_decimals)
            for i, v in enumerate(spec.step_ranges)
        ],
        step_prices=[
            _scale(f"step_prices[{i}]", v, spec.reserve_decimals)
            for i, v in enumerate(spec.step_prices)
        ],
        mint_royalty_bps=spec.mint_royalty_bps,
        burn_royalty_bps=spec.burn_royalty_bps,
    )


def resolve_issuance_params(
    spec: IssuanceSpec,
) -> tuple[TokenIdentity, BondingCurveConfig]:
    return resolve_token_identity(spec.name, spec.symbol), resolve_curve_from_spec(
        spec.curve
    )
