from __future__ import annotations

from curve_issuer.core.constants.mintclub_contracts import OPENWORK_BASE
from curve_issuer.issuance.params import CurveSpec, IssuanceSpec

# NovaGuardian platform token, backed by $OPENWORK on Base.
NOVA_TOKEN = IssuanceSpec(
    name="NovaGuardian Token",
    symbol="NOVA",
    curve=CurveSpec(
        reserve_asset=OPENWORK_BASE,
        max_supply="1000000",
        step_ranges=["100000", "500000", "1000000"],
        step_prices=["0.001", "0.005", "0.01"],
        mint_royalty_bps=100,  # 1%
        burn_royalty_bps=100,  # 1%
    ),
)

PRESETS: dict[str, IssuanceSpec] = {
    "nova": NOVA_TOKEN,
}
