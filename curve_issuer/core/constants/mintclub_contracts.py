from __future__ import annotations

from eth_utils import to_checksum_address

from curve_issuer.core.constants.chains import CHAIN_ID_BASE

# Mint Club V2 per-chain deployments.
#
# Deployed contracts:
# - https://docs.mint.club/mint-club-v2/contract-addresses
#
# Notes:
# - "bond" is the MCV2_Bond factory that creates tokens and owns the curves.
MINTCLUB_BY_CHAIN: dict[int, dict[str, str]] = {
    CHAIN_ID_BASE: {
        "bond": to_checksum_address("0xc5a076cad94176c2996B32d8466Be1cE757FAa27"),
    }
}

# $OPENWORK on Base; reserve asset of the NovaGuardian token.
OPENWORK_BASE = to_checksum_address("0x299c30DD5974BF4D5bFE42C340CA40462816AB07")

# MCV2_Bond.MAX_STEPS
MAX_CURVE_STEPS = 1000

MINTCLUB_TOKEN_URL = "https://mint.club/token/{network}/{symbol}"
