from __future__ import annotations

from typing import Any

# Minimal ABI for the Mint Club V2 bond factory (MCV2_Bond).

MCV2_BOND_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "createToken",
        "stateMutability": "payable",
        "inputs": [
            {
                "name": "tp",
                "type": "tuple",
                "internalType": "struct MCV2_Bond.TokenParams",
                "components": [
                    {"name": "name", "type": "string"},
                    {"name": "symbol", "type": "string"},
                ],
            },
            {
                "name": "bp",
                "type": "tuple",
                "internalType": "struct MCV2_Bond.BondParams",
                "components": [
                    {"name": "mintRoyalty", "type": "uint16"},
                    {"name": "burnRoyalty", "type": "uint16"},
                    {"name": "reserveToken", "type": "address"},
                    {"name": "maxSupply", "type": "uint128"},
                    {"name": "stepRanges", "type": "uint128[]"},
                    {"name": "stepPrices", "type": "uint128[]"},
                ],
            },
        ],
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "type": "function",
        "name": "creationFee",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "event",
        "name": "TokenCreated",
        "anonymous": False,
        "inputs": [
            {"name": "token", "type": "address", "indexed": True},
            {"name": "name", "type": "string", "indexed": False},
            {"name": "symbol", "type": "string", "indexed": False},
            {"name": "reserveToken", "type": "address", "indexed": True},
        ],
    },
    {
        "type": "error",
        "name": "MCV2_Bond__TokenSymbolAlreadyExists",
        "inputs": [],
    },
    {
        "type": "error",
        "name": "MCV2_Bond__InvalidCreationFee",
        "inputs": [],
    },
    {
        "type": "error",
        "name": "MCV2_Bond__InvalidTokenCreationParams",
        "inputs": [{"name": "reason", "type": "string"}],
    },
    {
        "type": "error",
        "name": "MCV2_Bond__InvalidStepParams",
        "inputs": [{"name": "reason", "type": "string"}],
    },
    {
        "type": "error",
        "name": "MCV2_Bond__InvalidReserveToken",
        "inputs": [{"name": "reason", "type": "string"}],
    },
]

TOKEN_CREATED_EVENT_SIGNATURE = "TokenCreated(address,string,string,address)"
