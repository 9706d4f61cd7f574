CHAIN_ID_BASE = 8453
CHAIN_ID_BASE_SEPOLIA = 84532

CHAIN_CODE_TO_ID = {
    "base": CHAIN_ID_BASE,
    "base-mainnet": CHAIN_ID_BASE,
    "base-sepolia": CHAIN_ID_BASE_SEPOLIA,
}

CHAIN_ID_TO_CODE: dict[int, str] = {
    v: k for k, v in CHAIN_CODE_TO_ID.items() if k not in ("base-mainnet",)
}

SUPPORTED_CHAINS = [
    CHAIN_ID_BASE,
    CHAIN_ID_BASE_SEPOLIA,
]

DEFAULT_RPC_URLS: dict[int, str] = {
    CHAIN_ID_BASE: "https://mainnet.base.org",
    CHAIN_ID_BASE_SEPOLIA: "https://sepolia.base.org",
}

CHAIN_EXPLORER_URLS: dict[int, str] = {
    CHAIN_ID_BASE: "https://basescan.org/",
    CHAIN_ID_BASE_SEPOLIA: "https://sepolia.basescan.org/",
}


def resolve_chain_id(network: str | int) -> int:
    if isinstance(network, int):
        chain_id = network
    else:
        key = str(network).strip().lower()
        if key.isdigit():
            chain_id = int(key)
        elif key in CHAIN_CODE_TO_ID:
            chain_id = CHAIN_CODE_TO_ID[key]
        else:
            raise ValueError(f"Unknown network: {network}")
    if chain_id not in SUPPORTED_CHAINS:
        raise ValueError(f"Unsupported chain ID: {chain_id}")
    return chain_id
