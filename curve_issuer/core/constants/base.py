GAS_BUFFER_MULTIPLIER = 1.1
SUGGESTED_PRIORITY_FEE_MULTIPLIER = 1.5
MAX_BASE_FEE_GROWTH_MULTIPLIER = 2

# Timeout constants (seconds)
# Base L2 RPCs can occasionally take >2 minutes to return receipts even when the
# transaction is eventually mined.
DEFAULT_TRANSACTION_TIMEOUT = 180
DEFAULT_RECEIPT_POLL_INTERVAL = 0.5

TOKEN_DECIMALS = 18

MAX_BPS = 10_000
MAX_UINT128 = 2**128 - 1
MAX_UINT256 = 2**256 - 1
# 10**77 is the largest power of ten below 2**256.
MAX_TOKEN_DECIMALS = 77
