import asyncio
import math
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from web3 import AsyncWeb3
from web3.exceptions import TimeExhausted

from curve_issuer.core.constants import SUPPORTED_CHAINS
from curve_issuer.core.constants.base import (
    GAS_BUFFER_MULTIPLIER,
    SUGGESTED_PRIORITY_FEE_MULTIPLIER,
)
from curve_issuer.core.utils.transaction import (
    GasEstimationError,
    _get_transaction_from_address,
    broadcast_transaction,
    build_call_transaction,
    gas_limit_transaction,
    gas_price_transaction,
    nonce_transaction,
    normalize_tx_hash,
    wait_for_transaction_receipt,
)
from curve_issuer.core.utils.web3 import get_transaction_chain_id

RANDOM_USER_0 = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
TX_HASH = "0x" + "ab" * 32


def _mock_web3() -> MagicMock:
    web3 = MagicMock()
    web3.eth = MagicMock()
    web3.provider.disconnect = AsyncMock()
    web3.provider.endpoint_uri = "https://rpc.example"
    return web3


class TestGetChainId:
    def test_valid_chain_id(self):
        assert get_transaction_chain_id({"chainId": 8453}) == 8453

    def test_chain_id_as_string(self):
        assert get_transaction_chain_id({"chainId": "8453"}) == 8453

    def test_empty_transaction(self):
        with pytest.raises(ValueError, match="Transaction does not contain chainId"):
            get_transaction_chain_id({})


class TestGetFromAddress:
    def test_lowercase_address_converted_to_checksum(self):
        result = _get_transaction_from_address({"from": RANDOM_USER_0.lower()})
        assert AsyncWeb3.is_checksum_address(result)
        assert result == RANDOM_USER_0

    def test_empty_transaction(self):
        with pytest.raises(
            ValueError, match="Transaction does not contain from address"
        ):
            _get_transaction_from_address({})


class TestNormalizeTxHash:
    def test_bytes(self):
        assert normalize_tx_hash(bytes.fromhex("ab" * 32)) == TX_HASH

    def test_missing_prefix(self):
        assert normalize_tx_hash("ab" * 32) == TX_HASH

    def test_already_normalized(self):
        assert normalize_tx_hash(TX_HASH) == TX_HASH


class TestBuildCallTransaction:
    def test_checksums_and_casts(self):
        tx = build_call_transaction(
            chain_id="8453",
            from_address=RANDOM_USER_0.lower(),
            to=RANDOM_USER_0.lower(),
            data="0x1234",
            value="5",
        )
        assert tx == {
            "chainId": 8453,
            "from": RANDOM_USER_0,
            "to": RANDOM_USER_0,
            "data": "0x1234",
            "value": 5,
        }


@pytest.mark.asyncio
class TestNonceTransaction:
    @patch("curve_issuer.core.utils.transaction.web3s_from_chain_id")
    async def test_noncing_on_all_chains(self, mock_web3s_context):
        web3 = _mock_web3()
        web3.eth.get_transaction_count = AsyncMock(return_value=7)
        mock_web3s_context.return_value.__aenter__.return_value = [web3]

        for chain_id in SUPPORTED_CHAINS:
            result = await nonce_transaction({"from": RANDOM_USER_0, "chainId": chain_id})
            assert result["nonce"] == 7

        web3.eth.get_transaction_count.assert_awaited_with(
            RANDOM_USER_0, block_identifier="pending"
        )

    @patch("curve_issuer.core.utils.transaction.web3s_from_chain_id")
    async def test_multiple_web3s_returns_max_nonce(self, mock_web3s_context):
        web3s = []
        for nonce in (5, 8, 6):
            web3 = _mock_web3()
            web3.eth.get_transaction_count = AsyncMock(return_value=nonce)
            web3s.append(web3)
        mock_web3s_context.return_value.__aenter__.return_value = web3s

        transaction = {"from": RANDOM_USER_0, "chainId": 8453, "value": 100}
        result = await nonce_transaction(transaction)

        assert result["nonce"] == 8
        assert result["value"] == 100
        assert "nonce" not in transaction


@pytest.mark.asyncio
class TestGasPriceTransaction:
    @patch("curve_issuer.core.utils.transaction.web3s_from_chain_id")
    async def test_eip1559_max_aggregation(self, mock_web3s_context):
        web3s = []
        for base_fee, priority_fee in (
            (30_000_000, 2_000_000),
            (35_000_000, 3_000_000),
            (32_000_000, 2_500_000),
        ):
            block = MagicMock()
            block.baseFeePerGas = base_fee
            fee_history = MagicMock()
            fee_history.reward = [[priority_fee] for _ in range(10)]
            web3 = _mock_web3()
            web3.eth.get_block = AsyncMock(return_value=block)
            web3.eth.fee_history = AsyncMock(return_value=fee_history)
            web3s.append(web3)
        mock_web3s_context.return_value.__aenter__.return_value = web3s

        result = await gas_price_transaction({"chainId": 8453})

        assert result["maxPriorityFeePerGas"] == int(
            3_000_000 * SUGGESTED_PRIORITY_FEE_MULTIPLIER
        )
        assert result["maxFeePerGas"] == int(
            35_000_000 * 2 + 3_000_000 * SUGGESTED_PRIORITY_FEE_MULTIPLIER
        )
        assert "gasPrice" not in result


@pytest.mark.asyncio
class TestGasLimitTransaction:
    @patch("curve_issuer.core.utils.transaction.web3s_from_chain_id")
    async def test_buffers_max_estimate(self, mock_web3s_context):
        web3_a, web3_b = _mock_web3(), _mock_web3()
        web3_a.eth.estimate_gas = AsyncMock(return_value=200_000)
        web3_b.eth.estimate_gas = AsyncMock(side_effect=ValueError("rpc error"))
        mock_web3s_context.return_value.__aenter__.return_value = [web3_a, web3_b]

        result = await gas_limit_transaction({"chainId": 8453, "gas": 1})

        assert result["gas"] == math.ceil(200_000 * GAS_BUFFER_MULTIPLIER)
        sent = web3_a.eth.estimate_gas.call_args.args[0]
        assert "gas" not in sent

    @patch("curve_issuer.core.utils.transaction.web3s_from_chain_id")
    async def test_all_rpcs_fail(self, mock_web3s_context):
        web3 = _mock_web3()
        web3.eth.estimate_gas = AsyncMock(
            side_effect=ValueError("execution reverted: MCV2_Bond__InvalidCreationFee")
        )
        mock_web3s_context.return_value.__aenter__.return_value = [web3]

        with pytest.raises(GasEstimationError) as exc_info:
            await gas_limit_transaction({"chainId": 8453})

        assert "InvalidCreationFee" in str(exc_info.value)
        assert len(exc_info.value.errors) == 1
        assert exc_info.value.reverted


def test_transport_errors_are_not_reverts():
    error = GasEstimationError(["ConnectionError: timed out", "HTTP 429"])
    assert not error.reverted


@pytest.mark.asyncio
class TestBroadcastTransaction:
    @patch("curve_issuer.core.utils.transaction.web3_from_chain_id")
    async def test_returns_normalized_hash(self, mock_web3_context):
        web3 = _mock_web3()
        web3.eth.send_raw_transaction = AsyncMock(
            return_value=bytes.fromhex("ab" * 32)
        )
        mock_web3_context.return_value.__aenter__.return_value = web3

        assert await broadcast_transaction(8453, b"\x02signed") == TX_HASH
        web3.eth.send_raw_transaction.assert_awaited_once_with(b"\x02signed")


@pytest.mark.asyncio
class TestWaitForTransactionReceipt:
    @patch("curve_issuer.core.utils.transaction.web3s_from_chain_id")
    async def test_returns_reverted_receipt(self, mock_web3s_context):
        web3 = _mock_web3()
        web3.eth.wait_for_transaction_receipt = AsyncMock(
            return_value={"status": 0, "blockNumber": 3}
        )
        mock_web3s_context.return_value.__aenter__.return_value = [web3]

        receipt = await wait_for_transaction_receipt(8453, "ab" * 32, timeout=5)

        assert receipt == {"status": 0, "blockNumber": 3}
        web3.eth.wait_for_transaction_receipt.assert_awaited_once_with(
            TX_HASH, poll_latency=0.5, timeout=5
        )

    @patch("curve_issuer.core.utils.transaction.web3s_from_chain_id")
    async def test_timeout_propagates(self, mock_web3s_context):
        web3 = _mock_web3()
        web3.eth.wait_for_transaction_receipt = AsyncMock(
            side_effect=TimeExhausted("not in chain")
        )
        mock_web3s_context.return_value.__aenter__.return_value = [web3]

        with pytest.raises(TimeExhausted):
            await wait_for_transaction_receipt(8453, TX_HASH, timeout=1)

    @patch("curve_issuer.core.utils.transaction.web3s_from_chain_id")
    async def test_failing_rpc_does_not_hide_healthy_receipt(self, mock_web3s_context):
        async def _slow_receipt(*args, **kwargs):
            await asyncio.sleep(0.01)
            return {"status": 1, "blockNumber": 7}

        flaky, healthy = _mock_web3(), _mock_web3()
        flaky.eth.wait_for_transaction_receipt = AsyncMock(
            side_effect=ConnectionError("connection reset")
        )
        healthy.eth.wait_for_transaction_receipt = AsyncMock(side_effect=_slow_receipt)
        mock_web3s_context.return_value.__aenter__.return_value = [flaky, healthy]

        receipt = await wait_for_transaction_receipt(8453, TX_HASH, timeout=5)

        assert receipt == {"status": 1, "blockNumber": 7}

    @patch("curve_issuer.core.utils.transaction.web3s_from_chain_id")
    async def test_raises_when_every_rpc_fails(self, mock_web3s_context):
        web3_a, web3_b = _mock_web3(), _mock_web3()
        web3_a.eth.wait_for_transaction_receipt = AsyncMock(
            side_effect=ConnectionError("connection reset")
        )
        web3_b.eth.wait_for_transaction_receipt = AsyncMock(
            side_effect=TimeExhausted("not in chain")
        )
        mock_web3s_context.return_value.__aenter__.return_value = [web3_a, web3_b]

        with pytest.raises((ConnectionError, TimeExhausted)):
            await wait_for_transaction_receipt(8453, TX_HASH, timeout=1)

    @patch("curve_issuer.core.utils.transaction.web3s_from_chain_id")
    async def test_losing_lookups_finish_before_returning(self, mock_web3s_context):
        cancelled = asyncio.Event()

        async def _never(*args, **kwargs):
            try:
                await asyncio.sleep(60)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        fast, slow = _mock_web3(), _mock_web3()
        fast.eth.wait_for_transaction_receipt = AsyncMock(
            return_value={"status": 1, "blockNumber": 2}
        )
        slow.eth.wait_for_transaction_receipt = AsyncMock(side_effect=_never)
        mock_web3s_context.return_value.__aenter__.return_value = [fast, slow]

        receipt = await wait_for_transaction_receipt(8453, TX_HASH, timeout=5)

        assert receipt["blockNumber"] == 2
        assert cancelled.is_set()
