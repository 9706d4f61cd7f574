from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from curve_issuer.core.utils.transaction import GasEstimationError
from curve_issuer.issuance.errors import (
    ConfirmationTimeout,
    ExecutionReverted,
    SubmissionError,
    ValidationError,
)
from curve_issuer.issuance.orchestrator import IssuanceResult
from curve_issuer.issuance.params import resolve_issuance_params
from curve_issuer.issuance.policy import (
    SINGLE_ATTEMPT,
    RetryPolicy,
    exponential_backoff_s,
    issue_token_with_policy,
    run_with_policy,
)
from curve_issuer.issuance.presets import NOVA_TOKEN

FACTORY = "0xc5a076cad94176c2996B32d8466Be1cE757FAa27"
RESULT = IssuanceResult(transaction_hash="0x" + "cd" * 32, block_number=7)


class TestRetryPolicy:
    def test_backoff_grows_and_caps(self):
        assert exponential_backoff_s(0) == 1.0
        assert exponential_backoff_s(3) == 8.0
        assert exponential_backoff_s(10, max_delay_s=30.0) == 30.0

    def test_defaults_to_single_attempt(self):
        assert SINGLE_ATTEMPT.max_attempts == 1

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)

    def test_only_submission_errors_retry_by_default(self):
        policy = RetryPolicy(max_attempts=3)
        assert policy.should_retry(SubmissionError("nonce too low"))
        assert not policy.should_retry(ConfirmationTimeout("0xabc", 1))
        assert not policy.should_retry(ExecutionReverted("0xabc"))
        assert not policy.should_retry(ValidationError("bad"))

    def test_reverting_gas_estimate_is_not_retried(self):
        policy = RetryPolicy(max_attempts=3)
        reverted = GasEstimationError(
            ["execution reverted: MCV2_Bond__TokenSymbolAlreadyExists"]
        )
        flaky = GasEstimationError(["HTTPError: 503 Service Unavailable"])

        assert not policy.should_retry(
            SubmissionError("createToken broadcast rejected", cause=reverted)
        )
        assert policy.should_retry(
            SubmissionError("createToken broadcast rejected", cause=flaky)
        )


@pytest.mark.asyncio
class TestRunWithPolicy:
    async def test_retries_until_success(self):
        fn = AsyncMock(side_effect=[SubmissionError("rejected"), "ok"])
        sleep = AsyncMock()

        result = await run_with_policy(
            fn, RetryPolicy(max_attempts=3, base_delay_s=0.5), sleep=sleep
        )

        assert result == "ok"
        assert fn.await_count == 2
        sleep.assert_awaited_once_with(0.5)

    async def test_gives_up_after_max_attempts(self):
        fn = AsyncMock(side_effect=SubmissionError("rejected"))
        sleep = AsyncMock()

        with pytest.raises(SubmissionError):
            await run_with_policy(fn, RetryPolicy(max_attempts=3), sleep=sleep)

        assert fn.await_count == 3
        assert sleep.await_count == 2

    async def test_does_not_retry_timeouts(self):
        fn = AsyncMock(side_effect=ConfirmationTimeout("0xabc", 1))
        sleep = AsyncMock()

        with pytest.raises(ConfirmationTimeout):
            await run_with_policy(fn, RetryPolicy(max_attempts=5), sleep=sleep)

        assert fn.await_count == 1
        sleep.assert_not_awaited()

    async def test_stops_on_reverting_gas_estimate(self):
        error = SubmissionError(
            "createToken broadcast rejected",
            cause=GasEstimationError(["execution reverted"]),
        )
        fn = AsyncMock(side_effect=error)
        sleep = AsyncMock()

        with pytest.raises(SubmissionError):
            await run_with_policy(fn, RetryPolicy(max_attempts=3), sleep=sleep)

        assert fn.await_count == 1
        sleep.assert_not_awaited()


@pytest.mark.asyncio
class TestIssueTokenWithPolicy:
    async def test_each_attempt_refetches_fee(self):
        identity, curve = resolve_issuance_params(NOVA_TOKEN)
        client = MagicMock()
        issue = AsyncMock(side_effect=[SubmissionError("underpriced"), RESULT])

        with patch("curve_issuer.issuance.policy.issue_token", issue):
            result = await issue_token_with_policy(
                client,
                FACTORY,
                identity,
                curve,
                policy=RetryPolicy(max_attempts=2),
                timeout=30,
                sleep=AsyncMock(),
            )

        assert result == RESULT
        assert issue.await_count == 2
        for call in issue.await_args_list:
            assert call.args == (client, FACTORY, identity, curve)
            assert call.kwargs["timeout"] == 30

    async def test_fee_is_read_per_attempt_end_to_end(self):
        identity, curve = resolve_issuance_params(NOVA_TOKEN)
        client = MagicMock()
        client.read_call = AsyncMock(side_effect=[100, 200])
        client.submit_transaction = AsyncMock(
            side_effect=[ValueError("replacement transaction underpriced"), "0x" + "ef" * 32]
        )
        client.wait_for_receipt = AsyncMock(
            return_value={"status": 1, "blockNumber": 9, "logs": []}
        )

        result = await issue_token_with_policy(
            client,
            FACTORY,
            identity,
            curve,
            policy=RetryPolicy(max_attempts=2),
            sleep=AsyncMock(),
        )

        assert result.degraded
        values = [c.args[2] for c in client.submit_transaction.await_args_list]
        assert values == [100, 200]
