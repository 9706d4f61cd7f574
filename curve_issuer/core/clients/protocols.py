from __future__ import annotations

from typing import Any, Protocol


class ChainClientProtocol(Protocol):
    chain_id: int
    address: str

    async def read_call(
        self,
        contract: str,
        abi: list[dict[str, Any]],
        fn_name: str,
        args: list[Any] | None = None,
    ) -> Any: ...

    async def submit_transaction(self, to: str, data: str, value: int) -> str: ...

    async def wait_for_receipt(self, tx_hash: str, timeout: float) -> dict[str, Any]: ...

    async def get_revert_reason(
        self,
        tx_hash: str,
        block_number: int | None = None,
        abi: list[dict[str, Any]] | None = None,
    ) -> str | None: ...
