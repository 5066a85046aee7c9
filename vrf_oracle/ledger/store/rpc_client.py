"""JSON-RPC LedgerClient for the oracle.

Speaks JSON-RPC 2.0 over HTTP to a ledger node. Read calls are retried
with exponential backoff on transport errors; `sendTransaction` is sent
exactly once per call because the Submitter owns the retry policy for
writes.
"""

from __future__ import annotations

import asyncio
import base64
import itertools
import time
from typing import Any, Awaitable, Callable

import base58
import bittensor as bt
import httpx

from vrf_oracle.errors import ConfigError, RpcError, TransactionFailed, TransportError
from vrf_oracle.ledger.models import Checkpoint, RawAccount
from vrf_oracle.ledger.pubkey import Pubkey
from vrf_oracle.ledger.transaction import Transaction

_COMMITMENT_RANK = {"processed": 0, "confirmed": 1, "finalized": 2}


class RpcLedgerClient:
    """Ledger client over a JSON-RPC HTTP endpoint."""

    def __init__(
        self,
        rpc_url: str,
        commitment: str = "confirmed",
        timeout: float = 30.0,
        max_retries: int = 3,
        confirm_timeout: float = 60.0,
        confirm_poll_interval: float = 0.5,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if commitment not in _COMMITMENT_RANK:
            raise ValueError(f"unknown commitment level: {commitment}")
        self.rpc_url = rpc_url
        self.commitment = commitment
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._max_retries = max(1, max_retries)
        self._confirm_timeout = confirm_timeout
        self._confirm_poll_interval = confirm_poll_interval
        self._sleep = sleep
        self._ids = itertools.count(1)

    async def close(self) -> None:
        await self._client.aclose()

    # -- JSON-RPC plumbing --

    async def _post(self, method: str, params: list[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            resp = await self._client.post(self.rpc_url, json=payload)
        except httpx.TransportError as e:
            raise TransportError(f"{method}: {e}") from e
        if resp.status_code != 200:
            raise TransportError(f"{method}: HTTP {resp.status_code} {resp.text[:200]}")
        try:
            body = resp.json()
        except ValueError as e:
            raise TransportError(f"{method}: response is not JSON") from e
        if not isinstance(body, dict):
            raise TransportError(f"{method}: unexpected response {body!r:.200}")
        error = body.get("error")
        if error is not None:
            if not isinstance(error, dict):
                raise TransportError(f"{method}: malformed error member {error!r:.200}")
            raise RpcError(int(error.get("code", 0)), str(error.get("message", "")), error.get("data"))
        if "result" not in body:
            raise TransportError(f"{method}: response has no result")
        return body["result"]

    async def _call(self, method: str, params: list[Any], retry: bool = True) -> Any:
        attempts = self._max_retries if retry else 1
        for attempt in range(attempts):
            try:
                return await self._post(method, params)
            except RpcError:
                raise
            except TransportError as e:
                if attempt == attempts - 1:
                    raise
                wait = 2 ** attempt
                bt.logging.warning({"ledger_rpc_client": {"method": method, "retry": attempt, "wait": wait, "error": str(e)}})
                await self._sleep(wait)
        raise TransportError(f"{method}: max retries exceeded")

    # -- LedgerClient interface --

    async def get_version(self) -> dict[str, Any]:
        return await self._call("getVersion", [])

    async def get_program_accounts(self, program_id: Pubkey, tag: bytes) -> list[RawAccount]:
        config = {
            "encoding": "base64",
            "commitment": self.commitment,
            "filters": [{"memcmp": {"offset": 0, "bytes": base58.b58encode(tag).decode("ascii")}}],
        }
        result = await self._call("getProgramAccounts", [str(program_id), config])
        if isinstance(result, dict):
            result = result.get("value", [])
        accounts: list[RawAccount] = []
        try:
            for item in result:
                data_field = item["account"]["data"]
                encoded = data_field[0] if isinstance(data_field, list) else data_field
                accounts.append(RawAccount(
                    address=Pubkey.from_string(item["pubkey"]),
                    data=base64.b64decode(encoded),
                ))
        except (ConfigError, KeyError, TypeError, IndexError, ValueError) as e:
            raise TransportError(f"getProgramAccounts: malformed result: {e}") from e
        return accounts

    async def get_latest_checkpoint(self) -> Checkpoint:
        result = await self._call("getLatestBlockhash", [{"commitment": self.commitment}])
        try:
            value = result["value"]
            return Checkpoint(
                blockhash=base58.b58decode(value["blockhash"]),
                last_valid_block_height=int(value["lastValidBlockHeight"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise TransportError(f"getLatestBlockhash: malformed result: {e}") from e

    async def get_block_height(self) -> int:
        result = await self._call("getBlockHeight", [{"commitment": self.commitment}])
        return int(result)

    async def send_transaction(self, tx: Transaction) -> str:
        config = {"encoding": "base64", "preflightCommitment": self.commitment}
        result = await self._call("sendTransaction", [tx.to_base64(), config], retry=False)
        return str(result)

    async def get_signature_status(self, signature: str) -> dict[str, Any] | None:
        result = await self._call("getSignatureStatuses", [[signature], {"searchTransactionHistory": False}])
        try:
            return result["value"][0]
        except (KeyError, TypeError, IndexError) as e:
            raise TransportError(f"getSignatureStatuses: malformed result: {e}") from e

    async def send_and_confirm(self, tx: Transaction) -> str:
        signature = await self.send_transaction(tx)
        wanted = _COMMITMENT_RANK[self.commitment]
        deadline = time.monotonic() + self._confirm_timeout

        while True:
            status = await self.get_signature_status(signature)
            if status is not None:
                if status.get("err") is not None:
                    raise TransactionFailed(signature, status["err"])
                level = status.get("confirmationStatus") or "processed"
                if _COMMITMENT_RANK.get(level, -1) >= wanted:
                    return signature

            height = await self.get_block_height()
            if height > tx.checkpoint.last_valid_block_height:
                raise TransactionFailed(signature, "blockhash expired before confirmation")
            if time.monotonic() > deadline:
                raise TransactionFailed(signature, f"not confirmed within {self._confirm_timeout}s")

            await self._sleep(self._confirm_poll_interval)


__all__ = ["RpcLedgerClient"]
