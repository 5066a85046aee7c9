"""LedgerClient protocol - pluggable ledger transport interface.

Implementations: RpcLedgerClient (JSON-RPC over HTTP), in-memory fakes in
tests.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from vrf_oracle.ledger.models import Checkpoint, RawAccount
from vrf_oracle.ledger.pubkey import Pubkey
from vrf_oracle.ledger.transaction import Transaction


@runtime_checkable
class LedgerClient(Protocol):
    """Abstract interface for reading from and writing to the ledger."""

    async def get_program_accounts(self, program_id: Pubkey, tag: bytes) -> list[RawAccount]:
        """Accounts owned by the program whose payload starts with `tag`."""
        ...

    async def get_latest_checkpoint(self) -> Checkpoint:
        """Latest confirmed blockhash to build a transaction against."""
        ...

    async def send_and_confirm(self, tx: Transaction) -> str:
        """Submit a signed transaction and wait until it is confirmed.

        Returns the transaction signature. Raises TransportError or
        TransactionFailed.
        """
        ...

    async def get_version(self) -> dict[str, Any]:
        """Node version info, used as a connectivity check."""
        ...

    async def close(self) -> None:
        ...


__all__ = ["LedgerClient"]
