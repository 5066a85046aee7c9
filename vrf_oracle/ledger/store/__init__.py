"""Ledger transports."""

from .interface import LedgerClient
from .rpc_client import RpcLedgerClient

__all__ = ["LedgerClient", "RpcLedgerClient"]
