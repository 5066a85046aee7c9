"""Ledger access for the oracle.

The ledger is an external, eventually consistent account store. This
package holds what the oracle needs to talk to it:
- Models for scanned accounts, decoded requests and proofs
- Addresses and program-derived address derivation
- Legacy transaction compilation, signing and wire serialization
- A pluggable LedgerClient transport (JSON-RPC over HTTP)
"""

from .models import (
    AccountMeta,
    Checkpoint,
    Instruction,
    ProofArtifact,
    RawAccount,
    RequestRecord,
    RequestStatus,
)
from .pubkey import SYSTEM_PROGRAM_ID, Pubkey, find_program_address
from .signer import OracleKeypair, verify_signature
from .transaction import Message, Transaction

__all__ = [
    "AccountMeta",
    "Checkpoint",
    "Instruction",
    "Message",
    "OracleKeypair",
    "ProofArtifact",
    "Pubkey",
    "RawAccount",
    "RequestRecord",
    "RequestStatus",
    "SYSTEM_PROGRAM_ID",
    "Transaction",
    "find_program_address",
    "verify_signature",
]
