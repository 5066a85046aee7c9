"""Pydantic models for ledger data consumed and produced by the oracle.

- RawAccount / RequestRecord: what a ledger scan returns and what it decodes to
- ProofArtifact: a prover's answer for one (secret key, seed) pair
- Checkpoint, AccountMeta, Instruction: transaction building blocks
"""

from __future__ import annotations

from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field

from .pubkey import Pubkey


# ---------------------------------------------------------------------------
# Ledger scan
# ---------------------------------------------------------------------------


class RawAccount(BaseModel):
    """An (address, payload) pair returned by a program account scan."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    address: Pubkey
    data: bytes


class RequestStatus(IntEnum):
    """On-ledger status byte of a randomness request."""

    PENDING = 0
    FULFILLED = 1
    CANCELLED = 2
    EXPIRED = 3


class RequestRecord(BaseModel):
    """A decoded randomness request.

    Created by the ledger program when a consumer asks for randomness and
    mutated only by a confirmed fulfillment transaction. The oracle never
    changes it directly.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    id: Pubkey = Field(description="Address of the request account")
    subscription: Pubkey
    seed: bytes
    requester: Pubkey
    callback_data: bytes = b""
    request_slot: int = 0
    status: RequestStatus
    num_words: int = 1
    callback_gas_limit: int = 0
    pool_id: int = 0
    request_index: int = 0
    request_id: bytes = Field(default=bytes(32))

    @property
    def is_pending(self) -> bool:
        return self.status is RequestStatus.PENDING


# ---------------------------------------------------------------------------
# Prover output
# ---------------------------------------------------------------------------


class ProofArtifact(BaseModel):
    """VRF proof, output and the public key that produced them.

    Deterministic in (secret key, seed): the same inputs always yield the
    same output and a proof that verifies.
    """

    model_config = ConfigDict(frozen=True)

    proof: bytes
    output: bytes
    public_key: bytes


# ---------------------------------------------------------------------------
# Transaction building blocks
# ---------------------------------------------------------------------------


class Checkpoint(BaseModel):
    """Latest confirmed blockhash and the last height it stays valid for."""

    model_config = ConfigDict(frozen=True)

    blockhash: bytes = Field(min_length=32, max_length=32)
    last_valid_block_height: int = 0


class AccountMeta(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    pubkey: Pubkey
    is_signer: bool = False
    is_writable: bool = False


class Instruction(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    program_id: Pubkey
    accounts: list[AccountMeta]
    data: bytes


__all__ = [
    "AccountMeta",
    "Checkpoint",
    "Instruction",
    "ProofArtifact",
    "RawAccount",
    "RequestRecord",
    "RequestStatus",
]
