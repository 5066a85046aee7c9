"""Fulfillment transaction construction.

The instruction's account list and data layout are the ledger program's
wire contract:

    0 oracle signer      signer, writable
    1 request account    writable
    2 result account     writable (derived from ["vrf_result", request])
    3 requester          read-only
    4 subscription       writable
    5 system program     read-only

    data = discriminator (8) | u32 len + proof | u32 len + public key
"""

from __future__ import annotations

import struct

import bittensor as bt

from vrf_oracle.ledger.models import AccountMeta, Instruction, ProofArtifact, RequestRecord
from vrf_oracle.ledger.pubkey import SYSTEM_PROGRAM_ID, Pubkey, find_program_address
from vrf_oracle.ledger.signer import OracleKeypair
from vrf_oracle.ledger.store.interface import LedgerClient
from vrf_oracle.ledger.transaction import Transaction

RESULT_SEED = b"vrf_result"
FULFILL_RANDOMNESS_DISCRIMINATOR = bytes([235, 105, 140, 46, 40, 88, 117, 2])


def encode_fulfill_data(proof: bytes, public_key: bytes) -> bytes:
    return (
        FULFILL_RANDOMNESS_DISCRIMINATOR
        + struct.pack("<I", len(proof)) + proof
        + struct.pack("<I", len(public_key)) + public_key
    )


class FulfillmentTxBuilder:
    """Builds signed fulfill_randomness transactions for one program."""

    def __init__(self, ledger: LedgerClient, program_id: Pubkey, oracle: OracleKeypair):
        self.ledger = ledger
        self.program_id = program_id
        self.oracle = oracle

    def derive_result_address(self, request_id: Pubkey) -> Pubkey:
        address, _bump = find_program_address([RESULT_SEED, bytes(request_id)], self.program_id)
        return address

    def build_instruction(self, request: RequestRecord, artifact: ProofArtifact) -> Instruction:
        result_address = self.derive_result_address(request.id)
        return Instruction(
            program_id=self.program_id,
            accounts=[
                AccountMeta(pubkey=self.oracle.pubkey, is_signer=True, is_writable=True),
                AccountMeta(pubkey=request.id, is_writable=True),
                AccountMeta(pubkey=result_address, is_writable=True),
                AccountMeta(pubkey=request.requester, is_writable=False),
                AccountMeta(pubkey=request.subscription, is_writable=True),
                AccountMeta(pubkey=SYSTEM_PROGRAM_ID, is_writable=False),
            ],
            data=encode_fulfill_data(artifact.proof, artifact.public_key),
        )

    async def build(self, request: RequestRecord, artifact: ProofArtifact) -> Transaction:
        """Assemble and sign against a checkpoint fetched just now."""
        instruction = self.build_instruction(request, artifact)
        checkpoint = await self.ledger.get_latest_checkpoint()
        tx = Transaction.new_signed([instruction], self.oracle, checkpoint)
        bt.logging.debug({
            "fulfillment_tx": {
                "request": str(request.id),
                "result_account": str(instruction.accounts[2].pubkey),
                "last_valid_block_height": checkpoint.last_valid_block_height,
            }
        })
        return tx


__all__ = [
    "FULFILL_RANDOMNESS_DISCRIMINATOR",
    "FulfillmentTxBuilder",
    "RESULT_SEED",
    "encode_fulfill_data",
]
