"""Legacy ledger transaction wire format.

A message is:

    header (3 x u8) | compact-u16 n + n account keys | recent blockhash (32)
    | compact-u16 m + m compiled instructions

and a transaction is `compact-u16 s + s signatures (64 bytes each) | message`.
Account keys are ordered writable signers, read-only signers, writable
non-signers, read-only non-signers, with the fee payer first.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field

import base58

from .models import Checkpoint, Instruction
from .pubkey import Pubkey
from .signer import OracleKeypair, verify_signature

SIGNATURE_LENGTH = 64


def encode_compact_u16(value: int) -> bytes:
    if not 0 <= value <= 0xFFFF:
        raise ValueError(f"compact-u16 out of range: {value}")
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def decode_compact_u16(data: bytes, offset: int = 0) -> tuple[int, int]:
    """Returns (value, bytes consumed)."""
    value = 0
    for i in range(3):
        if offset + i >= len(data):
            raise ValueError("truncated compact-u16")
        byte = data[offset + i]
        value |= (byte & 0x7F) << (7 * i)
        if not byte & 0x80:
            return value, i + 1
    raise ValueError("compact-u16 longer than 3 bytes")


@dataclass(frozen=True)
class CompiledInstruction:
    program_id_index: int
    account_indices: tuple[int, ...]
    data: bytes

    def serialize(self) -> bytes:
        return (
            bytes([self.program_id_index])
            + encode_compact_u16(len(self.account_indices))
            + bytes(self.account_indices)
            + encode_compact_u16(len(self.data))
            + self.data
        )


@dataclass(frozen=True)
class Message:
    num_required_signatures: int
    num_readonly_signed: int
    num_readonly_unsigned: int
    account_keys: tuple[Pubkey, ...]
    recent_blockhash: bytes
    instructions: tuple[CompiledInstruction, ...]

    @classmethod
    def compile(cls, instructions: list[Instruction], payer: Pubkey, recent_blockhash: bytes) -> "Message":
        # pubkey -> [is_signer, is_writable], insertion ordered
        flags: dict[Pubkey, list[bool]] = {payer: [True, True]}
        for ix in instructions:
            for meta in ix.accounts:
                entry = flags.setdefault(meta.pubkey, [False, False])
                entry[0] = entry[0] or meta.is_signer
                entry[1] = entry[1] or meta.is_writable
            flags.setdefault(ix.program_id, [False, False])

        def group(signer: bool, writable: bool) -> list[Pubkey]:
            return [k for k, (s, w) in flags.items() if s == signer and w == writable]

        keys = group(True, True) + group(True, False) + group(False, True) + group(False, False)
        index = {key: i for i, key in enumerate(keys)}

        compiled = tuple(
            CompiledInstruction(
                program_id_index=index[ix.program_id],
                account_indices=tuple(index[m.pubkey] for m in ix.accounts),
                data=ix.data,
            )
            for ix in instructions
        )
        return cls(
            num_required_signatures=len(group(True, True)) + len(group(True, False)),
            num_readonly_signed=len(group(True, False)),
            num_readonly_unsigned=len(group(False, False)),
            account_keys=tuple(keys),
            recent_blockhash=recent_blockhash,
            instructions=compiled,
        )

    def serialize(self) -> bytes:
        out = bytearray([
            self.num_required_signatures,
            self.num_readonly_signed,
            self.num_readonly_unsigned,
        ])
        out += encode_compact_u16(len(self.account_keys))
        for key in self.account_keys:
            out += bytes(key)
        out += self.recent_blockhash
        out += encode_compact_u16(len(self.instructions))
        for ix in self.instructions:
            out += ix.serialize()
        return bytes(out)

    @property
    def signers(self) -> tuple[Pubkey, ...]:
        return self.account_keys[: self.num_required_signatures]


@dataclass
class Transaction:
    """A compiled message plus one signature slot per required signer."""

    message: Message
    checkpoint: Checkpoint
    signatures: list[bytes] = field(default_factory=list)

    @classmethod
    def new_signed(
        cls,
        instructions: list[Instruction],
        payer: OracleKeypair,
        checkpoint: Checkpoint,
    ) -> "Transaction":
        message = Message.compile(instructions, payer.pubkey, checkpoint.blockhash)
        tx = cls(message=message, checkpoint=checkpoint)
        tx.sign([payer])
        return tx

    def sign(self, keypairs: list[OracleKeypair]) -> None:
        by_key = {kp.pubkey: kp for kp in keypairs}
        payload = self.message.serialize()
        signatures = []
        for signer in self.message.signers:
            if signer not in by_key:
                raise ValueError(f"missing keypair for required signer {signer}")
            signatures.append(by_key[signer].sign(payload))
        self.signatures = signatures

    @property
    def signature(self) -> str:
        """Base58 id of the transaction (its first signature)."""
        if not self.signatures:
            raise ValueError("transaction is not signed")
        return base58.b58encode(self.signatures[0]).decode("ascii")

    def verify_signatures(self) -> bool:
        payload = self.message.serialize()
        if len(self.signatures) != len(self.message.signers):
            return False
        return all(
            verify_signature(key, payload, sig)
            for key, sig in zip(self.message.signers, self.signatures)
        )

    def serialize(self) -> bytes:
        if len(self.signatures) != self.message.num_required_signatures:
            raise ValueError("transaction is not fully signed")
        out = bytearray(encode_compact_u16(len(self.signatures)))
        for sig in self.signatures:
            out += sig
        out += self.message.serialize()
        return bytes(out)

    def to_base64(self) -> str:
        return base64.b64encode(self.serialize()).decode("ascii")


__all__ = [
    "CompiledInstruction",
    "Message",
    "Transaction",
    "decode_compact_u16",
    "encode_compact_u16",
]
