"""Request account decoding.

Payload layout (little-endian):

    tag "REQUEST\\0" (8)
    subscription (32) | seed (32) | requester (32)
    callback_data: u32 length + bytes
    request_slot u64 | status u8 | num_words u32 | callback_gas_limit u64
    pool_id u8 | request_index u32 | request_id (32)

Bytes after `request_id` are ignored; request accounts may be allocated
larger than the record they hold.
"""

from __future__ import annotations

import struct

from vrf_oracle.errors import DecodeError
from vrf_oracle.ledger.models import RawAccount, RequestRecord, RequestStatus
from vrf_oracle.ledger.pubkey import Pubkey

REQUEST_TAG = b"REQUEST\x00"
TAG_LENGTH = len(REQUEST_TAG)


class _Reader:
    def __init__(self, data: bytes, address: str):
        self.data = data
        self.offset = 0
        self.address = address

    def take(self, n: int, what: str) -> bytes:
        end = self.offset + n
        if end > len(self.data):
            raise DecodeError(
                self.address,
                f"truncated at {what}: need {n} bytes at offset {self.offset}, have {len(self.data) - self.offset}",
            )
        chunk = self.data[self.offset:end]
        self.offset = end
        return chunk

    def unpack(self, fmt: str, what: str) -> int:
        return struct.unpack(fmt, self.take(struct.calcsize(fmt), what))[0]


def decode_request(account: RawAccount) -> RequestRecord | None:
    """Decode a scanned account into a request.

    Returns None when the account is not a request record (short payload
    or foreign tag). Raises DecodeError when the tag matches but the body
    is malformed.
    """
    data = account.data
    if len(data) < TAG_LENGTH or data[:TAG_LENGTH] != REQUEST_TAG:
        return None

    address = str(account.address)
    r = _Reader(data[TAG_LENGTH:], address)
    subscription = Pubkey(r.take(32, "subscription"))
    seed = r.take(32, "seed")
    requester = Pubkey(r.take(32, "requester"))
    callback_len = r.unpack("<I", "callback_data length")
    callback_data = r.take(callback_len, "callback_data")
    request_slot = r.unpack("<Q", "request_slot")
    status_byte = r.unpack("<B", "status")
    num_words = r.unpack("<I", "num_words")
    callback_gas_limit = r.unpack("<Q", "callback_gas_limit")
    pool_id = r.unpack("<B", "pool_id")
    request_index = r.unpack("<I", "request_index")
    request_id = r.take(32, "request_id")

    try:
        status = RequestStatus(status_byte)
    except ValueError:
        raise DecodeError(address, f"unknown status byte {status_byte}") from None

    return RequestRecord(
        id=account.address,
        subscription=subscription,
        seed=seed,
        requester=requester,
        callback_data=callback_data,
        request_slot=request_slot,
        status=status,
        num_words=num_words,
        callback_gas_limit=callback_gas_limit,
        pool_id=pool_id,
        request_index=request_index,
        request_id=request_id,
    )


def encode_request(record: RequestRecord) -> bytes:
    """Inverse of decode_request, used to build fixtures and fakes."""
    return b"".join([
        REQUEST_TAG,
        bytes(record.subscription),
        record.seed,
        bytes(record.requester),
        struct.pack("<I", len(record.callback_data)),
        record.callback_data,
        struct.pack("<QBIQBI", record.request_slot, int(record.status), record.num_words,
                    record.callback_gas_limit, record.pool_id, record.request_index),
        record.request_id,
    ])


__all__ = ["REQUEST_TAG", "TAG_LENGTH", "decode_request", "encode_request"]
