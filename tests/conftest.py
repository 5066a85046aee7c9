"""Shared fakes and fixtures for the oracle test-suite."""

from __future__ import annotations

from typing import Callable

import pytest

from vrf_oracle.errors import ProofGenerationFailed
from vrf_oracle.ledger.models import Checkpoint, RawAccount, RequestRecord, RequestStatus
from vrf_oracle.ledger.pubkey import Pubkey
from vrf_oracle.ledger.signer import OracleKeypair
from vrf_oracle.oracle.decoder import encode_request
from vrf_oracle.prover.ecvrf import EcvrfProver
from vrf_oracle.prover.interface import VrfKeypair
from vrf_oracle.shared.edwards25519 import public_from_secret

PROGRAM_ID = Pubkey(bytes([7]) * 32)
BLOCKHASH = bytes([9]) * 32


def pubkey(n: int) -> Pubkey:
    return Pubkey(bytes([n]) * 32)


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeLedger:
    """In-memory LedgerClient.

    `outcomes` scripts send_and_confirm: each call pops one entry, raising
    it when it is an exception. An empty script confirms everything.
    """

    def __init__(self):
        self.accounts: list[RawAccount] = []
        self.outcomes: list[BaseException | None] = []
        self.fetch_error: BaseException | None = None
        self.sent = []
        self.fetches = 0
        self.checkpoints = 0
        self.closed = False

    async def get_program_accounts(self, program_id, tag):
        self.fetches += 1
        if self.fetch_error is not None:
            raise self.fetch_error
        return list(self.accounts)

    async def get_latest_checkpoint(self):
        self.checkpoints += 1
        return Checkpoint(blockhash=BLOCKHASH, last_valid_block_height=1_000)

    async def send_and_confirm(self, tx):
        self.sent.append(tx)
        if self.outcomes:
            outcome = self.outcomes.pop(0)
            if outcome is not None:
                raise outcome
        return tx.signature

    async def get_version(self):
        return {"solana-core": "1.18.0"}

    async def close(self):
        self.closed = True


class RecordingProver:
    """EcvrfProver that records calls and can fail or reject chosen seeds."""

    name = "recording"

    def __init__(self):
        self._inner = EcvrfProver()
        self.prove_calls: list[bytes] = []
        self.verify_calls: list[bytes] = []
        self.fail_seeds: set[bytes] = set()
        self.reject_seeds: set[bytes] = set()

    async def keypair(self):
        return await self._inner.keypair()

    async def prove(self, secret_key, seed):
        self.prove_calls.append(seed)
        if seed in self.fail_seeds:
            raise ProofGenerationFailed(f"prover crashed on {seed.hex()}")
        return await self._inner.prove(secret_key, seed)

    async def verify(self, proof, output, public_key, seed):
        self.verify_calls.append(seed)
        if seed in self.reject_seeds:
            return False
        return await self._inner.verify(proof, output, public_key, seed)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def program_id() -> Pubkey:
    return PROGRAM_ID


@pytest.fixture
def oracle_keypair() -> OracleKeypair:
    return OracleKeypair.from_seed(bytes([1]) * 32)


@pytest.fixture
def vrf_keypair() -> VrfKeypair:
    secret = bytes(range(32))
    return VrfKeypair(secret_key=secret, public_key=public_from_secret(secret))


@pytest.fixture
def fake_ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def recording_prover() -> RecordingProver:
    return RecordingProver()


@pytest.fixture
def make_request() -> Callable[..., RequestRecord]:
    """Factory for request records keyed by a small integer."""

    def _make(n: int, status: RequestStatus = RequestStatus.PENDING, **overrides) -> RequestRecord:
        fields = dict(
            id=pubkey(100 + n),
            subscription=pubkey(150 + n),
            seed=bytes([n]) * 32,
            requester=pubkey(200 + n),
            callback_data=b"cb" * n,
            request_slot=5_000 + n,
            status=status,
            num_words=1,
            callback_gas_limit=200_000,
            pool_id=0,
            request_index=n,
            request_id=bytes([n + 1]) * 32,
        )
        fields.update(overrides)
        return RequestRecord(**fields)

    return _make


@pytest.fixture
def make_account(make_request) -> Callable[..., RawAccount]:
    """Factory for scanned accounts carrying an encoded request."""

    def _make(n: int, status: RequestStatus = RequestStatus.PENDING, **overrides) -> RawAccount:
        record = make_request(n, status, **overrides)
        return RawAccount(address=record.id, data=encode_request(record))

    return _make
