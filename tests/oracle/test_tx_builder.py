"""Tests for fulfillment transaction construction."""

import struct

import pytest

from vrf_oracle.ledger.models import ProofArtifact
from vrf_oracle.ledger.pubkey import SYSTEM_PROGRAM_ID, find_program_address
from vrf_oracle.oracle.tx_builder import (
    FULFILL_RANDOMNESS_DISCRIMINATOR,
    RESULT_SEED,
    FulfillmentTxBuilder,
    encode_fulfill_data,
)

ARTIFACT = ProofArtifact(proof=bytes([5]) * 80, output=bytes([6]) * 64, public_key=bytes([8]) * 32)


@pytest.fixture
def builder(fake_ledger, program_id, oracle_keypair):
    return FulfillmentTxBuilder(ledger=fake_ledger, program_id=program_id, oracle=oracle_keypair)


def test_instruction_data_layout():
    data = encode_fulfill_data(ARTIFACT.proof, ARTIFACT.public_key)
    assert data[:8] == FULFILL_RANDOMNESS_DISCRIMINATOR
    assert struct.unpack("<I", data[8:12])[0] == 80
    assert data[12:92] == ARTIFACT.proof
    assert struct.unpack("<I", data[92:96])[0] == 32
    assert data[96:] == ARTIFACT.public_key
    assert len(data) == 128


def test_result_address_is_program_derived(builder, make_request, program_id):
    request = make_request(1)
    expected, _bump = find_program_address([RESULT_SEED, bytes(request.id)], program_id)
    assert builder.derive_result_address(request.id) == expected
    assert builder.derive_result_address(make_request(2).id) != expected


def test_instruction_accounts(builder, make_request, oracle_keypair, program_id):
    request = make_request(1)
    ix = builder.build_instruction(request, ARTIFACT)
    assert ix.program_id == program_id
    metas = [(m.pubkey, m.is_signer, m.is_writable) for m in ix.accounts]
    assert metas == [
        (oracle_keypair.pubkey, True, True),
        (request.id, False, True),
        (builder.derive_result_address(request.id), False, True),
        (request.requester, False, False),
        (request.subscription, False, True),
        (SYSTEM_PROGRAM_ID, False, False),
    ]


@pytest.mark.asyncio
async def test_build_signs_against_fresh_checkpoint(builder, fake_ledger, make_request, oracle_keypair):
    request = make_request(1)
    tx = await builder.build(request, ARTIFACT)

    assert fake_ledger.checkpoints == 1
    assert tx.checkpoint.last_valid_block_height == 1_000
    assert tx.message.recent_blockhash == tx.checkpoint.blockhash
    assert tx.message.account_keys[0] == oracle_keypair.pubkey
    assert tx.message.num_required_signatures == 1
    assert tx.verify_signatures()

    (compiled,) = tx.message.instructions
    keys = tx.message.account_keys
    assert [keys[i] for i in compiled.account_indices] == [
        oracle_keypair.pubkey,
        request.id,
        builder.derive_result_address(request.id),
        request.requester,
        request.subscription,
        SYSTEM_PROGRAM_ID,
    ]
    assert keys[compiled.program_id_index] == builder.program_id
    assert compiled.data == encode_fulfill_data(ARTIFACT.proof, ARTIFACT.public_key)


@pytest.mark.asyncio
async def test_build_is_deterministic_for_same_inputs(builder, make_request):
    request = make_request(4)
    first = await builder.build(request, ARTIFACT)
    second = await builder.build(request, ARTIFACT)
    assert first.serialize() == second.serialize()
