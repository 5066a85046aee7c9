"""Tests for VRF keypair persistence."""

import json
import os

import pytest

from vrf_oracle.errors import ConfigError
from vrf_oracle.prover.ecvrf import EcvrfProver
from vrf_oracle.prover.keystore import load_or_create_vrf_keypair, load_vrf_keypair, save_vrf_keypair


class CountingProver(EcvrfProver):
    def __init__(self):
        self.keygens = 0

    async def keypair(self):
        self.keygens += 1
        return await super().keypair()


def test_save_then_load(tmp_path, vrf_keypair):
    path = tmp_path / "keys" / "vrf.json"
    save_vrf_keypair(vrf_keypair, path)
    assert load_vrf_keypair(path) == vrf_keypair
    assert oct(os.stat(path).st_mode & 0o777) == oct(0o600)
    assert [p.name for p in path.parent.iterdir()] == ["vrf.json"]


@pytest.mark.parametrize("content", ["{", '{"secret_key": "00"}', '{"secret_key": "zz", "public_key": "00"}'])
def test_corrupt_file_is_config_error(tmp_path, content):
    path = tmp_path / "vrf.json"
    path.write_text(content)
    with pytest.raises(ConfigError):
        load_vrf_keypair(path)


def test_public_key_must_match_secret(tmp_path, vrf_keypair):
    path = tmp_path / "vrf.json"
    path.write_text(json.dumps({"secret_key": vrf_keypair.secret_key.hex(), "public_key": "11" * 32}))
    with pytest.raises(ConfigError) as exc:
        load_vrf_keypair(path)
    assert "does not match" in str(exc.value)


@pytest.mark.parametrize("secret_len,public_len", [(31, 32), (32, 31), (64, 32)])
def test_wrong_key_lengths(tmp_path, vrf_keypair, secret_len, public_len):
    path = tmp_path / "vrf.json"
    secret = (vrf_keypair.secret_key * 2)[:secret_len]
    public = (vrf_keypair.public_key * 2)[:public_len]
    path.write_text(json.dumps({"secret_key": secret.hex(), "public_key": public.hex()}))
    with pytest.raises(ConfigError) as exc:
        load_vrf_keypair(path)
    assert "32-byte" in str(exc.value)


@pytest.mark.asyncio
async def test_mismatched_file_is_not_replaced(tmp_path, vrf_keypair):
    prover = CountingProver()
    path = tmp_path / "vrf.json"
    content = json.dumps({"secret_key": vrf_keypair.secret_key.hex(), "public_key": "11" * 32})
    path.write_text(content)

    with pytest.raises(ConfigError):
        await load_or_create_vrf_keypair(prover, path)

    assert prover.keygens == 0
    assert path.read_text() == content


@pytest.mark.asyncio
async def test_created_once_then_reused(tmp_path):
    prover = CountingProver()
    path = tmp_path / "vrf.json"

    first = await load_or_create_vrf_keypair(prover, path)
    second = await load_or_create_vrf_keypair(prover, path)

    assert prover.keygens == 1
    assert first == second
    assert json.loads(path.read_text())["public_key"] == first.public_key.hex()


@pytest.mark.asyncio
async def test_without_path_is_ephemeral(tmp_path):
    prover = CountingProver()
    keypair = await load_or_create_vrf_keypair(prover, None)
    assert prover.keygens == 1
    assert len(keypair.public_key) == 32
    assert list(tmp_path.iterdir()) == []
