"""Persistence for the oracle's VRF keypair.

The keypair is written once, atomically (tmp + rename), so restarts keep
the same VRF identity. Missing file: generate through the prover and save.
Corrupt file: fatal, never silently replaced.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

import bittensor as bt

from vrf_oracle.errors import ConfigError
from vrf_oracle.shared.edwards25519 import public_from_secret

from .interface import ProverClient, VrfKeypair


def save_vrf_keypair(keypair: VrfKeypair, path: str | Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {"secret_key": keypair.secret_key.hex(), "public_key": keypair.public_key.hex()}
    tmp_fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
    try:
        with os.fdopen(tmp_fd, "w") as f:
            json.dump(data, f, indent=2)
        os.chmod(tmp_path, 0o600)
        os.rename(tmp_path, str(path))
    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def load_vrf_keypair(path: str | Path) -> VrfKeypair:
    try:
        with open(path) as f:
            data = json.load(f)
        secret_key = bytes.fromhex(data["secret_key"])
        public_key = bytes.fromhex(data["public_key"])
    except (OSError, ValueError, KeyError, TypeError) as e:
        raise ConfigError(f"cannot read VRF keypair {path}: {e}") from e
    if len(secret_key) != 32 or len(public_key) != 32:
        raise ConfigError(
            f"VRF keypair {path}: expected 32-byte keys, got secret={len(secret_key)} public={len(public_key)}"
        )
    if public_from_secret(secret_key) != public_key:
        raise ConfigError(f"VRF keypair {path}: public key does not match the secret key")
    return VrfKeypair(secret_key=secret_key, public_key=public_key)


async def load_or_create_vrf_keypair(prover: ProverClient, path: str | Path | None) -> VrfKeypair:
    """Load the persisted keypair, or create one with the prover."""
    if path is not None and Path(path).exists():
        keypair = load_vrf_keypair(path)
        bt.logging.info({"vrf_keypair": "loaded", "public_key": keypair.public_key.hex()})
        return keypair

    keypair = await prover.keypair()
    if path is not None:
        save_vrf_keypair(keypair, path)
        bt.logging.info({"vrf_keypair": "generated_and_saved", "public_key": keypair.public_key.hex()})
    else:
        bt.logging.info({"vrf_keypair": "generated_ephemeral", "public_key": keypair.public_key.hex()})
    return keypair


__all__ = ["load_or_create_vrf_keypair", "load_vrf_keypair", "save_vrf_keypair"]
