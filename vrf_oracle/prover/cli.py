"""Subprocess prover wrapping an `ecvrf-cli` style binary.

Command line contract:

    <cli> keygen
        Secret key: <hex>
        Public key: <hex>
    <cli> prove --input <hex> --secret-key <hex>
        Proof: <hex>
        Output: <hex>
    <cli> verify --proof <hex> --output <hex> --public-key <hex> --input <hex>
        exit status 0 when the proof is valid

The CLI does not report the public key for a proof, so it is derived from
the secret key. `keygen` output is checked against that derivation once at
startup, which catches a binary built for a different curve suite.
"""

from __future__ import annotations

import asyncio
import os
from typing import Callable

import bittensor as bt

from vrf_oracle.errors import (
    InvalidOutput,
    ProofGenerationFailed,
    ProverError,
    ProverSetupError,
    VerificationError,
)
from vrf_oracle.ledger.models import ProofArtifact
from vrf_oracle.shared.edwards25519 import public_from_secret

from .interface import VrfKeypair

DEFAULT_CLI_PATH = "../mangekyou-cli/target/debug/ecvrf-cli"


def _two_fields(stdout: str, first: str, second: str) -> tuple[str, str]:
    """Parse exactly two lines: `<first> <value>` then `<second> <value>`."""
    lines = stdout.strip().splitlines()
    if len(lines) != 2:
        raise InvalidOutput(f"expected 2 lines of prover output, got {len(lines)}: {lines!r}")
    values = []
    for line, prefix in zip(lines, (first, second)):
        if not line.startswith(prefix):
            raise InvalidOutput(f"expected {prefix!r} line in prover output, got {line!r}")
        value = line[len(prefix):].strip()
        if not value:
            raise InvalidOutput(f"empty {prefix!r} value in prover output")
        values.append(value)
    return values[0], values[1]


def _unhex(value: str, name: str) -> bytes:
    try:
        return bytes.fromhex(value)
    except ValueError as e:
        raise InvalidOutput(f"{name} is not hex: {value!r}") from e


class CliProver:
    """ProverClient that shells out to an external VRF CLI."""

    name = "cli"

    def __init__(
        self,
        cli_path: str = DEFAULT_CLI_PATH,
        timeout: float = 30.0,
        derive_public_key: Callable[[bytes], bytes] = public_from_secret,
    ):
        self.cli_path = cli_path
        self.timeout = timeout
        self._derive_public_key = derive_public_key

    def check_available(self) -> None:
        """Fail fast when the binary is missing or not executable."""
        if not os.path.isfile(self.cli_path):
            raise ProverSetupError(f"prover CLI not found at {self.cli_path}")
        if not os.access(self.cli_path, os.X_OK):
            raise ProverSetupError(f"prover CLI at {self.cli_path} is not executable")

    async def _run(self, error_cls: type[ProverError], *args: str) -> tuple[int, str, str]:
        try:
            proc = await asyncio.create_subprocess_exec(
                self.cli_path,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise error_cls(f"cannot start prover CLI {self.cli_path}: {e}") from e
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            proc.kill()
            await proc.wait()
            raise error_cls(f"prover CLI {args[0]} timed out after {self.timeout}s") from e
        return (
            proc.returncode,
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
        )

    async def keypair(self) -> VrfKeypair:
        code, stdout, stderr = await self._run(ProverSetupError, "keygen")
        if code != 0:
            raise ProverSetupError(f"keygen failed: {stderr.strip()}")
        secret_hex, public_hex = _two_fields(stdout, "Secret key:", "Public key:")
        secret_key = _unhex(secret_hex, "secret key")
        public_key = _unhex(public_hex, "public key")
        try:
            derived = self._derive_public_key(secret_key)
        except ValueError as e:
            raise InvalidOutput(f"keygen secret key unusable: {e}") from e
        if derived != public_key:
            raise InvalidOutput("keygen public key does not match the key derived from its secret")
        bt.logging.info({"cli_prover": {"keygen": "ok", "public_key": public_key.hex()}})
        return VrfKeypair(secret_key=secret_key, public_key=public_key)

    async def prove(self, secret_key: bytes, seed: bytes) -> ProofArtifact:
        code, stdout, stderr = await self._run(
            ProofGenerationFailed,
            "prove", "--input", seed.hex(), "--secret-key", secret_key.hex(),
        )
        if code != 0:
            raise ProofGenerationFailed(f"prove failed: {stderr.strip()}")
        proof_hex, output_hex = _two_fields(stdout, "Proof:", "Output:")
        proof = _unhex(proof_hex, "proof")
        output = _unhex(output_hex, "output")
        try:
            public_key = self._derive_public_key(secret_key)
        except ValueError as e:
            raise ProofGenerationFailed(f"cannot derive public key: {e}") from e
        return ProofArtifact(proof=proof, output=output, public_key=public_key)

    async def verify(self, proof: bytes, output: bytes, public_key: bytes, seed: bytes) -> bool:
        code, _, stderr = await self._run(
            VerificationError,
            "verify",
            "--proof", proof.hex(),
            "--output", output.hex(),
            "--public-key", public_key.hex(),
            "--input", seed.hex(),
        )
        if code != 0:
            bt.logging.warning({"cli_prover": {"verify": "rejected", "stderr": stderr.strip()[:200]}})
            return False
        return True


__all__ = ["CliProver", "DEFAULT_CLI_PATH"]
