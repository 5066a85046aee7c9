"""ProverClient protocol - the oracle's view of the VRF capability.

Any implementation (in-process library, subprocess, network service)
satisfies it. The pipeline never trusts `prove` alone: every artifact is
passed back through `verify` before it reaches a transaction.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from vrf_oracle.ledger.models import ProofArtifact


@dataclass(frozen=True)
class VrfKeypair:
    """The oracle's VRF identity."""

    secret_key: bytes
    public_key: bytes

    def __repr__(self) -> str:
        return f"VrfKeypair(public_key={self.public_key.hex()})"


@runtime_checkable
class ProverClient(Protocol):
    """Interface to an external VRF prover."""

    name: str

    async def keypair(self) -> VrfKeypair:
        """Create a VRF keypair. Failures raise ProverSetupError."""
        ...

    async def prove(self, secret_key: bytes, seed: bytes) -> ProofArtifact:
        """Prove `seed` under `secret_key`.

        Raises ProofGenerationFailed, or InvalidOutput when the prover's
        answer is missing expected fields.
        """
        ...

    async def verify(self, proof: bytes, output: bytes, public_key: bytes, seed: bytes) -> bool:
        """Check a proof. Rejection returns False; only an inability to
        run the check raises VerificationError."""
        ...


__all__ = ["ProverClient", "VrfKeypair"]
