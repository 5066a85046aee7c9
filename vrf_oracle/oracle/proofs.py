"""Proof orchestration: prove, then verify before anything is submitted.

A prover is an external collaborator; this module is the gate between it
and the ledger. Unexpected exceptions from a prover implementation are
mapped onto the prover error taxonomy so the scan loop sees one shape of
failure.
"""

from __future__ import annotations

import bittensor as bt

from vrf_oracle.errors import (
    ProofGenerationFailed,
    ProofInvalid,
    ProverError,
    VerificationError,
)
from vrf_oracle.ledger.models import ProofArtifact
from vrf_oracle.prover.interface import ProverClient, VrfKeypair

SELF_TEST_SEED = b"test_seed_for_pipeline_verification"


async def obtain_verified_proof(
    prover: ProverClient,
    keypair: VrfKeypair,
    seed: bytes,
    request_id: str,
) -> ProofArtifact:
    """Prove `seed` and return the artifact only once it verifies.

    Raises:
        ProofGenerationFailed / InvalidOutput: prove failed.
        VerificationError: verify could not run.
        ProofInvalid: verify returned False, or the artifact carries a
            public key other than the oracle's.
    """
    try:
        artifact = await prover.prove(keypair.secret_key, seed)
    except ProverError:
        raise
    except Exception as e:
        raise ProofGenerationFailed(f"{prover.name} prove raised {type(e).__name__}: {e}") from e

    if artifact.public_key != keypair.public_key:
        bt.logging.error({
            "proof_anomaly": {
                "request": request_id,
                "reason": "public_key_mismatch",
                "expected": keypair.public_key.hex(),
                "got": artifact.public_key.hex(),
            }
        })
        raise ProofInvalid(request_id, "artifact public key differs from the oracle VRF key")

    try:
        valid = await prover.verify(artifact.proof, artifact.output, artifact.public_key, seed)
    except ProverError:
        raise
    except Exception as e:
        raise VerificationError(f"{prover.name} verify raised {type(e).__name__}: {e}") from e

    if not valid:
        # A correct prover never rejects its own proof for matching inputs.
        bt.logging.error({
            "proof_anomaly": {
                "request": request_id,
                "reason": "verification_returned_false",
                "seed": seed.hex(),
                "prover": prover.name,
            }
        })
        raise ProofInvalid(request_id)

    bt.logging.debug({"proof_verified": {"request": request_id, "output": artifact.output.hex()[:32]}})
    return artifact


async def run_pipeline_self_test(prover: ProverClient, keypair: VrfKeypair) -> ProofArtifact:
    """Prove and verify a fixed seed end to end. Raises on any failure."""
    artifact = await obtain_verified_proof(prover, keypair, SELF_TEST_SEED, "self-test")
    bt.logging.info({"pipeline_self_test": {"status": "ok", "public_key": artifact.public_key.hex()}})
    return artifact


__all__ = ["SELF_TEST_SEED", "obtain_verified_proof", "run_pipeline_self_test"]
