"""Error taxonomy for the fulfillment pipeline.

Callers catch `OracleError` to handle everything raised by the oracle, or
a concrete subclass for finer control. Only `ConfigError` and
`ProverSetupError` are fatal; every other error is scoped to one request
or one scan cycle.
"""

from __future__ import annotations

from typing import Any


class OracleError(Exception):
    """Base class for all oracle errors."""

    kind = "oracle_error"


class ConfigError(OracleError):
    """Settings or identities could not be parsed. Fatal at startup."""

    kind = "config_error"


class TransportError(OracleError):
    """Network or process I/O failure talking to the ledger."""

    kind = "transport_error"


class RpcError(TransportError):
    """The RPC endpoint answered with a JSON-RPC error object."""

    kind = "rpc_error"

    def __init__(self, code: int, message: str, data: Any = None):
        super().__init__(f"RPC error {code}: {message}")
        self.code = code
        self.message = message
        self.data = data


class TransactionFailed(OracleError):
    """The ledger rejected the transaction, or it expired unconfirmed."""

    kind = "transaction_failed"

    def __init__(self, signature: str, reason: Any):
        super().__init__(f"transaction {signature} failed: {reason}")
        self.signature = signature
        self.reason = reason


class DecodeError(OracleError):
    """A request-tagged account payload could not be deserialized."""

    kind = "decode_error"

    def __init__(self, address: str, reason: str):
        super().__init__(f"cannot decode request account {address}: {reason}")
        self.address = address
        self.reason = reason


class ProverError(OracleError):
    """Base class for failures of the external VRF prover."""

    kind = "prover_error"


class ProverSetupError(ProverError):
    """The prover is unusable (missing binary, keygen failure). Fatal."""

    kind = "prover_setup_error"


class ProofGenerationFailed(ProverError):
    kind = "proof_generation_failed"


class VerificationError(ProverError):
    """The verifier could not run. A rejected proof is not an error."""

    kind = "verification_error"


class InvalidOutput(ProverError):
    """The prover answered with missing or malformed fields."""

    kind = "invalid_output"


class ProofInvalid(OracleError):
    """A freshly generated proof failed verification.

    With a correct prover and matching inputs this cannot happen, so it
    is reported as an anomaly. The request stays pending and a later
    cycle proves it again from scratch.
    """

    kind = "proof_invalid"

    def __init__(self, request_id: str, reason: str = "verification returned false"):
        super().__init__(f"proof for request {request_id} rejected: {reason}")
        self.request_id = request_id
        self.reason = reason


class SubmissionFailed(OracleError):
    """Every submission attempt failed."""

    kind = "submission_failed"

    def __init__(self, attempts: int, last_error: BaseException, errors: list[BaseException] | None = None):
        super().__init__(f"submission failed after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error
        self.errors = list(errors or [last_error])


def error_kind(exc: BaseException) -> str:
    """Short label for logs and failure counters."""
    return getattr(exc, "kind", type(exc).__name__)


__all__ = [
    "ConfigError",
    "DecodeError",
    "InvalidOutput",
    "OracleError",
    "ProofGenerationFailed",
    "ProofInvalid",
    "ProverError",
    "ProverSetupError",
    "RpcError",
    "SubmissionFailed",
    "TransactionFailed",
    "TransportError",
    "VerificationError",
    "error_kind",
]
