"""VRF prover implementations behind the ProverClient protocol."""

from .cli import CliProver
from .ecvrf import EcvrfProver
from .interface import ProverClient, VrfKeypair

__all__ = ["CliProver", "EcvrfProver", "ProverClient", "VrfKeypair"]
