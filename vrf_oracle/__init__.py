"""VRF oracle: fulfills on-ledger randomness requests with verified VRF proofs."""

__version__ = "0.1.0"
