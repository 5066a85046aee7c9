"""Helpers shared by the ledger and prover layers."""
