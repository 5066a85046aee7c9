"""Randomness fulfillment pipeline.

Scans the ledger for pending randomness requests, proves each request's
seed with the VRF prover, verifies the proof, and submits a signed
fulfillment transaction. One logical worker, one request at a time.
"""
