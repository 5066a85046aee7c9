"""Process-local memory of fulfilled requests.

An id is marked only after the ledger confirmed its fulfillment. Failed
or retried submissions never mark, so the request is picked up again on
the next scan.

The cache is empty after a restart. Exactly-once fulfillment across
restarts therefore relies on the ledger program rejecting a fulfillment
for a request that is no longer pending; this tracker only saves the
prover and RPC round trips within one process lifetime.
"""

from __future__ import annotations

from vrf_oracle.ledger.pubkey import Pubkey


class DedupTracker:
    """Set of request ids fulfilled by this process. No eviction.

    Only touched from the single scan worker, so no locking.
    """

    def __init__(self) -> None:
        self._processed: dict[str, bool] = {}

    def is_processed(self, request_id: Pubkey | str) -> bool:
        return str(request_id) in self._processed

    def mark_processed(self, request_id: Pubkey | str) -> None:
        self._processed[str(request_id)] = True

    def __contains__(self, request_id: object) -> bool:
        return str(request_id) in self._processed

    def __len__(self) -> int:
        return len(self._processed)


__all__ = ["DedupTracker"]
