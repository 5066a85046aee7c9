"""One scan cycle over the ledger.

fetch -> decode -> skip fulfilled/non-pending -> prove -> verify -> build
-> submit -> mark. Requests are handled one at a time in fetch order. A
failure is confined to its request: it is logged and counted, and the
next request is processed as if nothing happened.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

import bittensor as bt

from vrf_oracle.errors import DecodeError, error_kind
from vrf_oracle.ledger.models import RequestRecord
from vrf_oracle.ledger.pubkey import Pubkey
from vrf_oracle.ledger.store.interface import LedgerClient
from vrf_oracle.prover.interface import ProverClient, VrfKeypair

from .decoder import REQUEST_TAG, decode_request
from .dedup import DedupTracker
from .proofs import obtain_verified_proof
from .submitter import Submitter
from .tx_builder import FulfillmentTxBuilder


@dataclass
class RequestFailure:
    """A request whose fulfillment failed this cycle."""

    request_id: str
    kind: str
    error: str


@dataclass
class CycleReport:
    """Outcome counts for one scan cycle."""

    fetched: int = 0
    decoded: int = 0
    skipped_tag: int = 0
    decode_errors: int = 0
    skipped_processed: int = 0
    skipped_not_pending: int = 0
    fulfilled: int = 0
    failures: list[RequestFailure] = field(default_factory=list)
    signatures: dict[str, str] = field(default_factory=dict)
    duration_ms: int = 0

    @property
    def failed(self) -> int:
        return len(self.failures)

    def summary(self) -> dict:
        return {
            "fetched": self.fetched,
            "decoded": self.decoded,
            "decode_errors": self.decode_errors,
            "skipped_processed": self.skipped_processed,
            "skipped_not_pending": self.skipped_not_pending,
            "fulfilled": self.fulfilled,
            "failed": self.failed,
            "duration_ms": self.duration_ms,
        }


class ScanCycle:
    """Runs fulfillment passes over the program's request accounts."""

    def __init__(
        self,
        ledger: LedgerClient,
        program_id: Pubkey,
        prover: ProverClient,
        vrf_keypair: VrfKeypair,
        builder: FulfillmentTxBuilder,
        submitter: Submitter,
        dedup: DedupTracker | None = None,
    ):
        self.ledger = ledger
        self.program_id = program_id
        self.prover = prover
        self.vrf_keypair = vrf_keypair
        self.builder = builder
        self.submitter = submitter
        self.dedup = dedup if dedup is not None else DedupTracker()

    async def run(self) -> CycleReport:
        """Execute one pass. Only the ledger fetch can raise out of here."""
        started = time.monotonic()
        report = CycleReport()

        accounts = await self.ledger.get_program_accounts(self.program_id, REQUEST_TAG)
        report.fetched = len(accounts)

        for account in accounts:
            try:
                request = decode_request(account)
            except DecodeError as e:
                report.decode_errors += 1
                bt.logging.warning({"oracle_scan": {"decode_error": str(account.address), "reason": e.reason}})
                continue
            if request is None:
                report.skipped_tag += 1
                continue
            report.decoded += 1

            if self.dedup.is_processed(request.id):
                report.skipped_processed += 1
                continue
            if not request.is_pending:
                report.skipped_not_pending += 1
                bt.logging.debug({"oracle_scan": {"not_pending": str(request.id), "status": request.status.name}})
                continue

            try:
                signature = await self.fulfill(request)
            except Exception as e:
                report.failures.append(RequestFailure(str(request.id), error_kind(e), str(e)))
                bt.logging.error({
                    "oracle_fulfill_failed": {
                        "request": str(request.id),
                        "kind": error_kind(e),
                        "error": str(e),
                    }
                })
                continue

            self.dedup.mark_processed(request.id)
            report.fulfilled += 1
            report.signatures[str(request.id)] = signature

        report.duration_ms = int((time.monotonic() - started) * 1000)
        if report.fulfilled or report.failures:
            bt.logging.info({"oracle_scan": report.summary()})
        else:
            bt.logging.debug({"oracle_scan": report.summary()})
        return report

    async def fulfill(self, request: RequestRecord) -> str:
        """Prove, verify, build and submit for one pending request."""
        request_id = str(request.id)
        bt.logging.info({"oracle_fulfill": {"request": request_id, "seed": request.seed.hex()}})
        artifact = await obtain_verified_proof(self.prover, self.vrf_keypair, request.seed, request_id)
        tx = await self.builder.build(request, artifact)
        signature = await self.submitter.submit(tx)
        bt.logging.info({"oracle_fulfilled": {"request": request_id, "signature": signature}})
        return signature


__all__ = ["CycleReport", "RequestFailure", "ScanCycle"]
