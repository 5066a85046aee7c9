"""Oracle runtime.

Main loop: scan cycle -> wait poll interval -> repeat, until stopped.
A stop request is honoured between cycles; a cycle in flight (including
its submission retries) always runs to completion.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import bittensor as bt

from vrf_oracle.errors import error_kind

from .scan import CycleReport, ScanCycle

DEFAULT_POLL_INTERVAL = 3.0
MAX_ERROR_BACKOFF = 30.0


@dataclass
class OracleStats:
    """Counters accumulated over the life of the runtime."""

    started_at: float = field(default_factory=time.time)
    cycles: int = 0
    cycle_errors: int = 0
    fulfilled: int = 0
    failed: int = 0
    decode_errors: int = 0
    failures_by_kind: dict[str, int] = field(default_factory=dict)

    def record(self, report: CycleReport) -> None:
        self.cycles += 1
        self.fulfilled += report.fulfilled
        self.failed += report.failed
        self.decode_errors += report.decode_errors
        for failure in report.failures:
            self.failures_by_kind[failure.kind] = self.failures_by_kind.get(failure.kind, 0) + 1

    def success_rate(self) -> float:
        attempted = self.fulfilled + self.failed
        return self.fulfilled / attempted if attempted else 0.0

    def as_dict(self) -> dict[str, Any]:
        return {
            "started_at": datetime.fromtimestamp(self.started_at, tz=timezone.utc).isoformat(),
            "uptime_seconds": int(time.time() - self.started_at),
            "cycles": self.cycles,
            "cycle_errors": self.cycle_errors,
            "fulfilled": self.fulfilled,
            "failed": self.failed,
            "decode_errors": self.decode_errors,
            "failures_by_kind": dict(self.failures_by_kind),
            "success_rate": round(self.success_rate(), 4),
        }


class OracleRuntime:
    """Drives ScanCycle on a fixed interval until stopped."""

    def __init__(
        self,
        scan: ScanCycle,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        stats: OracleStats | None = None,
    ):
        self.scan = scan
        self.poll_interval = poll_interval
        self.stats = stats or OracleStats()
        self._stop = asyncio.Event()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def run(self) -> OracleStats:
        """Main loop. Returns the final statistics once stopped."""
        self._running = True
        self.stats.started_at = time.time()
        bt.logging.info({
            "oracle_runtime": {
                "status": "starting",
                "poll_interval": self.poll_interval,
                "program_id": str(self.scan.program_id),
            }
        })

        consecutive_errors = 0
        try:
            while not self._stop.is_set():
                wait = self.poll_interval
                try:
                    report = await self.scan.run()
                    self.stats.record(report)
                    consecutive_errors = 0
                except Exception as e:
                    consecutive_errors += 1
                    self.stats.cycles += 1
                    self.stats.cycle_errors += 1
                    bt.logging.error({
                        "oracle_cycle_error": str(e),
                        "kind": error_kind(e),
                        "consecutive": consecutive_errors,
                    })
                    wait = min(MAX_ERROR_BACKOFF, max(self.poll_interval, self.poll_interval * consecutive_errors))

                if await self._wait_for_stop(wait):
                    break
        except asyncio.CancelledError:
            bt.logging.info({"oracle_runtime": "cancelled"})
        finally:
            self._running = False
            bt.logging.info({"oracle_runtime": "stopped", "final_stats": self.get_stats()})

        return self.stats

    async def _wait_for_stop(self, timeout: float) -> bool:
        """Sleep up to `timeout`; True if a stop was requested meanwhile."""
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True

    def stop(self) -> None:
        """Signal the runtime to stop after the current cycle."""
        self._stop.set()

    def get_stats(self) -> dict[str, Any]:
        stats = self.stats.as_dict()
        stats.update({
            "processed_requests": len(self.scan.dedup),
            "vrf_public_key": self.scan.vrf_keypair.public_key.hex(),
            "oracle_pubkey": str(self.scan.builder.oracle.pubkey),
            "program_id": str(self.scan.program_id),
        })
        return stats


__all__ = ["DEFAULT_POLL_INTERVAL", "OracleRuntime", "OracleStats"]
