"""Bounded-retry transaction submission.

Each attempt submits the signed transaction and waits for confirmation.
Between attempts the submitter sleeps `retry_delay`, multiplied by
`backoff_multiplier` after every failure (1.0 keeps the delay fixed).
There is no sleep after the final attempt.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

import bittensor as bt

from vrf_oracle.errors import SubmissionFailed, TransactionFailed, TransportError
from vrf_oracle.ledger.store.interface import LedgerClient
from vrf_oracle.ledger.transaction import Transaction

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_DELAY = 2.0

RETRYABLE_ERRORS = (TransportError, TransactionFailed)


class Submitter:
    """Submits transactions with a fixed number of attempts."""

    def __init__(
        self,
        ledger: LedgerClient,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        backoff_multiplier: float = 1.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if backoff_multiplier < 1.0:
            raise ValueError("backoff_multiplier must be >= 1.0")
        self.ledger = ledger
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.backoff_multiplier = backoff_multiplier
        self._sleep = sleep

    async def submit(self, tx: Transaction) -> str:
        """Submit until confirmed. Returns the confirmed signature.

        Raises:
            SubmissionFailed: every attempt failed; carries each attempt's error.
        """
        errors: list[BaseException] = []
        delay = self.retry_delay

        for attempt in range(1, self.max_attempts + 1):
            try:
                signature = await self.ledger.send_and_confirm(tx)
            except RETRYABLE_ERRORS as e:
                errors.append(e)
                bt.logging.warning({
                    "submitter": {
                        "attempt": attempt,
                        "max_attempts": self.max_attempts,
                        "signature": tx.signature,
                        "error": str(e),
                    }
                })
                if attempt < self.max_attempts:
                    await self._sleep(delay)
                    delay *= self.backoff_multiplier
                continue

            bt.logging.info({"submitter": {"confirmed": signature, "attempt": attempt}})
            return signature

        raise SubmissionFailed(attempts=self.max_attempts, last_error=errors[-1], errors=errors)


__all__ = ["DEFAULT_MAX_ATTEMPTS", "DEFAULT_RETRY_DELAY", "Submitter"]
