"""
Attestation Waiter

Waits for the bridge network to attest a source-chain submission. The
service may be slower than any single poll; the waiter as a whole keeps a
hard deadline and reports a miss as AttestationTimeoutError.
"""

import asyncio
import time
from typing import List

from loguru import logger

from .errors import AttestationTimeoutError, RetryTimeoutError
from .models import Transfer
from .retry import NOT_READY, retry


class AttestationWaiter:
    """
    Hard-deadline wait for attestation ids

    Features:
    - Polls the attestation service through retry()
    - Cuts off a single slow fetch at the overall deadline
    - Any timeout surfaces as AttestationTimeoutError
    """

    LABEL = "Bridge:FetchAttestation"

    def __init__(self, service, poll_interval: float = 2.0):
        """
        Initialize attestation waiter

        Args:
            service: AttestationService implementation
            poll_interval: Delay between fetch attempts (seconds)
        """
        self.service = service
        self.poll_interval = poll_interval

    async def wait(self, transfer: Transfer, timeout: float) -> List[str]:
        """
        Wait for attestation ids for a submitted transfer

        Args:
            transfer: Transfer with at least one source txid
            timeout: Overall deadline (seconds)

        Returns:
            Attestation ids

        Raises:
            AttestationTimeoutError: No attestation before the deadline
        """
        label = f"{self.LABEL}:{transfer.transfer_id}"
        start = time.monotonic()
        deadline = start + timeout

        async def probe():
            remaining = max(deadline - time.monotonic(), 0.0)
            ids = await self.service.fetch(transfer, remaining)
            return list(ids) if ids else NOT_READY

        try:
            ids = await asyncio.wait_for(
                retry(probe, self.poll_interval, timeout, label),
                timeout=timeout
            )
        except (RetryTimeoutError, asyncio.TimeoutError, TimeoutError):
            elapsed = time.monotonic() - start
            raise AttestationTimeoutError(label, elapsed, transfer=transfer) from None

        logger.debug(f"{label}: {len(ids)} attestation(s) after {time.monotonic() - start:.1f}s")
        return ids
