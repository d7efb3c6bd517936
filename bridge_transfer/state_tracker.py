"""
Transfer State Tracker

Consumes a lazy stream of state snapshots for a transfer and reports each
new state to an observer, in order, until the transfer reaches a terminal
state. The stream depends on external network liveness, so consumption is
bounded by a maximum number of updates and an absolute deadline.
"""

import asyncio
import inspect
import time
from typing import Awaitable, Callable, Optional

from loguru import logger

from .errors import RetryTimeoutError, StateStreamExhaustedError
from .models import StateSnapshot, TransferReceipt, TransferState


class PollingStateStream:
    """
    StateStream that polls a probe and yields on every state change

    The probe is an async callable `probe(receipt) -> StateSnapshot`
    (typically a bridge network status lookup).
    """

    def __init__(self, probe: Callable[[TransferReceipt], Awaitable[StateSnapshot]], interval: float = 5.0):
        self.probe = probe
        self.interval = interval

    async def stream(self, receipt: TransferReceipt):
        last_state = None
        while True:
            snapshot = await self.probe(receipt)
            if snapshot.state != last_state:
                last_state = snapshot.state
                yield snapshot
            if snapshot.state.is_terminal:
                return
            await asyncio.sleep(self.interval)


class TransferStateTracker:
    """
    Forward state transitions of one transfer to an observer

    Guarantees:
    - Each state reported at most once, in chronological order
    - Stops at the first terminal state (COMPLETED, DESTINATION_COMPLETE, FAILED)
    - Source errors propagate after earlier states were reported
    """

    def __init__(self, stream, max_updates: int = 100, timeout: float = 600.0):
        """
        Initialize tracker

        Args:
            stream: StateStream implementation
            max_updates: Maximum snapshots consumed per track() call
            timeout: Absolute deadline per track() call (seconds)
        """
        if max_updates < 1:
            raise ValueError(f"max_updates must be at least 1, got {max_updates}")
        self.stream = stream
        self.max_updates = max_updates
        self.timeout = timeout

    async def track(
        self,
        receipt: TransferReceipt,
        on_state: Optional[Callable[[StateSnapshot], object]] = None
    ) -> StateSnapshot:
        """
        Track a transfer until it reaches a terminal state

        Args:
            receipt: Receipt of the transfer to track
            on_state: Observer called once per new state (sync or async)

        Returns:
            Terminal snapshot

        Raises:
            RetryTimeoutError: Deadline passed or max_updates reached
            StateStreamExhaustedError: Stream ended before a terminal state
        """
        label = f"StateTracker:{receipt.transfer_id}"
        start = time.monotonic()
        deadline = start + self.timeout
        updates = 0
        last: Optional[StateSnapshot] = None

        iterator = self.stream.stream(receipt).__aiter__()
        step = None
        try:
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0 or updates >= self.max_updates:
                    raise RetryTimeoutError(label, time.monotonic() - start)

                # Only a pending step is our deadline; the stream's own
                # TimeoutError comes back through step.result()
                step = asyncio.ensure_future(iterator.__anext__())
                done, _ = await asyncio.wait({step}, timeout=remaining)
                if not done:
                    raise RetryTimeoutError(label, time.monotonic() - start)

                try:
                    snapshot = step.result()
                except StopAsyncIteration:
                    state = last.state.name if last else "nothing"
                    raise StateStreamExhaustedError(
                        f"{label}: stream ended after {state} without a terminal state"
                    ) from None

                updates += 1
                if not self._is_new(last, snapshot):
                    logger.debug(f"{label}: skipping repeated state {snapshot.state.name}")
                    continue

                last = snapshot
                if on_state is not None:
                    outcome = on_state(snapshot)
                    if inspect.isawaitable(outcome):
                        await outcome

                if snapshot.state.is_terminal:
                    return snapshot
        finally:
            if step is not None and not step.done():
                step.cancel()
                await asyncio.wait({step})
            if step is not None and not step.cancelled():
                # retrieved so an abandoned failure is not reported as unhandled
                step.exception()

            aclose = getattr(iterator, 'aclose', None)
            if aclose is not None:
                await aclose()

    @staticmethod
    def _is_new(last: Optional[StateSnapshot], snapshot: StateSnapshot) -> bool:
        if last is None:
            return True
        if snapshot.state is TransferState.FAILED:
            return last.state is not TransferState.FAILED
        return snapshot.state > last.state


async def wait_log(
    tracker: TransferStateTracker,
    receipt: TransferReceipt,
    tag: str = "WaitLog"
) -> StateSnapshot:
    """Track a transfer, logging every state it passes through"""

    def log_state(snapshot: StateSnapshot):
        logger.info(f"{tag}: Current transfer state: {snapshot.state.name}")

    return await tracker.track(receipt, log_state)
