"""
Bridge Transfer Integration

Wires the orchestrator, attestation waiter, relay client and state tracker
together from configuration, and runs the end-to-end flow a caller needs:
send (or recover) a transfer, then track it to a terminal state.
"""

from typing import Optional, Tuple

from loguru import logger

from .attestation_waiter import AttestationWaiter
from .config import BridgeConfig
from .models import StateSnapshot, TokenId, TransferEndpoint, TransferResult
from .relay_status import RelayStatusClient
from .state_tracker import PollingStateStream, TransferStateTracker, wait_log
from .transfer_engine import TransferOrchestrator


class BridgeTransferIntegration:
    """
    End-to-end bridge transfer flow

    Features:
    - Build requests from decimal amounts
    - Transfer (one leg or round trip) and track the final leg
    - Recover a transfer from its source txid and track it
    """

    def __init__(
        self,
        orchestrator: TransferOrchestrator,
        tracker: TransferStateTracker
    ):
        self.orchestrator = orchestrator
        self.tracker = tracker

    @classmethod
    def from_config(
        cls,
        config: BridgeConfig,
        attestation_service,
        state_probe,
        lookup=None,
        relay_status=None
    ) -> 'BridgeTransferIntegration':
        """
        Build the full stack from configuration

        Args:
            config: Bridge configuration
            attestation_service: AttestationService implementation
            state_probe: Async callable (receipt) -> StateSnapshot for tracking
            lookup: Optional SubmissionLookup for recovery
            relay_status: Optional RelayStatusService (defaults to the configured relayer API)

        Returns:
            BridgeTransferIntegration
        """
        waiter = AttestationWaiter(attestation_service, config.attestation_poll_interval)
        relay = relay_status or RelayStatusClient(config.relay_api_url)
        orchestrator = TransferOrchestrator(waiter, lookup=lookup, relay_status=relay, config=config)
        tracker = TransferStateTracker(
            PollingStateStream(state_probe, config.tracker_poll_interval),
            max_updates=config.tracker_max_updates,
            timeout=config.tracker_timeout,
        )
        return cls(orchestrator, tracker)

    async def send(
        self,
        token: TokenId,
        amount: str,
        source: TransferEndpoint,
        destination: TransferEndpoint,
        automatic: bool = False,
        native_gas: Optional[str] = None,
        payload: Optional[bytes] = None,
        round_trip: bool = False,
        tag: str = "WaitLog"
    ) -> Tuple[TransferResult, StateSnapshot]:
        """
        Transfer and track the final leg to a terminal state

        Returns:
            Tuple of (transfer result, terminal snapshot of the final leg)
        """
        request = await self.orchestrator.build_request(
            token,
            amount,
            source,
            destination,
            automatic=automatic,
            native_gas=native_gas,
            payload=payload,
        )
        result = await self.orchestrator.transfer(request, round_trip=round_trip)

        snapshot = await wait_log(self.tracker, result.transfer.receipt(), tag)
        logger.info(f"Receipt: {snapshot}")
        return result, snapshot

    async def recover(
        self,
        source: TransferEndpoint,
        destination: TransferEndpoint,
        txid: str,
        tag: str = "WaitLog"
    ) -> StateSnapshot:
        """Recover a transfer from its source txid and track it"""
        transfer = await self.orchestrator.recover(source, destination, txid)

        snapshot = await wait_log(self.tracker, transfer.receipt(), tag)
        logger.info(f"Receipt: {snapshot}")
        return snapshot

    async def close(self):
        relay = self.orchestrator.relay_status
        if isinstance(relay, RelayStatusClient):
            await relay.close()
