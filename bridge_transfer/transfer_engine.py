"""
Bridge Transfer Engine

Drives a cross-chain transfer through its phases:
1. Quote - feasibility check (automatic delivery must cover relay fees)
2. Source submission - sign and broadcast on the source chain
3. Automatic delivery - hand off to the relayer and return
   or
3. Attestation - wait (bounded) for the bridge network to attest
4. Destination submission - redeem the attestation on the destination chain
5. Round trip (opt-in) - send the received amount back as a second leg

A transfer can also be recovered from a known source transaction id and
resumed from the attestation phase without resubmitting.
"""

from datetime import datetime, timezone
from typing import Optional

from loguru import logger

from .config import BridgeConfig
from .attestation_waiter import AttestationWaiter
from .errors import (
    AttestationTimeoutError,
    BridgeTransferError,
    FeeTooLowError,
    InvalidTransitionError,
    QuoteError,
    RecoveryError,
    RetryTimeoutError,
    SubmissionError,
)
from .models import (
    DeliveryOptions,
    QuoteRoute,
    RedeemIntent,
    TokenId,
    Transfer,
    TransferEndpoint,
    TransferIntent,
    TransferPhase,
    TransferRequest,
    TransferResult,
    parse_amount,
)
from .interfaces import RelayStatusService, SubmissionLookup
from .relay_status import wait_for_relay


class TransferOrchestrator:
    """
    Phase state machine for bridge transfers

    Holds no per-run state: every call works on its own Transfer, so
    independent transfers may run concurrently on one orchestrator.
    Chain endpoints and signers are supplied by the caller.
    """

    def __init__(
        self,
        attestation_waiter: AttestationWaiter,
        lookup: Optional[SubmissionLookup] = None,
        relay_status: Optional[RelayStatusService] = None,
        config: Optional[BridgeConfig] = None
    ):
        """
        Initialize orchestrator

        Args:
            attestation_waiter: AttestationWaiter for manual delivery
            lookup: SubmissionLookup used by recover()
            relay_status: RelayStatusService used by wait_for_delivery()
            config: Bridge configuration (defaults if omitted)
        """
        self.attestation_waiter = attestation_waiter
        self.lookup = lookup
        self.relay_status = relay_status
        self.config = config or BridgeConfig()

        logger.info(f"Transfer orchestrator initialized ({self.config.network})")
        logger.info(f"  Attestation timeout: {self.config.attestation_timeout}s")
        logger.info(f"  Recovery: {'enabled' if lookup else 'disabled'}")
        logger.info(f"  Relay tracking: {'enabled' if relay_status else 'disabled'}")

    async def resolve_decimals(self, endpoint: TransferEndpoint, token: TokenId) -> int:
        if token.is_native:
            return endpoint.chain.native_decimals
        return await endpoint.chain.get_decimals(token)

    async def build_request(
        self,
        token: TokenId,
        amount: str,
        source: TransferEndpoint,
        destination: TransferEndpoint,
        automatic: bool = False,
        native_gas: Optional[str] = None,
        payload: Optional[bytes] = None
    ) -> TransferRequest:
        """
        Build a transfer request from decimal amount strings

        Args:
            token: Token to send (on the source chain)
            amount: Decimal amount (e.g., "0.001")
            source: Sending endpoint
            destination: Receiving endpoint
            automatic: Let the relayer complete the transfer
            native_gas: Decimal native gas drop (automatic delivery only)
            payload: Optional payload bytes

        Returns:
            TransferRequest with amounts in base units
        """
        decimals = await self.resolve_decimals(source, token)

        return TransferRequest(
            token=token,
            amount=parse_amount(amount, decimals),
            source=source,
            destination=destination,
            delivery=DeliveryOptions(
                automatic=automatic,
                native_gas=parse_amount(native_gas, decimals) if native_gas else None,
            ),
            payload=payload,
        )

    async def transfer(self, request: TransferRequest, round_trip: bool = False) -> TransferResult:
        """
        Execute a transfer, optionally followed by the return leg

        Args:
            request: Transfer request
            round_trip: Send the received amount back once the first leg is done

        Returns:
            TransferResult with one leg per executed transfer

        Raises:
            BridgeTransferError: The failing leg is attached as `error.transfer`
        """
        result = TransferResult(legs=[])
        max_legs = self.config.max_legs if round_trip else 1
        current = request

        while True:
            leg = Transfer(request=current)
            result.legs.append(leg)

            logger.info(f"Starting transfer {leg.transfer_id} (leg {len(result.legs)}/{max_legs})")
            logger.info(f"  From: {current.source.address}")
            logger.info(f"  To: {current.destination.address}")
            logger.info(f"  Amount: {current.amount} base units of {current.token}")
            logger.info(f"  Delivery: {'automatic' if current.automatic else 'manual'}")

            await self.quote(leg)
            await self.initiate(leg)
            await self.complete(leg)

            if len(result.legs) >= max_legs:
                break

            current = self._return_request(leg)

        result.completed_at = datetime.now(timezone.utc)
        logger.info(f"✅ Transfer finished in {result.total_time_seconds:.1f}s ({len(result.legs)} leg(s))")
        return result

    async def quote(self, transfer: Transfer) -> Transfer:
        """Created -> Quoted, rejecting automatic transfers that cannot cover fees"""
        request = transfer.request
        route = QuoteRoute.from_request(request)

        try:
            quote = await request.source.chain.quote(route)
        except Exception as e:
            error = QuoteError(f"Quote failed: {e}", phase=TransferPhase.QUOTED)
            raise self._fail(transfer, error) from e

        transfer.quote = quote
        logger.info(f"Quote: {quote.destination_token.amount} base units of {quote.destination_token.token} expected")

        if request.automatic and quote.destination_token.amount < 0:
            error = FeeTooLowError(
                "The amount requested is too low to cover the fee and any native gas requested.",
                destination_amount=quote.destination_token.amount,
                phase=TransferPhase.QUOTED,
            )
            raise self._fail(transfer, error)

        transfer.advance(TransferPhase.QUOTED)
        return transfer

    async def initiate(self, transfer: Transfer) -> Transfer:
        """Quoted -> SourceSubmitted (never resubmitted)"""
        request = transfer.request
        intent = TransferIntent.from_request(request)

        logger.info("Starting transfer")
        txids = await self._submit(
            transfer,
            request.source,
            intent,
            TransferPhase.SOURCE_SUBMITTED,
        )

        transfer.source_txids.extend(txids)
        transfer.advance(TransferPhase.SOURCE_SUBMITTED)
        logger.info(f"Started transfer: {txids}")
        return transfer

    async def complete(self, transfer: Transfer) -> Transfer:
        """
        Drive a submitted transfer to the end of its leg

        Automatic delivery stops at AutomaticPending: the relayer redeems on
        the destination chain. Manual delivery waits for the attestation and
        redeems it with the destination signer.

        Args:
            transfer: Transfer in SourceSubmitted

        Returns:
            The same transfer, in AutomaticPending or Completed
        """
        if transfer.phase is not TransferPhase.SOURCE_SUBMITTED:
            raise InvalidTransitionError(
                f"Transfer {transfer.transfer_id} is {transfer.phase.value}, expected source_submitted",
                phase=transfer.phase,
                transfer=transfer,
            )

        request = transfer.request

        if request.automatic:
            transfer.advance(TransferPhase.AUTOMATIC_PENDING)
            logger.info(f"Transfer {transfer.transfer_id} handed to the relayer")
            return transfer

        transfer.advance(TransferPhase.ATTESTATION_PENDING)

        if transfer.attestation_ids:
            logger.info(f"Using known attestation: {transfer.attestation_ids}")
        else:
            logger.info("Getting Attestation")
            try:
                attestation_ids = await self.attestation_waiter.wait(
                    transfer,
                    self.config.attestation_timeout
                )
            except AttestationTimeoutError as e:
                e.phase = TransferPhase.ATTESTATION_PENDING
                raise self._fail(transfer, e)
            except BridgeTransferError as e:
                raise self._fail(transfer, e)
            except Exception as e:
                error = BridgeTransferError(
                    f"Attestation fetch failed: {e}",
                    phase=TransferPhase.ATTESTATION_PENDING,
                )
                raise self._fail(transfer, error) from e

            transfer.attestation_ids.extend(attestation_ids)
            logger.info(f"Got Attestation: {attestation_ids}")

        logger.info("Completing Transfer")
        redeem = RedeemIntent(
            attestation_ids=tuple(transfer.attestation_ids),
            source_txids=tuple(transfer.source_txids),
            recipient=request.destination.address,
            from_chain=request.source.chain_name,
        )
        txids = await self._submit(
            transfer,
            request.destination,
            redeem,
            TransferPhase.DESTINATION_SUBMITTED,
        )

        transfer.destination_txids.extend(txids)
        transfer.advance(TransferPhase.DESTINATION_SUBMITTED)
        logger.info(f"Completed Transfer: {txids}")

        transfer.advance(TransferPhase.COMPLETED)
        return transfer

    async def recover(
        self,
        source: TransferEndpoint,
        destination: TransferEndpoint,
        txid: str
    ) -> Transfer:
        """
        Rebuild a transfer from its source transaction id

        Args:
            source: Endpoint the transfer was sent from
            destination: Endpoint that receives it
            txid: Source chain transaction id

        Returns:
            Transfer in SourceSubmitted holding exactly [txid]

        Raises:
            RecoveryError: Unknown txid, or recipient does not match
        """
        if self.lookup is None:
            raise RecoveryError("No submission lookup configured", phase=TransferPhase.SOURCE_SUBMITTED)

        logger.info(f"Recovering transfer from {source.chain_name} txid {txid}")

        try:
            record = await self.lookup.lookup(source.chain_name, txid)
        except Exception as e:
            raise RecoveryError(
                f"Lookup failed for {txid}: {e}",
                phase=TransferPhase.SOURCE_SUBMITTED,
            ) from e

        if record is None:
            raise RecoveryError(
                f"No bridge submission found for {txid} on {source.chain_name}",
                phase=TransferPhase.SOURCE_SUBMITTED,
            )

        if record.to_address != destination.address:
            raise RecoveryError(
                f"Transfer {txid} is addressed to {record.to_address}, not {destination.address}",
                phase=TransferPhase.SOURCE_SUBMITTED,
            )

        if record.from_address != source.address:
            logger.warning(f"Transfer {txid} was sent by {record.from_address}, not {source.address}")

        request = TransferRequest(
            token=record.token,
            amount=record.amount,
            source=source,
            destination=destination,
            delivery=DeliveryOptions(
                automatic=record.automatic,
                native_gas=record.native_gas if record.automatic else None,
            ),
            payload=record.payload,
        )
        transfer = Transfer(
            request=request,
            source_txids=[txid],
            attestation_ids=list(record.attestation_ids),
            phase=TransferPhase.SOURCE_SUBMITTED,
            recovered=True,
        )

        logger.info(f"✓ Recovered transfer {transfer.transfer_id}: {record.amount} base units of {record.token}")
        return transfer

    async def resume(
        self,
        source: TransferEndpoint,
        destination: TransferEndpoint,
        txid: str
    ) -> TransferResult:
        """Recover a transfer and drive it to the end of its leg"""
        transfer = await self.recover(source, destination, txid)
        result = TransferResult(legs=[transfer])

        await self.complete(transfer)

        result.completed_at = datetime.now(timezone.utc)
        return result

    async def wait_for_delivery(self, transfer: Transfer) -> Transfer:
        """
        Observe relayer delivery of an automatic transfer

        The relay status is recorded on the transfer; destination txids are
        left to the relayer's own bookkeeping. A timeout leaves the transfer
        in AutomaticPending so the wait can be repeated.

        Raises:
            RetryTimeoutError: Relay still pending at the deadline
            BridgeTransferError: Relayer reports a failed delivery
        """
        if self.relay_status is None:
            raise BridgeTransferError("No relay status service configured", phase=transfer.phase)
        if transfer.phase is not TransferPhase.AUTOMATIC_PENDING:
            raise InvalidTransitionError(
                f"Transfer {transfer.transfer_id} is {transfer.phase.value}, expected automatic_pending",
                phase=transfer.phase,
                transfer=transfer,
            )

        txid = transfer.source_txids[0]
        logger.info(f"Waiting for relay of {txid}")

        try:
            status = await wait_for_relay(
                self.relay_status,
                txid,
                interval=self.config.relay_poll_interval,
                timeout=self.config.relay_timeout,
            )
        except RetryTimeoutError as e:
            e.phase = TransferPhase.AUTOMATIC_PENDING
            e.transfer = transfer
            logger.warning(f"Relay of {txid} still pending after {e.elapsed:.1f}s")
            raise

        transfer.relay = status
        if status.failed:
            error = BridgeTransferError(
                f"Relayer reported {status.status} for {txid}",
                phase=TransferPhase.AUTOMATIC_DELIVERED,
            )
            raise self._fail(transfer, error)

        transfer.advance(TransferPhase.AUTOMATIC_DELIVERED)
        logger.info(f"✓ Relayed to {status.to_chain}: {status.to_txid}")
        return transfer

    def _return_request(self, leg: Transfer) -> TransferRequest:
        """Build the reverse request from the leg's quote (round trip)"""
        quote = leg.quote
        if quote is None:
            raise BridgeTransferError(
                f"Transfer {leg.transfer_id} has no quote to send back",
                phase=TransferPhase.ROUND_TRIP_PENDING,
                transfer=leg,
            )

        received = quote.destination_token
        if received.amount < 0:
            raise FeeTooLowError(
                f"Nothing to send back from transfer {leg.transfer_id}",
                destination_amount=received.amount,
                phase=TransferPhase.ROUND_TRIP_PENDING,
                transfer=leg,
            )

        leg.advance(TransferPhase.ROUND_TRIP_PENDING)

        reverse = leg.request.reversed(received.token, received.amount)
        logger.info(f"Sending back {received.amount} base units of {received.token} to {reverse.destination.address}")
        return reverse

    async def _submit(self, transfer: Transfer, endpoint: TransferEndpoint, intent, phase: TransferPhase):
        try:
            txids = await endpoint.chain.submit(intent, endpoint.signer)
        except SubmissionError as e:
            e.phase = phase
            raise self._fail(transfer, e)
        except Exception as e:
            error = SubmissionError(f"Submission to {endpoint.chain_name} failed: {e}", phase=phase)
            raise self._fail(transfer, error) from e

        if not txids:
            error = SubmissionError(f"{endpoint.chain_name} returned no transaction ids", phase=phase)
            raise self._fail(transfer, error)

        return list(txids)

    def _fail(self, transfer: Transfer, error: BridgeTransferError) -> BridgeTransferError:
        if error.phase is None:
            error.phase = transfer.phase
        error.transfer = transfer
        transfer.fail(error)

        logger.error(f"❌ Transfer {transfer.transfer_id} failed ({error.phase.value}): {error.message}")
        return error
