"""
Bridge Transfer Models

Data model for a cross-chain transfer:
- Amounts in base units (integer, scaled by token decimals)
- Transfer requests and the intents submitted to chains
- Quotes used for the pre-submission feasibility check
- The mutable Transfer aggregate and its phase machine
- Tracking states, snapshots and receipts
- Relay status snapshots from the relayer API
"""

import uuid
from dataclasses import dataclass, field, asdict, replace
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger

from .errors import InvalidTransitionError


NATIVE_TOKEN = "native"


def parse_amount(value: str, decimals: int) -> int:
    """
    Convert a decimal amount string into base units

    Args:
        value: Decimal amount (e.g., "0.001")
        decimals: Token decimal precision

    Returns:
        Integer amount in base units

    Raises:
        ValueError: Negative, non-numeric, or too precise for the token
    """
    if decimals < 0:
        raise ValueError(f"Invalid decimals: {decimals}")

    try:
        parsed = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {value!r}") from None

    if not parsed.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    if parsed < 0:
        raise ValueError(f"Amount must be non-negative: {value}")

    scaled = parsed.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"Amount {value} has more than {decimals} decimal places")

    return int(scaled)


def _check_units(name: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer amount in base units, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ChainAddress:
    """Address on a specific chain"""
    chain: str
    address: str

    def __str__(self):
        return f"{self.chain}:{self.address}"


@dataclass(frozen=True)
class TokenId:
    """Token on a specific chain ("native" for the gas token)"""
    chain: str
    address: str

    @classmethod
    def native(cls, chain: str) -> 'TokenId':
        return cls(chain, NATIVE_TOKEN)

    @property
    def is_native(self) -> bool:
        return self.address == NATIVE_TOKEN

    def __str__(self):
        return f"{self.chain}:{self.address}"


@dataclass
class TransferEndpoint:
    """Chain context, signer and address for one side of a transfer"""
    chain: Any
    signer: Any
    address: ChainAddress

    @property
    def chain_name(self) -> str:
        return self.address.chain


@dataclass(frozen=True)
class DeliveryOptions:
    """Delivery mode for the destination side"""
    automatic: bool = False
    native_gas: Optional[int] = None


@dataclass(frozen=True)
class TransferRequest:
    """Immutable input for one transfer leg"""
    token: TokenId
    amount: int
    source: TransferEndpoint
    destination: TransferEndpoint
    delivery: DeliveryOptions = field(default_factory=DeliveryOptions)
    payload: Optional[bytes] = None

    def __post_init__(self):
        _check_units("amount", self.amount)
        if self.delivery.native_gas is not None:
            _check_units("native_gas", self.delivery.native_gas)
            if not self.delivery.automatic:
                logger.warning("Native gas drop requested without automatic delivery, it will be ignored")

    @property
    def automatic(self) -> bool:
        return self.delivery.automatic

    @property
    def native_gas(self) -> Optional[int]:
        return self.delivery.native_gas if self.delivery.automatic else None

    def reversed(self, token: TokenId, amount: int) -> 'TransferRequest':
        """Request sending `amount` of `token` back from destination to source"""
        return replace(
            self,
            token=token,
            amount=amount,
            source=self.destination,
            destination=self.source,
        )


@dataclass(frozen=True)
class TransferIntent:
    """Unsigned transfer submitted to the source chain"""
    token: TokenId
    amount: int
    from_address: ChainAddress
    to_address: ChainAddress
    automatic: bool
    native_gas: Optional[int] = None
    payload: Optional[bytes] = None

    @classmethod
    def from_request(cls, request: TransferRequest) -> 'TransferIntent':
        return cls(
            token=request.token,
            amount=request.amount,
            from_address=request.source.address,
            to_address=request.destination.address,
            automatic=request.automatic,
            native_gas=request.native_gas,
            payload=request.payload,
        )


@dataclass(frozen=True)
class RedeemIntent:
    """Redemption of an attested transfer on the destination chain"""
    attestation_ids: Tuple[str, ...]
    source_txids: Tuple[str, ...]
    recipient: ChainAddress
    from_chain: str


@dataclass(frozen=True)
class QuoteAmount:
    token: TokenId
    amount: int


@dataclass(frozen=True)
class QuoteRoute:
    """Route description passed to ChainEndpoint.quote"""
    token: TokenId
    amount: int
    from_chain: str
    to_chain: str
    automatic: bool
    native_gas: Optional[int] = None

    @classmethod
    def from_request(cls, request: TransferRequest) -> 'QuoteRoute':
        return cls(
            token=request.token,
            amount=request.amount,
            from_chain=request.source.chain_name,
            to_chain=request.destination.chain_name,
            automatic=request.automatic,
            native_gas=request.native_gas,
        )


@dataclass(frozen=True)
class Quote:
    """Expected destination-side outcome of a prospective transfer"""
    source_token: QuoteAmount
    destination_token: QuoteAmount  # amount may be negative when fees exceed it
    relay_fee: Optional[QuoteAmount] = None
    destination_native_gas: int = 0
    eta_seconds: Optional[float] = None
    warnings: Tuple[str, ...] = ()


class TransferPhase(Enum):
    """Orchestration phase of a single transfer leg"""
    CREATED = "created"
    QUOTED = "quoted"
    SOURCE_SUBMITTED = "source_submitted"
    AUTOMATIC_PENDING = "automatic_pending"
    ATTESTATION_PENDING = "attestation_pending"
    AUTOMATIC_DELIVERED = "automatic_delivered"
    DESTINATION_SUBMITTED = "destination_submitted"
    COMPLETED = "completed"
    ROUND_TRIP_PENDING = "round_trip_pending"
    FAILED = "failed"


ALLOWED_TRANSITIONS: Dict[TransferPhase, frozenset] = {
    TransferPhase.CREATED: frozenset({TransferPhase.QUOTED}),
    TransferPhase.QUOTED: frozenset({TransferPhase.SOURCE_SUBMITTED}),
    TransferPhase.SOURCE_SUBMITTED: frozenset({
        TransferPhase.AUTOMATIC_PENDING,
        TransferPhase.ATTESTATION_PENDING,
    }),
    TransferPhase.AUTOMATIC_PENDING: frozenset({
        TransferPhase.AUTOMATIC_DELIVERED,
        TransferPhase.ROUND_TRIP_PENDING,
    }),
    TransferPhase.ATTESTATION_PENDING: frozenset({TransferPhase.DESTINATION_SUBMITTED}),
    TransferPhase.DESTINATION_SUBMITTED: frozenset({TransferPhase.COMPLETED}),
    TransferPhase.AUTOMATIC_DELIVERED: frozenset({TransferPhase.ROUND_TRIP_PENDING}),
    TransferPhase.COMPLETED: frozenset({TransferPhase.ROUND_TRIP_PENDING}),
    TransferPhase.ROUND_TRIP_PENDING: frozenset(),
    TransferPhase.FAILED: frozenset(),
}

# Phases that cannot move to FAILED
SETTLED_PHASES = frozenset({
    TransferPhase.COMPLETED,
    TransferPhase.AUTOMATIC_DELIVERED,
    TransferPhase.ROUND_TRIP_PENDING,
    TransferPhase.FAILED,
})


class TransferState(IntEnum):
    """Observed lifecycle state of a transfer, in chronological order"""
    FAILED = -1
    CREATED = 0
    SOURCE_INITIATED = 1
    SOURCE_FINALIZED = 2
    ATTESTED = 3
    RELAYED = 4
    DESTINATION_INITIATED = 5
    DESTINATION_COMPLETE = 6
    COMPLETED = 7

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset({
    TransferState.COMPLETED,
    TransferState.DESTINATION_COMPLETE,
    TransferState.FAILED,
})


@dataclass(frozen=True)
class StateSnapshot:
    """One observed state of a transfer"""
    state: TransferState
    source_txids: Tuple[str, ...] = ()
    attestation_ids: Tuple[str, ...] = ()
    destination_txids: Tuple[str, ...] = ()
    observed_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class TransferReceipt:
    """Read-only view of a transfer, used as the key for state streams"""
    transfer_id: str
    from_chain: str
    to_chain: str
    automatic: bool
    source_txids: Tuple[str, ...]
    attestation_ids: Tuple[str, ...]
    destination_txids: Tuple[str, ...]
    state: TransferState


@dataclass(frozen=True)
class RelayStatus:
    """Delivery status of an automatic transfer, as reported by the relayer"""
    txid: str
    status: str
    to_chain: Optional[str] = None
    to_txid: Optional[str] = None
    raw: Dict = field(default_factory=dict, compare=False)

    DELIVERED_STATUSES = frozenset({'redeemed', 'delivered', 'completed'})
    FAILED_STATUSES = frozenset({'failed', 'delivery_failed', 'error'})

    @property
    def delivered(self) -> bool:
        return self.status in self.DELIVERED_STATUSES

    @property
    def failed(self) -> bool:
        return self.status in self.FAILED_STATUSES

    @property
    def pending(self) -> bool:
        return not (self.delivered or self.failed)

    @classmethod
    def from_dict(cls, data: Dict, txid: Optional[str] = None) -> 'RelayStatus':
        """
        Build from a relayer API record

        Args:
            data: Relay record (camelCase keys as served by the relayer)
            txid: Source txid used for the query, if the record omits it

        Returns:
            RelayStatus
        """
        source_txid = data.get('fromTxHash') or data.get('txHash') or txid
        if not source_txid:
            raise ValueError("Relay record has no source transaction hash")

        return cls(
            txid=source_txid,
            status=str(data.get('status', 'pending')).lower(),
            to_chain=data.get('toChain'),
            to_txid=data.get('toTxHash'),
            raw=data,
        )


@dataclass(frozen=True)
class SubmissionRecord:
    """On-chain submission found by the bridge network for a source txid"""
    token: TokenId
    amount: int
    from_address: ChainAddress
    to_address: ChainAddress
    automatic: bool = False
    native_gas: Optional[int] = None
    payload: Optional[bytes] = None
    attestation_ids: Tuple[str, ...] = ()


_PHASE_TO_STATE = {
    TransferPhase.CREATED: TransferState.CREATED,
    TransferPhase.QUOTED: TransferState.CREATED,
    TransferPhase.SOURCE_SUBMITTED: TransferState.SOURCE_INITIATED,
    TransferPhase.AUTOMATIC_PENDING: TransferState.SOURCE_INITIATED,
    TransferPhase.ATTESTATION_PENDING: TransferState.SOURCE_INITIATED,
    TransferPhase.AUTOMATIC_DELIVERED: TransferState.DESTINATION_COMPLETE,
    TransferPhase.DESTINATION_SUBMITTED: TransferState.DESTINATION_INITIATED,
    TransferPhase.COMPLETED: TransferState.COMPLETED,
    TransferPhase.ROUND_TRIP_PENDING: TransferState.COMPLETED,
    TransferPhase.FAILED: TransferState.FAILED,
}


@dataclass
class Transfer:
    """
    Mutable aggregate for one transfer leg

    Owned by the orchestration run that created it. Transaction id lists are
    only appended to, in the order source -> attestation -> destination.
    """
    request: TransferRequest
    source_txids: List[str] = field(default_factory=list)
    attestation_ids: List[str] = field(default_factory=list)
    destination_txids: List[str] = field(default_factory=list)
    phase: TransferPhase = TransferPhase.CREATED
    quote: Optional[Quote] = None
    recovered: bool = False
    relay: Optional[RelayStatus] = None
    error: Optional[BaseException] = None
    transfer_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    history: List[Tuple[TransferPhase, datetime]] = field(default_factory=list)

    def __post_init__(self):
        if not self.history:
            self.history.append((self.phase, _now()))

    @property
    def is_failed(self) -> bool:
        return self.phase is TransferPhase.FAILED

    @property
    def state(self) -> TransferState:
        attestable = (
            TransferPhase.SOURCE_SUBMITTED,
            TransferPhase.ATTESTATION_PENDING,
            TransferPhase.AUTOMATIC_PENDING,
        )
        if self.phase in attestable and self.attestation_ids:
            return TransferState.ATTESTED
        return _PHASE_TO_STATE[self.phase]

    def advance(self, phase: TransferPhase):
        """
        Move to the next phase

        Raises:
            InvalidTransitionError: Transition not allowed from the current phase
        """
        if phase not in ALLOWED_TRANSITIONS[self.phase]:
            raise InvalidTransitionError(
                f"Transfer {self.transfer_id}: cannot move from {self.phase.value} to {phase.value}",
                phase=self.phase,
                transfer=self,
            )

        logger.debug(f"Transfer {self.transfer_id}: {self.phase.value} -> {phase.value}")
        self.phase = phase
        self.history.append((phase, _now()))

    def fail(self, error: BaseException):
        """Move to FAILED, keeping the error"""
        if self.phase in SETTLED_PHASES:
            raise InvalidTransitionError(
                f"Transfer {self.transfer_id}: cannot fail from {self.phase.value}",
                phase=self.phase,
                transfer=self,
            )

        self.error = error
        self.phase = TransferPhase.FAILED
        self.history.append((TransferPhase.FAILED, _now()))

    def receipt(self) -> TransferReceipt:
        return TransferReceipt(
            transfer_id=self.transfer_id,
            from_chain=self.request.source.chain_name,
            to_chain=self.request.destination.chain_name,
            automatic=self.request.automatic,
            source_txids=tuple(self.source_txids),
            attestation_ids=tuple(self.attestation_ids),
            destination_txids=tuple(self.destination_txids),
            state=self.state,
        )

    def to_dict(self) -> Dict:
        return {
            'transfer_id': self.transfer_id,
            'from': str(self.request.source.address),
            'to': str(self.request.destination.address),
            'token': str(self.request.token),
            'amount': self.request.amount,
            'automatic': self.request.automatic,
            'phase': self.phase.value,
            'recovered': self.recovered,
            'source_txids': list(self.source_txids),
            'attestation_ids': list(self.attestation_ids),
            'destination_txids': list(self.destination_txids),
            'relay_status': self.relay.status if self.relay else None,
            'quote': asdict(self.quote) if self.quote else None,
            'error': str(self.error) if self.error else None,
        }


@dataclass
class TransferResult:
    """Outcome of one orchestration call (one leg, or two for a round trip)"""
    legs: List[Transfer]
    started_at: datetime = field(default_factory=_now)
    completed_at: Optional[datetime] = None

    @property
    def transfer(self) -> Transfer:
        return self.legs[-1]

    @property
    def round_trip(self) -> bool:
        return len(self.legs) > 1

    @property
    def total_time_seconds(self) -> float:
        end = self.completed_at or _now()
        return (end - self.started_at).total_seconds()

    def to_dict(self) -> Dict:
        data = {
            'legs': [leg.to_dict() for leg in self.legs],
            'round_trip': self.round_trip,
            'started_at': self.started_at.isoformat(),
            'completed_at': None,
            'total_time_seconds': self.total_time_seconds,
        }
        if self.completed_at:
            data['completed_at'] = self.completed_at.isoformat()
        return data
