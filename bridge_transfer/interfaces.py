"""
Collaborator Interfaces

Narrow protocols the orchestrator calls through. Chain access, signing,
attestation fetching, relay status and state streaming are provided by the
caller (a chain-abstraction layer and a bridge network client).
"""

from typing import Any, AsyncIterator, Dict, List, Optional, Protocol, Union, runtime_checkable

from .models import (
    Quote,
    QuoteRoute,
    RelayStatus,
    StateSnapshot,
    SubmissionRecord,
    TokenId,
    Transfer,
    TransferReceipt,
)


@runtime_checkable
class Signer(Protocol):
    """Signs transactions for one chain"""

    def address(self) -> str:
        ...


@runtime_checkable
class ChainEndpoint(Protocol):
    """
    Chain context for one side of a transfer

    Attributes:
        name: Chain name (e.g., "Solana", "Base")
        platform: Platform family used for signer dispatch (e.g., "Evm")
        native_decimals: Decimals of the chain's gas token
    """

    name: str
    platform: str
    native_decimals: int

    async def submit(self, intent: Any, signer: Signer) -> List[str]:
        """Sign and broadcast an intent, returning transaction ids"""
        ...

    async def get_decimals(self, token: TokenId) -> int:
        ...

    async def quote(self, route: QuoteRoute) -> Quote:
        ...


@runtime_checkable
class AttestationService(Protocol):
    """Bridge network client that produces attestations for source submissions"""

    async def fetch(self, transfer: Transfer, timeout: float) -> List[str]:
        """Return attestation ids, or an empty list if none is ready yet"""
        ...


@runtime_checkable
class RelayStatusService(Protocol):

    async def get_status(self, txid: str) -> Union[RelayStatus, object]:
        """Return a RelayStatus, or NOT_READY while the relay is pending"""
        ...


@runtime_checkable
class StateStream(Protocol):
    """Lazy producer of ordered state snapshots for a transfer"""

    def stream(self, receipt: TransferReceipt) -> AsyncIterator[StateSnapshot]:
        ...


@runtime_checkable
class SubmissionLookup(Protocol):
    """Bridge network lookup used to recover a transfer from its source txid"""

    async def lookup(self, chain: str, txid: str) -> Optional[SubmissionRecord]:
        ...


@runtime_checkable
class SignerFactory(Protocol):
    """Builds a signer for one chain platform"""

    async def construct(self, chain: ChainEndpoint, secret: str, options: Dict) -> Signer:
        ...


@runtime_checkable
class CredentialProvider(Protocol):

    def get_secret(self, name: str) -> str:
        ...
