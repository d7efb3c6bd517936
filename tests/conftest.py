"""Shared fixtures and in-memory collaborators for bridge transfer tests."""

from __future__ import annotations

from typing import Dict, List, Optional

import pytest

from bridge_transfer.attestation_waiter import AttestationWaiter
from bridge_transfer.config import BridgeConfig
from bridge_transfer.models import (
    ChainAddress,
    Quote,
    QuoteAmount,
    RedeemIntent,
    TokenId,
    TransferEndpoint,
    TransferRequest,
    DeliveryOptions,
)
from bridge_transfer.transfer_engine import TransferOrchestrator


class FakeSigner:
    def __init__(self, address: str):
        self._address = address

    def address(self) -> str:
        return self._address


class FakeChain:
    """ChainEndpoint that records submissions and answers quotes from a fixed fee."""

    def __init__(
        self,
        name: str,
        platform: str = "Evm",
        native_decimals: int = 18,
        fee: int = 0,
        token_decimals: int = 6,
    ):
        self.name = name
        self.platform = platform
        self.native_decimals = native_decimals
        self.fee = fee
        self.token_decimals = token_decimals
        self.submissions: List[tuple] = []
        self.quotes: List = []
        self.submit_error: Optional[Exception] = None
        self.submit_result: Optional[List[str]] = None
        self.received_token: Optional[TokenId] = None

    async def submit(self, intent, signer) -> List[str]:
        self.submissions.append((intent, signer))
        if self.submit_error is not None:
            raise self.submit_error
        if self.submit_result is not None:
            return self.submit_result
        kind = "redeem" if isinstance(intent, RedeemIntent) else "transfer"
        return [f"{self.name.lower()}-{kind}-{len(self.submissions)}"]

    async def get_decimals(self, token: TokenId) -> int:
        return self.token_decimals

    async def quote(self, route) -> Quote:
        self.quotes.append(route)
        received = self.received_token or TokenId(route.to_chain, "wrapped")
        fee = self.fee if route.automatic else 0
        return Quote(
            source_token=QuoteAmount(route.token, route.amount),
            destination_token=QuoteAmount(received, route.amount - fee - (route.native_gas or 0)),
            relay_fee=QuoteAmount(route.token, fee) if route.automatic else None,
            destination_native_gas=route.native_gas or 0,
        )


class FakeAttestationService:
    """Returns no attestation `pending` times, then the configured ids."""

    def __init__(self, ids: Optional[List[str]] = None, pending: int = 0, error: Optional[Exception] = None):
        self.ids = ids if ids is not None else ["vaa-1"]
        self.pending = pending
        self.error = error
        self.calls = 0

    async def fetch(self, transfer, timeout: float) -> List[str]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        if self.calls <= self.pending:
            return []
        return list(self.ids)


class FakeLookup:
    def __init__(self, records: Optional[Dict[str, object]] = None):
        self.records = records or {}
        self.calls: List[tuple] = []

    async def lookup(self, chain: str, txid: str):
        self.calls.append((chain, txid))
        return self.records.get(txid)


def make_endpoint(chain: FakeChain, address: str) -> TransferEndpoint:
    return TransferEndpoint(chain=chain, signer=FakeSigner(address), address=ChainAddress(chain.name, address))


@pytest.fixture
def config() -> BridgeConfig:
    return BridgeConfig(
        attestation_timeout=1.0,
        attestation_poll_interval=0.01,
        relay_poll_interval=0.01,
        relay_timeout=0.2,
    )


@pytest.fixture
def source_chain() -> FakeChain:
    return FakeChain("Solana", platform="Solana", native_decimals=9, fee=100)


@pytest.fixture
def destination_chain() -> FakeChain:
    return FakeChain("Base", platform="Evm", native_decimals=18, fee=100)


@pytest.fixture
def source(source_chain) -> TransferEndpoint:
    return make_endpoint(source_chain, "So1Sender")


@pytest.fixture
def destination(destination_chain) -> TransferEndpoint:
    return make_endpoint(destination_chain, "0xRecipient")


@pytest.fixture
def attestations() -> FakeAttestationService:
    return FakeAttestationService()


@pytest.fixture
def lookup() -> FakeLookup:
    return FakeLookup()


@pytest.fixture
def orchestrator(attestations, lookup, config) -> TransferOrchestrator:
    waiter = AttestationWaiter(attestations, poll_interval=config.attestation_poll_interval)
    return TransferOrchestrator(waiter, lookup=lookup, config=config)


@pytest.fixture
def make_request(source, destination):
    def _make(amount: int = 1_000_000, automatic: bool = False, native_gas: Optional[int] = None) -> TransferRequest:
        return TransferRequest(
            token=TokenId.native("Solana"),
            amount=amount,
            source=source,
            destination=destination,
            delivery=DeliveryOptions(automatic=automatic, native_gas=native_gas),
        )

    return _make

