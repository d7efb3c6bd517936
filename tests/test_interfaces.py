"""Collaborators are checked structurally against the runtime protocols."""

from __future__ import annotations

from bridge_transfer.interfaces import (
    AttestationService,
    ChainEndpoint,
    CredentialProvider,
    RelayStatusService,
    Signer,
    StateStream,
    SubmissionLookup,
)
from bridge_transfer.relay_status import RelayStatusClient
from bridge_transfer.signers import EnvCredentialProvider, StaticCredentialProvider
from bridge_transfer.state_tracker import PollingStateStream

from conftest import FakeAttestationService, FakeChain, FakeLookup, FakeSigner


def test_fakes_satisfy_protocols() -> None:
    assert isinstance(FakeChain("Base"), ChainEndpoint)
    assert isinstance(FakeSigner("0xabc"), Signer)
    assert isinstance(FakeAttestationService(), AttestationService)
    assert isinstance(FakeLookup(), SubmissionLookup)


def test_package_implementations_satisfy_protocols() -> None:
    async def probe(receipt):
        raise AssertionError("not polled")

    assert isinstance(RelayStatusClient(), RelayStatusService)
    assert isinstance(PollingStateStream(probe), StateStream)
    assert isinstance(StaticCredentialProvider({}), CredentialProvider)
    assert isinstance(EnvCredentialProvider(), CredentialProvider)


def test_missing_method_is_rejected() -> None:
    class NoSubmit:
        name = "Base"
        platform = "Evm"
        native_decimals = 18

    assert not isinstance(NoSubmit(), ChainEndpoint)
