"""Tests for the relayer status client."""

from __future__ import annotations

import httpx
import pytest

from bridge_transfer.errors import RelayStatusError, RetryTimeoutError
from bridge_transfer.relay_status import RelayStatusClient, wait_for_relay
from bridge_transfer.retry import NOT_READY


BASE_URL = "https://relayer.test"


def make_client(handler) -> RelayStatusClient:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RelayStatusClient(BASE_URL, client=client)


@pytest.mark.asyncio
async def test_delivered_relay_is_returned() -> None:
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={'data': {
            'fromTxHash': 'sol-tx-1',
            'status': 'redeemed',
            'toChain': 'Base',
            'toTxHash': '0xdef',
        }})

    status = await make_client(handler).get_status('sol-tx-1')

    assert status.delivered
    assert status.to_txid == '0xdef'
    assert requests[0].url.path == '/v1/relays'
    assert requests[0].url.params['txHash'] == 'sol-tx-1'


@pytest.mark.asyncio
async def test_list_payload_uses_first_record() -> None:
    def handler(request):
        return httpx.Response(200, json={'data': [{'status': 'failed'}]})

    status = await make_client(handler).get_status('sol-tx-1')

    assert status.failed
    assert status.txid == 'sol-tx-1'


@pytest.mark.asyncio
@pytest.mark.parametrize("response", [
    httpx.Response(404),
    httpx.Response(200, json={'data': []}),
    httpx.Response(200, json={'data': None}),
    httpx.Response(200, json={'data': {'txHash': 'sol-tx-1', 'status': 'waiting'}}),
])
async def test_unknown_or_pending_relay_is_not_ready(response) -> None:
    status = await make_client(lambda request: response).get_status('sol-tx-1')

    assert status is NOT_READY


@pytest.mark.asyncio
async def test_server_error_is_hard_failure() -> None:
    client = make_client(lambda request: httpx.Response(500))

    with pytest.raises(RelayStatusError, match="500"):
        await client.get_status('sol-tx-1')


@pytest.mark.asyncio
async def test_invalid_json_is_hard_failure() -> None:
    client = make_client(lambda request: httpx.Response(200, content=b"<html>"))

    with pytest.raises(RelayStatusError, match="invalid JSON"):
        await client.get_status('sol-tx-1')


@pytest.mark.asyncio
async def test_transport_error_is_hard_failure() -> None:
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(RelayStatusError, match="request failed"):
        await make_client(handler).get_status('sol-tx-1')


@pytest.mark.asyncio
async def test_wait_for_relay_polls_until_settled() -> None:
    answers = [
        httpx.Response(404),
        httpx.Response(200, json={'data': {'status': 'waiting'}}),
        httpx.Response(200, json={'data': {'status': 'redeemed', 'toTxHash': '0x1'}}),
    ]

    def handler(request):
        return answers.pop(0)

    status = await wait_for_relay(make_client(handler), 'sol-tx-1', interval=0.01, timeout=1.0)

    assert status.delivered
    assert answers == []


@pytest.mark.asyncio
async def test_wait_for_relay_times_out() -> None:
    client = make_client(lambda request: httpx.Response(404))

    with pytest.raises(RetryTimeoutError) as exc_info:
        await wait_for_relay(client, 'sol-tx-1', interval=0.01, timeout=0.05)

    assert exc_info.value.label == "Bridge:GetRelayStatus"


@pytest.mark.asyncio
async def test_injected_client_is_not_closed() -> None:
    shared = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(404)))

    async with RelayStatusClient(BASE_URL, client=shared) as relay:
        assert await relay.get_status('sol-tx-1') is NOT_READY

    assert not shared.is_closed
    await shared.aclose()
