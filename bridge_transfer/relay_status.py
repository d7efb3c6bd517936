"""
Relay Status

HTTP client for the relayer status API, used to observe automatic
(relayed) transfers. A pending or unknown relay is NOT_READY; network and
server errors are hard failures that abort the poll.
"""

from typing import Optional, Union

import httpx
from loguru import logger

from .errors import RelayStatusError
from .models import RelayStatus
from .retry import NOT_READY, retry


DEFAULT_RELAY_API_URL = "https://relayer.dev.stable.io"


class RelayStatusClient:
    """
    Relayer API client

    Features:
    - Single GET per poll (`/v1/relays?txHash=...`)
    - 404 and empty results are treated as "not yet relayed"
    - Owns its httpx.AsyncClient unless one is injected
    """

    def __init__(
        self,
        base_url: str = DEFAULT_RELAY_API_URL,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize relay status client

        Args:
            base_url: Relayer API root
            timeout: Per-request timeout (seconds)
            client: Optional shared httpx.AsyncClient (not closed by this client)
        """
        self.base_url = base_url.rstrip('/')
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def get_status(self, txid: str) -> Union[RelayStatus, object]:
        """
        Fetch relay status for a source transaction

        Args:
            txid: Source chain transaction id

        Returns:
            RelayStatus once the relayer has a settled record, else NOT_READY

        Raises:
            RelayStatusError: HTTP or transport failure
        """
        url = f"{self.base_url}/v1/relays"

        try:
            response = await self.client.get(url, params={'txHash': txid})
            if response.status_code == 404:
                logger.debug(f"Relay for {txid} not found yet")
                return NOT_READY
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            raise RelayStatusError(f"Relayer returned {e.response.status_code} for {txid}") from e
        except httpx.RequestError as e:
            raise RelayStatusError(f"Relayer request failed for {txid}: {e}") from e
        except ValueError as e:
            raise RelayStatusError(f"Relayer returned invalid JSON for {txid}") from e

        record = body.get('data') if isinstance(body, dict) else None
        if isinstance(record, list):
            record = record[0] if record else None
        if not record:
            return NOT_READY

        status = RelayStatus.from_dict(record, txid=txid)
        if status.pending:
            logger.debug(f"Relay for {txid} is {status.status}")
            return NOT_READY

        return status

    async def close(self):
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()


async def wait_for_relay(
    service,
    txid: str,
    interval: float = 5.0,
    timeout: float = 60.0
) -> RelayStatus:
    """
    Poll the relay status service until the relay settles

    Args:
        service: RelayStatusService implementation
        txid: Source chain transaction id
        interval: Delay between polls (seconds)
        timeout: Overall deadline (seconds)

    Returns:
        Settled RelayStatus (delivered or failed)

    Raises:
        RetryTimeoutError: Still pending at the deadline
        RelayStatusError: Hard error from the service
    """
    return await retry(
        lambda: service.get_status(txid),
        interval,
        timeout,
        "Bridge:GetRelayStatus"
    )
