"""HTTP transport for talking to a ledger node gateway."""

import asyncio
from collections.abc import AsyncGenerator
from typing import Any

import httpx
import pydantic

from .exceptions import (
    ChainProfileError,
    NodeConnectionError,
    NotFoundError,
    SubmissionRejectedError,
)
from .logging_config import get_logger
from .types import SignedRequest, StorageKey, TransactionEvent, TransactionStatus

logger = get_logger(__name__)

_TERMINAL_STATUSES = (TransactionStatus.FINALIZED, TransactionStatus.REJECTED)


class HttpLedgerClient:
    """Client for a ledger node's JSON gateway.

    Reads chain state by storage key and submits signed extrinsics. The
    status of a submission is delivered as an async stream of
    TransactionEvent, produced by polling the node until the extrinsic is
    finalized or rejected.

    Example:
        >>> async with HttpLedgerClient("http://127.0.0.1:9944") as node:
        ...     await node.handshake()
        ...     raw = await node.read(StorageKey.profile_of(address))
    """

    def __init__(
        self,
        node_url: str = "http://127.0.0.1:9944",
        timeout: float = 30.0,
        poll_interval: float = 1.0,
    ):
        """Initialize the client.

        Args:
            node_url: Base URL of the node gateway
            timeout: Per-request timeout in seconds
            poll_interval: Seconds between status polls of a submission
        """
        self._client = httpx.AsyncClient(base_url=node_url, timeout=timeout)
        self._poll_interval = poll_interval

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit - close HTTP client."""
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Make an HTTP request and handle errors.

        Args:
            method: HTTP method (GET, POST, etc.)
            path: Endpoint path
            json: JSON body for POST requests
            params: Query parameters

        Returns:
            Response JSON

        Raises:
            NodeConnectionError: Cannot connect to node
            NotFoundError: Resource not found (404)
            SubmissionRejectedError: Request refused by the node (400, 422)
            ChainProfileError: Other errors
        """
        try:
            response = await self._client.request(
                method=method,
                url=path,
                json=json,
                params=params,
            )
        except httpx.ConnectError as e:
            raise NodeConnectionError(f"Cannot connect to node: {e}") from e
        except httpx.TimeoutException as e:
            raise NodeConnectionError(f"Request timeout: {e}") from e
        except httpx.HTTPError as e:
            raise NodeConnectionError(f"HTTP error: {e}") from e

        if response.status_code == 404:
            error_msg = response_error(response, "Not found")
            raise NotFoundError(error_msg)
        elif response.status_code in (400, 422):
            error_msg = response_error(response, "Bad request")
            raise SubmissionRejectedError(error_msg, reason=error_msg)
        elif not response.is_success:
            error_msg = response_error(response, f"HTTP {response.status_code}")
            raise ChainProfileError(error_msg)

        return response_json(response)

    # -------------------------------------------------------------------------
    # Connection
    # -------------------------------------------------------------------------

    async def handshake(self) -> None:
        """Check that the node is reachable and serving.

        Raises:
            NodeConnectionError: Node unreachable or not answering status
        """
        try:
            status = await self.node_status()
        except NodeConnectionError:
            raise
        except ChainProfileError as e:
            raise NodeConnectionError(f"Handshake failed: {e}") from e
        logger.debug("node_status", chain=status.get("chain"), best=status.get("best_block"))

    # -------------------------------------------------------------------------
    # Chain State
    # -------------------------------------------------------------------------

    async def read(self, key: StorageKey) -> Any | None:
        """Read a value from current chain state.

        Args:
            key: Storage location

        Returns:
            The stored value as JSON, or None if no value is stored

        Raises:
            NodeConnectionError: Cannot connect to node
        """
        try:
            response = await self._request(
                "GET", f"/storage/{key.pallet}/{key.item}/{key.key}"
            )
        except NotFoundError:
            return None
        if not isinstance(response, dict):
            raise ChainProfileError(
                f"Unexpected storage response: {type(response).__name__}"
            )
        return response.get("value")

    # -------------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------------

    async def submit(self, signed: SignedRequest) -> AsyncGenerator[TransactionEvent, None]:
        """Submit a signed extrinsic and watch its status.

        Args:
            signed: Signed request produced by a wallet

        Returns:
            Async iterator of status events, ending after finalized or rejected

        Raises:
            SubmissionRejectedError: The node refused the extrinsic outright
            NodeConnectionError: Cannot connect to node
        """
        response = await self._request(
            "POST", "/extrinsic", json=signed.model_dump(mode="json")
        )
        tx_hash = response.get("tx_hash") if isinstance(response, dict) else None
        if not isinstance(tx_hash, str) or not tx_hash:
            raise SubmissionRejectedError("Node did not return a transaction hash")
        logger.info("extrinsic_submitted", tx_hash=tx_hash, signer=signed.signer)
        return self._watch(tx_hash)

    async def _watch(self, tx_hash: str) -> AsyncGenerator[TransactionEvent, None]:
        """Poll the status of an extrinsic, yielding each new status once."""
        seen: set[TransactionStatus] = set()
        while True:
            response = await self._request("GET", f"/extrinsic/{tx_hash}")
            if not isinstance(response, dict):
                raise ChainProfileError(
                    f"Unexpected status response: {type(response).__name__}"
                )
            try:
                status = TransactionStatus(response.get("status"))
            except ValueError:
                # pending, ready, broadcast and the like
                await asyncio.sleep(self._poll_interval)
                continue

            if status not in seen:
                seen.add(status)
                try:
                    event = TransactionEvent(
                        status=status,
                        block_hash=response.get("block_hash"),
                        reason=response.get("reason"),
                    )
                except pydantic.ValidationError as e:
                    raise ChainProfileError(f"Malformed status response: {e}") from e
                yield event
            if status in _TERMINAL_STATUSES:
                return
            await asyncio.sleep(self._poll_interval)

    # -------------------------------------------------------------------------
    # Node Info
    # -------------------------------------------------------------------------

    async def node_status(self) -> dict[str, Any]:
        """Get node status information.

        Returns:
            Dictionary with node status info

        Raises:
            ChainProfileError: The node answered with something other than
                a JSON object
        """
        status = await self._request("GET", "/status")
        if not isinstance(status, dict):
            raise ChainProfileError(
                f"Unexpected status response: {type(status).__name__}"
            )
        return status


def response_json(response: httpx.Response) -> Any:
    """Decode a successful response body.

    Raises:
        ChainProfileError: The body is not valid JSON
    """
    try:
        return response.json()
    except ValueError as e:
        raise ChainProfileError(f"Invalid JSON response: {e}") from e


def response_error(response: httpx.Response, default: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, dict):
        return body.get("error", default)
    return default
