"""Memoized connection to a ledger node."""

import asyncio
from collections.abc import AsyncGenerator, Callable
from typing import Any, Protocol

from .exceptions import NodeConnectionError
from .logging_config import get_logger
from .types import SignedRequest, StorageKey, TransactionEvent

logger = get_logger(__name__)


class LedgerNodeClient(Protocol):
    """Transport to a ledger node: keyed reads and signed submissions."""

    async def handshake(self) -> None: ...

    async def read(self, key: StorageKey) -> Any | None: ...

    async def submit(self, signed: SignedRequest) -> AsyncGenerator[TransactionEvent, None]: ...

    async def aclose(self) -> None: ...


class ChainConnector:
    """Establishes and memoizes a single connection handle to a ledger node.

    The first call to connect() performs the handshake; later calls return
    the same handle. A failed handshake is reported to the caller and is not
    retried here.

    Example:
        >>> connector = ChainConnector(lambda: HttpLedgerClient(node_url))
        >>> node = await connector.connect()
    """

    def __init__(self, client_factory: Callable[[], LedgerNodeClient]):
        """Initialize the connector.

        Args:
            client_factory: Builds an unconnected transport client
        """
        self._client_factory = client_factory
        self._handle: LedgerNodeClient | None = None
        self._lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self._handle is not None

    async def connect(self) -> LedgerNodeClient:
        """Return the live connection handle, connecting on first use.

        Returns:
            The memoized node client

        Raises:
            NodeConnectionError: Node unreachable or handshake failed
        """
        if self._handle is not None:
            return self._handle

        async with self._lock:
            if self._handle is not None:
                return self._handle

            client = self._client_factory()
            try:
                await client.handshake()
            except NodeConnectionError:
                logger.warning("node_handshake_failed")
                await client.aclose()
                raise
            except OSError as e:
                await client.aclose()
                raise NodeConnectionError(f"Cannot connect to node: {e}") from e

            logger.info("node_connected")
            self._handle = client
            return client

    async def read(self, key: StorageKey) -> Any | None:
        """Read a value from current chain state.

        Args:
            key: Storage location to read

        Returns:
            The raw value, or None if nothing is stored there
        """
        node = await self.connect()
        return await node.read(key)

    async def submit(self, signed: SignedRequest) -> AsyncGenerator[TransactionEvent, None]:
        """Submit a signed request.

        Returns:
            Stream of status events for the submission
        """
        node = await self.connect()
        return await node.submit(signed)

    async def close(self) -> None:
        """Close the connection handle, if one was established."""
        async with self._lock:
            if self._handle is not None:
                await self._handle.aclose()
                self._handle = None
