"""Tests for ChainConnector memoization and failure handling."""

import asyncio

import pytest

from chainprofile_sdk import ChainConnector, NodeConnectionError, StorageKey
from conftest import ALICE, FakeLedger


class TestConnect:
    async def test_connect_is_memoized(self, ledger, connector):
        first = await connector.connect()
        second = await connector.connect()

        assert first is second is ledger
        assert ledger.handshakes == 1
        assert connector.is_connected

    async def test_concurrent_connects_share_one_handshake(self):
        built = []

        def factory():
            node = FakeLedger()
            built.append(node)
            return node

        connector = ChainConnector(factory)
        handles = await asyncio.gather(*(connector.connect() for _ in range(5)))

        assert len(built) == 1
        assert all(handle is built[0] for handle in handles)
        assert built[0].handshakes == 1

    async def test_failed_handshake_propagates_and_is_not_memoized(self):
        node = FakeLedger(fail_handshake=True)
        connector = ChainConnector(lambda: node)

        with pytest.raises(NodeConnectionError):
            await connector.connect()

        assert not connector.is_connected
        assert node.handshakes == 1
        assert node.closed

    async def test_os_error_becomes_connection_error(self):
        class Unreachable(FakeLedger):
            async def handshake(self):
                raise ConnectionRefusedError("refused")

        connector = ChainConnector(Unreachable)
        with pytest.raises(NodeConnectionError, match="refused"):
            await connector.connect()


class TestReadAndClose:
    async def test_read_goes_through_handle(self, ledger, connector):
        ledger.set_profile(ALICE.address, "alice", "hello")

        value = await connector.read(StorageKey.profile_of(ALICE.address))

        assert value == ["alice", "hello"]
        assert ledger.handshakes == 1

    async def test_close_drops_handle(self, ledger, connector):
        await connector.connect()
        await connector.close()

        assert ledger.closed
        assert not connector.is_connected
