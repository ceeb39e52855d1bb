"""pytest configuration and in-memory fakes for chainprofile-sdk tests."""

import asyncio
import os
from typing import Any

import pytest

from chainprofile_sdk import (
    ChainCall,
    ChainConnector,
    Identity,
    NodeConnectionError,
    NoWalletError,
    ProfileDashboard,
    SignedRequest,
    SigningRefusedError,
    StorageKey,
    TransactionEvent,
    TransactionStatus,
)

# Default node URL for testing
NODE_URL = os.environ.get("CHAINPROFILE_NODE_URL", "http://127.0.0.1:9944")


@pytest.fixture
def node_url():
    """Provide the node URL for tests."""
    return NODE_URL


# Skip marker for tests that require a running node
requires_node = pytest.mark.skipif(
    not os.environ.get("CHAINPROFILE_NODE_URL"),
    reason="Requires running ledger node gateway (set CHAINPROFILE_NODE_URL)",
)


ALICE = Identity(address="5GrwvaEF5zXb26Fz9rcQpDWS57CtERHpNehXCPcNoHGKutQY", display_name="Alice")
BOB = Identity(address="5FHneW46xGXgs5mUiveU4sbTyGBzmstUspZC92UhjJM694ty", display_name="Bob")


def in_block(block_hash: str = "0xblock") -> TransactionEvent:
    return TransactionEvent(status=TransactionStatus.IN_BLOCK, block_hash=block_hash)


def finalized(block_hash: str = "0xblock") -> TransactionEvent:
    return TransactionEvent(status=TransactionStatus.FINALIZED, block_hash=block_hash)


def rejected(reason: str = "Invalid transaction") -> TransactionEvent:
    return TransactionEvent(status=TransactionStatus.REJECTED, reason=reason)


async def wait_until(predicate, attempts: int = 100) -> None:
    """Yield to the event loop until predicate() holds."""
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeLedger:
    """In-memory ledger node implementing the LedgerNodeClient protocol.

    Submissions replay a scripted list of status events (default: in_block,
    finalized). The call's effect on storage is applied when the first
    in_block or finalized event is delivered.
    """

    def __init__(self, fail_handshake: bool = False):
        self.fail_handshake = fail_handshake
        self.storage: dict[tuple[str, str, str], Any] = {}
        self.handshakes = 0
        self.reads: list[StorageKey] = []
        self.submitted: list[SignedRequest] = []
        self.scripts: list[list[TransactionEvent]] = []
        self.read_gates: dict[str, asyncio.Event] = {}
        self.pending_reads: set[str] = set()
        self.one_shot_gates: set[str] = set()
        self.event_gate: asyncio.Event | None = None
        self.status_gates: dict[TransactionStatus, asyncio.Event] = {}
        self.closed = False

    def set_profile(self, address: str, username: str, bio: str) -> None:
        self.storage[("template", "userProfiles", address)] = [username, bio]

    def set_raw(self, address: str, value: Any) -> None:
        self.storage[("template", "userProfiles", address)] = value

    def raw_profile(self, address: str) -> Any:
        return self.storage.get(("template", "userProfiles", address))

    def script(self, *events: TransactionEvent) -> None:
        """Queue the events delivered for the next submission."""
        self.scripts.append(list(events))

    def pause_events(self) -> asyncio.Event:
        """Hold every status event until the returned event is set."""
        self.event_gate = asyncio.Event()
        return self.event_gate

    def pause_before(self, status: TransactionStatus) -> asyncio.Event:
        """Hold events with this status until the returned event is set."""
        gate = asyncio.Event()
        self.status_gates[status] = gate
        return gate

    def gate_reads(self, address: str, once: bool = False) -> asyncio.Event:
        """Hold reads for an address until the returned event is set.

        With ``once``, only the next read for the address is held.
        """
        gate = asyncio.Event()
        self.read_gates[address] = gate
        if once:
            self.one_shot_gates.add(address)
        return gate

    async def handshake(self) -> None:
        self.handshakes += 1
        if self.fail_handshake:
            raise NodeConnectionError("Cannot connect to node: connection refused")

    async def read(self, key: StorageKey) -> Any | None:
        self.reads.append(key)
        gate = self.read_gates.get(key.key)
        if key.key in self.one_shot_gates:
            self.one_shot_gates.discard(key.key)
            del self.read_gates[key.key]
        if gate is not None:
            self.pending_reads.add(key.key)
            await gate.wait()
            self.pending_reads.discard(key.key)
        return self.storage.get((key.pallet, key.item, key.key))

    async def submit(self, signed: SignedRequest):
        self.submitted.append(signed)
        script = self.scripts.pop(0) if self.scripts else [in_block(), finalized()]
        return self._stream(signed, script)

    async def _stream(self, signed: SignedRequest, script: list[TransactionEvent]):
        applied = False
        for event in script:
            if self.event_gate is not None:
                await self.event_gate.wait()
            gate = self.status_gates.get(event.status)
            if gate is not None:
                await gate.wait()
            if not applied and event.status is not TransactionStatus.REJECTED:
                self._apply(signed)
                applied = True
            yield event

    def _apply(self, signed: SignedRequest) -> None:
        call = signed.call
        if call.method == "setProfile":
            self.set_profile(signed.signer, *call.args)
        elif call.method == "removeUserInfo":
            self.storage.pop(("template", "userProfiles", signed.signer), None)

    async def aclose(self) -> None:
        self.closed = True


class FakeSigner:
    def __init__(self, wallet: "FakeWallet", address: str):
        self._wallet = wallet
        self.address = address

    async def sign(self, call: ChainCall) -> SignedRequest:
        if self._wallet.refuse_signing:
            raise SigningRefusedError("Cancelled", reason="Cancelled")
        return SignedRequest(signer=self.address, call=call, signature="0x" + "ab" * 64)


class FakeWallet:
    """In-memory wallet bridge implementing the WalletBridge protocol."""

    def __init__(
        self,
        identities: list[Identity] | None = None,
        available: bool = True,
        refuse_signing: bool = False,
    ):
        self.identities = list(identities) if identities is not None else [ALICE, BOB]
        self.available = available
        self.refuse_signing = refuse_signing
        self.enabled_for: str | None = None
        self.closed = False

    async def enable(self, app_name: str) -> None:
        if not self.available:
            raise NoWalletError("No wallet extension installed")
        self.enabled_for = app_name

    async def list_identities(self) -> list[Identity]:
        return list(self.identities)

    async def signer_for(self, address: str) -> FakeSigner:
        return FakeSigner(self, address)

    async def aclose(self) -> None:
        self.closed = True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def ledger():
    return FakeLedger()


@pytest.fixture
def wallet():
    return FakeWallet()


@pytest.fixture
def connector(ledger):
    return ChainConnector(lambda: ledger)


@pytest.fixture
def dashboard(wallet, connector):
    return ProfileDashboard(wallet, connector, notification_delay=0.05)
