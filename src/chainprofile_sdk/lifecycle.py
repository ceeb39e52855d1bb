"""Transaction lifecycle state machine and the controller that drives it.

A submitted transaction moves through::

    IDLE -> SUBMITTING -> INCLUDED -> FINALIZED
                 \\            \\
                  +-> FAILED <-+

FINALIZED and FAILED are terminal. Status events arriving after a terminal
state are ignored, so a late ``in_block`` can never move a finalized
transaction back to INCLUDED.
"""

import asyncio
from collections.abc import Callable
from contextlib import aclosing

from .connector import ChainConnector
from .exceptions import (
    ChainProfileError,
    SubmissionRejectedError,
    TransactionInProgressError,
    TransactionTimeoutError,
)
from .logging_config import get_logger
from .types import (
    ChainCall,
    Draft,
    Identity,
    TransactionEvent,
    TransactionKind,
    TransactionState,
    TransactionStatus,
)
from .wallet import WalletBridge

logger = get_logger(__name__)

TransitionListener = Callable[["TransactionLifecycle"], None]


class TransactionLifecycle:
    """One in-flight write and its position in the commitment protocol.

    Attributes:
        kind: What the transaction does
        address: Address of the signing identity
        state: Current lifecycle state
        history: Every state entered, in order
        block_hash: Hash of the block the transaction was included in
        error: Why the transaction failed, if it did
    """

    def __init__(
        self,
        kind: TransactionKind,
        address: str,
        on_transition: TransitionListener | None = None,
    ):
        self.kind = kind
        self.address = address
        self.state = TransactionState.IDLE
        self.history: list[TransactionState] = []
        self.block_hash: str | None = None
        self.error: ChainProfileError | None = None
        self._on_transition = on_transition

    def __repr__(self) -> str:
        return (
            f"TransactionLifecycle(kind={self.kind.value}, "
            f"address={self.address!r}, state={self.state.value})"
        )

    def begin(self) -> None:
        """Enter SUBMITTING.

        Raises:
            RuntimeError: The transaction was already started
        """
        if self.state is not TransactionState.IDLE:
            raise RuntimeError(f"Transaction already started ({self.state.value})")
        self._transition(TransactionState.SUBMITTING)

    def apply(self, event: TransactionEvent) -> bool:
        """Apply a status event from the ledger node.

        Args:
            event: Status update for this transaction

        Returns:
            True if the event changed the state
        """
        if self.state is TransactionState.IDLE:
            raise RuntimeError("Transaction has not been submitted")
        if self.state.is_terminal:
            logger.debug(
                "late_status_ignored",
                address=self.address,
                state=self.state.value,
                status=event.status.value,
            )
            return False

        if event.status is TransactionStatus.IN_BLOCK:
            if self.state is TransactionState.INCLUDED:
                return False
            self.block_hash = event.block_hash
            self._transition(TransactionState.INCLUDED)
            return True

        if event.status is TransactionStatus.FINALIZED:
            if self.state is TransactionState.SUBMITTING:
                # finality implies inclusion; record it so no phase is skipped
                self.block_hash = event.block_hash
                self._transition(TransactionState.INCLUDED)
            self.block_hash = event.block_hash or self.block_hash
            self._transition(TransactionState.FINALIZED)
            return True

        reason = event.reason or "Transaction rejected by the node"
        return self.fail(SubmissionRejectedError(reason, reason=event.reason))

    def fail(self, error: ChainProfileError) -> bool:
        """Move to FAILED unless already terminal.

        Returns:
            True if the state changed
        """
        if self.state.is_terminal:
            return False
        self.error = error
        self._transition(TransactionState.FAILED)
        return True

    def _transition(self, state: TransactionState) -> None:
        logger.debug(
            "transaction_transition",
            address=self.address,
            kind=self.kind.value,
            previous=self.state.value,
            state=state.value,
        )
        self.state = state
        self.history.append(state)
        if self._on_transition is not None:
            self._on_transition(self)


class TransactionController:
    """Submits signed profile writes and tracks them to a terminal state.

    At most one transaction is in flight per identity. A request made while
    one is SUBMITTING or INCLUDED is rejected with TransactionInProgressError
    and changes nothing.

    Example:
        >>> controller = TransactionController(connector, bridge)
        >>> tx = await controller.submit_set_profile(identity, Draft(username="alice", bio="hello"))
        >>> tx.state
        <TransactionState.FINALIZED: 'finalized'>
    """

    def __init__(
        self,
        connector: ChainConnector,
        bridge: WalletBridge,
        finality_timeout: float | None = None,
    ):
        """Initialize the controller.

        Args:
            connector: Shared chain connector
            bridge: Wallet bridge providing signers
            finality_timeout: Seconds to wait, from submission, for a terminal
                status. None waits indefinitely.
        """
        self._connector = connector
        self._bridge = bridge
        self._finality_timeout = finality_timeout
        self._in_flight: dict[str, TransactionLifecycle] = {}
        self._listeners: list[TransitionListener] = []

    def add_listener(self, listener: TransitionListener) -> None:
        """Register a callback invoked on every lifecycle transition."""
        self._listeners.append(listener)

    def state_for(self, address: str) -> TransactionState:
        """Current state for an address; IDLE when nothing is in flight."""
        lifecycle = self._in_flight.get(address)
        return lifecycle.state if lifecycle is not None else TransactionState.IDLE

    def in_flight(self, address: str) -> bool:
        return address in self._in_flight

    async def submit_set_profile(
        self, identity: Identity, draft: Draft
    ) -> TransactionLifecycle:
        """Write a profile for an identity.

        Raises:
            TransactionInProgressError: A transaction is already in flight
            ValidationError: Username or bio is empty
        """
        self._check_guard(identity.address)
        draft.validate_for_submit()
        return await self._submit(
            identity,
            TransactionKind.SET_PROFILE,
            ChainCall.set_profile(draft.username, draft.bio),
        )

    async def submit_remove_profile(self, identity: Identity) -> TransactionLifecycle:
        """Remove the profile of an identity.

        Raises:
            TransactionInProgressError: A transaction is already in flight
        """
        self._check_guard(identity.address)
        return await self._submit(
            identity, TransactionKind.REMOVE_PROFILE, ChainCall.remove_profile()
        )

    def _check_guard(self, address: str) -> None:
        if address in self._in_flight:
            logger.warning(
                "submission_rejected_in_progress",
                address=address,
                state=self._in_flight[address].state.value,
            )
            raise TransactionInProgressError(
                "A transaction is already in progress for this account"
            )

    async def _submit(
        self, identity: Identity, kind: TransactionKind, call: ChainCall
    ) -> TransactionLifecycle:
        """Run one transaction to FINALIZED or FAILED.

        Failures are recorded on the returned lifecycle, not raised.
        """
        address = identity.address
        lifecycle = TransactionLifecycle(kind, address, on_transition=self._notify)
        self._in_flight[address] = lifecycle
        try:
            lifecycle.begin()
            await self._drive(lifecycle, call)
        except ChainProfileError as e:
            logger.warning(
                "transaction_failed",
                address=address,
                kind=kind.value,
                error=str(e),
            )
            lifecycle.fail(e)
        finally:
            if not lifecycle.state.is_terminal:
                lifecycle.fail(ChainProfileError("Transaction aborted"))
            del self._in_flight[address]
        return lifecycle

    async def _drive(self, lifecycle: TransactionLifecycle, call: ChainCall) -> None:
        signer = await self._bridge.signer_for(lifecycle.address)
        signed = await signer.sign(call)

        try:
            async with asyncio.timeout(self._finality_timeout):
                events = await self._connector.submit(signed)
                async with aclosing(events):
                    async for event in events:
                        lifecycle.apply(event)
                        if lifecycle.state.is_terminal:
                            break
        except TimeoutError as e:
            raise TransactionTimeoutError(
                f"Transaction not finalized within {self._finality_timeout} seconds"
            ) from e

        if not lifecycle.state.is_terminal:
            raise SubmissionRejectedError("Status stream ended before finality")

    def _notify(self, lifecycle: TransactionLifecycle) -> None:
        for listener in self._listeners:
            listener(lifecycle)
