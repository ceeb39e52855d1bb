"""UI-facing facade: observable profile/session state and user commands."""

from collections.abc import Callable

from .client import HttpLedgerClient
from .config import ChainProfileSettings, get_settings
from .connector import ChainConnector
from .exceptions import (
    ChainProfileError,
    NoIdentityError,
    NoWalletError,
    TransactionInProgressError,
    ValidationError,
)
from .lifecycle import TransactionController, TransactionLifecycle
from .logging_config import configure_logging, get_logger
from .notifications import NotificationSequencer
from .profile import ProfileSynchronizer
from .session import SessionManager
from .types import (
    Absent,
    Decoded,
    DecodeFailure,
    Draft,
    Identity,
    Notification,
    Profile,
    Severity,
    TransactionKind,
    TransactionState,
)
from .wallet import HttpWalletBridge, WalletBridge

logger = get_logger(__name__)

Subscriber = Callable[["ProfileDashboard"], None]

_INCLUDED_MESSAGES = {
    TransactionKind.SET_PROFILE: "Your profile update has been included in a block",
    TransactionKind.REMOVE_PROFILE: "Your profile removal has been included in a block",
}
_FINALIZED_MESSAGES = {
    TransactionKind.SET_PROFILE: "Profile successfully updated",
    TransactionKind.REMOVE_PROFILE: "Profile successfully removed",
}
_FAILED_MESSAGES = {
    TransactionKind.SET_PROFILE: "Failed to update profile on blockchain",
    TransactionKind.REMOVE_PROFILE: "Failed to remove profile from blockchain",
}


class ProfileDashboard:
    """Account session, on-chain profile and transaction state for a UI.

    The dashboard exposes observable fields (identity, profile, draft,
    transaction state, notification and loading flags) and three commands.
    Commands never raise ChainProfileError: every failure becomes an error
    notification and, for transactions, a FAILED lifecycle.

    Example:
        >>> dashboard = ProfileDashboard.from_settings()
        >>> await dashboard.select_first_identity()
        >>> dashboard.update_draft(username="alice", bio="hello")
        >>> await dashboard.submit_set_profile()
        >>> dashboard.profile
        Profile(username='alice', bio='hello')
    """

    def __init__(
        self,
        bridge: WalletBridge,
        connector: ChainConnector,
        *,
        app_name: str = "my-polkadot-app",
        notification_delay: float = 3.0,
        finality_timeout: float | None = None,
    ):
        """Initialize the dashboard.

        Args:
            bridge: Wallet bridge for identities and signing
            connector: Shared connector to the ledger node
            app_name: Name announced to the wallet
            notification_delay: Seconds a notification stays visible
            finality_timeout: Seconds to wait for a terminal transaction
                status, or None to wait indefinitely
        """
        self._bridge = bridge
        self._connector = connector
        self.session = SessionManager(bridge, app_name)
        self.synchronizer = ProfileSynchronizer(connector)
        self.controller = TransactionController(
            connector, bridge, finality_timeout=finality_timeout
        )
        self.notifications = NotificationSequencer(delay=notification_delay)

        self._profile: Profile | None = None
        self._profile_loaded = False
        self._draft = Draft()
        self._is_loading = False
        self._is_fetching = False
        self._read_seq = 0
        self._subscribers: list[Subscriber] = []

        self.controller.add_listener(self._on_transition)
        self.notifications.add_listener(lambda _: self._changed())

    @classmethod
    def from_settings(
        cls,
        settings: ChainProfileSettings | None = None,
        *,
        setup_logging: bool = False,
    ) -> "ProfileDashboard":
        """Build a dashboard wired to the HTTP node and wallet bridge.

        Logging is left to the application unless ``setup_logging`` is set.

        Args:
            settings: Settings to use; defaults to get_settings()
            setup_logging: Also call configure_logging() with the settings'
                ``log_level`` and ``log_json``
        """
        settings = settings or get_settings()
        if setup_logging:
            configure_logging(level=settings.log_level, log_json=settings.log_json)
        bridge = HttpWalletBridge(
            settings.wallet_bridge_url, timeout=settings.request_timeout
        )
        connector = ChainConnector(
            lambda: HttpLedgerClient(
                settings.node_url,
                timeout=settings.request_timeout,
                poll_interval=settings.status_poll_interval,
            )
        )
        return cls(
            bridge,
            connector,
            app_name=settings.app_name,
            notification_delay=settings.notification_delay,
            finality_timeout=settings.finality_timeout,
        )

    async def aclose(self) -> None:
        """Close the node connection and the wallet bridge."""
        await self._connector.close()
        await self._bridge.aclose()

    # -------------------------------------------------------------------------
    # Observable State
    # -------------------------------------------------------------------------

    @property
    def identity(self) -> Identity | None:
        return self.session.active_identity

    @property
    def profile(self) -> Profile | None:
        """Last read profile; None when absent or not yet loaded."""
        return self._profile

    @property
    def profile_loaded(self) -> bool:
        """Whether profile reflects a completed read (so None means absent)."""
        return self._profile_loaded

    @property
    def draft(self) -> Draft:
        return self._draft

    @property
    def transaction_state(self) -> TransactionState:
        identity = self.identity
        if identity is None:
            return TransactionState.IDLE
        return self.controller.state_for(identity.address)

    @property
    def notification(self) -> Notification | None:
        return self.notifications.current

    @property
    def is_loading(self) -> bool:
        """Identity discovery is in progress."""
        return self._is_loading

    @property
    def is_fetching(self) -> bool:
        """A profile read is in progress."""
        return self._is_fetching

    def subscribe(self, subscriber: Subscriber) -> None:
        """Register a callback invoked whenever any observable field changes."""
        self._subscribers.append(subscriber)

    def _changed(self) -> None:
        for subscriber in self._subscribers:
            subscriber(self)

    # -------------------------------------------------------------------------
    # Session Commands
    # -------------------------------------------------------------------------

    async def select_first_identity(self) -> Identity | None:
        """Connect the wallet, activate its first identity and read its profile.

        Returns:
            The active identity, or None if none could be selected
        """
        self._is_loading = True
        self._changed()
        try:
            identity = await self.session.select_first_identity()
        except NoWalletError as e:
            logger.warning("wallet_unavailable", error=str(e))
            self.notifications.post(
                "Failed to connect to wallet extension", Severity.ERROR, persistent=True
            )
            return None
        except NoIdentityError as e:
            self._profile = None
            self._profile_loaded = False
            self._draft = Draft()
            self.notifications.post(str(e), Severity.ERROR, persistent=True)
            return None
        finally:
            self._is_loading = False
            self._changed()

        await self._identity_changed()
        return identity

    async def select_identity(self, address: str) -> Identity | None:
        """Switch to another discovered identity and read its profile."""
        try:
            identity = self.session.select(address)
        except NoIdentityError as e:
            self.notifications.post(str(e), Severity.ERROR)
            return None
        await self._identity_changed()
        return identity

    async def _identity_changed(self) -> None:
        self._profile = None
        self._profile_loaded = False
        self._draft = Draft()
        self._changed()
        await self.refresh_profile()

    # -------------------------------------------------------------------------
    # Profile Commands
    # -------------------------------------------------------------------------

    async def refresh_profile(self) -> None:
        """Read the profile of the identity active when called.

        Only the most recently started read is applied. A result that
        arrives after another identity has been selected, or after a newer
        read of the same identity started, is discarded.
        """
        identity = self.session.active_identity
        if identity is None:
            return
        generation = self.session.generation
        self._read_seq += 1
        read_seq = self._read_seq

        def is_latest() -> bool:
            return (
                generation == self.session.generation and read_seq == self._read_seq
            )

        self._is_fetching = True
        self._changed()
        try:
            result = await self.synchronizer.read(identity)
        except ChainProfileError as e:
            if is_latest():
                logger.warning("profile_fetch_failed", address=identity.address, error=str(e))
                self.notifications.post(
                    "Failed to fetch profile from blockchain", Severity.ERROR
                )
            return
        finally:
            if is_latest():
                self._is_fetching = False
                self._changed()

        if not is_latest():
            logger.info("stale_profile_discarded", address=identity.address)
            return

        if isinstance(result, Decoded):
            self._profile = result.profile
            self._draft = Draft.from_profile(result.profile)
        elif isinstance(result, Absent):
            self._profile = None
        elif isinstance(result, DecodeFailure):
            self._profile = None
            self.notifications.post(
                f"Stored profile could not be read: {result.error}", Severity.ERROR
            )
        self._profile_loaded = True
        self._changed()

    def update_draft(self, username: str | None = None, bio: str | None = None) -> Draft:
        """Edit the local form state."""
        changes = {}
        if username is not None:
            changes["username"] = username
        if bio is not None:
            changes["bio"] = bio
        self._draft = self._draft.model_copy(update=changes)
        self._changed()
        return self._draft

    # -------------------------------------------------------------------------
    # Transaction Commands
    # -------------------------------------------------------------------------

    async def submit_set_profile(
        self, draft: Draft | None = None
    ) -> TransactionLifecycle | None:
        """Write the draft on chain and re-read the profile once finalized.

        Args:
            draft: Profile to write; defaults to the dashboard's draft

        Returns:
            The finished transaction, or None if it was never submitted
        """
        identity = self.identity
        if identity is None:
            self.notifications.post("Connect a wallet account first", Severity.ERROR)
            return None
        try:
            lifecycle = await self.controller.submit_set_profile(
                identity, draft if draft is not None else self._draft
            )
        except (ValidationError, TransactionInProgressError) as e:
            self.notifications.post(str(e), Severity.ERROR)
            return None

        if (
            lifecycle.state is TransactionState.FINALIZED
            and self._is_current(lifecycle.address)
        ):
            await self.refresh_profile()
        return lifecycle

    async def submit_remove_profile(self) -> TransactionLifecycle | None:
        """Remove the profile on chain and clear it locally once finalized.

        Returns:
            The finished transaction, or None if it was never submitted
        """
        identity = self.identity
        if identity is None:
            self.notifications.post("Connect a wallet account first", Severity.ERROR)
            return None
        try:
            lifecycle = await self.controller.submit_remove_profile(identity)
        except TransactionInProgressError as e:
            self.notifications.post(str(e), Severity.ERROR)
            return None

        if (
            lifecycle.state is TransactionState.FINALIZED
            and self._is_current(lifecycle.address)
        ):
            self._profile = None
            self._profile_loaded = True
            self._draft = Draft()
            self._changed()
        return lifecycle

    def _is_current(self, address: str) -> bool:
        identity = self.identity
        return identity is not None and identity.address == address

    def _on_transition(self, lifecycle: TransactionLifecycle) -> None:
        if lifecycle.state is TransactionState.INCLUDED:
            self.notifications.post(_INCLUDED_MESSAGES[lifecycle.kind], Severity.INFO)
        elif lifecycle.state is TransactionState.FINALIZED:
            self.notifications.post(_FINALIZED_MESSAGES[lifecycle.kind], Severity.SUCCESS)
        elif lifecycle.state is TransactionState.FAILED:
            self.notifications.post(
                f"{_FAILED_MESSAGES[lifecycle.kind]}: {lifecycle.error}", Severity.ERROR
            )
        self._changed()
