"""Wallet identity discovery and active-identity selection."""

from .exceptions import ChainProfileError, NoIdentityError, NoWalletError
from .logging_config import get_logger
from .types import Identity
from .wallet import WalletBridge

logger = get_logger(__name__)


class SessionManager:
    """Discovers wallet identities and owns the active selection.

    Readers get the active Identity as an immutable snapshot. Every
    selection bumps ``generation`` so that work started for an earlier
    selection can tell it has been superseded.
    """

    def __init__(self, bridge: WalletBridge, app_name: str):
        """Initialize the session.

        Args:
            bridge: Wallet bridge to discover identities through
            app_name: Name announced to the wallet when enabling it
        """
        self._bridge = bridge
        self._app_name = app_name
        self._identities: tuple[Identity, ...] = ()
        self._active: Identity | None = None
        self._generation = 0

    @property
    def active_identity(self) -> Identity | None:
        return self._active

    @property
    def identities(self) -> tuple[Identity, ...]:
        return self._identities

    @property
    def generation(self) -> int:
        return self._generation

    async def discover_identities(self) -> tuple[Identity, ...]:
        """Enable the wallet and list the identities it holds.

        Returns:
            Discovered identities, possibly empty

        Raises:
            NoWalletError: The wallet bridge is unavailable
        """
        try:
            await self._bridge.enable(self._app_name)
            identities = await self._bridge.list_identities()
        except NoWalletError:
            raise
        except (ChainProfileError, OSError) as e:
            raise NoWalletError(f"Failed to connect to wallet extension: {e}") from e

        self._identities = tuple(identities)
        logger.info("identities_discovered", count=len(self._identities))
        return self._identities

    async def select_first_identity(self) -> Identity:
        """Discover identities and make the first one active.

        Returns:
            The newly active identity

        Raises:
            NoWalletError: The wallet bridge is unavailable
            NoIdentityError: The wallet holds no identities; any previously
                active identity is cleared
        """
        identities = await self.discover_identities()
        if not identities:
            if self._active is not None:
                logger.info("identity_cleared", address=self._active.address)
                self._active = None
                self._generation += 1
            raise NoIdentityError(
                "Please install the wallet extension and create an account"
            )
        return self._activate(identities[0])

    def select(self, address: str) -> Identity:
        """Make an already discovered identity active.

        Raises:
            NoIdentityError: No discovered identity has this address
        """
        for identity in self._identities:
            if identity.address == address:
                return self._activate(identity)
        raise NoIdentityError(f"No wallet account with address {address}")

    def _activate(self, identity: Identity) -> Identity:
        self._active = identity
        self._generation += 1
        logger.info(
            "identity_selected",
            address=identity.address,
            generation=self._generation,
        )
        return identity
