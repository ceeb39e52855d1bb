"""ChainProfile SDK - wallet session and on-chain profile client.

Example:
    >>> from chainprofile_sdk import ProfileDashboard
    >>> dashboard = ProfileDashboard.from_settings()
    >>> identity = await dashboard.select_first_identity()
    >>> print(f"Connected as {identity.short_address}")
"""

from .client import HttpLedgerClient
from .config import ChainProfileSettings, get_settings
from .connector import ChainConnector, LedgerNodeClient
from .dashboard import ProfileDashboard
from .lifecycle import TransactionController, TransactionLifecycle
from .logging_config import configure_logging
from .notifications import NotificationSequencer
from .profile import ProfileSynchronizer, decode_profile
from .session import SessionManager
from .types import (
    Absent,
    ChainCall,
    Decoded,
    DecodeFailure,
    Draft,
    Identity,
    Notification,
    Profile,
    ProfileRead,
    Severity,
    SignedRequest,
    StorageKey,
    TransactionEvent,
    TransactionKind,
    TransactionState,
    TransactionStatus,
)
from .wallet import HttpSigner, HttpWalletBridge, Signer, WalletBridge
from .exceptions import (
    ChainProfileError,
    DecodeError,
    NodeConnectionError,
    NotFoundError,
    NoIdentityError,
    NoWalletError,
    SigningRefusedError,
    SubmissionRejectedError,
    TransactionInProgressError,
    TransactionTimeoutError,
    ValidationError,
)

__version__ = "0.1.0"

__all__ = [
    "ProfileDashboard",
    "ChainConnector",
    "LedgerNodeClient",
    "HttpLedgerClient",
    "SessionManager",
    "ProfileSynchronizer",
    "decode_profile",
    "TransactionController",
    "TransactionLifecycle",
    "NotificationSequencer",
    "HttpWalletBridge",
    "HttpSigner",
    "WalletBridge",
    "Signer",
    "ChainProfileSettings",
    "get_settings",
    "configure_logging",
    "Identity",
    "Profile",
    "Draft",
    "Notification",
    "Severity",
    "StorageKey",
    "ChainCall",
    "SignedRequest",
    "TransactionEvent",
    "TransactionKind",
    "TransactionState",
    "TransactionStatus",
    "Decoded",
    "Absent",
    "DecodeFailure",
    "ProfileRead",
    "ChainProfileError",
    "NodeConnectionError",
    "NotFoundError",
    "NoWalletError",
    "NoIdentityError",
    "DecodeError",
    "ValidationError",
    "TransactionInProgressError",
    "SubmissionRejectedError",
    "SigningRefusedError",
    "TransactionTimeoutError",
]
