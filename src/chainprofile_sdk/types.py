"""Pydantic data models for the ChainProfile SDK."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import DecodeError, ValidationError

PROFILE_PALLET = "template"
PROFILE_STORAGE_ITEM = "userProfiles"


class Identity(BaseModel):
    """A wallet-held address usable to sign requests.

    Attributes:
        address: Opaque unique account address
        display_name: Name the wallet shows for the account, if any
    """

    model_config = ConfigDict(frozen=True)

    address: str
    display_name: str | None = None

    @property
    def short_address(self) -> str:
        """Address truncated to its first and last six characters."""
        if len(self.address) <= 12:
            return self.address
        return f"{self.address[:6]}...{self.address[-6:]}"


class Profile(BaseModel):
    """The authoritative on-chain profile record for one identity."""

    model_config = ConfigDict(frozen=True)

    username: str
    bio: str


class Draft(BaseModel):
    """Locally edited, unsaved profile form state."""

    username: str = ""
    bio: str = ""

    @classmethod
    def from_profile(cls, profile: Profile | None) -> "Draft":
        if profile is None:
            return cls()
        return cls(username=profile.username, bio=profile.bio)

    def validate_for_submit(self) -> None:
        """Check that both fields are filled in.

        Raises:
            ValidationError: Username or bio is empty
        """
        if not self.username.strip() or not self.bio.strip():
            raise ValidationError("Username and bio are required")


class TransactionKind(str, Enum):
    SET_PROFILE = "set_profile"
    REMOVE_PROFILE = "remove_profile"


class TransactionState(str, Enum):
    """Position of a transaction in the submit -> included -> finalized protocol."""

    IDLE = "idle"
    SUBMITTING = "submitting"
    INCLUDED = "included"
    FINALIZED = "finalized"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TransactionState.FINALIZED, TransactionState.FAILED)

    @property
    def is_in_flight(self) -> bool:
        return self in (TransactionState.SUBMITTING, TransactionState.INCLUDED)


class TransactionStatus(str, Enum):
    """Status vocabulary reported by the ledger node for a submission."""

    IN_BLOCK = "in_block"
    FINALIZED = "finalized"
    REJECTED = "rejected"


class TransactionEvent(BaseModel):
    """One status update for a submitted transaction."""

    model_config = ConfigDict(frozen=True)

    status: TransactionStatus
    block_hash: str | None = None
    reason: str | None = None


class Severity(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


class Notification(BaseModel):
    """Snapshot of the user-facing notification.

    Attributes:
        message: Human-readable text
        severity: info, success or error
        visible: Whether the notification is currently shown
        persistent: Persistent notifications are never hidden automatically
    """

    model_config = ConfigDict(frozen=True)

    message: str
    severity: Severity = Severity.INFO
    visible: bool = True
    persistent: bool = False


class StorageKey(BaseModel):
    """Address of a value in current chain state."""

    model_config = ConfigDict(frozen=True)

    pallet: str
    item: str
    key: str

    @classmethod
    def profile_of(cls, address: str) -> "StorageKey":
        return cls(pallet=PROFILE_PALLET, item=PROFILE_STORAGE_ITEM, key=address)


class ChainCall(BaseModel):
    """An unsigned state-change call."""

    model_config = ConfigDict(frozen=True)

    pallet: str
    method: str
    args: list[Any] = Field(default_factory=list)

    @classmethod
    def set_profile(cls, username: str, bio: str) -> "ChainCall":
        return cls(pallet=PROFILE_PALLET, method="setProfile", args=[username, bio])

    @classmethod
    def remove_profile(cls) -> "ChainCall":
        return cls(pallet=PROFILE_PALLET, method="removeUserInfo")


class SignedRequest(BaseModel):
    """A call signed by a wallet, ready for submission."""

    model_config = ConfigDict(frozen=True)

    signer: str
    call: ChainCall
    signature: str


# -------------------------------------------------------------------------
# Profile decode results
# -------------------------------------------------------------------------


class Decoded(BaseModel):
    """A profile record was present and well-formed."""

    model_config = ConfigDict(frozen=True)

    profile: Profile


class Absent(BaseModel):
    """No profile record exists for the identity."""

    model_config = ConfigDict(frozen=True)


class DecodeFailure(BaseModel):
    """A profile record was present but malformed."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    error: DecodeError


ProfileRead = Decoded | Absent | DecodeFailure
