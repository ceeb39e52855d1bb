"""Reading and decoding the on-chain profile record."""

from collections.abc import Sequence
from typing import Any

from .connector import ChainConnector
from .exceptions import DecodeError
from .logging_config import get_logger
from .types import (
    Absent,
    Decoded,
    DecodeFailure,
    Identity,
    Profile,
    ProfileRead,
    StorageKey,
)

logger = get_logger(__name__)


def decode_profile(raw: Any) -> ProfileRead:
    """Decode a raw ``userProfiles`` value.

    The stored value is an ordered ``(username, bio)`` pair. No value, an
    empty string or an empty sequence means no record exists.

    Args:
        raw: Value as returned by the node

    Returns:
        Decoded, Absent or DecodeFailure
    """
    if raw is None or raw == "" or (isinstance(raw, Sequence) and len(raw) == 0):
        return Absent()

    if (
        isinstance(raw, Sequence)
        and not isinstance(raw, (str, bytes))
        and len(raw) == 2
        and all(isinstance(field, str) for field in raw)
    ):
        username, bio = raw
        return Decoded(profile=Profile(username=username, bio=bio))

    return DecodeFailure(
        error=DecodeError(
            f"Expected a (username, bio) pair, got {type(raw).__name__}", raw=raw
        )
    )


class ProfileSynchronizer:
    """Reads the profile record of an identity through the chain connector."""

    def __init__(self, connector: ChainConnector):
        self._connector = connector

    async def read(self, identity: Identity) -> ProfileRead:
        """Read and decode the profile stored for an identity.

        Args:
            identity: Identity whose record to read

        Returns:
            Decoded, Absent or DecodeFailure

        Raises:
            NodeConnectionError: Node unreachable
        """
        raw = await self._connector.read(StorageKey.profile_of(identity.address))
        result = decode_profile(raw)
        if isinstance(result, DecodeFailure):
            logger.warning(
                "profile_decode_failed",
                address=identity.address,
                error=str(result.error),
            )
        return result
