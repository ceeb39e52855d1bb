"""Typed exceptions for the ChainProfile SDK."""


class ChainProfileError(Exception):
    """Base exception for ChainProfile SDK."""


class NodeConnectionError(ChainProfileError):
    """Cannot connect to the ledger node, or the handshake failed."""


class NotFoundError(ChainProfileError):
    """Resource not found on the node or bridge (404)."""


class NoWalletError(ChainProfileError):
    """The wallet bridge is not available."""


class NoIdentityError(ChainProfileError):
    """The wallet bridge is available but holds no identities."""


class DecodeError(ChainProfileError):
    """An on-chain value does not have the expected shape.

    Attributes:
        raw: The value that failed to decode
    """

    def __init__(self, message: str, raw: object = None):
        super().__init__(message)
        self.raw = raw


class ValidationError(ChainProfileError):
    """A draft is missing required fields."""


class TransactionInProgressError(ChainProfileError):
    """A transaction is already in flight for this identity."""


class SubmissionRejectedError(ChainProfileError):
    """The submission was rejected before reaching finality.

    Attributes:
        reason: Rejection reason reported by the node, if any
    """

    def __init__(self, message: str, reason: str | None = None):
        super().__init__(message)
        self.reason = reason


class SigningRefusedError(SubmissionRejectedError):
    """The wallet refused to sign the request."""


class TransactionTimeoutError(SubmissionRejectedError):
    """The transaction did not reach finality in time."""
