"""Typed errors raised by NFT Deck components"""

from typing import Optional


class NftDeckError(Exception):
    """Base class for NFT Deck errors"""


class ConfigurationError(NftDeckError):
    """Missing credentials or endpoints.

    ``hint`` is an operator-facing message that is safe to return to clients
    (it names the missing setting, never its value).
    """

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        self.hint = hint or message


class InvalidWalletError(NftDeckError):
    """Wallet input is neither a valid address nor a resolvable name"""


class UpstreamHTTPError(NftDeckError):
    """Indexing API answered with a non-2xx status"""

    def __init__(self, status: int, message: str, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body


class RelayError(NftDeckError):
    """Base class for media relay failures.

    ``message`` is the generic client-facing text for the failure class.
    """

    status_code = 502
    default_message = "Upstream fetch failed."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class RelayBlockedError(RelayError):
    """URL rejected by the relay guard"""

    status_code = 400
    default_message = "Blocked 'url'."


class PayloadTooLargeError(RelayError):
    status_code = 413
    default_message = "Upstream response too large."


class RelayUpstreamError(RelayError):
    """Upstream returned a non-2xx status or the transport failed"""

    status_code = 502

    def __init__(self, message: Optional[str] = None, upstream_status: Optional[int] = None):
        if message is None and upstream_status is not None:
            message = f"Upstream returned {upstream_status}."
        super().__init__(message)
        self.upstream_status = upstream_status


class RelayTimeoutError(RelayError):
    status_code = 504
    default_message = "Upstream timed out."
