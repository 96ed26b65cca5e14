"""
Error Types

Two independent hierarchies: one for the property cache, one for pairing.
Storage engine errors are not wrapped and reach the caller as raised by
SQLAlchemy.
"""

from typing import Optional


class PropertyStoreError(Exception):
    """Base class for errors synthesized by a property store."""


class AggregateInPropertyError(PropertyStoreError):
    """A stored property decoded to an object aggregate.

    Properties only ever hold individual values, so this points at a bug in
    whatever wrote the row.
    """

    def __init__(self, interface: str, path: str):
        super().__init__(f"BUG: extracting an object from the database ({interface} {path})")
        self.interface = interface
        self.path = path


class PairingError(Exception):
    """Base class for pairing API failures."""


class InvalidCredentialsError(PairingError):
    """The credentials secret was rejected before sending any request."""

    def __init__(self, message: str = "invalid credentials secret"):
        super().__init__(message)


class InvalidUrlError(PairingError):
    """The pairing URL is malformed or cannot be used as a base."""

    def __init__(self, url: str, reason: Optional[str] = None):
        message = f"invalid pairing URL: {url!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.url = url


class RequestError(PairingError):
    """Error while sending the request or receiving the response."""


class UnexpectedResponseError(PairingError):
    """The response body did not have the shape expected for the endpoint."""

    def __init__(self, message: str = "API response can't be deserialized"):
        super().__init__(message)


class ApiError(PairingError):
    """The pairing API answered with a non-success status code."""

    def __init__(self, status_code: int, raw_body: str):
        super().__init__(f"API returned an error code: {status_code}")
        self.status_code = status_code
        self.raw_body = raw_body


class CryptoError(PairingError):
    """Failure while handling key or certificate material."""
