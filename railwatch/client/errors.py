"""Failure taxonomy of the remote resource client.

Every failure leaving ``RailwayClient`` is one of these three classes; raw
httpx exceptions never escape.  An empty result is not an error.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    UNREACHABLE = "unreachable"
    UNAUTHORIZED = "unauthorized"
    MALFORMED_RESPONSE = "malformed_response"


class RemoteError(Exception):
    """Base class for classified remote failures."""

    kind: ErrorKind

    def __init__(self, message: str, operation: str = "") -> None:
        super().__init__(message)
        self.operation = operation


class Unreachable(RemoteError):
    """The transport could not reach the endpoint, or the endpoint is down (5xx)."""

    kind = ErrorKind.UNREACHABLE


class Unauthorized(RemoteError):
    """The remote rejected the credential."""

    kind = ErrorKind.UNAUTHORIZED


class MalformedResponse(RemoteError):
    """The response did not match the expected query contract."""

    kind = ErrorKind.MALFORMED_RESPONSE
