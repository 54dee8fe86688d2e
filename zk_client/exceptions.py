"""
Custom exceptions used by the coordination client.

Every non-zero result code returned by a driver is translated into one
exception class through :func:`translate`, so callers can branch on failure
kind with ordinary ``except`` clauses instead of comparing integers.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any


class ResultCode(IntEnum):
    """
    Result codes emitted by the coordination service and its drivers.

    ``OK`` is the only success value; every other member names a failure.
    """

    OK = 0
    SYSTEMERROR = -1
    RUNTIMEINCONSISTENCY = -2
    DATAINCONSISTENCY = -3
    CONNECTIONLOSS = -4
    MARSHALLINGERROR = -5
    UNIMPLEMENTED = -6
    OPERATIONTIMEOUT = -7
    BADARGUMENTS = -8
    INVALIDSTATE = -9
    APIERROR = -100
    NONODE = -101
    NOAUTH = -102
    BADVERSION = -103
    NOCHILDRENFOREPHEMERALS = -108
    NODEEXISTS = -110
    NOTEMPTY = -111
    SESSIONEXPIRED = -112
    INVALIDCALLBACK = -113
    INVALIDACL = -114
    AUTHFAILED = -115
    CLOSING = -116
    NOTHING = -117
    SESSIONMOVED = -118


class ZKClientError(Exception):
    """Base error type for all library-level exceptions."""


class KeeperError(ZKClientError):
    """
    Raised when a driver request completes with a non-zero result code.

    This class is also the generic fallback kind for result codes the
    library does not enumerate; ``code`` always carries the raw value.
    """

    code: Any = None

    def __init__(self, message: str | None = None, *, code: Any = None) -> None:
        if code is not None:
            self.code = code
        if message is None:
            message = f"keeper request failed with result code {self.code!r}"
        super().__init__(message)


class SystemZookeeperError(KeeperError):
    code = ResultCode.SYSTEMERROR


class RuntimeInconsistencyError(KeeperError):
    code = ResultCode.RUNTIMEINCONSISTENCY


class DataInconsistencyError(KeeperError):
    code = ResultCode.DATAINCONSISTENCY


class ConnectionLossError(KeeperError):
    """Raised when the connection to the service dropped mid-request."""

    code = ResultCode.CONNECTIONLOSS


class MarshallingError(KeeperError):
    code = ResultCode.MARSHALLINGERROR


class UnimplementedError(KeeperError):
    code = ResultCode.UNIMPLEMENTED


class OperationTimeoutError(KeeperError):
    code = ResultCode.OPERATIONTIMEOUT


class BadArgumentsError(KeeperError):
    code = ResultCode.BADARGUMENTS


class InvalidStateError(KeeperError):
    code = ResultCode.INVALIDSTATE


class APIError(KeeperError):
    code = ResultCode.APIERROR


class NoNodeError(KeeperError):
    """Raised when the target node (or, for create, its parent) is missing."""

    code = ResultCode.NONODE


class NoAuthError(KeeperError):
    code = ResultCode.NOAUTH


class BadVersionError(KeeperError):
    """Raised when an explicit version does not match the node's version."""

    code = ResultCode.BADVERSION


class NoChildrenForEphemeralsError(KeeperError):
    code = ResultCode.NOCHILDRENFOREPHEMERALS


class NodeExistsError(KeeperError):
    """Raised when creating a node whose path is already taken."""

    code = ResultCode.NODEEXISTS


class NotEmptyError(KeeperError):
    """Raised when deleting a node that still has children."""

    code = ResultCode.NOTEMPTY


class SessionExpiredError(KeeperError):
    """
    Raised when the session backing the handle has expired.

    Ephemeral nodes and watches owned by the session are gone at this point.
    """

    code = ResultCode.SESSIONEXPIRED


class InvalidCallbackError(KeeperError):
    code = ResultCode.INVALIDCALLBACK


class InvalidACLError(KeeperError):
    code = ResultCode.INVALIDACL


class AuthFailedError(KeeperError):
    code = ResultCode.AUTHFAILED


class ClosingError(KeeperError):
    code = ResultCode.CLOSING


class NothingError(KeeperError):
    code = ResultCode.NOTHING


class SessionMovedError(KeeperError):
    code = ResultCode.SESSIONMOVED


class HandleClosedError(ZKClientError):
    """
    Raised by a driver when its handle has already been closed.

    "Closed" is a normal terminal state, so the client converts this signal
    into boolean answers for connection-state queries.
    """


class WaitTimeoutError(ZKClientError):
    """Raised when a bounded ``wait_until_deleted`` call runs out of time."""


class BackendConfigurationError(ZKClientError):
    """Raised when a driver backend name or its options are invalid."""


class BackendNotAvailableError(ZKClientError):
    """Raised when a driver backend needs an optional library that is absent."""


_ERRORS_BY_CODE: dict[int, type[KeeperError]] = {
    int(klass.code): klass
    for klass in (
        SystemZookeeperError,
        RuntimeInconsistencyError,
        DataInconsistencyError,
        ConnectionLossError,
        MarshallingError,
        UnimplementedError,
        OperationTimeoutError,
        BadArgumentsError,
        InvalidStateError,
        APIError,
        NoNodeError,
        NoAuthError,
        BadVersionError,
        NoChildrenForEphemeralsError,
        NodeExistsError,
        NotEmptyError,
        SessionExpiredError,
        InvalidCallbackError,
        InvalidACLError,
        AuthFailedError,
        ClosingError,
        NothingError,
        SessionMovedError,
    )
}


def translate(code: Any, message: str | None = None) -> KeeperError:
    """
    Return the exception instance describing a non-zero result code.

    Unknown codes (including values that are not integers at all) produce a
    plain :class:`KeeperError` carrying the raw code. The function never
    raises.
    """
    try:
        klass = _ERRORS_BY_CODE.get(int(code))
    except (TypeError, ValueError, OverflowError):
        klass = None
    if klass is None:
        return KeeperError(message, code=code)
    return klass(message)
