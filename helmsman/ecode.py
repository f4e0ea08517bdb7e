"""HTTP error codes shared by the service: system-level and per-resource business codes."""

from __future__ import annotations

import threading

__all__ = [
    "AppError",
    "http_code",
    "new_error",
    "get_error_code",
]

_registry: dict[int, "AppError"] = {}
_registry_lock = threading.Lock()

_BUSINESS_BASE = 200000
_BUSINESS_STEP = 100


class AppError(Exception):
    """An error that carries a numeric code and a human-readable message."""

    def __init__(self, code, msg):
        super().__init__(code, msg)
        self.code = code
        self.msg = msg

    def __str__(self):
        return f"code = {self.code}, msg = {self.msg}"

    def __repr__(self):
        return f"AppError(code={self.code!r}, msg={self.msg!r})"


def http_code(num):
    """Return the base code of a business module numbered ``num`` (1..999)."""
    if not isinstance(num, int) or isinstance(num, bool):
        raise TypeError("num must be an int")
    if num < 1 or num > 999:
        raise ValueError("num range must be between 1 and 999")
    return _BUSINESS_BASE + num * _BUSINESS_STEP


def new_error(code, msg):
    """Create and register an error; every code may be registered only once."""
    with _registry_lock:
        if code in _registry:
            raise ValueError(f"code {code} already exists, please choose another one")
        err = AppError(code, msg)
        _registry[code] = err
    return err


def get_error_code(err):
    """Return the code of the first AppError in the exception's cause chain, or -1."""
    seen = set()
    current = err
    while current is not None and id(current) not in seen:
        if isinstance(current, AppError):
            return current.code
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return -1


# http system level error codes, range 10000~20000
SUCCESS = new_error(0, "ok")

_SYSTEM_ERRORS = [
    "Invalid Parameter",
    "Unauthorized",
    "Internal Server Error",
    "Not Found",
    "Timeout",
    "Too Many Requests",
    "Forbidden",
    "Limit Exceed",
    "Conflict",
    "Too Early",
    "Deadline Exceeded",
    "Access Denied",
    "Method Not Allowed",
    "Service Unavailable",
    "Canceled",
    "Unknown",
    "Permission Denied",
    "Resource Exhausted",
    "Failed Precondition",
    "Aborted",
    "Out Of Range",
    "Unimplemented",
    "Data Loss",
]

(
    INVALID_PARAMS,
    UNAUTHORIZED,
    INTERNAL_SERVER_ERROR,
    NOT_FOUND,
    TIMEOUT,
    TOO_MANY_REQUESTS,
    FORBIDDEN,
    LIMIT_EXCEED,
    CONFLICT,
    TOO_EARLY,
    DEADLINE_EXCEEDED,
    ACCESS_DENIED,
    METHOD_NOT_ALLOWED,
    SERVICE_UNAVAILABLE,
    CANCELED,
    UNKNOWN,
    PERMISSION_DENIED,
    RESOURCE_EXHAUSTED,
    FAILED_PRECONDITION,
    ABORTED,
    OUT_OF_RANGE,
    UNIMPLEMENTED,
    DATA_LOSS,
) = (new_error(10001 + offset, msg) for offset, msg in enumerate(_SYSTEM_ERRORS))

# Marker meaning the response has already been written by the handler.
SKIP_RESPONSE = AppError(-1, "skip response")


def _business_errors(num, name, key_phrase="ByID"):
    base = http_code(num)
    return (
        new_error(base + 1, f"failed to create {name}"),
        new_error(base + 2, f"failed to delete {name}"),
        new_error(base + 3, f"failed to update {name}"),
        new_error(base + 4, f"failed to get {name} details"),
        new_error(base + 5, f"failed to list of {name}"),
    )


(
    ERR_CREATE_ACCOUNTS,
    ERR_DELETE_BY_ID_ACCOUNTS,
    ERR_UPDATE_BY_ID_ACCOUNTS,
    ERR_GET_BY_ID_ACCOUNTS,
    ERR_LIST_ACCOUNTS,
) = _business_errors(79, "accounts")

(
    ERR_CREATE_SNAPSHOTS,
    ERR_DELETE_BY_ID_SNAPSHOTS,
    ERR_UPDATE_BY_ID_SNAPSHOTS,
    ERR_GET_BY_ID_SNAPSHOTS,
    ERR_LIST_SNAPSHOTS,
) = _business_errors(73, "snapshots")

(
    ERR_CREATE_STRATEGIES,
    ERR_DELETE_BY_ID_STRATEGIES,
    ERR_UPDATE_BY_ID_STRATEGIES,
    ERR_GET_BY_ID_STRATEGIES,
    ERR_LIST_STRATEGIES,
) = _business_errors(76, "strategies")

(
    ERR_CREATE_TAGS,
    ERR_DELETE_BY_ID_TAGS,
    ERR_UPDATE_BY_ID_TAGS,
    ERR_GET_BY_ID_TAGS,
    ERR_LIST_TAGS,
) = _business_errors(36, "tags")

(
    ERR_CREATE_TRADE_TAGS,
    ERR_DELETE_BY_TRADE_ID_TRADE_TAGS,
    ERR_UPDATE_BY_TRADE_ID_TRADE_TAGS,
    ERR_GET_BY_TRADE_ID_TRADE_TAGS,
    ERR_LIST_TRADE_TAGS,
) = _business_errors(1, "tradeTags")

(
    ERR_CREATE_TRADES,
    ERR_DELETE_BY_ID_TRADES,
    ERR_UPDATE_BY_ID_TRADES,
    ERR_GET_BY_ID_TRADES,
    ERR_LIST_TRADES,
) = _business_errors(80, "trades")