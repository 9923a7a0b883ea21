"""Error taxonomy for internal failures and errors returned by Kraken.

Kraken reports failures inside the response envelope as strings shaped like
``"EAPI:Invalid nonce"``. :func:`generate_errors` maps each of those strings onto
a closed set of :class:`ErrorKind` members so callers can branch on the kind
(for instance retrying a rate limit but not an invalid key). Transport and parse
failures share the same :class:`KrakenError` value type, while programmer errors
and server contract violations are raised as :class:`PreconditionError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional


class ErrorOrigin(Enum):
    """Where a :class:`KrakenError` was produced."""

    TRANSPORT = "transport"
    PARSE = "parse"
    PROTOCOL = "protocol"


class ErrorKind(Enum):
    """Closed set of error kinds, valued by their display text."""

    HTTP_ERROR = "HTTP Error"
    PARSE_ERROR = "Parse Error"

    UNKNOWN_ASSET_PAIR = "Unknown AssetPair"
    INVALID_ARGUMENTS = "Invalid Arguments"
    PERMISSION_DENIED = "Permission Denied"
    INVALID_KEY = "Invalid Key"
    INVALID_SIGNATURE = "Invalid Signature"
    INVALID_NONCE = "Invalid Nonce"
    API_RATE_LIMIT = "API Rate Limit"
    ORDER_RATE_LIMIT = "Order Rate Limit"
    TEMPORARY_LOCKOUT = "Temporary Lockout"
    OPEN_POSITION = "Cannot Open Position"
    OPPOSING_POSITION = "Cannot Open Opposing Position"
    MARGIN_ALLOWANCE_EXCEEDED = "Margin Allowance Exceeded"
    INSUFFICIENT_MARGIN = "Insufficient Margin"
    INSUFFICIENT_FUNDS = "Insufficient User Funds"
    ORDER_MINIMUM = "Order Minimum Not Met (volume too low)"
    ORDER_LIMIT = "Orders Limit Reached"
    POSITION_LIMIT = "Positions Limit Reached"
    TRADING_AGREEMENT = "Trading Agreement Required"
    SERVICE_UNAVAILABLE = "Service Unavailable"
    SERVICE_BUSY = "Service Busy"
    INTERNAL_ERROR = "Internal Error"
    LOCKED = "Account Locked"
    FEATURE_DISABLED = "A Feature Was Disabled"
    UNKNOWN_ERROR = "An Unknown Error Occurred"

    def __str__(self) -> str:
        return self.value


_RETRYABLE_KINDS = frozenset(
    {
        ErrorKind.HTTP_ERROR,
        ErrorKind.API_RATE_LIMIT,
        ErrorKind.ORDER_RATE_LIMIT,
        ErrorKind.TEMPORARY_LOCKOUT,
        ErrorKind.SERVICE_UNAVAILABLE,
        ErrorKind.SERVICE_BUSY,
    }
)

# Keys are lower-cased messages (the text after the first colon).
# Both the exchange's documented wording and older variants are accepted.
MESSAGE_KINDS: Dict[str, ErrorKind] = {
    "unknown asset pair": ErrorKind.UNKNOWN_ASSET_PAIR,
    "invalid arguments": ErrorKind.INVALID_ARGUMENTS,
    "permission denied": ErrorKind.PERMISSION_DENIED,
    "invalid key": ErrorKind.INVALID_KEY,
    "invalid signature": ErrorKind.INVALID_SIGNATURE,
    "invalid nonce": ErrorKind.INVALID_NONCE,
    "temporary lockout": ErrorKind.TEMPORARY_LOCKOUT,
    "cannot open position": ErrorKind.OPEN_POSITION,
    "cannot open opposing position": ErrorKind.OPPOSING_POSITION,
    "margin allowance exceeded": ErrorKind.MARGIN_ALLOWANCE_EXCEEDED,
    "insufficient margin": ErrorKind.INSUFFICIENT_MARGIN,
    "insufficient funds": ErrorKind.INSUFFICIENT_FUNDS,
    "insufficient insufficient user funds": ErrorKind.INSUFFICIENT_FUNDS,
    "order minimum not met": ErrorKind.ORDER_MINIMUM,
    "order minimum not volume too low": ErrorKind.ORDER_MINIMUM,
    "orders limit exceeded": ErrorKind.ORDER_LIMIT,
    "positions limit exceeded": ErrorKind.POSITION_LIMIT,
    "trading agreement required": ErrorKind.TRADING_AGREEMENT,
    "unavailable": ErrorKind.SERVICE_UNAVAILABLE,
    "busy": ErrorKind.SERVICE_BUSY,
    "internal error": ErrorKind.INTERNAL_ERROR,
    "locked": ErrorKind.LOCKED,
    "feature disabled": ErrorKind.FEATURE_DISABLED,
}

RATE_LIMIT_MESSAGE = "rate limit exceeded"

RATE_LIMIT_CATEGORIES: Dict[str, ErrorKind] = {
    "eapi": ErrorKind.API_RATE_LIMIT,
    "eorder": ErrorKind.ORDER_RATE_LIMIT,
}


@dataclass(frozen=True)
class KrakenError:
    """A single typed failure, optionally carrying the raw text or exception."""

    kind: ErrorKind
    message: str = ""
    cause: Optional[BaseException] = None

    @property
    def origin(self) -> ErrorOrigin:
        if self.kind is ErrorKind.HTTP_ERROR:
            return ErrorOrigin.TRANSPORT
        if self.kind is ErrorKind.PARSE_ERROR:
            return ErrorOrigin.PARSE
        return ErrorOrigin.PROTOCOL

    @property
    def retryable(self) -> bool:
        return self.kind in _RETRYABLE_KINDS

    def __str__(self) -> str:
        if self.origin is ErrorOrigin.PROTOCOL:
            return str(self.kind)
        return f"{self.kind}: {self.message}"


class KrakenClientError(Exception):
    """Base exception for everything raised by this package."""


class KrakenErrors(KrakenClientError):
    """Ordered, non-empty list of errors produced by a single request."""

    def __init__(self, errors: Iterable[KrakenError]) -> None:
        self.errors: List[KrakenError] = list(errors)
        super().__init__(str(self))

    @property
    def kinds(self) -> List[ErrorKind]:
        return [error.kind for error in self.errors]

    def __str__(self) -> str:
        return "[" + ",".join(str(error) for error in self.errors) + "]"

    def __len__(self) -> int:
        return len(self.errors)

    def __iter__(self):
        return iter(self.errors)


class TransportError(KrakenClientError):
    """Raised by a transport when the HTTP exchange itself failed."""

    def __init__(self, message: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class DecodeError(KrakenClientError, ValueError):
    """A wire symbol could not be decoded into the currency domain model."""

    def __init__(self, symbol: str) -> None:
        self.symbol = symbol
        super().__init__(f"{self.describe()}: {symbol!r}")

    def describe(self) -> str:
        return "Failed to decode symbol"


class UnknownCurrencyError(DecodeError):
    def describe(self) -> str:
        return "Unknown currency"


class UnknownCurrencyPairError(DecodeError):
    def describe(self) -> str:
        return "Unknown currency pair"


class PreconditionError(KrakenClientError, RuntimeError):
    """Misuse of the API or a server contract violation; never collected into lists."""


class MissingNonceError(PreconditionError):
    """A private request was dispatched without a ``nonce`` parameter."""


class InvalidSecretKeyError(PreconditionError):
    """The configured API secret is empty or not valid base64."""


class MissingResultError(PreconditionError):
    """The server returned neither errors nor a result."""


class FrozenParameterSetError(PreconditionError):
    """A parameter set was mutated after being handed to a request."""


def map_error(raw: str) -> KrakenError:
    """Map one exchange error string onto a :class:`KrakenError`.

    Never raises: anything that does not match the table becomes
    :attr:`ErrorKind.UNKNOWN_ERROR` with the raw text preserved.
    """

    text = raw if isinstance(raw, str) else str(raw)
    category, separator, message = text.partition(":")
    if not separator:
        category, message = "", text
    category = category.strip().lower()
    message = message.strip().lower()

    if message == RATE_LIMIT_MESSAGE:
        kind = RATE_LIMIT_CATEGORIES.get(category, ErrorKind.UNKNOWN_ERROR)
    else:
        kind = MESSAGE_KINDS.get(message, ErrorKind.UNKNOWN_ERROR)
    return KrakenError(kind=kind, message=text)


def generate_errors(raw_errors: Iterable[str]) -> KrakenErrors:
    """Map every exchange error string, preserving order."""

    return KrakenErrors(map_error(raw) for raw in raw_errors)


__all__ = [
    "ErrorKind",
    "ErrorOrigin",
    "KrakenError",
    "KrakenClientError",
    "KrakenErrors",
    "TransportError",
    "DecodeError",
    "UnknownCurrencyError",
    "UnknownCurrencyPairError",
    "PreconditionError",
    "MissingNonceError",
    "InvalidSecretKeyError",
    "MissingResultError",
    "FrozenParameterSetError",
    "map_error",
    "generate_errors",
]
