"""Asynchronous typed client for the Kraken REST API."""

from .errors import (
    DecodeError,
    ErrorKind,
    ErrorOrigin,
    InvalidSecretKeyError,
    KrakenClientError,
    KrakenError,
    KrakenErrors,
    MissingNonceError,
    MissingResultError,
    PreconditionError,
    TransportError,
    UnknownCurrencyError,
    UnknownCurrencyPairError,
)
from .api import Currency, CurrencyPair, EndpointCategory, KrakenInput, ParameterSet
from .auth import KrakenAuth, NonceGenerator, generate_nonce
from .client import HttpRequest, KrakenClient, RequestsTransport, Transport

__all__ = [
    "Currency",
    "CurrencyPair",
    "DecodeError",
    "EndpointCategory",
    "ErrorKind",
    "ErrorOrigin",
    "HttpRequest",
    "InvalidSecretKeyError",
    "KrakenAuth",
    "KrakenClient",
    "KrakenClientError",
    "KrakenError",
    "KrakenErrors",
    "KrakenInput",
    "MissingNonceError",
    "MissingResultError",
    "NonceGenerator",
    "ParameterSet",
    "PreconditionError",
    "RequestsTransport",
    "Transport",
    "TransportError",
    "UnknownCurrencyError",
    "UnknownCurrencyPairError",
    "generate_nonce",
]
