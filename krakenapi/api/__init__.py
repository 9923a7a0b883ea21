"""Request building blocks: symbols, parameters, descriptors and endpoints."""

from .assets import Currency, CurrencyPair, decode_currency, decode_pair, encode_currency, encode_pair
from .inputs import EndpointCategory, KrakenInput
from .params import ParameterSet

__all__ = [
    "Currency",
    "CurrencyPair",
    "decode_currency",
    "decode_pair",
    "encode_currency",
    "encode_pair",
    "EndpointCategory",
    "KrakenInput",
    "ParameterSet",
]
