"""Currency and currency pair symbols as they appear on the Kraken wire.

Currencies encode to a single canonical code. Decoding is case-insensitive and
also accepts the exchange's legacy prefixed forms (``ZUSD``, ``XXBT``...).

Pairs are sent and received as the two codes glued together without a
separator (``XBTUSD``, ``XXBTZUSD``), so :func:`decode_pair` has to guess the
split point from the total length. The split orders below are tried in the
order given; the first one where both halves decode wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple

from krakenapi.errors import UnknownCurrencyError, UnknownCurrencyPairError


class Currency(Enum):
    """Assets accepted on the exchange, valued by their canonical code."""

    AAVE = "AAVE"
    ADA = "ADA"
    ALGO = "ALGO"
    ANT = "ANT"
    ATOM = "ATOM"
    ATOM_S = "ATOM.S"
    AUD = "AUD"
    BAL = "BAL"
    BAT = "BAT"
    BCH = "BCH"
    CAD = "CAD"
    CHF = "CHF"
    COMP = "COMP"
    CRV = "CRV"
    DAI = "DAI"
    DASH = "DASH"
    DOT = "DOT"
    DOT_S = "DOT.S"
    EOS = "EOS"
    ETC = "ETC"
    ETH = "ETH"
    ETH2 = "ETH2"
    ETH2_S = "ETH2.S"
    EUR = "EUR"
    EUR_HOLD = "EUR.HOLD"
    EUR_M = "EUR.M"
    EWT = "EWT"
    FIL = "FIL"
    FLOW = "FLOW"
    FLOWH = "FLOWH"
    FLOWH_S = "FLOWH.S"
    FLOW_S = "FLOW.S"
    GBP = "GBP"
    GNO = "GNO"
    GRT = "GRT"
    ICX = "ICX"
    JPY = "JPY"
    KAVA = "KAVA"
    KAVA_S = "KAVA.S"
    KEEP = "KEEP"
    KFEE = "KFEE"
    KNC = "KNC"
    KSM = "KSM"
    KSM_S = "KSM.S"
    LINK = "LINK"
    LSK = "LSK"
    LTC = "LTC"
    MANA = "MANA"
    MLN = "MLN"
    NANO = "NANO"
    OCEAN = "OCEAN"
    OMG = "OMG"
    OXT = "OXT"
    PAXG = "PAXG"
    QTUM = "QTUM"
    REP = "REP"
    REPV2 = "REPV2"
    SC = "SC"
    SNX = "SNX"
    STORJ = "STORJ"
    TBTC = "TBTC"
    TRX = "TRX"
    UNI = "UNI"
    USD = "USD"
    USD_HOLD = "USD.HOLD"
    USD_M = "USD.M"
    USDC = "USDC"
    USDT = "USDT"
    WAVES = "WAVES"
    XBT = "XBT"
    XBT_M = "XBT.M"
    XDG = "XDG"
    XLM = "XLM"
    XMR = "XMR"
    XRP = "XRP"
    XTZ = "XTZ"
    XTZ_S = "XTZ.S"
    YFI = "YFI"
    ZEC = "ZEC"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def decode(cls, symbol: str) -> "Currency":
        return decode_currency(symbol)


# Legacy forms still returned by older endpoints: 'Z' marks fiat, 'X' crypto.
CURRENCY_ALIASES: Dict[str, Currency] = {
    "ZAUD": Currency.AUD,
    "ZCAD": Currency.CAD,
    "ZEUR": Currency.EUR,
    "ZUSD": Currency.USD,
    "ZGBP": Currency.GBP,
    "ZJPY": Currency.JPY,
    "XXBT": Currency.XBT,
    "XETC": Currency.ETC,
    "XETH": Currency.ETH,
    "XLTC": Currency.LTC,
    "XMLN": Currency.MLN,
    "XREP": Currency.REP,
    "XXDG": Currency.XDG,
    "XXLM": Currency.XLM,
    "XXMR": Currency.XMR,
    "XXRP": Currency.XRP,
    "XZEC": Currency.ZEC,
}

_DECODE_TABLE: Dict[str, Currency] = {
    **{currency.value: currency for currency in Currency},
    **CURRENCY_ALIASES,
}

# Split points (length of the base code) tried per total pair length.
PAIR_SPLITS: Dict[int, Tuple[int, ...]] = {
    5: (2,),
    6: (3,),
    7: (4, 3),
    8: (4, 5, 3),
}

# Nine character pairs no split order resolves; extend as new symbols show up.
SPECIAL_PAIRS: Dict[str, Tuple[Currency, Currency]] = {
    "ETH2.SETH": (Currency.ETH2_S, Currency.ETH),
}

# Dated/derivative markers appended to an eight character pair.
PAIR_SUFFIXES: Tuple[str, ...] = (".D",)
SUFFIXED_PAIR_LENGTH = 10


@dataclass(frozen=True)
class CurrencyPair:
    """Ordered (base, quote) pair. Its string form is the wire symbol."""

    base: Currency
    quote: Currency

    def __str__(self) -> str:
        return encode_pair(self)

    @classmethod
    def decode(cls, symbol: str) -> "CurrencyPair":
        return decode_pair(symbol)


def encode_currency(currency: Currency) -> str:
    return currency.value


def decode_currency(symbol: str) -> Currency:
    """Decode a canonical code or alias, ignoring case."""

    currency = _DECODE_TABLE.get(str(symbol).upper())
    if currency is None:
        raise UnknownCurrencyError(symbol)
    return currency


def encode_pair(pair: CurrencyPair) -> str:
    return encode_currency(pair.base) + encode_currency(pair.quote)


def decode_pair(symbol: str) -> CurrencyPair:
    """Split a concatenated pair symbol into its base and quote currencies."""

    normalized = str(symbol).upper()
    length = len(normalized)

    if length in PAIR_SPLITS:
        for split in PAIR_SPLITS[length]:
            pair = _try_split(normalized, split)
            if pair is not None:
                return pair
        raise UnknownCurrencyPairError(symbol)

    special = SPECIAL_PAIRS.get(normalized)
    if special is not None:
        return CurrencyPair(*special)

    if length == SUFFIXED_PAIR_LENGTH:
        for suffix in PAIR_SUFFIXES:
            if normalized.endswith(suffix):
                try:
                    return decode_pair(normalized[: -len(suffix)])
                except UnknownCurrencyPairError as exc:
                    raise UnknownCurrencyPairError(symbol) from exc

    raise UnknownCurrencyPairError(symbol)


def _try_split(symbol: str, split: int) -> CurrencyPair | None:
    base = _DECODE_TABLE.get(symbol[:split])
    quote = _DECODE_TABLE.get(symbol[split:])
    if base is None or quote is None:
        return None
    return CurrencyPair(base, quote)


__all__ = [
    "Currency",
    "CurrencyPair",
    "CURRENCY_ALIASES",
    "PAIR_SPLITS",
    "SPECIAL_PAIRS",
    "PAIR_SUFFIXES",
    "encode_currency",
    "decode_currency",
    "encode_pair",
    "decode_pair",
]
