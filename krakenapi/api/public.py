"""Public endpoint builders and their result types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .assets import Currency, CurrencyPair, decode_currency, decode_pair
from .inputs import KrakenInput, public_input
from .params import ParameterSet


def _require_mapping(payload: Any, name: str) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise TypeError(f"{name} result must be an object, got {type(payload).__name__}")
    return payload


# --- Time ---------------------------------------------------------------
def server_time() -> KrakenInput:
    return public_input("Time")


@dataclass(frozen=True)
class ServerTime:
    unixtime: int
    rfc1123: str

    @classmethod
    def from_result(cls, payload: Any) -> "ServerTime":
        data = _require_mapping(payload, "Time")
        unixtime = data["unixtime"]
        if isinstance(unixtime, bool) or not isinstance(unixtime, int):
            raise TypeError(f"unixtime must be an integer, got {unixtime!r}")
        return cls(unixtime=unixtime, rfc1123=str(data["rfc1123"]))


# --- SystemStatus -------------------------------------------------------
class SystemState(Enum):
    ONLINE = "online"
    MAINTENANCE = "maintenance"
    CANCEL_ONLY = "cancel_only"
    POST_ONLY = "post_only"
    LIMIT_ONLY = "limit_only"
    OFFLINE = "offline"


def system_status() -> KrakenInput:
    return public_input("SystemStatus")


@dataclass(frozen=True)
class SystemStatus:
    status: SystemState
    timestamp: str

    @classmethod
    def from_result(cls, payload: Any) -> "SystemStatus":
        data = _require_mapping(payload, "SystemStatus")
        return cls(status=SystemState(data["status"]), timestamp=str(data["timestamp"]))


# --- Assets -------------------------------------------------------------
def asset_info(assets: Optional[Iterable[Currency]] = None, asset_class: Optional[str] = None) -> KrakenInput:
    """Describe all assets, or only ``assets`` when given."""

    params = ParameterSet()
    if assets:
        params.extend_list("asset", assets)
    if asset_class:
        params.set("aclass", asset_class)
    return public_input("Assets", params if params else None)


@dataclass(frozen=True)
class AssetDetails:
    altname: str
    aclass: str
    decimals: int
    display_decimals: int


@dataclass(frozen=True)
class AssetInfo:
    assets: Dict[Currency, AssetDetails]

    @classmethod
    def from_result(cls, payload: Any) -> "AssetInfo":
        data = _require_mapping(payload, "Assets")
        assets = {}
        for symbol, details in data.items():
            entry = _require_mapping(details, symbol)
            assets[decode_currency(symbol)] = AssetDetails(
                altname=str(entry["altname"]),
                aclass=str(entry["aclass"]),
                decimals=int(entry["decimals"]),
                display_decimals=int(entry["display_decimals"]),
            )
        return cls(assets=assets)

    def __getitem__(self, currency: Currency) -> AssetDetails:
        return self.assets[currency]


# --- Ticker -------------------------------------------------------------
def ticker(pairs: Iterable[CurrencyPair]) -> KrakenInput:
    """Ticker information for one or more pairs."""

    params = ParameterSet().extend_list("pair", pairs)
    if "pair" not in params:
        raise ValueError("ticker requires at least one pair")
    return public_input("Ticker", params)


@dataclass(frozen=True)
class TickerEntry:
    ask: List[float]
    bid: List[float]
    last_trade: List[float]
    volume: List[float]
    vwap: List[float]
    trades: List[int]
    low: List[float]
    high: List[float]
    opening: float

    @classmethod
    def from_result(cls, payload: Any) -> "TickerEntry":
        data = _require_mapping(payload, "ticker entry")
        return cls(
            ask=[float(value) for value in data["a"]],
            bid=[float(value) for value in data["b"]],
            last_trade=[float(value) for value in data["c"]],
            volume=[float(value) for value in data["v"]],
            vwap=[float(value) for value in data["p"]],
            trades=[int(value) for value in data["t"]],
            low=[float(value) for value in data["l"]],
            high=[float(value) for value in data["h"]],
            opening=float(data["o"]),
        )


@dataclass(frozen=True)
class Ticker:
    pairs: Dict[CurrencyPair, TickerEntry]

    @classmethod
    def from_result(cls, payload: Any) -> "Ticker":
        data = _require_mapping(payload, "Ticker")
        return cls(pairs={decode_pair(symbol): TickerEntry.from_result(entry) for symbol, entry in data.items()})

    def __getitem__(self, pair: CurrencyPair) -> TickerEntry:
        return self.pairs[pair]


__all__ = [
    "server_time",
    "ServerTime",
    "system_status",
    "SystemState",
    "SystemStatus",
    "asset_info",
    "AssetDetails",
    "AssetInfo",
    "ticker",
    "TickerEntry",
    "Ticker",
]
