"""Private endpoint builders and their result types.

Every builder puts a ``nonce`` first in the parameter set. Pass one explicitly
(for example from a shared :class:`~krakenapi.auth.NonceGenerator`) when
several requests are issued within the same microsecond.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from krakenapi.auth import generate_nonce
from krakenapi.errors import DecodeError

from .assets import Currency, decode_currency
from .inputs import KrakenInput, private_input
from .params import ParameterSet


def private_params(nonce: Optional[str] = None) -> ParameterSet:
    return ParameterSet().set("nonce", nonce or generate_nonce())


# --- Balance ------------------------------------------------------------
def account_balance(nonce: Optional[str] = None) -> KrakenInput:
    return private_input("Balance", private_params(nonce))


@dataclass(frozen=True)
class AccountBalance:
    """Balances keyed by the symbol the exchange used, which may be an alias."""

    balances: Dict[str, float]

    @classmethod
    def from_result(cls, payload: Any) -> "AccountBalance":
        if not isinstance(payload, Mapping):
            raise TypeError(f"Balance result must be an object, got {type(payload).__name__}")
        return cls(balances={str(symbol): float(amount) for symbol, amount in payload.items()})

    def get(self, currency: Currency) -> float:
        """Total balance for ``currency`` across every symbol that decodes to it."""

        total = 0.0
        for symbol, amount in self.balances.items():
            try:
                if decode_currency(symbol) is currency:
                    total += amount
            except DecodeError:
                continue
        return total


# --- TradeBalance -------------------------------------------------------
def trade_balance(asset: Optional[Currency] = None, nonce: Optional[str] = None) -> KrakenInput:
    params = private_params(nonce)
    if asset is not None:
        params.set("asset", asset)
    return private_input("TradeBalance", params)


@dataclass(frozen=True)
class TradeBalance:
    equivalent_balance: float
    trade_balance: float
    margin: float
    unrealized_pnl: float
    cost_basis: float
    floating_valuation: float
    equity: float
    free_margin: float
    margin_level: Optional[float] = None

    @classmethod
    def from_result(cls, payload: Any) -> "TradeBalance":
        if not isinstance(payload, Mapping):
            raise TypeError(f"TradeBalance result must be an object, got {type(payload).__name__}")
        margin_level = payload.get("ml")
        return cls(
            equivalent_balance=float(payload["eb"]),
            trade_balance=float(payload["tb"]),
            margin=float(payload["m"]),
            unrealized_pnl=float(payload["n"]),
            cost_basis=float(payload["c"]),
            floating_valuation=float(payload["v"]),
            equity=float(payload["e"]),
            free_margin=float(payload["mf"]),
            margin_level=float(margin_level) if margin_level is not None else None,
        )


__all__ = [
    "private_params",
    "account_balance",
    "AccountBalance",
    "trade_balance",
    "TradeBalance",
]
