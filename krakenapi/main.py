"""Command line entry point: send one request and print the result as JSON."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type

from krakenapi.api import private, public
from krakenapi.api.assets import decode_currency, decode_pair
from krakenapi.api.inputs import KrakenInput
from krakenapi.client import KrakenClient, RequestsTransport
from krakenapi.errors import DecodeError, KrakenErrors
from krakenapi.infra.config import DEFAULT_CONFIG_PATH, AppConfig, load_config
from krakenapi.infra.logging import configure_logging
from krakenapi.infra.metrics import RequestMetrics

Command = Callable[[argparse.Namespace], Tuple[KrakenInput, Type[Any]]]

COMMANDS: Dict[str, Command] = {
    "time": lambda args: (public.server_time(), public.ServerTime),
    "status": lambda args: (public.system_status(), public.SystemStatus),
    "assets": lambda args: (
        public.asset_info([decode_currency(symbol) for symbol in args.symbols]),
        public.AssetInfo,
    ),
    "ticker": lambda args: (public.ticker([decode_pair(symbol) for symbol in args.symbols]), public.Ticker),
    "balance": lambda args: (private.account_balance(), private.AccountBalance),
    "trade-balance": lambda args: (
        private.trade_balance(decode_currency(args.symbols[0]) if args.symbols else None),
        private.TradeBalance,
    ),
}


def build_client(config: AppConfig, metrics: Optional[RequestMetrics] = None) -> KrakenClient:
    """Instantiate the client from configuration."""

    logger = logging.getLogger("krakenapi")
    return KrakenClient(
        api_key=config.kraken.api_key,
        api_secret=config.kraken.api_secret,
        url=config.kraken.base_url,
        version=config.kraken.version,
        user_agent=config.kraken.user_agent,
        transport=RequestsTransport(timeout_seconds=config.kraken.timeout_seconds, logger=logger.getChild("http")),
        metrics_callback=metrics.observe if metrics else None,
        logger=logger.getChild("client"),
    )


def to_jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, dict):
        return {str(key): to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    if isinstance(value, Enum):
        return value.value
    return value


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Kraken REST API client")
    parser.add_argument("--config", default=str(DEFAULT_CONFIG_PATH))
    parser.add_argument("command", choices=sorted(COMMANDS))
    parser.add_argument("symbols", nargs="*", help="currency or pair symbols, depending on the command")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace, config: AppConfig) -> int:
    try:
        request, output = COMMANDS[args.command](args)
    except (DecodeError, ValueError) as exc:
        print(f"{args.command}: {exc}", file=sys.stderr)
        return 2
    metrics = RequestMetrics(
        metrics_file=Path(config.metrics.metrics_file),
        emit_textfile=config.metrics.emit_textfile,
    )
    client = build_client(config, metrics)
    try:
        result = await client.send(request, output)
    except KrakenErrors as errors:
        print(json.dumps({"errors": [_describe(error) for error in errors]}, indent=2), file=sys.stderr)
        return 1
    print(json.dumps(to_jsonable(result), indent=2))
    return 0


def _describe(error: Any) -> Dict[str, Any]:
    return {"kind": error.kind.name, "origin": error.origin.value, "message": error.message}


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    config = load_config(args.config)
    configure_logging(config.log_level)
    sys.exit(asyncio.run(run(args, config)))


if __name__ == "__main__":
    main()
