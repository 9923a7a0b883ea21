import asyncio
import json
import unittest
from dataclasses import dataclass
from typing import List, Optional

import requests

from krakenapi.api import private, public
from krakenapi.api.assets import Currency, CurrencyPair
from krakenapi.api.inputs import EndpointCategory, KrakenInput, private_input
from krakenapi.api.params import ParameterSet
from krakenapi.auth import KrakenAuth
from krakenapi.client import HttpRequest, KrakenClient, RequestsTransport, decode_result
from krakenapi.errors import (
    ErrorKind,
    ErrorOrigin,
    InvalidSecretKeyError,
    KrakenErrors,
    MissingNonceError,
    MissingResultError,
    TransportError,
)
from krakenapi.infra.metrics import RequestMetrics

API_KEY = "CJbfPw4tnbf/9en/ZmpewCTKEwmmzO18LXZcHQcu7HPLWre4l8+V9I3y"
API_SECRET = "FRs+gtq09rR7OFtKj9BGhyOGS3u5vtY/EdiIBO9kD8NFtRX7w7LeJDSrX6cq1D8zmQmGkWFjksuhBvKOAWJohQ=="

TIME_BODY = b'{"error":[],"result":{"unixtime":1614750200,"rfc1123":"Wed, 3 Mar 21 01:23:20 +0000"}}'


class StubTransport:
    def __init__(self, body: bytes = TIME_BODY, error: Optional[Exception] = None) -> None:
        self.body = body
        self.error = error
        self.requests: List[HttpRequest] = []

    def send(self, request: HttpRequest) -> bytes:
        self.requests.append(request)
        if self.error:
            raise self.error
        return self.body


class AsyncStubTransport(StubTransport):
    async def send(self, request: HttpRequest) -> bytes:  # type: ignore[override]
        await asyncio.sleep(0)
        return super().send(request)


def envelope(result=None, errors=None) -> bytes:
    return json.dumps({"error": errors or [], "result": result}).encode("utf-8")


class PublicDispatchTest(unittest.IsolatedAsyncioTestCase):
    async def test_server_time_decodes_typed_result(self) -> None:
        transport = StubTransport()
        client = KrakenClient(transport=transport)

        result = await client.send(public.server_time(), public.ServerTime)

        self.assertEqual(1614750200, result.unixtime)
        self.assertEqual("Wed, 3 Mar 21 01:23:20 +0000", result.rfc1123)
        self.assertEqual(1, len(transport.requests))
        request = transport.requests[0]
        self.assertEqual("GET", request.method)
        self.assertEqual("https://api.kraken.com/0/public/Time", request.url)
        self.assertIsNone(request.body)
        self.assertNotIn("API-Sign", request.headers)
        self.assertEqual("application/x-www-form-urlencoded", request.headers["Content-Type"])

    async def test_public_params_go_into_query_string(self) -> None:
        transport = StubTransport(envelope({}))
        client = KrakenClient(url="https://example.test/", version="2", transport=transport)
        pairs = [CurrencyPair(Currency.XBT, Currency.USD), CurrencyPair(Currency.ETH, Currency.EUR)]

        await client.send(public.ticker(pairs), dict)

        self.assertEqual("https://example.test/2/public/Ticker?pair=XBTUSD,ETHEUR", transport.requests[0].url)

    async def test_ticker_keys_decode_through_symbol_codec(self) -> None:
        entry = {
            "a": ["52609.6", "1", "1.000"],
            "b": ["52609.5", "1", "1.000"],
            "c": ["52641.1", "0.00080000"],
            "v": ["1920.8", "7954.0"],
            "p": ["52389.9", "51651.3"],
            "t": [23329, 80463],
            "l": ["51513.9", "50924.2"],
            "h": ["53219.9", "53219.9"],
            "o": "52280.1",
        }
        client = KrakenClient(transport=StubTransport(envelope({"XXBTZUSD": entry})))

        result = await client.send(public.ticker([CurrencyPair(Currency.XBT, Currency.USD)]), public.Ticker)

        quote = result[CurrencyPair(Currency.XBT, Currency.USD)]
        self.assertEqual(52609.6, quote.ask[0])
        self.assertEqual([23329, 80463], quote.trades)
        self.assertEqual(52280.1, quote.opening)

    async def test_async_transport_is_awaited(self) -> None:
        transport = AsyncStubTransport()
        client = KrakenClient(transport=transport)

        result = await client.send(public.server_time(), public.ServerTime)

        self.assertEqual(1614750200, result.unixtime)
        self.assertEqual(1, len(transport.requests))

    async def test_concurrent_sends_share_one_client(self) -> None:
        transport = StubTransport()
        client = KrakenClient(transport=transport)

        results = await asyncio.gather(*(client.send(public.server_time(), public.ServerTime) for _ in range(5)))

        self.assertEqual({1614750200}, {result.unixtime for result in results})
        self.assertEqual(5, len(transport.requests))


class ErrorDispatchTest(unittest.IsolatedAsyncioTestCase):
    async def test_exchange_error_is_mapped(self) -> None:
        client = KrakenClient(transport=StubTransport(b'{"error":["EAPI:Invalid nonce"],"result":null}'))

        with self.assertRaises(KrakenErrors) as ctx:
            await client.send(public.server_time(), public.ServerTime)

        self.assertEqual([ErrorKind.INVALID_NONCE], ctx.exception.kinds)
        self.assertIs(ErrorOrigin.PROTOCOL, ctx.exception.errors[0].origin)

    async def test_all_errors_surface_in_order_even_with_a_result(self) -> None:
        body = envelope({"unixtime": 1, "rfc1123": "x"}, ["EService:Busy", "EGeneral:Whatever", "EOrder:Rate limit exceeded"])
        client = KrakenClient(transport=StubTransport(body))

        with self.assertRaises(KrakenErrors) as ctx:
            await client.send(public.server_time(), public.ServerTime)

        self.assertEqual(
            [ErrorKind.SERVICE_BUSY, ErrorKind.UNKNOWN_ERROR, ErrorKind.ORDER_RATE_LIMIT],
            ctx.exception.kinds,
        )

    async def test_invalid_json_is_a_single_parse_error(self) -> None:
        for body in (b"<html>502 Bad Gateway</html>", b"\xff\xfe", b"[1, 2]", b'{"error": "nope"}'):
            with self.subTest(body=body):
                client = KrakenClient(transport=StubTransport(body))
                with self.assertRaises(KrakenErrors) as ctx:
                    await client.send(public.server_time(), public.ServerTime)
                self.assertEqual([ErrorKind.PARSE_ERROR], ctx.exception.kinds)

    async def test_deeply_nested_body_is_a_single_parse_error(self) -> None:
        client = KrakenClient(transport=StubTransport(b"[" * 100000 + b"]" * 100000))

        with self.assertRaises(KrakenErrors) as ctx:
            await client.send(public.server_time(), public.ServerTime)

        self.assertEqual([ErrorKind.PARSE_ERROR], ctx.exception.kinds)

    async def test_mismatched_result_shape_is_a_parse_error(self) -> None:
        client = KrakenClient(transport=StubTransport(envelope({"status": "online"})))

        with self.assertRaises(KrakenErrors) as ctx:
            await client.send(public.server_time(), public.ServerTime)

        self.assertEqual([ErrorKind.PARSE_ERROR], ctx.exception.kinds)

    async def test_unknown_pair_in_result_is_a_parse_error(self) -> None:
        client = KrakenClient(transport=StubTransport(envelope({"NOTAPAIR": {}})))

        with self.assertRaises(KrakenErrors) as ctx:
            await client.send(public.ticker([CurrencyPair(Currency.XBT, Currency.USD)]), public.Ticker)

        self.assertEqual([ErrorKind.PARSE_ERROR], ctx.exception.kinds)

    async def test_missing_result_is_fatal(self) -> None:
        client = KrakenClient(transport=StubTransport(b'{"error":[],"result":null}'))

        with self.assertRaises(MissingResultError):
            await client.send(public.server_time(), public.ServerTime)

    async def test_transport_failure_is_a_single_http_error(self) -> None:
        failure = TransportError("connection reset")
        client = KrakenClient(transport=StubTransport(error=failure))

        with self.assertRaises(KrakenErrors) as ctx:
            await client.send(public.server_time(), public.ServerTime)

        self.assertEqual([ErrorKind.HTTP_ERROR], ctx.exception.kinds)
        self.assertIs(failure, ctx.exception.errors[0].cause)
        self.assertTrue(ctx.exception.errors[0].retryable)

    async def test_socket_errors_from_async_transport_are_http_errors(self) -> None:
        for failure in (OSError("connection reset"), asyncio.TimeoutError()):
            with self.subTest(failure=type(failure).__name__):
                client = KrakenClient(transport=AsyncStubTransport(error=failure))

                with self.assertRaises(KrakenErrors) as ctx:
                    await client.send(public.server_time(), public.ServerTime)

                self.assertEqual([ErrorKind.HTTP_ERROR], ctx.exception.kinds)
                self.assertIs(failure, ctx.exception.errors[0].cause)


class PrivateDispatchTest(unittest.IsolatedAsyncioTestCase):
    async def test_private_request_is_signed_and_posted(self) -> None:
        transport = StubTransport(envelope({"XXBT": "0.5", "ZUSD": "100.25"}))
        client = KrakenClient(API_KEY, API_SECRET, transport=transport)

        result = await client.send(private.account_balance(nonce="1540973848000"), private.AccountBalance)

        self.assertEqual(0.5, result.get(Currency.XBT))
        self.assertEqual(100.25, result.get(Currency.USD))
        request = transport.requests[0]
        self.assertEqual("POST", request.method)
        self.assertEqual("https://api.kraken.com/0/private/Balance", request.url)
        self.assertEqual(b"nonce=1540973848000", request.body)
        self.assertEqual(API_KEY, request.headers["API-Key"])
        expected = KrakenAuth(API_KEY, API_SECRET).sign("/0/private/Balance", "1540973848000", "nonce=1540973848000")
        self.assertEqual(expected, request.headers["API-Sign"])

    async def test_trade_balance_matches_known_signature(self) -> None:
        params = ParameterSet().set("nonce", "1540973848000").set("asset", "xbt")
        client = KrakenClient(API_KEY, API_SECRET, transport=StubTransport())

        request = client.build_request(private_input("TradeBalance", params))

        self.assertEqual(b"nonce=1540973848000&asset=xbt", request.body)
        self.assertEqual(
            "RdQzoXRC83TPmbERpFj0XFVArq0Hfadm0eLolmXTuN2R24hzIqtAnF/f7vSfW1tGt7xQOn8bjm+Ht+X0KrMwlA==",
            request.headers["API-Sign"],
        )

    async def test_missing_nonce_is_fatal_and_sends_nothing(self) -> None:
        transport = StubTransport()
        client = KrakenClient(API_KEY, API_SECRET, transport=transport)

        for request in (
            private_input("Balance", ParameterSet().set("asset", "XBT")),
            KrakenInput(EndpointCategory.PRIVATE, "Balance"),
        ):
            with self.subTest(request=request):
                with self.assertRaises(MissingNonceError):
                    await client.send(request, private.AccountBalance)
        self.assertEqual([], transport.requests)

    async def test_bad_secret_is_fatal(self) -> None:
        transport = StubTransport()
        client = KrakenClient(API_KEY, "%%%", transport=transport)

        with self.assertRaises(InvalidSecretKeyError):
            await client.send(private.account_balance(), private.AccountBalance)
        self.assertEqual([], transport.requests)

        client.set_auth(API_KEY, API_SECRET)
        transport.body = envelope({})
        result = await client.send(private.account_balance(), private.AccountBalance)
        self.assertEqual({}, result.balances)


class MetricsTest(unittest.IsolatedAsyncioTestCase):
    async def test_outcomes_reach_metrics_callback(self) -> None:
        metrics = RequestMetrics()
        transport = StubTransport()
        client = KrakenClient(transport=transport, metrics_callback=metrics.observe)

        await client.send(public.server_time(), public.ServerTime)
        transport.body = b'{"error":["EService:Unavailable"]}'
        with self.assertRaises(KrakenErrors):
            await client.send(public.server_time(), public.ServerTime)

        self.assertEqual(1, metrics.count("Time", "ok"))
        self.assertEqual(1, metrics.count("Time", "error"))
        self.assertIn('krakenapi_requests_total{endpoint="Time",outcome="error"} 1', metrics.render())

    async def test_missing_result_is_counted_as_an_error(self) -> None:
        metrics = RequestMetrics()
        client = KrakenClient(transport=StubTransport(b'{"error":[],"result":null}'), metrics_callback=metrics.observe)

        with self.assertLogs("krakenapi.client", level="WARNING") as logs, self.assertRaises(MissingResultError):
            await client.send(public.server_time(), public.ServerTime)

        self.assertEqual(1, metrics.count("Time", "error"))
        self.assertEqual(0, metrics.count("Time", "ok"))
        self.assertEqual(["MissingResultError"], logs.records[0].kinds)

    async def test_failing_callback_does_not_break_requests(self) -> None:
        def explode(name, values):
            raise RuntimeError("metrics down")

        client = KrakenClient(transport=StubTransport(), metrics_callback=explode)

        result = await client.send(public.server_time(), public.ServerTime)

        self.assertEqual(1614750200, result.unixtime)


@dataclass
class Plain:
    unixtime: int
    rfc1123: str


class DecodeResultTest(unittest.TestCase):
    def test_plain_dataclass_and_builtins(self) -> None:
        self.assertEqual(Plain(1, "x"), decode_result(Plain, {"unixtime": 1, "rfc1123": "x"}))
        self.assertEqual({"a": 1}, decode_result(dict, {"a": 1}))
        self.assertEqual([1], decode_result(list, [1]))

    def test_shape_mismatch_raises_parse_error(self) -> None:
        for output, result in ((Plain, {"unexpected": 1}), (Plain, [1]), (dict, [1]), (int, "1")):
            with self.subTest(output=output, result=result):
                with self.assertRaises(KrakenErrors) as ctx:
                    decode_result(output, result)
                self.assertEqual([ErrorKind.PARSE_ERROR], ctx.exception.kinds)


class FakeResponse:
    def __init__(self, status_code: int, content: bytes) -> None:
        self.status_code = status_code
        self.content = content


class FakeSession:
    def __init__(self, response: Optional[FakeResponse] = None, error: Optional[Exception] = None) -> None:
        self.response = response
        self.error = error
        self.calls = []

    def request(self, method, url, headers=None, data=None, timeout=None):
        self.calls.append({"method": method, "url": url, "headers": headers, "data": data, "timeout": timeout})
        if self.error:
            raise self.error
        return self.response


class RequestsTransportTest(unittest.TestCase):
    def test_returns_raw_body_regardless_of_status(self) -> None:
        session = FakeSession(FakeResponse(500, b'{"error":["EService:Unavailable"]}'))
        transport = RequestsTransport(session=session, timeout_seconds=3.0)

        body = transport.send(HttpRequest("POST", "https://x/0/private/Balance", {"API-Key": "k"}, b"nonce=1"))

        self.assertEqual(b'{"error":["EService:Unavailable"]}', body)
        self.assertEqual(
            {"method": "POST", "url": "https://x/0/private/Balance", "headers": {"API-Key": "k"}, "data": b"nonce=1", "timeout": 3.0},
            session.calls[0],
        )

    def test_requests_exceptions_become_transport_errors(self) -> None:
        cause = requests.ConnectionError("refused")
        transport = RequestsTransport(session=FakeSession(error=cause))

        with self.assertRaises(TransportError) as ctx:
            transport.send(HttpRequest("GET", "https://x/0/public/Time"))
        self.assertIs(cause, ctx.exception.cause)


if __name__ == "__main__":
    unittest.main()
