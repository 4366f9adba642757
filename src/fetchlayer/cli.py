"""Command line front end: send one request through the client pipeline."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from typing import Any, Sequence

import httpx

from fetchlayer.client import FetchLayerClient
from fetchlayer.exceptions import FetchLayerHTTPError, FetchLayerTimeoutError
from fetchlayer.middleware import logging_middleware
from fetchlayer.models import TransportResponse
from fetchlayer.request_options import RequestOptions


HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")
BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


def _parse_headers(values: Sequence[str]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for value in values:
        name, sep, content = value.partition(":")
        if not sep or not name.strip():
            raise argparse.ArgumentTypeError(f"invalid header {value!r}, expected 'Name: value'")
        headers[name.strip()] = content.strip()
    return headers


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fetchlayer")
    parser.add_argument("method", type=str.upper, choices=HTTP_METHODS)
    parser.add_argument("url")
    parser.add_argument("-d", "--data", help="JSON request body for POST, PUT and PATCH")
    parser.add_argument("-H", "--header", action="append", default=[], dest="headers")
    parser.add_argument("--timeout", type=float, default=FetchLayerClient.default_timeout)
    parser.add_argument("--retries", type=int, default=FetchLayerClient.default_retries)
    parser.add_argument("--retry-delay", type=float, default=FetchLayerClient.default_retry_delay)
    parser.add_argument("--raw", action="store_true", help="print the body without JSON decoding")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def _render(result: Any) -> str:
    if isinstance(result, TransportResponse):
        return result.body.decode("utf-8", errors="replace")
    return json.dumps(result, indent=2, sort_keys=True)


async def _run(args: argparse.Namespace, headers: dict[str, str], body: Any) -> Any:
    options = RequestOptions(
        headers=headers,
        timeout=args.timeout,
        retries=args.retries,
        retry_delay=args.retry_delay,
        parse_json=not args.raw,
    )
    async with FetchLayerClient("", middleware=[logging_middleware()]) as client:
        if args.method in BODY_METHODS:
            send = getattr(client, args.method.lower())
            return await send(args.url, body, options)
        return await client.request(args.url, replace(options, method=args.method))


def _main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        headers = _parse_headers(args.headers)
    except argparse.ArgumentTypeError as exc:
        parser.error(str(exc))
    if args.data is not None and args.method not in BODY_METHODS:
        parser.error(f"--data is not supported for {args.method} requests")
    try:
        body = json.loads(args.data) if args.data is not None else None
    except json.JSONDecodeError as exc:
        parser.error(f"--data is not valid JSON: {exc}")

    try:
        result = asyncio.run(_run(args, headers, body))
    except FetchLayerHTTPError as exc:
        print(f"HTTP {exc.status_code}", file=sys.stderr)
        if exc.response.body:
            print(exc.response.body.decode("utf-8", errors="replace"), file=sys.stderr)
        return 1
    except FetchLayerTimeoutError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    except (httpx.HTTPError, ValueError) as exc:
        print(f"{type(exc).__name__}: {exc}", file=sys.stderr)
        return 2

    print(_render(result))
    return 0


def main() -> None:
    raise SystemExit(_main())
