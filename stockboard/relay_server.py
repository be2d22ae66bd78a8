#!/usr/bin/env python3
"""
Local relay for vendor pages.

Fetches a target URL server-side with browser-like headers and returns the
body unchanged, so the extractor's first relay is one the user controls.

Usage:
    python -m stockboard.relay_server [--port 8080]

    GET /proxy?url=<encoded target>   passthrough
    POST /save                        501, saving scraped data is disabled
    OPTIONS *                         CORS preflight
"""

import argparse
import asyncio

import aiohttp
import structlog
from aiohttp import web

from stockboard.config import DEFAULT_USER_AGENT, config

logger = structlog.get_logger(__name__)

UPSTREAM_TIMEOUT_SECONDS = 20

BROWSER_HEADERS = {
    "User-Agent": DEFAULT_USER_AGENT,
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,"
        "image/avif,image/webp,*/*;q=0.8"
    ),
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate",
    "Upgrade-Insecure-Requests": "1",
}

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

SESSION_KEY = web.AppKey("upstream_session", aiohttp.ClientSession)


def json_error(status: int, message: str) -> web.Response:
    return web.json_response({"error": message}, status=status)


@web.middleware
async def cors_middleware(request: web.Request, handler) -> web.StreamResponse:
    if request.method == "OPTIONS":
        return web.Response(status=204, headers=CORS_HEADERS)
    response = await handler(request)
    response.headers.update(CORS_HEADERS)
    return response


async def proxy(request: web.Request) -> web.Response:
    target = request.query.get("url")
    if not target:
        return json_error(400, "Missing url parameter")

    session = request.app[SESSION_KEY]
    logger.info("relay_fetch", url=target[:120])
    try:
        async with session.get(
            target,
            headers=BROWSER_HEADERS,
            timeout=aiohttp.ClientTimeout(total=UPSTREAM_TIMEOUT_SECONDS),
        ) as upstream:
            if upstream.status >= 400:
                logger.warning("relay_upstream_error", url=target[:120], status=upstream.status)
                return json_error(
                    upstream.status,
                    f"Upstream returned {upstream.status}: {upstream.reason}",
                )
            body = await upstream.read()
            content_type = upstream.headers.get("Content-Type", "text/html")
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        logger.error("relay_fetch_failed", url=target[:120], error=str(e))
        return json_error(500, str(e) or type(e).__name__)

    logger.info("relay_fetch_success", url=target[:120], bytes=len(body))
    return web.Response(body=body, headers={"Content-Type": content_type})


async def save(request: web.Request) -> web.Response:
    payload = await request.text()
    logger.warning("relay_save_disabled", payload_bytes=len(payload))
    return json_error(501, "Saving crawled data is disabled on this relay")


async def not_found(request: web.Request) -> web.Response:
    return json_error(404, "Use /proxy?url=<target>")


async def _upstream_session(app: web.Application):
    app[SESSION_KEY] = aiohttp.ClientSession()
    yield
    await app[SESSION_KEY].close()


def make_app() -> web.Application:
    app = web.Application(middlewares=[cors_middleware])
    app.cleanup_ctx.append(_upstream_session)
    app.router.add_get("/proxy", proxy)
    app.router.add_post("/save", save)
    app.router.add_route("*", "/{tail:.*}", not_found)
    return app


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Local relay for vendor pages")
    parser.add_argument(
        "--port",
        type=int,
        default=config.relay_port,
        help=f"Port to listen on (default: {config.relay_port})",
    )
    parser.add_argument("--host", default="localhost", help="Interface to bind")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_arguments(argv)
    logger.info("relay_starting", url=f"http://{args.host}:{args.port}/proxy?url=<target>")
    web.run_app(make_app(), host=args.host, port=args.port, print=None)


if __name__ == "__main__":
    main()
