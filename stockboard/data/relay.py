"""
Relay-chain HTML fetcher.

Vendor pages are fetched through an ordered list of relays: the local relay
(python -m stockboard.relay_server) first, then public relay services of
varying reliability, then one direct request. A relay is abandoned on
timeout, non-2xx status, or a body that does not look like HTML; the next
relay is tried immediately. There are no retries of the same relay.

Error Handling:
    - Single relay failure: logged at DEBUG/WARNING, next relay tried
    - All relays + direct request failed: RelayExhaustedError (propagates)
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from dataclasses import dataclass
from urllib.parse import quote

import httpx
import structlog

from stockboard.exceptions import RelayAttemptError, RelayExhaustedError

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT = 10.0

ACCEPT_HTML = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


@dataclass(frozen=True)
class RelayEndpoint:
    """A relay service and how it wraps a target URL."""

    name: str
    build: Callable[[str], str]
    json_envelope: bool = False

    def url_for(self, target_url: str) -> str:
        return self.build(target_url)


def _encoded(target_url: str) -> str:
    return quote(target_url, safe="")


def default_relays(local_relay_url: str = "http://localhost:8080") -> list[RelayEndpoint]:
    """Relays in order of preference; the local relay is the trusted one."""
    local = local_relay_url.rstrip("/")
    return [
        RelayEndpoint("local", lambda u: f"{local}/proxy?url={_encoded(u)}"),
        RelayEndpoint(
            "allorigins",
            lambda u: f"https://api.allorigins.win/get?url={_encoded(u)}",
            json_envelope=True,
        ),
        RelayEndpoint("corsproxy.org", lambda u: f"https://corsproxy.org/?{_encoded(u)}"),
        RelayEndpoint("cors.sh", lambda u: f"https://proxy.cors.sh/{u}"),
        RelayEndpoint("thingproxy", lambda u: f"https://thingproxy.freeboard.io/fetch/{u}"),
        RelayEndpoint("cors-anywhere", lambda u: f"https://cors-anywhere.herokuapp.com/{u}"),
        RelayEndpoint(
            "codetabs", lambda u: f"https://api.codetabs.com/v1/proxy?quest={_encoded(u)}"
        ),
    ]


def looks_like_html(text: str | None) -> bool:
    if not text:
        return False
    lowered = text.lower()
    return "<!doctype" in lowered or "<html" in lowered


def unwrap_envelope(text: str) -> str:
    """Return the `contents` of a {"contents": ...} relay envelope, else text."""
    try:
        payload = json.loads(text)
    except ValueError:
        return text
    if isinstance(payload, dict) and isinstance(payload.get("contents"), str):
        return payload["contents"]
    return text


class RelayChainFetcher:
    """Fetches remote HTML through the relay list with per-attempt timeouts."""

    def __init__(
        self,
        relays: list[RelayEndpoint] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.relays = relays if relays is not None else default_relays()
        self.timeout = timeout
        headers = {"Accept": ACCEPT_HTML}
        if user_agent:
            headers["User-Agent"] = user_agent
        self._headers = headers
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                headers=self._headers, follow_redirects=True, timeout=self.timeout
            )
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the owned httpx client. Safe to call multiple times."""
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def _get_text(self, label: str, url: str) -> str:
        client = self._get_client()
        try:
            response = await asyncio.wait_for(
                client.get(url, headers=self._headers), timeout=self.timeout
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise RelayAttemptError(label, "Timeout") from e
        except httpx.HTTPError as e:
            raise RelayAttemptError(label, f"{type(e).__name__}: {e}") from e

        if not response.is_success:
            raise RelayAttemptError(label, f"HTTP {response.status_code}")
        return response.text

    async def _try_relay(self, relay: RelayEndpoint, target_url: str) -> str:
        text = await self._get_text(relay.name, relay.url_for(target_url))
        if relay.json_envelope:
            text = unwrap_envelope(text)
        if not looks_like_html(text):
            raise RelayAttemptError(relay.name, "Response does not contain HTML")
        return text

    async def fetch_html(self, target_url: str) -> str:
        """
        Fetch the HTML body of target_url.

        Args:
            target_url: Fully-resolved vendor page URL

        Returns:
            HTML text from the first relay that succeeded

        Raises:
            RelayExhaustedError: every relay and the direct request failed
        """
        attempts: list[RelayAttemptError] = []

        for relay in self.relays:
            try:
                html = await self._try_relay(relay, target_url)
            except RelayAttemptError as e:
                logger.debug("relay_attempt_failed", relay=relay.name, reason=e.reason)
                attempts.append(e)
                continue
            logger.debug("relay_success", relay=relay.name, url=target_url[:80])
            return html

        try:
            html = await self._get_text("direct", target_url)
            logger.debug("direct_fetch_success", url=target_url[:80])
            return html
        except RelayAttemptError as e:
            attempts.append(e)

        error = RelayExhaustedError(target_url, attempts)
        logger.warning(
            "relay_chain_exhausted",
            url=target_url[:80],
            tried=[a.relay for a in attempts],
        )
        raise error
