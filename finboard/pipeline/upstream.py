"""Outbound HTTP access to calendar, quote and news providers with bounded waits.

All transport problems (connection errors, timeouts, non-2xx statuses) surface
as :class:`TransportError`; bodies that cannot be decoded surface as
:class:`MalformedPayloadError`. XML bodies are converted into plain mappings
here so nothing downstream ever handles an ``Element``.
"""

import asyncio
import json
import logging
from typing import Any
from urllib.parse import quote
from xml.etree import ElementTree as ET

import httpx

from finboard.core.errors import MalformedPayloadError, TransportError
from finboard.core.types import CalendarWeek

logger = logging.getLogger(__name__)

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/128.0.0.0 Safari/537.36"
)
DEFAULT_HEADERS = {
    "User-Agent": BROWSER_USER_AGENT,
    "Accept": "application/json, application/xml, text/xml, */*",
    "Accept-Language": "en-US,en;q=0.9",
}

_TEXT_KEY = "_"


def build_http_client(
    timeout_s: float,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create the shared async client; tests pass a mock transport."""

    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout_s),
        headers=DEFAULT_HEADERS,
        follow_redirects=True,
        transport=transport,
    )


def calendar_url(base_url: str, week: CalendarWeek) -> str:
    return f"{base_url}/ffcal_week_{week.value}.xml"


def event_url(base_url: str, event_id: str, kind: str = "event") -> str:
    return f"{base_url}/{kind}/{quote(event_id, safe='')}"


def quote_url(base_url: str, symbol: str) -> str:
    return f"{base_url}/v8/finance/chart/{quote(symbol, safe='')}"


def news_url(base_url: str) -> str:
    return f"{base_url}/top-headlines"


def signals_url(base_url: str) -> str:
    return f"{base_url}/api/signals"


def xml_to_dict(content: bytes | str) -> dict[str, Any]:
    """Convert an XML document to nested mappings keyed by the root tag.

    Attributes are merged into their element's mapping, repeated children
    become lists, text-only elements become strings and mixed text is kept
    under ``"_"``.
    """

    try:
        root = ET.fromstring(content)
    except ET.ParseError as exc:
        raise MalformedPayloadError(f"invalid XML: {exc}") from exc
    return {_local_name(root.tag): _element_value(root)}


def _element_value(element: ET.Element) -> Any:
    text = (element.text or "").strip()
    if not element.attrib and len(element) == 0:
        return text

    value: dict[str, Any] = {_local_name(key): attr for key, attr in element.attrib.items()}
    for child in element:
        name = _local_name(child.tag)
        child_value = _element_value(child)
        if name not in value:
            value[name] = child_value
        elif isinstance(value[name], list):
            value[name].append(child_value)
        else:
            value[name] = [value[name], child_value]
    if text:
        value[_TEXT_KEY] = text
    return value


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


class UpstreamClient:
    """Thin wrapper adding an explicit deadline and error translation to every GET."""

    def __init__(self, http: httpx.AsyncClient, timeout_s: float) -> None:
        self._http = http
        self._timeout_s = timeout_s

    async def get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        response = await self._get(url, params)
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise MalformedPayloadError(f"invalid JSON from {url}: {exc}", url=url) from exc

    async def get_xml(self, url: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        response = await self._get(url, params)
        try:
            return xml_to_dict(response.content)
        except MalformedPayloadError as exc:
            exc.url = url
            raise

    async def get_document(self, url: str) -> Any:
        """Fetch a body that may be JSON or XML and return it as plain data."""

        response = await self._get(url, None)
        content_type = response.headers.get("content-type", "")
        body = response.content.lstrip()
        if "json" in content_type or body[:1] in (b"{", b"["):
            try:
                return response.json()
            except (json.JSONDecodeError, UnicodeDecodeError) as exc:
                raise MalformedPayloadError(f"invalid JSON from {url}: {exc}", url=url) from exc
        try:
            return xml_to_dict(response.content)
        except MalformedPayloadError as exc:
            exc.url = url
            raise

    async def _get(self, url: str, params: dict[str, Any] | None) -> httpx.Response:
        logger.debug("upstream_request", extra={"url": url})
        try:
            response = await asyncio.wait_for(
                self._http.get(url, params=params),
                timeout=self._timeout_s,
            )
        except asyncio.TimeoutError as exc:
            raise TransportError(f"timed out after {self._timeout_s}s", url=url) from exc
        except httpx.TimeoutException as exc:
            raise TransportError(f"timed out: {exc}", url=url) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"request failed: {exc}", url=url) from exc

        if not response.is_success:
            raise TransportError(
                f"HTTP error! status: {response.status_code}",
                url=url,
                status_code=response.status_code,
            )
        return response
