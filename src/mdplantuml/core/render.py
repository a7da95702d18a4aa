"""PlantUML server client: URL construction and image fetching"""

import logging
from typing import Optional

import httpx

from mdplantuml.config import Transport
from mdplantuml.core.utils.encoding import encode
from mdplantuml.errors import RenderFailure


DEFAULT_TIMEOUT = 30.0

log = logging.getLogger(__name__)


def server_url(code: str, fmt: str, base_url: str) -> str:
    """Return base_url/fmt/token for code; no network access."""
    return f"{base_url.rstrip('/')}/{fmt}/{encode(code)}"


async def default_transport(url: str) -> httpx.Response:
    """GET url with a fresh AsyncClient and return the fully-read response."""
    async with httpx.AsyncClient(timeout=DEFAULT_TIMEOUT, follow_redirects=True) as client:
        return await client.get(url)


async def render(
    code: str,
    fmt: str,
    base_url: str,
    transport: Optional[Transport] = None,
    ) -> bytes:
    """Fetch rendered image bytes for code. Raises RenderFailure."""
    url = server_url(code, fmt, base_url)
    fetch = transport or default_transport
    try:
        response = await fetch(url)
    except httpx.HTTPError as e:
        raise RenderFailure(url, f"Failed to fetch PlantUML image: {e}") from e

    if not response.is_success:
        raise RenderFailure(
            url,
            f"Failed to fetch PlantUML image: {response.status_code} {response.reason_phrase}",
            status_code=response.status_code,
        )
    log.debug("Fetched %s (%d bytes)", url, len(response.content))
    return response.content
