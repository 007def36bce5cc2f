from __future__ import annotations

import ssl
import urllib.parse
from urllib.error import URLError
from urllib.request import HTTPSHandler, Request, build_opener

MAX_BODY_BYTES = 5_000_000


class HttpClientError(Exception):
    pass


def http_get_bytes(url: str, timeout: float, max_bytes: int = MAX_BODY_BYTES) -> bytes:
    """Fetch a small static asset (the axe-core bundle) over http(s)."""
    parsed = urllib.parse.urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise HttpClientError("Only http/https are supported")
    req = Request(url, headers={"User-Agent": "axe-accessibility-mcp/0.1"})
    try:
        ctx = ssl.create_default_context()
        opener = build_opener(HTTPSHandler(context=ctx))
        with opener.open(req, timeout=timeout) as resp:
            status = getattr(resp, "status", 200)
            if status != 200:
                raise HttpClientError(f"GET {url} returned HTTP {status}")
            body = resp.read(max_bytes + 1)
    except (TimeoutError, URLError) as exc:
        raise HttpClientError(str(exc)) from exc
    if len(body) > max_bytes:
        raise HttpClientError(f"GET {url} exceeded {max_bytes} bytes")
    return body
