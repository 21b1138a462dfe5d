"""HTTP helpers shared by feed readers and page fetchers.

Every outbound fetch goes through a session with a bounded redirect count and
a short (connect, read) timeout.
"""

from __future__ import annotations

import ipaddress
from typing import Optional, Tuple
from urllib.parse import urlparse

import requests

DEFAULT_TIMEOUT: Tuple[float, float] = (5.0, 15.0)
DEFAULT_MAX_REDIRECTS = 5
DEFAULT_USER_AGENT = "AIWire/1.0 (+https://github.com/aiwire)"


_PRIVATE_NETS = [
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("169.254.0.0/16"),
    ipaddress.ip_network("0.0.0.0/8"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("fc00::/7"),
    ipaddress.ip_network("fe80::/10"),
]


def _is_private_ip(hostname: str) -> bool:
    try:
        ip = ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return any(ip in net for net in _PRIVATE_NETS)


def validate_fetch_url(url: str) -> Optional[str]:
    """Return error string if URL should not be fetched (SSRF/abuse protections)."""
    try:
        p = urlparse(url)
    except ValueError:
        return "invalid_url"
    if p.scheme not in ("http", "https"):
        return "bad_scheme"
    host = (p.hostname or "").strip().lower()
    if not host:
        return "missing_host"
    if host in ("localhost", "localhost.localdomain"):
        return "blocked_host"
    if _is_private_ip(host):
        return "blocked_private_ip"
    return None


def build_session(*, max_redirects: int = DEFAULT_MAX_REDIRECTS, user_agent: str = DEFAULT_USER_AGENT) -> requests.Session:
    session = requests.Session()
    session.max_redirects = max_redirects
    session.headers.update({"User-Agent": user_agent})
    return session


def fetch_text(
    session: requests.Session,
    url: str,
    *,
    timeout: Tuple[float, float] = DEFAULT_TIMEOUT,
    max_bytes: int = 2_000_000,
) -> str:
    """GET a page and return its decoded body.

    Raises requests.RequestException (or ValueError for blocked/oversized
    pages); callers translate that into their own error type.
    """
    err = validate_fetch_url(url)
    if err:
        raise ValueError(f"refusing to fetch {url}: {err}")
    resp = session.get(url, timeout=timeout, allow_redirects=True, stream=True)
    try:
        resp.raise_for_status()
        content = b""
        for chunk in resp.iter_content(chunk_size=64 * 1024):
            if not chunk:
                continue
            content += chunk
            if len(content) > max_bytes:
                raise ValueError(f"response from {url} exceeds {max_bytes} bytes")
    finally:
        resp.close()
    return content.decode(resp.encoding or "utf-8", errors="replace")
