"""HTML fetching and URL validation utilities.

Every URL, including each redirect hop, is checked before any request is
made: scheme, embedded credentials, local hostnames, and every address the
hostname resolves to.
"""

import asyncio
import ipaddress
import logging
import socket
from typing import Awaitable, Callable, List, Optional
from urllib.parse import urljoin, urlparse

import httpx

from recipe_journal.app.core.config import get_settings
from recipe_journal.app.core.errors import ErrorCode, RecipeError
from recipe_journal.app.services.url_parsing.models import FetchResult

logger = logging.getLogger(__name__)

Resolver = Callable[[str], Awaitable[List[str]]]

REDIRECT_STATUSES = {301, 302, 303, 307, 308}

BLOCKED_IPV4_NETWORKS = [
    ipaddress.ip_network(net)
    for net in (
        "0.0.0.0/8",
        "10.0.0.0/8",
        "100.64.0.0/10",
        "127.0.0.0/8",
        "169.254.0.0/16",
        "172.16.0.0/12",
        "192.168.0.0/16",
        "224.0.0.0/4",
        "240.0.0.0/4",
    )
]
BLOCKED_IPV6_NETWORKS = [
    ipaddress.ip_network(net)
    for net in ("::/128", "::1/128", "fc00::/7", "fe80::/10", "ff00::/8")
]


def is_blocked_ip(address: str) -> bool:
    """True for loopback, private, link-local, CGNAT, multicast and reserved addresses."""
    try:
        ip = ipaddress.ip_address(address.split("%", 1)[0])
    except ValueError:
        return True
    if isinstance(ip, ipaddress.IPv6Address):
        if ip.ipv4_mapped is not None:
            return is_blocked_ip(str(ip.ipv4_mapped))
        return any(ip in net for net in BLOCKED_IPV6_NETWORKS)
    return any(ip in net for net in BLOCKED_IPV4_NETWORKS)


def is_private_host(host: str) -> bool:
    """Check if a host is a local name or a blocked literal IP."""
    hostname = (host or "").strip().lower().rstrip(".")
    if hostname.startswith("[") and hostname.endswith("]"):
        hostname = hostname[1:-1]
    if not hostname:
        return True
    if hostname == "localhost" or hostname.endswith(".localhost") or hostname.endswith(".local"):
        return True
    try:
        ipaddress.ip_address(hostname.split("%", 1)[0])
    except ValueError:
        return False
    return is_blocked_ip(hostname)


def validate_url(url: str) -> str:
    """Syntactic checks on a URL; returns its hostname."""
    try:
        parsed = urlparse((url or "").strip())
        hostname = parsed.hostname
        # raises ValueError on a malformed or out-of-range port
        parsed.port
    except ValueError as exc:
        raise RecipeError(ErrorCode.INVALID_URL, "Invalid URL format", {"url": url}) from exc
    if parsed.scheme not in {"http", "https"}:
        raise RecipeError(ErrorCode.INVALID_URL, "URL must start with http or https.", {"url": url})
    if not parsed.netloc or not hostname:
        raise RecipeError(ErrorCode.INVALID_URL, "URL is missing a host.", {"url": url})
    if parsed.username or parsed.password:
        raise RecipeError(
            ErrorCode.INVALID_URL, "URLs with embedded credentials are not allowed.", {"url": url}
        )
    if is_private_host(hostname):
        raise RecipeError(
            ErrorCode.INVALID_URL, "Host is blocked (localhost/private).", {"host": hostname}
        )
    return hostname


async def resolve_host(hostname: str) -> List[str]:
    """Resolve every A/AAAA record for a hostname."""
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(hostname, None, type=socket.SOCK_STREAM)
    return list(dict.fromkeys(info[4][0] for info in infos))


def _status_error(status_code: int, url: str) -> RecipeError:
    details = {"status_code": status_code, "url": url}
    if status_code in (403, 429):
        return RecipeError(ErrorCode.BLOCKED_BY_SITE, f"Site blocked the request (status {status_code}).", details)
    if status_code == 404:
        return RecipeError(ErrorCode.RECIPE_NOT_FOUND, "Page not found.", details)
    if status_code >= 500:
        return RecipeError(ErrorCode.SCRAPE_FAILED, f"Site returned server error {status_code}.", details)
    return RecipeError(ErrorCode.SCRAPE_FAILED, f"Site returned status {status_code}.", details)


def _response_encoding(content_type: str) -> str:
    if "charset=" in content_type.lower():
        try:
            return content_type.lower().split("charset=")[1].split(";")[0].strip().strip("\"'") or "utf-8"
        except (IndexError, AttributeError):
            pass
    return "utf-8"


def _decode(content: bytes, encoding: str) -> str:
    try:
        return content.decode(encoding)
    except (UnicodeDecodeError, LookupError):
        return content.decode("utf-8", errors="replace")


class SafeFetcher:
    """Fetches untrusted pages with SSRF checks, a byte cap, a timeout and one retry."""

    def __init__(
        self,
        resolver: Optional[Resolver] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout_seconds: Optional[float] = None,
        max_bytes: Optional[int] = None,
        max_redirects: Optional[int] = None,
        retry_backoff_seconds: Optional[float] = None,
        user_agent: Optional[str] = None,
    ):
        settings = get_settings()
        self.resolver = resolver or resolve_host
        self.transport = transport
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.fetch_timeout_seconds
        self.max_bytes = max_bytes if max_bytes is not None else settings.fetch_max_bytes
        self.max_redirects = max_redirects if max_redirects is not None else settings.fetch_max_redirects
        self.retry_backoff_seconds = (
            retry_backoff_seconds
            if retry_backoff_seconds is not None
            else settings.fetch_retry_backoff_seconds
        )
        self.headers = {
            "User-Agent": user_agent or settings.scraper_user_agent,
            "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        }

    async def ensure_safe_url(self, url: str) -> None:
        """Reject URLs whose host is local or resolves to any blocked address."""
        hostname = validate_url(url)
        host = hostname.strip("[]")
        try:
            ipaddress.ip_address(host.split("%", 1)[0])
            return
        except ValueError:
            pass
        try:
            addresses = await self.resolver(host)
        except (OSError, UnicodeError) as exc:
            raise RecipeError(
                ErrorCode.NETWORK_ERROR, f"Could not resolve host {host}.", {"host": host}
            ) from exc
        if not addresses:
            raise RecipeError(ErrorCode.NETWORK_ERROR, f"Could not resolve host {host}.", {"host": host})
        blocked = [addr for addr in addresses if is_blocked_ip(addr)]
        if blocked:
            logger.warning("Blocked %s: resolves to private address(es) %s", host, blocked)
            raise RecipeError(
                ErrorCode.INVALID_URL,
                "Host resolves to a private or reserved address.",
                {"host": host},
            )

    async def fetch(self, url: str, max_bytes: Optional[int] = None) -> FetchResult:
        """Fetch a page's HTML, following redirects manually."""
        await self.ensure_safe_url(url)
        try:
            return await asyncio.wait_for(
                self._fetch_with_retry(url, max_bytes or self.max_bytes),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise RecipeError(
                ErrorCode.NETWORK_ERROR,
                f"Timed out fetching the page after {self.timeout_seconds:g}s.",
                {"url": url},
            ) from exc

    async def _fetch_with_retry(self, url: str, max_bytes: int) -> FetchResult:
        try:
            return await self._fetch_following_redirects(url, max_bytes)
        except httpx.InvalidURL as exc:
            raise RecipeError(ErrorCode.INVALID_URL, "Invalid URL format", {"url": url}) from exc
        except httpx.TimeoutException as exc:
            raise RecipeError(ErrorCode.NETWORK_ERROR, "Timed out fetching the page.", {"url": url}) from exc
        except httpx.TransportError as exc:
            logger.info("Transient fetch failure for %s (%s); retrying once", url, exc)
        await asyncio.sleep(self.retry_backoff_seconds)
        try:
            return await self._fetch_following_redirects(url, max_bytes)
        except httpx.InvalidURL as exc:
            raise RecipeError(ErrorCode.INVALID_URL, "Invalid URL format", {"url": url}) from exc
        except httpx.TimeoutException as exc:
            raise RecipeError(ErrorCode.NETWORK_ERROR, "Timed out fetching the page.", {"url": url}) from exc
        except httpx.TransportError as exc:
            raise RecipeError(ErrorCode.NETWORK_ERROR, f"Network error: {exc}", {"url": url}) from exc

    async def _fetch_following_redirects(self, url: str, max_bytes: int) -> FetchResult:
        current = url
        async with httpx.AsyncClient(
            follow_redirects=False,
            headers=self.headers,
            transport=self.transport,
        ) as client:
            for _ in range(self.max_redirects + 1):
                async with client.stream("GET", current) as response:
                    if response.status_code in REDIRECT_STATUSES:
                        location = response.headers.get("location")
                        if not location:
                            raise RecipeError(
                                ErrorCode.SCRAPE_FAILED,
                                "Redirect without a Location header.",
                                {"url": current},
                            )
                        target = urljoin(current, location)
                        logger.debug("Redirect %s -> %s", current, target)
                        await self.ensure_safe_url(target)
                        current = target
                        continue
                    if response.status_code >= 400:
                        raise _status_error(response.status_code, current)
                    html = await self._read_html(response, max_bytes)
                    return FetchResult(html=html, final_url=current, status_code=response.status_code)
        raise RecipeError(
            ErrorCode.SCRAPE_FAILED,
            f"Too many redirects (more than {self.max_redirects}).",
            {"url": url},
        )

    async def _read_html(self, response: httpx.Response, max_bytes: int) -> str:
        content_type = response.headers.get("content-type", "")
        if "text/html" not in content_type.lower() and "application/xhtml" not in content_type.lower():
            raise RecipeError(
                ErrorCode.SCRAPE_FAILED,
                f"Unsupported content type: {content_type or 'unknown'}",
                {"content_type": content_type},
            )

        declared = response.headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > max_bytes:
            raise RecipeError(
                ErrorCode.SCRAPE_FAILED,
                "Page is too large to process.",
                {"content_length": int(declared), "max_bytes": max_bytes},
            )

        chunks: List[bytes] = []
        received = 0
        async for chunk in response.aiter_bytes():
            received += len(chunk)
            if received > max_bytes:
                raise RecipeError(
                    ErrorCode.SCRAPE_FAILED,
                    "Page is too large to process.",
                    {"max_bytes": max_bytes},
                )
            chunks.append(chunk)
        return _decode(b"".join(chunks), _response_encoding(content_type))
