"""
Favicon Resolution.

Finds a logo for an opportunity from its website URL. Candidates are tried
in order:

    1. Favicon provider (Google s2) for the domain
    2. ``<origin>/favicon.ico`` on the site itself
    3. Generated placeholder (SVG data URI with the domain's initial)

Probing is best-effort. HEAD requests go through a shared circuit breaker
and a short retry on transport errors; any failure just moves on to the
next candidate, so resolution never raises.

Usage:
    from modules.backend.services.favicon import FaviconResolver, favicon_url_sync

    logo = favicon_url_sync("https://www.example.com/apply")  # no network

    async with FaviconResolver() as resolver:
        result = await resolver.resolve("https://www.example.com/apply")
"""

import re
from dataclasses import dataclass
from urllib.parse import quote, urlencode, urlsplit

import aiobreaker
import httpx

from modules.backend.core.config import get_app_config
from modules.backend.core.config_schema import FaviconSchema
from modules.backend.core.logging import get_logger
from modules.backend.core.resilience import create_circuit_breaker, transport_retrying

logger = get_logger(__name__)

_DOMAIN_PATTERN = re.compile(r"(?:https?://)?(?:www\.)?([^/]+)")

_PLACEHOLDER_COLORS = ("#2563eb", "#16a34a", "#d97706", "#dc2626", "#7c3aed", "#0891b2")

_breaker: aiobreaker.CircuitBreaker | None = None


def _strip_www(host: str) -> str:
    return host[4:] if host.startswith("www.") else host


def extract_domain(url: str | None) -> str | None:
    """
    Extract the bare domain from a website URL.

    Full URLs are parsed; scheme-less input such as ``example.com/apply``
    falls back to a pattern match. Returns None when nothing usable remains.
    """
    if not url or not url.strip():
        return None
    url = url.strip()

    try:
        host = urlsplit(url).hostname
    except ValueError:
        host = None
    if host:
        return _strip_www(host) or None

    match = _DOMAIN_PATTERN.match(url)
    if not match:
        return None
    domain = match.group(1).split("?")[0].split("#")[0].strip()
    return domain or None


def provider_favicon_url(domain: str, config: FaviconSchema | None = None) -> str:
    """Favicon provider URL for a domain."""
    config = config or get_app_config().listing.favicon
    return f"{config.provider_url}?{urlencode({'domain': domain, 'sz': config.size})}"


def origin_favicon_url(url: str, domain: str) -> str:
    """``/favicon.ico`` on the site's own origin (https when no scheme was given)."""
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        parts = None
    if parts is not None and parts.scheme in ("http", "https") and parts.netloc:
        return f"{parts.scheme}://{parts.netloc}/favicon.ico"
    return f"https://{domain}/favicon.ico"


def favicon_url_sync(url: str | None, config: FaviconSchema | None = None) -> str:
    """Provider favicon URL without any network check; empty string if no domain."""
    domain = extract_domain(url)
    if not domain:
        return ""
    return provider_favicon_url(domain, config)


def placeholder_icon(domain: str | None) -> str:
    """SVG data URI showing the domain's initial on a colored tile."""
    initial = (domain or "?")[0].upper()
    color = _PLACEHOLDER_COLORS[sum((domain or "").encode("utf-8")) % len(_PLACEHOLDER_COLORS)]
    svg = (
        '<svg xmlns="http://www.w3.org/2000/svg" width="64" height="64" viewBox="0 0 64 64">'
        f'<rect width="64" height="64" rx="12" fill="{color}"/>'
        '<text x="50%" y="50%" dy=".35em" text-anchor="middle" '
        'font-family="sans-serif" font-size="32" fill="#ffffff">'
        f"{initial}</text></svg>"
    )
    return "data:image/svg+xml;charset=utf-8," + quote(svg)


def get_favicon_breaker() -> aiobreaker.CircuitBreaker:
    """Shared circuit breaker for favicon probes (lazy initialization)."""
    global _breaker
    if _breaker is None:
        config = get_app_config().listing.favicon
        _breaker = create_circuit_breaker(
            "favicon",
            fail_max=config.breaker_fail_max,
            timeout_duration=config.breaker_timeout_seconds,
        )
    return _breaker


@dataclass(frozen=True)
class FaviconResult:
    """Outcome of a resolution: chosen URL and which step produced it."""

    url: str
    domain: str | None
    logo_url: str
    source: str


class FaviconResolver:
    """
    Resolves logos through the favicon fallback chain.

    Args:
        client: HTTP client to probe with (one is created and owned if omitted)
        config: Favicon settings (defaults to listing.yaml)
        probe_enabled: Overrides the favicon_probe_enabled feature flag
        breaker: Circuit breaker to use (defaults to the shared one)
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        config: FaviconSchema | None = None,
        probe_enabled: bool | None = None,
        breaker: aiobreaker.CircuitBreaker | None = None,
    ) -> None:
        self.config = config or get_app_config().listing.favicon
        self.probe_enabled = (
            probe_enabled if probe_enabled is not None
            else get_app_config().features.favicon_probe_enabled
        )
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=self.config.probe_timeout_seconds,
            follow_redirects=True,
        )
        self._breaker = breaker or get_favicon_breaker()

    async def __aenter__(self) -> "FaviconResolver":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def resolve(self, url: str) -> FaviconResult:
        """Walk the fallback chain for ``url``. Never raises."""
        domain = extract_domain(url)
        if not domain:
            return FaviconResult(url=url, domain=None, logo_url=placeholder_icon(None), source="placeholder")

        provider = provider_favicon_url(domain, self.config)
        if not self.probe_enabled:
            return FaviconResult(url=url, domain=domain, logo_url=provider, source="provider")

        candidates = (("provider", provider), ("origin", origin_favicon_url(url, domain)))
        for source, candidate in candidates:
            try:
                if await self._probe(candidate):
                    logger.debug("Favicon resolved", extra={"domain": domain, "favicon_source": source})
                    return FaviconResult(url=url, domain=domain, logo_url=candidate, source=source)
            except (httpx.HTTPError, aiobreaker.CircuitBreakerError) as e:
                logger.info(
                    "Favicon candidate unavailable",
                    extra={"domain": domain, "favicon_source": source, "error": str(e)},
                )

        return FaviconResult(url=url, domain=domain, logo_url=placeholder_icon(domain), source="placeholder")

    async def _probe(self, candidate: str) -> bool:
        """HEAD the candidate; True when it answers below 400."""
        async for attempt in transport_retrying("favicon"):
            with attempt:
                response = await self._breaker.call_async(self._client.head, candidate)
        return response.status_code < 400
