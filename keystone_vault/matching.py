"""
Domain Matching — Which stored secrets are relevant to the current page.

A matcher partitions a sequence of secret records into ``suggested`` (relevant
to the hostname being viewed) and ``other``. Both lists keep input order and
together contain every input record exactly once.

Domain matchers read only the ``url`` attribute of a record.
"""
import logging
from typing import Any, NamedTuple, Optional
from collections.abc import Sequence
from urllib.parse import urlsplit

logger = logging.getLogger("keystone.matching")


class MatchResult(NamedTuple):
    """Partition of secrets against one target hostname."""

    hostname: Optional[str]
    suggested: list
    other: list

    @property
    def ordered(self) -> list:
        """Suggested secrets first, then the rest."""
        return self.suggested + self.other


def hostname_from_url(page_url: Optional[str]) -> Optional[str]:
    """Extract the hostname of the page being viewed.

    Args:
        page_url: Full URL of the active tab.

    Returns:
        Lowercase hostname, or None if the URL is empty, invalid or hostless
        (``about:blank``).
    """
    if not page_url:
        return None
    try:
        hostname = urlsplit(page_url.strip()).hostname
    except ValueError as err:
        logger.debug("Invalid page URL %r: %s", page_url, err)
        return None
    return hostname or None


_SEARCH_FIELDS = ("title", "username", "url", "client_name")


def filter_by_query(query: Optional[str], secrets: Sequence[Any]) -> list:
    """Secrets whose title, username, url or client name contain ``query``.

    Case-insensitive. An empty query keeps every secret. Input order is
    preserved.
    """
    if not query:
        return list(secrets)
    needle = query.lower()
    return [
        secret for secret in secrets
        if any(
            needle in value.lower()
            for value in (getattr(secret, f, None) for f in _SEARCH_FIELDS)
            if value
        )
    ]


class DomainMatcher:
    """Base matcher: subclasses decide what "relevant" means."""

    name: str = ""

    def is_relevant(self, hostname: str, url: str) -> bool:
        raise NotImplementedError

    def match(self, hostname: Optional[str], secrets: Sequence[Any]) -> MatchResult:
        """Partition ``secrets`` into suggested and other for ``hostname``.

        Args:
            hostname: Hostname of the page being viewed; empty or None
                disables matching.
            secrets: Records exposing a ``url`` attribute (str or None).

        Returns:
            MatchResult with input order preserved in both lists.
        """
        if not hostname:
            return MatchResult(hostname or None, [], list(secrets))
        suggested = []
        other = []
        for secret in secrets:
            url = getattr(secret, "url", None)
            if url and self.is_relevant(hostname, url):
                suggested.append(secret)
            else:
                other.append(secret)
        logger.debug(
            "Matched %d of %d secret(s) for %s (%s)",
            len(suggested), len(suggested) + len(other), hostname, self.name,
        )
        return MatchResult(hostname, suggested, other)

    def suggest(self, hostname: Optional[str], secrets: Sequence[Any]) -> list:
        """Autofill candidates: the suggested half of ``match``."""
        return self.match(hostname, secrets).suggested


class SubstringDomainMatcher(DomainMatcher):
    """Relevant when either string contains the other.

    Loose on purpose: ``url="example.com"`` matches ``app.example.com``.
    No normalization is applied, so ``https://example.com/login`` does not
    match ``app.example.com``, and ``example.com`` matches
    ``notexample.com.evil.org``.
    """

    name = "substring"

    def is_relevant(self, hostname: str, url: str) -> bool:
        return url in hostname or hostname in url


def _normalize_host(value: str) -> Optional[str]:
    value = value.strip().lower()
    if "//" not in value:
        value = "//" + value
    try:
        host = urlsplit(value).hostname
    except ValueError:
        return None
    return host.rstrip(".") if host else None


class HostnameDomainMatcher(DomainMatcher):
    """Relevant when the stored URL's host equals the hostname, or one is a
    subdomain of the other on a label boundary.

    ``https://example.com/login`` matches ``app.example.com``;
    ``example.com`` does not match ``notexample.com.evil.org``.
    Public suffixes are not recognized: ``co.uk`` matches ``shop.co.uk``.
    """

    name = "hostname"

    def is_relevant(self, hostname: str, url: str) -> bool:
        target = _normalize_host(hostname)
        host = _normalize_host(url)
        if not target or not host:
            return False
        return (
            host == target
            or target.endswith("." + host)
            or host.endswith("." + target)
        )


_MATCHERS = {
    SubstringDomainMatcher.name: SubstringDomainMatcher,
    HostnameDomainMatcher.name: HostnameDomainMatcher,
}


def get_matcher(name: str = "substring") -> DomainMatcher:
    """Return a matcher instance by strategy name.

    Raises:
        ValueError: If the strategy is unknown.
    """
    try:
        return _MATCHERS[name.lower()]()
    except KeyError:
        raise ValueError(f"Unknown match strategy: {name}") from None
