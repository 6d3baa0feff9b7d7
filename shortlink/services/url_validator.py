"""URL validation and normalization.

Pure functions over the submitted string: no I/O, no state beyond the
configured limits. Every rejection raises InvalidURLError tagged with the
ValidationRule that failed.
"""

import re
from functools import lru_cache
from typing import Iterable
from urllib.parse import SplitResult, urlsplit

from shortlink.core.config import settings
from shortlink.services.exceptions import InvalidURLError, ValidationRule

DEFAULT_PORTS = {"http": 80, "https": 443}

# Whitespace and control characters are never valid inside a URL
_FORBIDDEN_CHARS = re.compile(r"[\s\x00-\x1f\x7f]")
# Characters that cannot appear in a host once IPv6 brackets are removed
_INVALID_HOST_CHARS = re.compile(r"[<>\"{}|\\^`\[\]/?#@]")


class URLValidator:
    """
    Validates and canonicalizes URLs submitted for shortening.

    Args:
        max_length: Longest accepted input, counted after trimming whitespace
        disallowed_hosts: Hosts that may not be shortened (compared case-insensitively)
    """

    def __init__(self, max_length: int = 2048, disallowed_hosts: Iterable[str] = ("localhost", "127.0.0.1", "::1")):
        self.max_length = max_length
        self.disallowed_hosts = frozenset(host.lower().strip("[]") for host in disallowed_hosts)

    def validate(self, raw: str) -> None:
        """Raise InvalidURLError if ``raw`` cannot be shortened."""
        self._parse(raw)

    def normalize(self, raw: str) -> str:
        """
        Return the canonical form of ``raw``.

        Lowercases scheme and host, drops the scheme's default port and
        trailing path slashes (a bare "/" path is kept), and keeps userinfo,
        query and fragment untouched. Applying it twice gives the same string.

        Raises:
            InvalidURLError: If the URL fails validation
        """
        parts = self._parse(raw)
        scheme = parts.scheme.lower()

        host = parts.hostname
        if ":" in host:
            host = f"[{host}]"
        netloc = host
        if parts.port is not None and parts.port != DEFAULT_PORTS[scheme]:
            netloc = f"{host}:{parts.port}"

        userinfo, at, _ = parts.netloc.rpartition("@")
        if at:
            netloc = f"{userinfo}@{netloc}"

        path = parts.path
        if path != "/" and path.endswith("/"):
            path = path.rstrip("/") or "/"

        normalized = f"{scheme}://{netloc}{path}"
        if parts.query:
            normalized += f"?{parts.query}"
        if parts.fragment:
            normalized += f"#{parts.fragment}"
        return normalized

    def _parse(self, raw: str) -> SplitResult:
        if not isinstance(raw, str):
            raise InvalidURLError("URL must be a string", ValidationRule.MALFORMED)

        url = raw.strip()
        if not url:
            raise InvalidURLError("URL is empty", ValidationRule.EMPTY)
        if len(url) > self.max_length:
            raise InvalidURLError(
                f"URL is too long (maximum {self.max_length} characters)",
                ValidationRule.TOO_LONG,
            )
        if _FORBIDDEN_CHARS.search(url):
            raise InvalidURLError("URL contains whitespace or control characters", ValidationRule.MALFORMED)

        try:
            parts = urlsplit(url)
        except ValueError as e:
            raise InvalidURLError(f"Malformed URL: {e}", ValidationRule.MALFORMED) from e

        if not parts.scheme or not parts.netloc:
            raise InvalidURLError("Malformed URL: an absolute URL is required", ValidationRule.MALFORMED)
        if parts.scheme.lower() not in DEFAULT_PORTS:
            raise InvalidURLError("URL must use http or https", ValidationRule.UNSUPPORTED_SCHEME)

        host = parts.hostname
        if not host or _INVALID_HOST_CHARS.search(host):
            raise InvalidURLError("Malformed URL: invalid host", ValidationRule.MALFORMED)
        try:
            parts.port
        except ValueError as e:
            raise InvalidURLError("Malformed URL: invalid port", ValidationRule.MALFORMED) from e

        if host.rstrip(".") in self.disallowed_hosts:
            raise InvalidURLError(f"Disallowed host: {host}", ValidationRule.DISALLOWED_HOST)

        return parts


@lru_cache
def get_url_validator() -> URLValidator:
    """Validator configured from application settings."""
    return URLValidator(
        max_length=settings.URL_MAX_LENGTH,
        disallowed_hosts=settings.URL_DISALLOWED_HOSTS,
    )


def validate_url(raw: str) -> None:
    """Validate ``raw`` with the application's limits."""
    get_url_validator().validate(raw)


def normalize_url(raw: str) -> str:
    """Normalize ``raw`` with the application's limits."""
    return get_url_validator().normalize(raw)
