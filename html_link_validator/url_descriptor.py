"""
URL Descriptor
==============
Read-only view over a raw href/src value exposing the facts the
classifier needs: scheme, path, validity, and where the URL points.
"""

import re
from typing import Iterable, Optional
from urllib.parse import urlsplit, unquote, SplitResult

HTTP_SCHEMES = ('http', 'https')

# A '%' that does not start a two-digit hex escape
_BAD_PERCENT = re.compile(r'%(?![0-9A-Fa-f]{2})')
_CONTROL_CHARS = re.compile(r'[\x00-\x1f\x7f]')
_ILLEGAL_HOST_CHARS = set(' \t<>"{}|\\^`')


class UrlDescriptor:
    """
    Derived facts about one raw reference string.

    Usage:
        url = UrlDescriptor('https://example.com/a.css')
        url.remote        # True
        url.scheme        # 'https'

    Args:
        raw: The attribute value as written in the markup (None if absent)
        internal_domains: Hosts whose absolute URLs are treated as internal
    """

    def __init__(self, raw: Optional[str], internal_domains: Iterable[str] = ()):
        self._raw = raw
        self._internal_domains = frozenset(d.lower() for d in internal_domains)
        self._parts: Optional[SplitResult] = None
        self._valid = self._parse()

    def _parse(self) -> bool:
        text = self.clean
        if _CONTROL_CHARS.search(text) or _BAD_PERCENT.search(text):
            return False
        try:
            parts = urlsplit(text)
            parts.port  # raises ValueError on a non-numeric port
        except ValueError:
            return False
        if any(ch in _ILLEGAL_HOST_CHARS for ch in parts.netloc):
            return False
        self._parts = parts
        return True

    def __repr__(self) -> str:
        return f"UrlDescriptor({self._raw!r})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, UrlDescriptor):
            return NotImplemented
        return self._raw == other._raw and self._internal_domains == other._internal_domains

    def __hash__(self) -> int:
        return hash((self._raw, self._internal_domains))

    @property
    def raw(self) -> str:
        return self._raw if self._raw is not None else ""

    @property
    def clean(self) -> str:
        return self.raw.strip()

    @property
    def valid(self) -> bool:
        return self._valid

    @property
    def scheme(self) -> str:
        return self._parts.scheme.lower() if self._parts else ""

    @property
    def host(self) -> str:
        return (self._parts.hostname or "") if self._parts else ""

    @property
    def path(self) -> str:
        """Path or opaque part; percent-decoded for mailto/tel payloads."""
        if not self._parts:
            return ""
        if self.scheme in ('mailto', 'tel'):
            return unquote(self._parts.path).strip()
        return self._parts.path

    @property
    def query(self) -> str:
        return self._parts.query if self._parts else ""

    @property
    def fragment(self) -> str:
        return self._parts.fragment if self._parts else ""

    @property
    def has_fragment(self) -> bool:
        return '#' in self.clean

    @property
    def hash_only(self) -> bool:
        return self.raw == '#'

    @property
    def has_path(self) -> bool:
        """A remote URL needs a host to have anything to resolve."""
        return bool(self.host)

    @property
    def internal_host(self) -> bool:
        return bool(self.host) and self.host.lower() in self._internal_domains

    @property
    def internal(self) -> bool:
        if not self._parts:
            return False
        if not self.scheme and not self._parts.netloc:
            return True
        return self.scheme in ('',) + HTTP_SCHEMES and self.internal_host

    @property
    def remote(self) -> bool:
        if not self._parts or self.internal_host:
            return False
        if self.scheme in HTTP_SCHEMES:
            return True
        return not self.scheme and bool(self._parts.netloc)

    @property
    def non_http_remote(self) -> bool:
        return bool(self.scheme) and self.scheme not in HTTP_SCHEMES
