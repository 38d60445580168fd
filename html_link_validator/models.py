"""
Link Validator Data Models
==========================
Dataclasses for references, diagnostics, pending external checks,
and the policy options that drive the checker.

This module has no I/O and can be tested separately from the rest of
the validation system.
"""

import re
from dataclasses import dataclass, field, asdict, replace
from typing import List, Dict, Optional, Any, Tuple
from enum import Enum


class LinkCategory(Enum):
    """The single category a reference falls into at dispatch time."""
    MISSING = "missing"                   # href/src absent or blank
    HASH_ONLY = "hash_only"               # href="#"
    INVALID = "invalid"                   # fails URL syntax
    NON_HTTP_REMOTE = "non_http_remote"   # mailto:, tel:, ftp:, data:, ...
    INTERNAL = "internal"                 # same document set
    EXTERNAL = "external"                 # another host, checked remotely
    UNCLASSIFIED = "unclassified"         # flag combination with no rule


class ExternalStatus(Enum):
    """Outcome of resolving a pending external check."""
    REACHABLE = "reachable"
    NOT_FOUND = "not_found"
    ERROR = "error"


# Tag -> attribute carrying the reference
REFERENCE_ATTRIBUTES = {
    'a': 'href',
    'link': 'href',
    'source': 'src',
}


@dataclass
class ExclusionRule:
    """
    Rule for ignoring URLs during checking.

    Attributes:
        pattern: URL pattern to match
        match_type: How to match ('exact', 'prefix', 'suffix', 'contains', 'regex')
        reason: Why this URL is excluded
    """
    pattern: str
    match_type: str = "contains"
    reason: str = ""

    def matches(self, url: str) -> bool:
        """Check if URL matches this exclusion rule."""
        if self.match_type == "exact":
            return url == self.pattern
        elif self.match_type == "prefix":
            return url.startswith(self.pattern)
        elif self.match_type == "suffix":
            return url.endswith(self.pattern)
        elif self.match_type == "contains":
            return self.pattern in url
        elif self.match_type == "regex":
            try:
                return bool(re.search(self.pattern, url))
            except re.error:
                return False
        return False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ExclusionRule':
        valid_fields = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**valid_fields)

    @classmethod
    def parse(cls, value: str) -> 'ExclusionRule':
        """Build a rule from CLI text; ``/.../`` means regex, anything else is exact."""
        if len(value) > 1 and value.startswith('/') and value.endswith('/'):
            return cls(pattern=value[1:-1], match_type="regex")
        return cls(pattern=value, match_type="exact")


@dataclass
class LinkCheckOptions:
    """
    Policy options for a checker run.

    Attributes:
        allow_missing_href: Tolerate anchors without an href
        allow_hash_href: Tolerate href="#"
        ignore_empty_mailto: Tolerate a bare "mailto:"
        enforce_https: Report plain http:// links
        check_sri: Audit integrity/crossorigin on external stylesheets
        ignore_urls: Exclusion rules; matching references are skipped
        internal_domains: Hosts whose absolute URLs count as internal
        root_dir: Directory that root-relative paths ("/x") resolve against
        assume_extension: Extension tried for extensionless internal paths
        directory_index_file: File that serves a directory reference
    """
    allow_missing_href: bool = False
    allow_hash_href: bool = False
    ignore_empty_mailto: bool = False
    enforce_https: bool = False
    check_sri: bool = False
    ignore_urls: List[ExclusionRule] = field(default_factory=list)
    internal_domains: Tuple[str, ...] = ()
    root_dir: Optional[str] = None
    assume_extension: str = ".html"
    directory_index_file: str = "index.html"

    def __post_init__(self):
        self.internal_domains = tuple(d.lower() for d in self.internal_domains)
        self.ignore_urls = [
            rule if isinstance(rule, ExclusionRule)
            else ExclusionRule.from_dict(rule) if isinstance(rule, dict)
            else ExclusionRule.parse(str(rule))
            for rule in self.ignore_urls
        ]

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['internal_domains'] = list(self.internal_domains)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LinkCheckOptions':
        valid_fields = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        if 'internal_domains' in valid_fields:
            valid_fields['internal_domains'] = tuple(valid_fields['internal_domains'])
        return cls(**valid_fields)


@dataclass(frozen=True)
class Reference:
    """
    One observed link-bearing element.

    Never mutated; ``with_url`` returns a copy carrying the descriptor.
    """
    tag: str
    line: int
    content: str
    attributes: Dict[str, str]
    path: str = ""
    ignored: bool = False
    url: Optional[Any] = None  # UrlDescriptor once attached

    @property
    def raw(self) -> Optional[str]:
        """The href/src value, or None when the attribute is absent."""
        return self.attributes.get(REFERENCE_ATTRIBUTES.get(self.tag, 'href'))

    @property
    def is_blank(self) -> bool:
        return self.raw is None or not self.raw.strip()

    def attr(self, name: str) -> str:
        return self.attributes.get(name) or ""

    def rel_values(self) -> List[str]:
        return self.attr('rel').lower().split()

    def with_url(self, url: Any) -> 'Reference':
        return replace(self, url=url)


@dataclass
class Diagnostic:
    """A single validation finding."""
    message: str
    line: int
    content: str = ""
    path: str = ""
    rule_id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'message': self.message,
            'line': self.line,
            'content': self.content,
            'path': self.path,
            'rule_id': self.rule_id,
        }

    def key(self) -> Tuple[str, int, str]:
        return (self.path, self.line, self.message)


@dataclass
class PendingExternalCheck:
    """An external reference queued for the remote resolver."""
    url: Any  # UrlDescriptor
    line: int
    path: str = ""

    @property
    def raw(self) -> str:
        return self.url.raw

    def to_dict(self) -> Dict[str, Any]:
        return {'url': self.url.raw, 'line': self.line, 'path': self.path}


@dataclass
class ExternalOutcome:
    """Resolver answer for one external URL."""
    url: str
    status: ExternalStatus
    status_code: Optional[int] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status == ExternalStatus.REACHABLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            'url': self.url,
            'status': self.status.value,
            'status_code': self.status_code,
            'message': self.message,
        }


@dataclass
class LinkCheckResult:
    """Diagnostics and pending external checks for one document."""
    path: str = ""
    diagnostics: List[Diagnostic] = field(default_factory=list)
    external_checks: List[PendingExternalCheck] = field(default_factory=list)

    def add(self, diagnostic: Diagnostic):
        self.diagnostics.append(diagnostic)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'path': self.path,
            'diagnostics': [d.to_dict() for d in self.diagnostics],
            'external_checks': [c.to_dict() for c in self.external_checks],
        }
