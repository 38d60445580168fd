"""
Reference Classifier
====================
Maps a reference to exactly one LinkCategory, plus the small policy
predicates (ignore rules, SRI applicability) the checker is built with.

Everything here is pure: no filesystem, no network.
"""

from typing import Callable, List

from .models import LinkCategory, LinkCheckOptions, Reference

# Tags whose reference attribute is required
REQUIRED_REFERENCE_TAGS = ('a', 'source')

# Link relations that are audited for integrity/crossorigin
SRI_REL_TYPES = ('stylesheet',)

IgnorePredicate = Callable[[Reference, LinkCheckOptions], bool]
SriPredicate = Callable[[Reference], bool]


def classify(reference: Reference, options: LinkCheckOptions) -> LinkCategory:
    """
    Decide which rule set applies to a reference.

    The checks are ordered: hash-only and invalid win over everything,
    then a missing attribute, then the scheme/host flags of the URL.
    Any combination of URL flags not covered maps to UNCLASSIFIED.
    """
    url = reference.url

    if not options.allow_hash_href and reference.raw == '#':
        return LinkCategory.HASH_ONLY

    if not url.valid:
        return LinkCategory.INVALID

    if reference.tag in REQUIRED_REFERENCE_TAGS and reference.is_blank:
        return LinkCategory.MISSING

    if url.non_http_remote:
        return LinkCategory.NON_HTTP_REMOTE

    if not url.clean.startswith('#') and not url.internal and url.remote:
        return LinkCategory.EXTERNAL

    if url.internal:
        return LinkCategory.INTERNAL

    return LinkCategory.UNCLASSIFIED


# =============================================================================
# IGNORE PREDICATES
# =============================================================================

def ignored_by_attribute(reference: Reference, options: LinkCheckOptions) -> bool:
    """Element (or an ancestor) carries the data-link-ignore attribute."""
    return reference.ignored


def ignored_by_url_rule(reference: Reference, options: LinkCheckOptions) -> bool:
    """Raw reference matches a configured exclusion rule."""
    raw = reference.raw
    if raw is None:
        return False
    return any(rule.matches(raw) for rule in options.ignore_urls)


DEFAULT_IGNORE_PREDICATES: List[IgnorePredicate] = [
    ignored_by_attribute,
    ignored_by_url_rule,
]


def sri_applies(reference: Reference) -> bool:
    """Subresource Integrity only covers stylesheet links."""
    if reference.tag != 'link':
        return False
    return any(rel in SRI_REL_TYPES for rel in reference.rel_values())
