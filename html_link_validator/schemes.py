"""
Scheme Handlers
===============
Per-scheme checks (mailto, tel, http) and the SRI/CORS audit for
external stylesheet links. Each handler takes the reference and the
options and returns the diagnostics it found; none of them has side
effects.
"""

import re
from typing import Callable, Dict, List

from .base_checker import make_issue
from .models import Diagnostic, LinkCheckOptions, Reference

# Standard email address grammar (RFC 5322, simplified as in HTML5 input[type=email])
EMAIL_PATTERN = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@"
    r"[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)

SchemeHandler = Callable[[Reference, LinkCheckOptions], List[Diagnostic]]


def is_valid_email(address: str) -> bool:
    return bool(EMAIL_PATTERN.match(address))


def handle_mailto(reference: Reference, options: LinkCheckOptions) -> List[Diagnostic]:
    url = reference.url
    if not url.path:
        if options.ignore_empty_mailto:
            return []
        return [make_issue(reference, f"{url.raw} contains no email address", "mailto-empty")]

    # mailto: allows several comma-separated recipients
    recipients = [r.strip() for r in url.path.split(',')]
    if not all(is_valid_email(r) for r in recipients):
        return [make_issue(reference, f"{url.raw} contains an invalid email address", "mailto-invalid")]
    return []


def handle_tel(reference: Reference, options: LinkCheckOptions) -> List[Diagnostic]:
    url = reference.url
    if not url.path:
        return [make_issue(reference, f"{url.raw} contains no phone number", "tel-empty")]
    return []


def handle_http(reference: Reference, options: LinkCheckOptions) -> List[Diagnostic]:
    if not options.enforce_https:
        return []
    return [make_issue(reference, f"{reference.url.raw} is not an HTTPS link", "https-required")]


SCHEME_HANDLERS: Dict[str, SchemeHandler] = {
    'mailto': handle_mailto,
    'tel': handle_tel,
    'http': handle_http,
}


def check_scheme(reference: Reference, options: LinkCheckOptions) -> List[Diagnostic]:
    """Run the handler registered for the reference's scheme, if any."""
    handler = SCHEME_HANDLERS.get(reference.url.scheme)
    if handler is None:
        return []
    return handler(reference, options)


def check_sri(reference: Reference) -> List[Diagnostic]:
    """
    Audit integrity and crossorigin attributes of an external resource.

    Both missing, one missing, or neither missing each give a distinct
    message; a fully annotated element is clean.
    """
    has_integrity = bool(reference.attr('integrity').strip())
    has_crossorigin = bool(reference.attr('crossorigin').strip())
    raw = reference.url.raw

    if not has_integrity and not has_crossorigin:
        return [make_issue(reference, f"SRI and CORS not provided in: {raw}", "sri-missing")]
    if not has_integrity:
        return [make_issue(reference, f"Integrity is missing in: {raw}", "sri-integrity")]
    if not has_crossorigin:
        return [make_issue(reference, f"CORS not provided for external resource in: {raw}", "sri-cors")]
    return []
