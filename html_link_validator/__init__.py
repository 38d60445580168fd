"""
HTML Link Validator
===================
Validates the links of HTML documents before publication.

Inspects a, link and source elements and reports:
- invalid URLs and href="#" placeholders
- anchors without an href (outside HTML5 documents)
- mailto:/tel: links without a payload, malformed email addresses
- plain http:// links when HTTPS is enforced
- missing integrity/crossorigin on external stylesheets
- internal links to missing files, unslashed directories, missing fragments

External links are queued as PendingExternalCheck entries and resolved
separately by ExternalResolver.
"""

__version__ = "1.0.0"

from .models import (
    LinkCategory,
    ExternalStatus,
    ExclusionRule,
    LinkCheckOptions,
    Reference,
    Diagnostic,
    PendingExternalCheck,
    ExternalOutcome,
    LinkCheckResult,
)
from .url_descriptor import UrlDescriptor
from .classifier import classify, sri_applies
from .document_source import HtmlDocument, HtmlElement
from .internal_resolver import FileSystem, LocalFileSystem, InternalResolver
from .checker import LinksChecker
from .external_resolver import ExternalResolver
from .report import LinkReport
from .config_logging import (
    LinkValidatorConfig,
    LinkCheckError,
    ValidationError,
    DocumentSourceError,
    CollaboratorError,
    get_config,
    get_logger,
)

__all__ = [
    # Models
    'LinkCategory',
    'ExternalStatus',
    'ExclusionRule',
    'LinkCheckOptions',
    'Reference',
    'Diagnostic',
    'PendingExternalCheck',
    'ExternalOutcome',
    'LinkCheckResult',
    # Core
    'UrlDescriptor',
    'classify',
    'sri_applies',
    'HtmlDocument',
    'HtmlElement',
    'FileSystem',
    'LocalFileSystem',
    'InternalResolver',
    'LinksChecker',
    # Outside the core
    'ExternalResolver',
    'LinkReport',
    # Configuration and errors
    'LinkValidatorConfig',
    'LinkCheckError',
    'ValidationError',
    'DocumentSourceError',
    'CollaboratorError',
    'get_config',
    'get_logger',
    '__version__',
]
