"""
Links Checker
=============
Walks every a/link/source element of a document, classifies each
reference and dispatches it to the matching rule set.

Evaluation order per element:
1. ignore predicates (terminal, silent)
2. href="#" when hash hrefs are not allowed
3. URL syntax
4. scheme handlers (mailto, tel, http), always run at this point
5. category arm: missing / non-http remote / external / internal / unclassified

External references are not fetched here; they are queued on the result
as PendingExternalCheck entries for ExternalResolver.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from . import __version__
from .base_checker import BaseChecker, make_issue
from .classifier import (
    DEFAULT_IGNORE_PREDICATES,
    IgnorePredicate,
    SriPredicate,
    classify,
    sri_applies,
)
from .config_logging import get_logger
from .document_source import LINK_TAGS, HtmlDocument, HtmlElement
from .internal_resolver import FileSystem, InternalResolver, LocalFileSystem
from .models import (
    Diagnostic,
    LinkCategory,
    LinkCheckOptions,
    LinkCheckResult,
    PendingExternalCheck,
    Reference,
)
from .schemes import check_scheme, check_sri
from .url_descriptor import UrlDescriptor

logger = get_logger(__name__)


@dataclass
class CheckContext:
    """What a category arm may read besides the reference itself."""
    options: LinkCheckOptions
    filesystem: FileSystem
    document: HtmlDocument
    sri_predicate: SriPredicate = sri_applies


@dataclass
class ReferenceOutcome:
    diagnostics: List[Diagnostic] = field(default_factory=list)
    external: Optional[PendingExternalCheck] = None


CategoryArm = Callable[[Reference, CheckContext], ReferenceOutcome]


# =============================================================================
# CATEGORY ARMS
# =============================================================================

def check_missing(reference: Reference, context: CheckContext) -> ReferenceOutcome:
    if reference.tag == 'a' and context.options.allow_missing_href:
        return ReferenceOutcome()
    # HTML5 allows dropping the href
    if context.document.is_html5:
        return ReferenceOutcome()
    return ReferenceOutcome([make_issue(reference, 'anchor has no href attribute', 'missing-href')])


def check_non_http_remote(reference: Reference, context: CheckContext) -> ReferenceOutcome:
    return ReferenceOutcome()


def check_external(reference: Reference, context: CheckContext) -> ReferenceOutcome:
    outcome = ReferenceOutcome()
    url = reference.url

    if context.options.check_sri and context.sri_predicate(reference):
        outcome.diagnostics.extend(check_sri(reference))

    # Existence checks are unreliable for this relation
    if 'dns-prefetch' in reference.rel_values():
        return outcome

    if not url.has_path:
        outcome.diagnostics.append(make_issue(reference, f"{url.raw} is an invalid URL", 'invalid-url'))
        return outcome

    outcome.external = PendingExternalCheck(url=url, line=reference.line, path=reference.path)
    return outcome


def check_internal(reference: Reference, context: CheckContext) -> ReferenceOutcome:
    url = reference.url
    resolver = InternalResolver(
        url,
        context.filesystem,
        context.options,
        document_path=context.document.path,
        current_document=context.document,
    )

    if not resolver.file_exists():
        return ReferenceOutcome([make_issue(
            reference, f"internally linking to {url.raw}, which does not exist", 'internal-missing')])

    diagnostics = []
    if resolver.unslashed_directory():
        diagnostics.append(make_issue(
            reference,
            f"internally linking to a directory {url.raw} without trailing slash",
            'internal-unslashed-directory'))

    if not resolver.hash_exists():
        diagnostics.append(make_issue(
            reference,
            f"internally linking to {url.raw}; the file exists, but the hash does not",
            'internal-missing-hash'))
    return ReferenceOutcome(diagnostics)


def check_unclassified(reference: Reference, context: CheckContext) -> ReferenceOutcome:
    return ReferenceOutcome([make_issue(
        reference,
        f"{reference.url.raw} could not be classified as an internal or external link",
        'unclassified')])


CATEGORY_ARMS: Dict[LinkCategory, CategoryArm] = {
    LinkCategory.MISSING: check_missing,
    LinkCategory.NON_HTTP_REMOTE: check_non_http_remote,
    LinkCategory.EXTERNAL: check_external,
    LinkCategory.INTERNAL: check_internal,
    LinkCategory.UNCLASSIFIED: check_unclassified,
}


# =============================================================================
# ORCHESTRATOR
# =============================================================================

class LinksChecker(BaseChecker):
    """
    Validates the links of HTML documents.

    Usage:
        checker = LinksChecker(LinkCheckOptions(enforce_https=True))
        result = checker.check_file('site/index.html')
        for diagnostic in result.diagnostics:
            print(diagnostic.line, diagnostic.message)
        # result.external_checks go to ExternalResolver

    Args:
        options: Policy options
        filesystem: FileSystem collaborator (defaults to the local disk)
        ignore_predicates: Predicates that skip a reference when any returns True
        sri_predicate: Decides which external references get the SRI audit
    """

    CHECKER_NAME = "Links"
    CHECKER_VERSION = __version__

    def __init__(
        self,
        options: Optional[LinkCheckOptions] = None,
        filesystem: Optional[FileSystem] = None,
        ignore_predicates: Optional[Iterable[IgnorePredicate]] = None,
        sri_predicate: SriPredicate = sri_applies,
        enabled: bool = True
    ):
        super().__init__(enabled)
        self.options = options or LinkCheckOptions()
        self.filesystem = filesystem or LocalFileSystem()
        self.ignore_predicates = list(
            DEFAULT_IGNORE_PREDICATES if ignore_predicates is None else ignore_predicates
        )
        self.sri_predicate = sri_predicate

    def build_reference(self, element: HtmlElement, document: HtmlDocument) -> Reference:
        reference = Reference(
            tag=element.tag,
            line=element.line,
            content=element.content,
            attributes=dict(element.attributes),
            path=document.path,
            ignored=element.ignored,
        )
        return reference.with_url(UrlDescriptor(reference.raw, self.options.internal_domains))

    def is_ignored(self, reference: Reference) -> bool:
        return any(predicate(reference, self.options) for predicate in self.ignore_predicates)

    def check_reference(self, reference: Reference, context: CheckContext) -> ReferenceOutcome:
        """All findings for one reference, in evaluation order."""
        if self.is_ignored(reference):
            return ReferenceOutcome()

        category = classify(reference, self.options)

        if category == LinkCategory.HASH_ONLY:
            return ReferenceOutcome([self.create_issue(
                'linking to internal hash #, which points to nowhere', reference, 'hash-href')])

        if category == LinkCategory.INVALID:
            return ReferenceOutcome([self.create_issue(
                f"{reference.url.raw} is an invalid URL", reference, 'invalid-url')])

        scheme_diagnostics = check_scheme(reference, self.options)
        outcome = CATEGORY_ARMS[category](reference, context)
        outcome.diagnostics[:0] = scheme_diagnostics
        return outcome

    def check(self, document: HtmlDocument, **kwargs) -> LinkCheckResult:
        """
        Check every link-bearing element of a parsed document.

        Collaborator failures (unreadable link targets) propagate as
        CollaboratorError.
        """
        result = LinkCheckResult(path=document.path)
        if not self.enabled:
            return result

        context = CheckContext(
            options=self.options,
            filesystem=self.filesystem,
            document=document,
            sri_predicate=self.sri_predicate,
        )

        with logger.log_operation('check_links', path=document.path):
            for element in document.elements(LINK_TAGS):
                reference = self.build_reference(element, document)
                outcome = self.check_reference(reference, context)
                for diagnostic in outcome.diagnostics:
                    result.add(diagnostic)
                if outcome.external is not None:
                    result.external_checks.append(outcome.external)

        logger.debug(
            f"{document.path or '<string>'}: {len(result.diagnostics)} issues, "
            f"{len(result.external_checks)} external links queued"
        )
        return result

    def check_html(self, html: str, path: str = "") -> LinkCheckResult:
        return self.check(HtmlDocument(html, path))

    def check_file(self, path) -> LinkCheckResult:
        return self.check(HtmlDocument.from_file(path))

    def check_paths(self, paths: Iterable[str], workers: int = 1) -> List[LinkCheckResult]:
        """
        Check several files; with workers > 1 documents run in a thread pool.

        Each document gets its own LinkCheckResult, returned in input order.
        """
        paths = list(paths)
        if workers <= 1 or len(paths) <= 1:
            return [self.check_file(p) for p in paths]
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(self.check_file, paths))
