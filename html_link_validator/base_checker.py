"""
Base Checker Contract
=====================
Defines the interface document checkers implement.
"""

from typing import Optional

from .models import Diagnostic, LinkCheckResult, Reference


def make_issue(reference: Reference, message: str, rule_id: str, content: Optional[str] = None) -> Diagnostic:
    """Diagnostic located at a reference."""
    return Diagnostic(
        message=message,
        line=reference.line,
        content=reference.content if content is None else content,
        path=reference.path,
        rule_id=rule_id,
    )


class BaseChecker:
    """
    Base class for document checkers.

    Checkers must implement:
    - check() returning a LinkCheckResult
    - CHECKER_NAME and CHECKER_VERSION class attributes
    """

    CHECKER_NAME = "Base"
    CHECKER_VERSION = "1.0.0"

    def __init__(self, enabled: bool = True):
        self.enabled = enabled

    def check(self, document, **kwargs) -> LinkCheckResult:
        """
        Run the check on a parsed document.

        Args:
            document: The parsed document to inspect

        Returns:
            LinkCheckResult with diagnostics and queued external checks
        """
        raise NotImplementedError("Subclasses must implement check()")

    def create_issue(
        self,
        message: str,
        reference: Reference,
        rule_id: str = "",
        content: Optional[str] = None
    ) -> Diagnostic:
        """
        Create a diagnostic located at a reference.

        Args:
            message: Human-readable issue description
            reference: The reference the issue is about
            rule_id: Stable rule identifier
            content: Snippet override; defaults to the reference's content
        """
        return make_issue(reference, message, rule_id or self.CHECKER_NAME.lower(), content)
