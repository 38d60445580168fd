"""
Link Report
===========
Aggregates per-document results and external outcomes into the final
issue list, renders it, and computes the exit code.
"""

from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional

from .external_resolver import request_url
from .models import Diagnostic, ExternalOutcome, LinkCheckResult

EXIT_OK = 0
EXIT_ISSUES = 1
EXIT_ERROR = 2


class LinkReport:
    """
    Final issues for a set of checked documents.

    Args:
        results: One LinkCheckResult per document
        outcomes: External outcomes keyed by URL (None when external checks are disabled)
    """

    def __init__(
        self,
        results: Iterable[LinkCheckResult],
        outcomes: Optional[Dict[str, ExternalOutcome]] = None
    ):
        self.results = list(results)
        self.outcomes = outcomes or {}

    def external_issues(self) -> List[Diagnostic]:
        issues = []
        for result in self.results:
            for check in result.external_checks:
                outcome = self.outcomes.get(request_url(check.url.clean))
                if outcome is None or outcome.ok:
                    continue
                detail = outcome.message
                if outcome.status_code is not None:
                    detail = f"{outcome.status_code} {detail}"
                issues.append(Diagnostic(
                    message=f"External link {check.url.raw} failed: {detail}",
                    line=check.line,
                    path=check.path,
                    rule_id=f"external-{outcome.status.value}",
                ))
        return issues

    @property
    def issues(self) -> List[Diagnostic]:
        issues = [d for result in self.results for d in result.diagnostics]
        issues.extend(self.external_issues())
        return sorted(issues, key=lambda d: (d.path, d.line, d.message))

    def exit_code(self) -> int:
        return EXIT_ISSUES if self.issues else EXIT_OK

    def to_dict(self) -> Dict[str, Any]:
        issues = self.issues
        return {
            'documents': len(self.results),
            'external_checked': len(self.outcomes),
            'issue_count': len(issues),
            'issues': [d.to_dict() for d in issues],
        }

    def render_text(self) -> str:
        issues = self.issues
        if not issues:
            return f"Checked {len(self.results)} document(s): no issues found."

        by_path = defaultdict(list)
        for issue in issues:
            by_path[issue.path or '<string>'].append(issue)

        lines = []
        for path, path_issues in by_path.items():
            lines.append(f"- {path}")
            for issue in path_issues:
                lines.append(f"  * {issue.message} (line {issue.line})")
                if issue.content:
                    lines.append(f"    {issue.content}")
        lines.append("")
        lines.append(f"{len(issues)} issue(s) found in {len(by_path)} document(s).")
        return '\n'.join(lines)
