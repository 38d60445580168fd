"""
Tests for LinkReport and the command-line entry point
=====================================================
"""

import json
from unittest.mock import patch

from html_link_validator.cli import collect_files, main
from html_link_validator.models import (
    Diagnostic,
    ExternalOutcome,
    ExternalStatus,
    LinkCheckResult,
    PendingExternalCheck,
)
from html_link_validator.report import EXIT_ERROR, EXIT_ISSUES, EXIT_OK, LinkReport
from html_link_validator.url_descriptor import UrlDescriptor

from .conftest import page


def result_with_external(path='a.html'):
    result = LinkCheckResult(path=path)
    result.add(Diagnostic('tel: contains no phone number', 4, 'Call', path))
    result.external_checks.append(PendingExternalCheck(UrlDescriptor('https://ok.example.com/'), 2, path))
    result.external_checks.append(PendingExternalCheck(UrlDescriptor('https://gone.example.com/'), 8, path))
    return result


class TestLinkReport:

    def test_external_failures_become_issues(self):
        outcomes = {
            'https://ok.example.com/': ExternalOutcome('https://ok.example.com/', ExternalStatus.REACHABLE, 200),
            'https://gone.example.com/': ExternalOutcome('https://gone.example.com/', ExternalStatus.NOT_FOUND,
                                                         404, 'not found'),
        }
        report = LinkReport([result_with_external()], outcomes)
        assert [(d.line, d.message) for d in report.issues] == [
            (4, 'tel: contains no phone number'),
            (8, 'External link https://gone.example.com/ failed: 404 not found'),
        ]
        assert report.issues[1].rule_id == 'external-not_found'
        assert report.exit_code() == EXIT_ISSUES

    def test_without_outcomes_only_diagnostics(self):
        report = LinkReport([result_with_external()])
        assert len(report.issues) == 1

    def test_sorted_by_path_then_line(self):
        first = LinkCheckResult(path='b.html', diagnostics=[Diagnostic('x', 9, path='b.html')])
        second = LinkCheckResult(path='a.html', diagnostics=[Diagnostic('y', 5, path='a.html'),
                                                             Diagnostic('z', 1, path='a.html')])
        report = LinkReport([first, second])
        assert [(d.path, d.line) for d in report.issues] == [('a.html', 1), ('a.html', 5), ('b.html', 9)]

    def test_clean_report(self):
        report = LinkReport([LinkCheckResult(path='a.html')])
        assert report.exit_code() == EXIT_OK
        assert 'no issues found' in report.render_text()

    def test_render_text_and_dict(self):
        report = LinkReport([result_with_external()])
        text = report.render_text()
        assert '- a.html' in text
        assert 'tel: contains no phone number (line 4)' in text
        data = report.to_dict()
        assert data['issue_count'] == 1
        assert data['issues'][0]['line'] == 4


class TestCli:

    def test_collect_files(self, site):
        files = collect_files([str(site)])
        assert str(site / 'docs' / 'index.html') in files
        assert not any(f.endswith('.pdf') for f in files)

    def test_reports_issues(self, site, capsys):
        (site / 'index.html').write_text(page('<a href="gone.html">x</a><a href="mailto:">m</a>'),
                                         encoding='utf-8')
        code = main([str(site), '--disable-external'])
        out = capsys.readouterr().out
        assert code == EXIT_ISSUES
        assert 'internally linking to gone.html, which does not exist' in out
        assert 'mailto: contains no email address' in out

    def test_policy_flags(self, site, capsys):
        (site / 'index.html').write_text(page('<a href="mailto:">m</a><a href="#">t</a>'), encoding='utf-8')
        code = main([str(site / 'index.html'), '--disable-external',
                     '--ignore-empty-mailto', '--allow-hash-href'])
        assert code == EXIT_OK

    def test_json_format(self, site, capsys):
        (site / 'index.html').write_text(page('<a href="http://example.com">x</a>'), encoding='utf-8')
        code = main([str(site / 'index.html'), '--disable-external', '--enforce-https', '--format', 'json'])
        data = json.loads(capsys.readouterr().out)
        assert code == EXIT_ISSUES
        assert data['issues'][0]['message'] == 'http://example.com is not an HTTPS link'

    def test_external_links_resolved(self, site, capsys):
        (site / 'index.html').write_text(page('<a href="https://gone.example.com/">x</a>'), encoding='utf-8')
        outcome = ExternalOutcome('https://gone.example.com/', ExternalStatus.NOT_FOUND, 404, 'not found')
        with patch('html_link_validator.cli.ExternalResolver') as resolver_cls:
            resolver_cls.return_value.__enter__.return_value.resolve_all.return_value = {
                'https://gone.example.com/': outcome
            }
            code = main([str(site / 'index.html')])
        assert code == EXIT_ISSUES
        assert 'External link https://gone.example.com/ failed: 404 not found' in capsys.readouterr().out

    def test_unreadable_input(self, tmp_path, capsys):
        code = main([str(tmp_path / 'missing.html'), '--disable-external'])
        assert code == EXIT_ERROR
        assert 'error:' in capsys.readouterr().err
