"""
Shared fixtures for the link validator tests.
"""

import os
from typing import Dict, Iterable, Optional, Set

import pytest

from html_link_validator.internal_resolver import FileSystem
from html_link_validator.checker import LinksChecker
from html_link_validator.models import LinkCheckOptions

HTML5 = "<!DOCTYPE html>"
XHTML = ('<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Strict//EN" '
         '"http://www.w3.org/TR/xhtml1/DTD/xhtml1-strict.dtd">')


class MemoryFileSystem(FileSystem):
    """In-memory document tree: files map to the ids they contain."""

    def __init__(self, files: Optional[Dict[str, Iterable[str]]] = None,
                 directories: Iterable[str] = ()):
        self.files: Dict[str, Set[str]] = {
            os.path.normpath(p): set(ids) for p, ids in (files or {}).items()
        }
        self.directories = {os.path.normpath(d) for d in directories}
        self.calls = []

    def exists(self, path: str) -> bool:
        self.calls.append(('exists', path))
        path = os.path.normpath(path)
        return path in self.files or path in self.directories

    def is_directory(self, path: str) -> bool:
        self.calls.append(('is_directory', path))
        return os.path.normpath(path) in self.directories

    def fragment_exists(self, path: str, fragment: str) -> bool:
        self.calls.append(('fragment_exists', path, fragment))
        return fragment in self.files.get(os.path.normpath(path), set())


def page(body: str, doctype: str = HTML5) -> str:
    return f"{doctype}\n<html><head></head><body>\n{body}\n</body></html>\n"


def messages(result):
    return [d.message for d in result.diagnostics]


@pytest.fixture
def site(tmp_path):
    """
    A small site on disk:

        index.html          (id="intro")
        page.html           (id="section-1", <a name="legacy">)
        about.html
        docs/index.html     (id="start")
        assets/report.pdf
    """
    (tmp_path / 'index.html').write_text(page('<h1 id="intro">Home</h1>'), encoding='utf-8')
    (tmp_path / 'page.html').write_text(
        page('<h2 id="section-1">One</h2><a name="legacy">old</a>'), encoding='utf-8')
    (tmp_path / 'about.html').write_text(page('<p>About</p>'), encoding='utf-8')
    (tmp_path / 'docs').mkdir()
    (tmp_path / 'docs' / 'index.html').write_text(page('<h1 id="start">Docs</h1>'), encoding='utf-8')
    (tmp_path / 'assets').mkdir()
    (tmp_path / 'assets' / 'report.pdf').write_bytes(b'%PDF-1.4')
    return tmp_path


@pytest.fixture
def check_in_site(site):
    """Check a body snippet as if it were site/current.html."""
    def _check(body: str, doctype: str = HTML5, **options):
        options.setdefault('root_dir', str(site))
        checker = LinksChecker(LinkCheckOptions(**options))
        path = site / 'current.html'
        path.write_text(page(body, doctype), encoding='utf-8')
        return checker.check_file(str(path))
    return _check
