"""
HTML Document Source
====================
Parses HTML with BeautifulSoup and exposes the link-bearing elements,
the doctype, and the set of fragment targets (ids and anchor names).

The html.parser backend is used because it records the 1-based source
line of every tag.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

from bs4 import BeautifulSoup, Doctype, Tag

from .config_logging import DocumentSourceError, get_logger, handle_errors

logger = get_logger(__name__)

LINK_TAGS = ('a', 'link', 'source')
IGNORE_ATTRIBUTE = 'data-link-ignore'
MAX_CONTENT_LENGTH = 200


@dataclass
class HtmlElement:
    """A matched element with its attributes and location."""
    tag: str
    attributes: Dict[str, str]
    line: int
    content: str
    ignored: bool = False


def _attribute_text(value) -> str:
    # bs4 returns multi-valued attributes (rel, class) as lists
    if isinstance(value, (list, tuple)):
        return ' '.join(value)
    return value if value is not None else ""


def _snippet(tag: Tag) -> str:
    text = tag.get_text(strip=True)
    if not text:
        text = str(tag)
    if len(text) > MAX_CONTENT_LENGTH:
        text = text[:MAX_CONTENT_LENGTH] + '...'
    return text


def _is_ignored(tag: Tag) -> bool:
    if tag.has_attr(IGNORE_ATTRIBUTE):
        return True
    return any(parent.has_attr(IGNORE_ATTRIBUTE) for parent in tag.parents
               if isinstance(parent, Tag))


class HtmlDocument:
    """
    A parsed HTML document.

    Usage:
        doc = HtmlDocument.from_file('site/index.html')
        for element in doc.elements():
            print(element.tag, element.line)
    """

    def __init__(self, html: str, path: str = ""):
        self.path = path
        self.soup = BeautifulSoup(html, 'html.parser')
        self._fragment_targets: Optional[Set[str]] = None

    @classmethod
    @handle_errors(logger)
    def from_file(cls, path) -> 'HtmlDocument':
        """Read and parse a file; read failures raise DocumentSourceError."""
        path = Path(path)
        try:
            html = path.read_text(encoding='utf-8', errors='replace')
        except IsADirectoryError as e:
            raise DocumentSourceError(f"Not a file: {path}", path=str(path)) from e
        return cls(html, str(path))

    @property
    def doctype(self) -> Optional[str]:
        for item in self.soup.contents:
            if isinstance(item, Doctype):
                text = str(item).strip()
                # html.parser only strips an upper-case "DOCTYPE " prefix
                if text[:8].lower() == 'doctype ':
                    text = text[8:].strip()
                return text
        return None

    @property
    def doctype_name(self) -> Optional[str]:
        doctype = self.doctype
        if doctype is None:
            return None
        parts = doctype.split(None, 1)
        return parts[0].lower() if parts else ""

    @property
    def doctype_external_id(self) -> Optional[str]:
        doctype = self.doctype
        if doctype is None:
            return None
        parts = doctype.split(None, 1)
        return parts[1].strip() if len(parts) > 1 else None

    @property
    def doctype_public_id(self) -> Optional[str]:
        """Public identifier of the doctype; SYSTEM-only doctypes have none."""
        external_id = self.doctype_external_id
        if not external_id or external_id[:6].upper() != 'PUBLIC':
            return None
        return external_id[6:].strip() or None

    @property
    def is_html5(self) -> bool:
        """No doctype, or an html doctype without a public identifier."""
        if self.doctype is None:
            return True
        return self.doctype_name == 'html' and not self.doctype_public_id

    def elements(self, tags: Iterable[str] = LINK_TAGS) -> List[HtmlElement]:
        """Matching elements in document order."""
        found = []
        for tag in self.soup.find_all(list(tags)):
            found.append(HtmlElement(
                tag=tag.name,
                attributes={k: _attribute_text(v) for k, v in tag.attrs.items()},
                line=tag.sourceline or 0,
                content=_snippet(tag),
                ignored=_is_ignored(tag),
            ))
        return found

    @property
    def fragment_targets(self) -> Set[str]:
        """Every id in the document plus every anchor name."""
        if self._fragment_targets is None:
            targets = set()
            for tag in self.soup.find_all(True):
                if tag.get('id'):
                    targets.add(_attribute_text(tag['id']))
                if tag.name == 'a' and tag.get('name'):
                    targets.add(_attribute_text(tag['name']))
            self._fragment_targets = targets
        return self._fragment_targets

    def has_fragment(self, fragment: str) -> bool:
        return fragment in self.fragment_targets
