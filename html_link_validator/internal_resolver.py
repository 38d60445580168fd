"""
Internal Existence Resolver
===========================
Resolves internal references against the local document tree and answers
three questions: does the target exist, is it a directory referenced
without a trailing slash, and does the fragment exist in it.

The filesystem is reached only through a FileSystem collaborator so the
resolver can run against an in-memory tree in tests.
"""

import os
import threading
from typing import Dict, Optional
from urllib.parse import unquote

from .config_logging import CollaboratorError, DocumentSourceError
from .document_source import HtmlDocument
from .models import LinkCheckOptions
from .url_descriptor import UrlDescriptor

HTML_EXTENSIONS = ('.html', '.htm')

# Fragments that always resolve in a browser
IMPLICIT_FRAGMENTS = ('top',)


class FileSystem:
    """Collaborator interface for internal existence checks."""

    def exists(self, path: str) -> bool:
        raise NotImplementedError

    def is_directory(self, path: str) -> bool:
        raise NotImplementedError

    def fragment_exists(self, path: str, fragment: str) -> bool:
        raise NotImplementedError


class LocalFileSystem(FileSystem):
    """
    FileSystem backed by the real disk.

    Parsed target documents are cached per path, so a page linked from
    many places is parsed once. Safe to share between worker threads.
    """

    def __init__(self):
        self._documents: Dict[str, HtmlDocument] = {}
        self._lock = threading.Lock()

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def is_directory(self, path: str) -> bool:
        return os.path.isdir(path)

    def _document(self, path: str) -> HtmlDocument:
        key = os.path.abspath(path)
        with self._lock:
            document = self._documents.get(key)
        if document is None:
            try:
                document = HtmlDocument.from_file(path)
            except DocumentSourceError as e:
                raise CollaboratorError(f"Cannot read link target {path}: {e.message}", path=path) from e
            with self._lock:
                self._documents.setdefault(key, document)
        return document

    def fragment_exists(self, path: str, fragment: str) -> bool:
        return self._document(path).has_fragment(fragment)

    def clear_cache(self):
        with self._lock:
            self._documents.clear()


class ConfinedFileSystem(FileSystem):
    """
    FileSystem limited to one directory tree.

    Relative paths resolve against root. Paths that leave the tree,
    including through symlinks, do not exist.
    """

    def __init__(self, root: str, inner: Optional[FileSystem] = None):
        self.root = os.path.realpath(root)
        self.inner = inner or LocalFileSystem()

    def locate(self, path: str) -> Optional[str]:
        full = os.path.realpath(os.path.join(self.root, path))
        if full != self.root and not full.startswith(self.root.rstrip(os.sep) + os.sep):
            return None
        return full

    def exists(self, path: str) -> bool:
        full = self.locate(path)
        return full is not None and self.inner.exists(full)

    def is_directory(self, path: str) -> bool:
        full = self.locate(path)
        return full is not None and self.inner.is_directory(full)

    def fragment_exists(self, path: str, fragment: str) -> bool:
        full = self.locate(path)
        return full is not None and self.inner.fragment_exists(full, fragment)


class InternalResolver:
    """
    Existence checks for one internal URL.

    Args:
        url: The internal URL descriptor
        filesystem: FileSystem collaborator
        options: Checker options (root_dir, assume_extension, directory_index_file)
        document_path: Path of the document containing the link ('' for in-memory input)
        current_document: The parsed containing document, used for same-page fragments
    """

    def __init__(
        self,
        url: UrlDescriptor,
        filesystem: FileSystem,
        options: LinkCheckOptions,
        document_path: str = "",
        current_document: Optional[HtmlDocument] = None
    ):
        self.url = url
        self.filesystem = filesystem
        self.options = options
        self.document_path = document_path
        self.current_document = current_document
        self._path = unquote(url.path) if url.valid else ""
        # Bare internal-domain URLs point at the site root
        if not self._path and url.valid and url.internal_host:
            self._path = "/"
        self.target = self._resolve_target()

    def _resolve_target(self) -> Optional[str]:
        """Filesystem path of the target; None means the containing document."""
        if not self._path:
            return None

        document_dir = os.path.dirname(self.document_path) if self.document_path else '.'
        if self._path.startswith('/'):
            root = self.options.root_dir or document_dir
            target = os.path.join(root, self._path.lstrip('/'))
        else:
            target = os.path.join(document_dir, self._path)
        target = os.path.normpath(target)

        if self.document_path and target == os.path.normpath(self.document_path):
            return None
        return target

    @property
    def targets_current_document(self) -> bool:
        return self.target is None

    def _existing_target(self) -> Optional[str]:
        if self.filesystem.exists(self.target):
            return self.target
        _, ext = os.path.splitext(self.target)
        if not ext and self.options.assume_extension:
            candidate = self.target + self.options.assume_extension
            if self.filesystem.exists(candidate):
                return candidate
        return None

    def file_exists(self) -> bool:
        if self.targets_current_document:
            return True
        return self._existing_target() is not None

    def unslashed_directory(self) -> bool:
        if self.targets_current_document:
            return False
        if not self.filesystem.is_directory(self.target):
            return False
        return not self._path.endswith('/')

    def hash_exists(self) -> bool:
        fragment = self.url.fragment
        if not fragment or fragment in IMPLICIT_FRAGMENTS:
            return True
        candidates = [fragment]
        decoded = unquote(fragment)
        if decoded != fragment:
            candidates.append(decoded)

        if self.targets_current_document:
            if self.current_document is not None:
                return any(self.current_document.has_fragment(f) for f in candidates)
            if not self.document_path:
                return False
            target = self.document_path
        else:
            target = self._existing_target()
            if target is None:
                return False
            if self.filesystem.is_directory(target):
                target = os.path.join(target, self.options.directory_index_file)
                if not self.filesystem.exists(target):
                    return False

        if not target.lower().endswith(HTML_EXTENSIONS):
            return True
        return any(self.filesystem.fragment_exists(target, f) for f in candidates)
