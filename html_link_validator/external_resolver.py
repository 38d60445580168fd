"""
External Link Resolver
======================
Resolves the PendingExternalCheck batch produced by LinksChecker with
HTTP requests.

- HEAD first; many servers refuse HEAD, so 403/404/405/501 or a request
  exception falls back to a streamed GET that is closed unread
- Server errors retried with exponential backoff
- Unique URLs resolved concurrently in a thread pool
- Outcomes cached per URL for the resolver's lifetime, so a URL linked
  from many documents is fetched once
"""

import random
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Optional

import requests

from .config_logging import LinkValidatorConfig, get_config, get_logger
from .models import ExternalOutcome, ExternalStatus, PendingExternalCheck

logger = get_logger(__name__)

HEAD_REFUSED_CODES = (403, 404, 405, 501)
NOT_FOUND_CODES = (404, 410)


def request_url(url: str) -> str:
    """Scheme-relative URLs are fetched over https."""
    if url.startswith('//'):
        return 'https:' + url
    return url


class ExternalResolver:
    """
    Batch resolver for external URLs.

    Usage:
        resolver = ExternalResolver()
        outcomes = resolver.resolve_all(result.external_checks)
        for url, outcome in outcomes.items():
            if not outcome.ok:
                print(url, outcome.message)

    Args:
        config: Timeouts, retries, worker count and user agent
        session: Optional preconfigured requests.Session
    """

    def __init__(
        self,
        config: Optional[LinkValidatorConfig] = None,
        session: Optional[requests.Session] = None
    ):
        self.config = config or get_config()
        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': self.config.user_agent,
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
        })
        self._cache: Dict[str, ExternalOutcome] = {}
        self._lock = threading.Lock()

    def clear_cache(self):
        with self._lock:
            self._cache.clear()

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _request(self, url: str) -> requests.Response:
        timeout = self.config.http_timeout
        try:
            response = self.session.head(url, timeout=timeout, allow_redirects=True)
            if response.status_code not in HEAD_REFUSED_CODES:
                return response
        except requests.RequestException as e:
            logger.debug(f"HEAD {url} failed ({e}), retrying with GET")

        response = self.session.get(url, timeout=timeout, allow_redirects=True, stream=True)
        response.close()
        return response

    def resolve(self, url: str) -> ExternalOutcome:
        """Resolve one URL, consulting the cache first."""
        with self._lock:
            cached = self._cache.get(url)
        if cached is not None:
            return cached

        outcome = self._resolve_uncached(url)
        with self._lock:
            self._cache[url] = outcome
        return outcome

    def _resolve_uncached(self, url: str) -> ExternalOutcome:
        retries = self.config.http_retries
        for attempt in range(retries + 1):
            try:
                response = self._request(url)
            except requests.Timeout:
                if attempt < retries:
                    self._backoff(attempt)
                    continue
                return ExternalOutcome(url, ExternalStatus.ERROR,
                                       message=f"timed out after {self.config.http_timeout}s")
            except requests.RequestException as e:
                return ExternalOutcome(url, ExternalStatus.ERROR, message=f"request error: {str(e)[:80]}")

            code = response.status_code
            if code < 400:
                return ExternalOutcome(url, ExternalStatus.REACHABLE, code, f"HTTP {code}")
            if code in NOT_FOUND_CODES:
                return ExternalOutcome(url, ExternalStatus.NOT_FOUND, code, "not found")
            if code >= 500 and attempt < retries:
                self._backoff(attempt)
                continue
            return ExternalOutcome(url, ExternalStatus.ERROR, code, response.reason or f"HTTP {code}")

        # Unreachable: the loop always returns on its last attempt
        return ExternalOutcome(url, ExternalStatus.ERROR, message="no attempts made")

    @staticmethod
    def _backoff(attempt: int):
        time.sleep((2 ** attempt) * 0.5 + random.random() * 0.1)

    def resolve_all(self, checks: Iterable[PendingExternalCheck]) -> Dict[str, ExternalOutcome]:
        """Resolve every distinct URL in a batch; returns outcomes keyed by URL."""
        urls: List[str] = []
        seen = set()
        for check in checks:
            url = request_url(check.url.clean)
            if url not in seen:
                seen.add(url)
                urls.append(url)

        if not urls:
            return {}

        with logger.log_operation('resolve_external', count=len(urls)):
            workers = max(1, min(self.config.max_workers, len(urls)))
            with ThreadPoolExecutor(max_workers=workers) as executor:
                outcomes = list(executor.map(self.resolve, urls))

        return dict(zip(urls, outcomes))
