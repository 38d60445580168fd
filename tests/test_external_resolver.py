"""
Tests for ExternalResolver
==========================
The requests session is mocked; no network access.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from html_link_validator.config_logging import LinkValidatorConfig
from html_link_validator.external_resolver import ExternalResolver, request_url
from html_link_validator.models import ExternalStatus, PendingExternalCheck
from html_link_validator.url_descriptor import UrlDescriptor


def response(status_code, reason='OK'):
    mock = MagicMock()
    mock.status_code = status_code
    mock.reason = reason
    return mock


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def resolver(session):
    config = LinkValidatorConfig(http_timeout=5, http_retries=1, max_workers=2)
    return ExternalResolver(config, session=session)


@pytest.fixture(autouse=True)
def no_sleep():
    with patch('html_link_validator.external_resolver.time.sleep'):
        yield


class TestResolve:

    def test_reachable_via_head(self, resolver, session):
        session.head.return_value = response(200)
        outcome = resolver.resolve('https://example.com/')
        assert outcome.status == ExternalStatus.REACHABLE
        assert outcome.ok
        session.get.assert_not_called()

    def test_head_refused_falls_back_to_get(self, resolver, session):
        session.head.return_value = response(405, 'Method Not Allowed')
        session.get.return_value = response(200)
        assert resolver.resolve('https://example.com/').ok
        session.get.assert_called_once()
        session.get.return_value.close.assert_called_once()

    def test_head_exception_falls_back_to_get(self, resolver, session):
        session.head.side_effect = requests.ConnectionError('reset')
        session.get.return_value = response(200)
        assert resolver.resolve('https://example.com/').ok

    def test_not_found(self, resolver, session):
        session.head.return_value = response(404, 'Not Found')
        session.get.return_value = response(404, 'Not Found')
        outcome = resolver.resolve('https://example.com/gone')
        assert outcome.status == ExternalStatus.NOT_FOUND
        assert outcome.status_code == 404

    def test_server_error_is_retried(self, resolver, session):
        session.head.side_effect = [response(503, 'Unavailable'), response(200)]
        assert resolver.resolve('https://example.com/').ok
        assert session.head.call_count == 2

    def test_server_error_after_retries(self, resolver, session):
        session.head.return_value = response(500, 'Internal Server Error')
        outcome = resolver.resolve('https://example.com/')
        assert outcome.status == ExternalStatus.ERROR
        assert outcome.message == 'Internal Server Error'

    def test_timeout(self, resolver, session):
        session.head.side_effect = requests.Timeout()
        session.get.side_effect = requests.Timeout()
        outcome = resolver.resolve('https://slow.example.com/')
        assert outcome.status == ExternalStatus.ERROR
        assert 'timed out' in outcome.message

    def test_connection_error_on_get(self, resolver, session):
        session.head.side_effect = requests.ConnectionError('refused')
        session.get.side_effect = requests.ConnectionError('refused')
        outcome = resolver.resolve('https://down.example.com/')
        assert outcome.status == ExternalStatus.ERROR
        assert outcome.message.startswith('request error')

    def test_outcomes_are_cached(self, resolver, session):
        session.head.return_value = response(200)
        resolver.resolve('https://example.com/')
        resolver.resolve('https://example.com/')
        assert session.head.call_count == 1
        resolver.clear_cache()
        resolver.resolve('https://example.com/')
        assert session.head.call_count == 2


class TestResolveAll:

    def test_deduplicates_batch(self, resolver, session):
        session.head.return_value = response(200)
        checks = [
            PendingExternalCheck(UrlDescriptor('https://a.example.com/'), 1, 'x.html'),
            PendingExternalCheck(UrlDescriptor('https://a.example.com/'), 9, 'y.html'),
            PendingExternalCheck(UrlDescriptor('//b.example.com/lib.js'), 2, 'x.html'),
        ]
        outcomes = resolver.resolve_all(checks)
        assert set(outcomes) == {'https://a.example.com/', 'https://b.example.com/lib.js'}
        assert session.head.call_count == 2

    def test_empty_batch(self, resolver, session):
        assert resolver.resolve_all([]) == {}
        session.head.assert_not_called()


def test_request_url():
    assert request_url('//cdn.example.com/a.js') == 'https://cdn.example.com/a.js'
    assert request_url('http://example.com') == 'http://example.com'
