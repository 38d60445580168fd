"""
Tests for the reference classifier and policy predicates
========================================================
"""

from types import SimpleNamespace

import pytest

from html_link_validator.classifier import (
    classify,
    ignored_by_attribute,
    ignored_by_url_rule,
    sri_applies,
)
from html_link_validator.models import ExclusionRule, LinkCategory, LinkCheckOptions, Reference
from html_link_validator.url_descriptor import UrlDescriptor


def make_reference(tag='a', raw='page.html', options=None, **attrs):
    options = options or LinkCheckOptions()
    attribute = 'src' if tag == 'source' else 'href'
    attributes = dict(attrs)
    if raw is not None:
        attributes[attribute] = raw
    reference = Reference(tag=tag, line=3, content='link', attributes=attributes)
    return reference.with_url(UrlDescriptor(reference.raw, options.internal_domains))


class TestClassify:

    @pytest.mark.parametrize('tag,raw,expected', [
        ('a', '#', LinkCategory.HASH_ONLY),
        ('a', 'http://exa mple.com', LinkCategory.INVALID),
        ('a', None, LinkCategory.MISSING),
        ('a', '   ', LinkCategory.MISSING),
        ('source', '', LinkCategory.MISSING),
        ('a', 'mailto:a@example.com', LinkCategory.NON_HTTP_REMOTE),
        ('a', 'ftp://example.com/file', LinkCategory.NON_HTTP_REMOTE),
        ('a', 'https://example.com/', LinkCategory.EXTERNAL),
        ('link', '//cdn.example.com/a.css', LinkCategory.EXTERNAL),
        ('a', 'page.html#top', LinkCategory.INTERNAL),
        ('a', '#intro', LinkCategory.INTERNAL),
        ('link', '', LinkCategory.INTERNAL),
    ])
    def test_categories(self, tag, raw, expected):
        assert classify(make_reference(tag, raw), LinkCheckOptions()) == expected

    def test_hash_allowed_is_internal(self):
        options = LinkCheckOptions(allow_hash_href=True)
        assert classify(make_reference('a', '#', options), options) == LinkCategory.INTERNAL

    def test_hash_wins_over_everything(self):
        # '#' is classified before validity or attribute checks
        assert classify(make_reference('a', '#'), LinkCheckOptions()) == LinkCategory.HASH_ONLY

    def test_invalid_wins_over_scheme(self):
        assert classify(make_reference('a', 'mailto:%zz'), LinkCheckOptions()) == LinkCategory.INVALID

    def test_internal_domain(self):
        options = LinkCheckOptions(internal_domains=('www.example.com',))
        reference = make_reference('a', 'https://www.example.com/about.html', options)
        assert classify(reference, options) == LinkCategory.INTERNAL

    def test_uncovered_flags_are_unclassified(self):
        url = SimpleNamespace(valid=True, non_http_remote=False, internal=False, remote=False, clean='x')
        reference = Reference(tag='a', line=1, content='', attributes={'href': 'x'}, url=url)
        assert classify(reference, LinkCheckOptions()) == LinkCategory.UNCLASSIFIED

    def test_every_reference_gets_exactly_one_category(self):
        raws = ['#', '', 'a.html', 'https://x.org', 'mailto:', 'tel:', '//h/p', 'http://bad host']
        for raw in raws:
            category = classify(make_reference('a', raw), LinkCheckOptions())
            assert isinstance(category, LinkCategory)


class TestPredicates:

    def test_ignored_by_attribute(self):
        reference = Reference(tag='a', line=1, content='', attributes={'href': 'x'}, ignored=True)
        assert ignored_by_attribute(reference, LinkCheckOptions())

    def test_ignored_by_url_rule(self):
        options = LinkCheckOptions(ignore_urls=[ExclusionRule('localhost', 'contains')])
        assert ignored_by_url_rule(make_reference('a', 'http://localhost:8000/'), options)
        assert not ignored_by_url_rule(make_reference('a', 'https://example.com/'), options)

    def test_missing_attribute_is_never_url_ignored(self):
        options = LinkCheckOptions(ignore_urls=[ExclusionRule('', 'contains')])
        assert not ignored_by_url_rule(make_reference('a', None), options)

    def test_sri_applies_to_stylesheets_only(self):
        assert sri_applies(make_reference('link', 'https://x.org/a.css', rel='stylesheet'))
        assert sri_applies(make_reference('link', 'https://x.org/a.css', rel='alternate stylesheet'))
        assert not sri_applies(make_reference('link', 'https://x.org/i.png', rel='icon'))
        assert not sri_applies(make_reference('a', 'https://x.org/a.css', rel='stylesheet'))
