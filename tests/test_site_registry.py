"""
Unit tests for the site registry / dispatcher.
"""

import re

import pytest

from product_resolver.layers.site_registry import MACYS, SiteRegistry, site_registry
from product_resolver.models.policy import ResolverPolicy


@pytest.mark.parametrize(
    "url",
    [
        "https://www.macys.com/shop/product/sweater?ID=100",
        "https://macys.com/p",
        "http://m.MACYS.com/x",
    ],
)
def test_auto_matches_by_host(url):
    assert site_registry.select("auto", url) is MACYS


@pytest.mark.parametrize(
    "url",
    [
        "https://www.notmacys.com/p",
        "https://macys.com.evil.example/p",
        "https://www.example.com/p",
    ],
)
def test_unknown_host_returns_none(url):
    assert site_registry.select("auto", url) is None


def test_missing_hint_behaves_like_auto():
    assert site_registry.select(None, "https://www.macys.com/p") is MACYS
    assert site_registry.select("", "https://www.macys.com/p") is MACYS


def test_explicit_id_ignores_host():
    assert site_registry.select("macys", "https://www.example.com/p") is MACYS


def test_unknown_explicit_id_returns_none():
    assert site_registry.select("nordstrom", "https://www.macys.com/p") is None


@pytest.mark.parametrize("url", [None, "", "not a url", "http://[::1"])
def test_unparsable_url_returns_none(url):
    assert site_registry.select("auto", url) is None


def test_first_matching_policy_wins():
    broad = ResolverPolicy(id="broad", name="Broad", host_pattern=re.compile(r"\.com$"))
    registry = SiteRegistry(policies=(broad, MACYS))
    assert registry.select("auto", "https://www.macys.com/p") is broad
    assert [p.id for p in registry.policies] == ["broad", "macys"]
