"""Tests for path normalization helpers."""

import pytest

from bruggi_site.utils import resolve_year, slugify, static_url, strip_static_prefix


@pytest.mark.parametrize(
    "raw",
    ["img/hut.jpg", "/img/hut.jpg", "static/img/hut.jpg", "/static/img/hut.jpg"],
)
def test_static_url_normalizes(raw):
    assert static_url(raw) == "/static/img/hut.jpg"


def test_static_url_is_idempotent():
    once = static_url("gpx/ebro.gpx")
    assert static_url(once) == once
    assert static_url(static_url(once)) == once


def test_static_url_empty():
    assert static_url("") == ""


def test_strip_static_prefix_keeps_similar_names():
    assert strip_static_prefix("staticfiles/a.jpg") == "staticfiles/a.jpg"


def test_slugify():
    assert slugify("Anello del Monte Ebro") == "anello-del-monte-ebro"
    assert slugify("???") == "itinerary"


def test_resolve_year():
    assert resolve_year("© {year} Pro Loco", 2030) == "© 2030 Pro Loco"
