# File: tests/test_domain.py
import pytest

from silverfish.domain import normalize_domain


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("https://WWW2.Example.co.uk/path?x=1", "example.co.uk"),
        ("https://www.example.com/", "example.com"),
        ("example.com", "example.com"),
        ("//www.example.com/menu", "example.com"),
        ("http://www10.shop.example.com", "example.com"),
        ("https://Example.COM./about", "example.com"),
        ("  https://blog.example.org  ", "example.org"),
        ("http://localhost:8080/contact", "localhost"),
        ("http://192.168.1.10/", "192.168.1.10"),
        ("https://joes.wixsite.com/menu", "joes.wixsite.com"),
        ("https://www.pizza.wixsite.com/", "pizza.wixsite.com"),
        ("https://x.github.io/cafe", "x.github.io"),
    ],
)
def test_normalize_domain(raw, expected):
    assert normalize_domain(raw) == expected


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "   ",
        "mailto:owner@example.com",
        "TEL:+19495551212",
        "javascript:void(0)",
        "data:text/html,hi",
        "https://",
        "https://[::1",
    ],
)
def test_normalize_domain_rejects(raw):
    assert normalize_domain(raw) is None


def test_same_registrable_domain_for_different_seeds():
    assert normalize_domain("https://www.joes.com/") == normalize_domain("http://order.joes.com/menu")


def test_tenants_of_hosting_platform_are_distinct_sites():
    assert normalize_domain("https://joes.wixsite.com/menu") != normalize_domain("https://pizza.wixsite.com/")
