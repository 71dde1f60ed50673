import pytest

from common.network_utils import normalize_domain, validate_domain, validate_email


@pytest.mark.parametrize(
    "domain",
    ["example.com", "tribe-nest.example.co.uk", "xn--bcher-kva.example", "a1.io"],
)
def test_validate_domain_accepts_hostnames(domain):
    assert validate_domain(domain) is True


@pytest.mark.parametrize(
    "domain",
    [
        "",
        "localhost",
        "*.example.com",
        "192.168.1.10",
        "-bad.example.com",
        "bad-.example.com",
        "exa mple.com",
        "example.com;",
        "example..com",
        "example.123",
        "a" * 64 + ".com",
        "example.com.",
        "Example.COM",
        " example.com",
    ],
)
def test_validate_domain_rejects_unusable_values(domain, mock_logger):
    assert validate_domain(domain, current_logger=mock_logger) is False
    mock_logger.warning.assert_called_once()


def test_validate_email():
    assert validate_email("admin@example.com") is True
    assert validate_email("admin") is False
    assert validate_email("admin@localhost") is False
    assert validate_email("a b@example.com") is False


@pytest.mark.parametrize(
    "domain, expected",
    [
        ("example.com.", "example.com"),
        ("Example.COM", "example.com"),
        (" TribeNest.Example.org. ", "tribenest.example.org"),
        ("example.com", "example.com"),
    ],
)
def test_normalize_domain(domain, expected):
    assert normalize_domain(domain) == expected
    assert validate_domain(normalize_domain(domain)) is True
