"""Tests for peerseed.errors — structured error codes."""

from __future__ import annotations

import pytest

from peerseed.errors import (
    ERRORS,
    ConfigError,
    ErrorCategory,
    ErrorInfo,
    InvalidAddress,
    PeerSeedError,
    ResolutionError,
    TransportError,
    format_error,
    get_error,
)


class TestErrorCategory:
    def test_enum_values(self) -> None:
        assert ErrorCategory.ADDRESS == "ADDRESS"
        assert ErrorCategory.RESOLUTION == "RESOLUTION"

    def test_all_unique(self) -> None:
        values = [e.value for e in ErrorCategory]
        assert len(values) == len(set(values))


class TestErrorInfo:
    def test_to_dict(self) -> None:
        err = ErrorInfo(
            code="TEST_001",
            category=ErrorCategory.TRANSPORT,
            message="Server unreachable",
            resolution="Try again",
        )
        err_d = err.to_dict()["error"]
        assert isinstance(err_d, dict)
        assert err_d["code"] == "TEST_001"
        assert err_d["category"] == "TRANSPORT"

    def test_format(self) -> None:
        err = ErrorInfo(
            code="TEST_002",
            category=ErrorCategory.CONFIG,
            message="Bad value",
            resolution="Fix it",
        )
        s = err.format()
        assert "TEST_002" in s
        assert "Bad value" in s
        assert "Fix it" in s


class TestErrorCatalog:
    def test_every_category_covered(self) -> None:
        assert {e.category for e in ERRORS.values()} == set(ErrorCategory)

    def test_codes_prefixed(self) -> None:
        for short, info in ERRORS.items():
            assert info.code == f"PEERSEED_{short}"

    def test_get_error(self) -> None:
        e = get_error("E001")
        assert e is not None
        assert e.category == ErrorCategory.ADDRESS

    def test_get_unknown(self) -> None:
        assert get_error("E999") is None

    def test_format_unknown(self) -> None:
        assert "Unknown" in format_error("E999")


class TestExceptions:
    @pytest.mark.parametrize(
        ("exc", "category"),
        [
            (InvalidAddress("bad host"), ErrorCategory.ADDRESS),
            (TransportError("refused"), ErrorCategory.TRANSPORT),
            (ResolutionError("seed.example"), ErrorCategory.RESOLUTION),
            (ConfigError("bad key"), ErrorCategory.CONFIG),
        ],
    )
    def test_catalog_entry(self, exc: PeerSeedError, category: ErrorCategory) -> None:
        assert exc.info is not None
        assert exc.info.category == category

    def test_builtin_bases(self) -> None:
        assert issubclass(InvalidAddress, ValueError)
        assert issubclass(TransportError, ConnectionError)
        assert issubclass(ConfigError, ValueError)

    def test_format_includes_detail(self) -> None:
        s = InvalidAddress("host '1.2.3' does not have 4 octets").format()
        assert "PEERSEED_E001" in s
        assert "Detail: host '1.2.3'" in s

    def test_resolution_error_fields(self) -> None:
        exc = ResolutionError("seed.example", "no IPv4 addresses")
        assert exc.hostname == "seed.example"
        assert exc.reason == "no IPv4 addresses"
        assert str(exc) == "seed.example: no IPv4 addresses"

    def test_resolution_error_without_reason(self) -> None:
        assert str(ResolutionError("seed.example")) == "seed.example"

    def test_base_without_code_formats_plainly(self) -> None:
        assert PeerSeedError("plain").format() == "plain"
