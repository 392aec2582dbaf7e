"""Unit tests for data models and errors."""

from pathlib import Path

import pytest

from license_bom.errors import (
    CorpusUnavailable,
    LicenseBomError,
    UnsatisfiableLicense,
)
from license_bom.expression import parse
from license_bom.models import (
    ClassificationResult,
    DiscoveredPackage,
    LicenseFile,
    LicenseInfo,
    LicenseInfoKind,
    Package,
)


class TestLicenseFile:
    """Test LicenseFile serialization."""

    def test_to_dict(self):
        lf = LicenseFile(name="LICENSE", spdx="MIT", text="Permission...")
        assert lf.to_dict() == {"name": "LICENSE", "spdx": "MIT", "text": "Permission..."}

    def test_from_dict_without_spdx(self):
        """Test that a missing identifier is left for the classifier."""
        lf = LicenseFile.from_dict({"name": "COPYING", "text": "..."})
        assert lf.spdx is None

    def test_from_dict_missing_text(self):
        with pytest.raises(ValueError, match="'name' and 'text'"):
            LicenseFile.from_dict({"name": "LICENSE"})


class TestPackage:
    """Test Package records."""

    def test_defaults(self):
        package = Package(package_name="serde", package_version="1.0.197")
        assert package.package_url is None
        assert package.license_spdx is None
        assert package.license_files == []
        assert package.identity == "serde 1.0.197"

    def test_from_dict(self):
        package = Package.from_dict(
            {
                "package_name": "zlib",
                "package_version": 1.3,
                "package_url": "https://zlib.net",
                "license_spdx": "Zlib",
                "license_files": [{"name": "LICENSE", "spdx": None, "text": "..."}],
            }
        )
        assert package.package_version == "1.3"
        assert package.license_files == [LicenseFile("LICENSE", None, "...")]

    def test_to_dict_uses_export_keys(self):
        package = Package(
            package_name="serde",
            package_version="1.0.197",
            package_url="https://github.com/serde-rs/serde",
            license_spdx="MIT OR Apache-2.0",
            license_files=[LicenseFile("LICENSE-MIT", "MIT", "...")],
        )
        assert package.to_dict() == {
            "package_name": "serde",
            "package_version": "1.0.197",
            "package_url": "https://github.com/serde-rs/serde",
            "license_spdx": "MIT OR Apache-2.0",
            "license_files": [{"name": "LICENSE-MIT", "spdx": "MIT", "text": "..."}],
        }
        assert Package.from_dict(package.to_dict()) == package

    def test_from_dict_missing_version(self):
        with pytest.raises(ValueError, match="package_version"):
            Package.from_dict({"package_name": "zlib"})

    def test_from_dict_bad_files(self):
        with pytest.raises(ValueError, match="must be a list"):
            Package.from_dict(
                {"package_name": "zlib", "package_version": "1", "license_files": {}}
            )


class TestLicenseInfo:
    """Test declared license info."""

    def test_expr(self):
        info = LicenseInfo.expr(parse("MIT OR ISC"))
        assert info.kind is LicenseInfoKind.EXPR
        assert str(info) == "MIT OR ISC"

    def test_unknown_and_ignore(self):
        assert str(LicenseInfo.unknown()) == "unknown"
        assert LicenseInfo.ignore().expression is None


class TestDiscoveredPackage:
    """Test graph nodes."""

    def test_url_prefers_repository(self):
        node = DiscoveredPackage(
            name="foo",
            version="1.0",
            license_info=LicenseInfo.unknown(),
            manifest_dir=Path("."),
            repository="https://github.com/acme/foo",
            homepage="https://foo.example.org",
        )
        assert node.url == "https://github.com/acme/foo"
        assert str(node) == "foo 1.0"

    def test_url_falls_back_to_homepage(self):
        node = DiscoveredPackage(
            name="foo",
            version="1.0",
            license_info=LicenseInfo.unknown(),
            manifest_dir=Path("."),
            homepage="https://foo.example.org",
        )
        assert node.url == "https://foo.example.org"


class TestClassificationResult:
    def test_is_confident(self):
        result = ClassificationResult(name="MIT", score=0.9)
        assert result.is_confident(0.9)
        assert not result.is_confident(0.95)


class TestErrors:
    """Test the error context chain."""

    def test_context_is_prepended(self):
        error = LicenseBomError("inner")
        error.add_context("middle").add_context("outer")
        assert error.context == ["outer", "middle"]
        assert str(error) == "outer: middle: inner"

    def test_unsatisfiable_sorts_accepted(self):
        error = UnsatisfiableLicense("MIT AND Apache-2.0", {"MIT", "ISC"})
        assert error.accepted == ["ISC", "MIT"]
        assert str(error) == (
            "no combination of accepted licenses ['ISC', 'MIT'] satisfies "
            "'MIT AND Apache-2.0'"
        )

    def test_corpus_unavailable_source(self):
        assert str(CorpusUnavailable("corpus cache is empty", "/tmp/c.db")) == (
            "corpus cache is empty (/tmp/c.db)"
        )
