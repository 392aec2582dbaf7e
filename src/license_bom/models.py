"""Core data models for license_bom.

This module defines the records flowing through the license pipeline:
packages discovered by the dependency-graph collaborator, the license
files attached to them, and the per-file classification results.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from license_bom.expression import LicenseExpression


@dataclass
class LicenseFile:
    """A license file attached to a package.

    Attributes:
        name: Filename of the license file (e.g. "LICENSE-MIT").
        spdx: SPDX identifier of the license, if known. Filled in by the
            classifier when absent and never changed afterwards.
        text: Full contents of the license file.
    """

    name: str
    spdx: Optional[str]
    text: str

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-safe mapping of this file."""
        return {"name": self.name, "spdx": self.spdx, "text": self.text}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LicenseFile":
        """Build a LicenseFile from a mapping.

        Raises:
            ValueError: If ``name`` or ``text`` is missing.
        """
        if "name" not in data or "text" not in data:
            raise ValueError("License file record requires 'name' and 'text'")
        return cls(name=data["name"], spdx=data.get("spdx"), text=data["text"])


@dataclass
class Package:
    """A package and the licenses that apply to it.

    Field names match the keys of the JSON export.

    Attributes:
        package_name: Name of the package.
        package_version: Version of the package.
        package_url: Repository, registry page or homepage, if known.
        license_spdx: Combined SPDX expression for the package
            (e.g. "MIT OR Apache-2.0"), if known.
        license_files: License files found for the package.
    """

    package_name: str
    package_version: str
    package_url: Optional[str] = None
    license_spdx: Optional[str] = None
    license_files: list[LicenseFile] = field(default_factory=list)

    @property
    def identity(self) -> str:
        """Return "name version", used in diagnostics and error context."""
        return f"{self.package_name} {self.package_version}"

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-safe mapping of this package."""
        return {
            "package_name": self.package_name,
            "package_version": self.package_version,
            "package_url": self.package_url,
            "license_spdx": self.license_spdx,
            "license_files": [lf.to_dict() for lf in self.license_files],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Package":
        """Build a Package from a mapping in the export layout.

        Raises:
            ValueError: If required fields are missing or malformed.
        """
        for key in ("package_name", "package_version"):
            if key not in data:
                raise ValueError(f"Package record missing required field '{key}'")

        files = data.get("license_files") or []
        if not isinstance(files, list):
            raise ValueError(
                f"'license_files' of {data['package_name']} must be a list"
            )

        return cls(
            package_name=data["package_name"],
            package_version=str(data["package_version"]),
            package_url=data.get("package_url"),
            license_spdx=data.get("license_spdx"),
            license_files=[LicenseFile.from_dict(f) for f in files],
        )


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome of classifying a block of license text.

    Attributes:
        name: Identifier of the best-matching corpus license.
        score: Similarity score in [0, 1]; 1.0 is an exact match.
    """

    name: str
    score: float

    def is_confident(self, threshold: float) -> bool:
        """Return True if the score reaches the given threshold."""
        return self.score >= threshold


class LicenseInfoKind(str, Enum):
    """How a package's license was declared by the graph collaborator."""

    EXPR = "expr"
    UNKNOWN = "unknown"
    IGNORE = "ignore"


@dataclass(frozen=True)
class LicenseInfo:
    """Declared license of a discovered package.

    Attributes:
        kind: Whether the license is a parsed expression, unknown, or ignored.
        expression: The parsed expression when ``kind`` is EXPR.
    """

    kind: LicenseInfoKind
    expression: Optional[LicenseExpression] = None

    @classmethod
    def expr(cls, expression: LicenseExpression) -> "LicenseInfo":
        return cls(LicenseInfoKind.EXPR, expression)

    @classmethod
    def unknown(cls) -> "LicenseInfo":
        return cls(LicenseInfoKind.UNKNOWN)

    @classmethod
    def ignore(cls) -> "LicenseInfo":
        return cls(LicenseInfoKind.IGNORE)

    def __str__(self) -> str:
        if self.kind is LicenseInfoKind.EXPR and self.expression is not None:
            return str(self.expression)
        return self.kind.value


@dataclass(frozen=True)
class LicenseFileRef:
    """A candidate license file reported by the graph collaborator.

    Attributes:
        path: Path to the file, absolute or relative to the manifest dir.
        license: Declared SPDX identifier of the file.
    """

    path: Path
    license: str


@dataclass
class DiscoveredPackage:
    """A package node of the dependency graph export.

    Attributes:
        name: Package name.
        version: Package version.
        license_info: Declared license of the package.
        manifest_dir: Directory relative license paths resolve against.
        repository: Optional source repository URL.
        homepage: Optional homepage URL.
        license_files: Candidate license files with declared identifiers.
        metadata: Free-form metadata attached to the node.
    """

    name: str
    version: str
    license_info: LicenseInfo
    manifest_dir: Path
    repository: Optional[str] = None
    homepage: Optional[str] = None
    license_files: list[LicenseFileRef] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def url(self) -> Optional[str]:
        """Return the repository URL, falling back to the homepage."""
        return self.repository or self.homepage

    def __str__(self) -> str:
        return f"{self.name} {self.version}"
