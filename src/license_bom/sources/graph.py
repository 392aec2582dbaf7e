"""Reader for dependency graph exports.

The graph export is produced by an ecosystem-specific collaborator and
lists every package of the project with its declared license and the
license files found next to its manifest::

    {
      "packages": [
        {
          "name": "serde",
          "version": "1.0.197",
          "repository": "https://github.com/serde-rs/serde",
          "manifest_path": "/home/me/.cargo/registry/src/serde-1.0.197/Cargo.toml",
          "license": "MIT OR Apache-2.0",
          "license_files": [
            {"path": "LICENSE-MIT", "license": "MIT"},
            {"path": "LICENSE-APACHE", "license": "Apache-2.0"}
          ],
          "metadata": {}
        }
      ]
    }

A missing or null ``license`` means the license is unknown; ``"ignore":
true`` marks packages the collaborator should already have filtered out.
"""

from pathlib import Path
from typing import Any

from license_bom.errors import MalformedExpression
from license_bom.expression import parse
from license_bom.models import DiscoveredPackage, LicenseFileRef, LicenseInfo
from license_bom.sources.base import BaseSource


class GraphSource(BaseSource[DiscoveredPackage]):
    """Source for JSON dependency graph exports."""

    def collect(self) -> list[DiscoveredPackage]:
        """Read the graph export.

        Returns:
            Discovered packages in file order.

        Raises:
            FileNotFoundError: If the graph file does not exist.
            ValueError: If the file or one of its entries is malformed.
            MalformedExpression: If a declared license cannot be parsed.
        """
        data = self._read_json()
        if not isinstance(data, dict) or not isinstance(data.get("packages"), list):
            raise ValueError(
                f"Graph export {self.source_path} must be an object with a 'packages' list"
            )

        return [
            self._parse_package(entry, index)
            for index, entry in enumerate(data["packages"])
        ]

    def _parse_package(self, entry: Any, index: int) -> DiscoveredPackage:
        if not isinstance(entry, dict):
            raise ValueError(f"Package #{index} in {self.source_path} is not an object")

        for key in ("name", "version"):
            if not entry.get(key):
                raise ValueError(
                    f"Package #{index} missing required field '{key}' in {self.source_path}"
                )

        name = str(entry["name"])
        version = str(entry["version"])

        if entry.get("ignore"):
            license_info = LicenseInfo.ignore()
        elif entry.get("license"):
            try:
                license_info = LicenseInfo.expr(parse(str(entry["license"])))
            except MalformedExpression as e:
                e.add_context(f"Unable to parse license of '{name} {version}'")
                raise
        else:
            license_info = LicenseInfo.unknown()

        metadata = entry.get("metadata") or {}
        if not isinstance(metadata, dict):
            raise ValueError(f"'metadata' of {name} {version} must be an object")

        return DiscoveredPackage(
            name=name,
            version=version,
            license_info=license_info,
            manifest_dir=self._manifest_dir(entry),
            repository=entry.get("repository"),
            homepage=entry.get("homepage"),
            license_files=self._parse_license_files(entry, name, version),
            metadata=metadata,
        )

    def _manifest_dir(self, entry: dict[str, Any]) -> Path:
        """Return the package's manifest dir, relative to the graph file."""
        if entry.get("manifest_dir"):
            directory = Path(entry["manifest_dir"])
        elif entry.get("manifest_path"):
            directory = Path(entry["manifest_path"]).parent
        else:
            directory = Path(".")
        if not directory.is_absolute():
            directory = self.source_path.parent / directory
        return directory

    def _parse_license_files(
        self, entry: dict[str, Any], name: str, version: str
    ) -> list[LicenseFileRef]:
        files = entry.get("license_files") or []
        if not isinstance(files, list):
            raise ValueError(f"'license_files' of {name} {version} must be a list")

        refs = []
        for item in files:
            if (
                not isinstance(item, dict)
                or not isinstance(item.get("path"), str)
                or not isinstance(item.get("license"), str)
            ):
                raise ValueError(
                    f"License file entries of {name} {version} need 'path' and 'license'"
                )
            refs.append(LicenseFileRef(path=Path(item["path"]), license=item["license"]))
        return refs

    @property
    def source_name(self) -> str:
        return "dependency graph"
