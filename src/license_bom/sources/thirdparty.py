"""Reader for auxiliary third-party manifests.

Native dependencies that are not part of the dependency graph (vendored
C/C++ libraries, for instance) are described in a JSON list of package
records using the export layout. Their license files may lack an SPDX
identifier, in which case the classifier fills it in later.
"""

from license_bom.models import Package
from license_bom.sources.base import BaseSource


class ThirdPartySource(BaseSource[Package]):
    """Source for JSON third-party manifests."""

    def collect(self) -> list[Package]:
        """Read the manifest.

        Returns:
            Package records in file order.

        Raises:
            FileNotFoundError: If the manifest does not exist.
            ValueError: If the manifest or one of its records is malformed.
        """
        data = self._read_json()
        if not isinstance(data, list):
            raise ValueError(
                f"Third-party manifest {self.source_path} must be a list of packages"
            )

        packages = []
        for index, record in enumerate(data):
            if not isinstance(record, dict):
                raise ValueError(
                    f"Record #{index} in {self.source_path} is not an object"
                )
            try:
                packages.append(Package.from_dict(record))
            except ValueError as e:
                raise ValueError(f"Record #{index} in {self.source_path}: {e}") from e
        return packages

    @property
    def source_name(self) -> str:
        return "third-party manifest"
