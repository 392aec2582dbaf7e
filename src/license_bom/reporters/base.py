"""Base interface for output reporters.

Reporters serialize the final package records for downstream tooling.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from license_bom.models import Package


class BaseReporter(ABC):
    """Abstract base class for output reporters."""

    @abstractmethod
    def render(self, packages: list[Package]) -> str:
        """Render package records to formatted output.

        Args:
            packages: Final package records.

        Returns:
            Rendered output as a string.
        """
        ...

    def write(self, packages: list[Package], output_path: Path) -> None:
        """Render and write output to a file.

        Args:
            packages: Final package records.
            output_path: Path to write the output file.
        """
        content = self.render(packages)
        output_path.write_text(content, encoding="utf-8")

    @property
    @abstractmethod
    def format_name(self) -> str:
        """Return the output format name, like "json"."""
        ...

    @property
    @abstractmethod
    def default_extension(self) -> str:
        """Return the default file extension, like ".json"."""
        ...
