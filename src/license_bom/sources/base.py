"""Base interface for package sources.

Sources read the package records handed over by external collaborators:
the dependency graph export and auxiliary third-party manifests.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class BaseSource(ABC, Generic[T]):
    """Abstract base class for package sources.

    Attributes:
        source_path: Path to the file being read.
    """

    def __init__(self, source_path: Path) -> None:
        """Initialize the source.

        Args:
            source_path: Path to the JSON file to read.
        """
        self.source_path = source_path

    def _read_json(self) -> Any:
        """Read and decode the source file.

        Raises:
            FileNotFoundError: If the source file does not exist.
            ValueError: If the file is not valid UTF-8 JSON.
        """
        if not self.source_path.exists():
            raise FileNotFoundError(
                f"{self.source_name} not found: {self.source_path}"
            )

        try:
            return json.loads(self.source_path.read_text(encoding="utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ValueError(f"Invalid JSON in {self.source_path}: {e}") from e

    @abstractmethod
    def collect(self) -> list[T]:
        """Read the source and return its records.

        Raises:
            FileNotFoundError: If the source file does not exist.
            ValueError: If the source format is invalid.
        """
        ...

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Return a human-readable name for this source type."""
        ...
