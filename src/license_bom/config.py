"""Configuration loading for license_bom.

Configuration lives in a TOML file (``about.toml`` by default)::

    accepted = ["MIT", "Apache-2.0", "BSD-3-Clause"]
    exclude = ["tentris*"]
    low-confidence-threshold = 0.9
    workers = 4
    corpus = "corpus.json"

    [thirdparty]
    namespace = "license-bom"
    key = "thirdparty-file-name"
"""

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from license_bom.errors import MalformedExpression
from license_bom.minimize import AcceptPolicy

DEFAULT_CONFIG_FILE = Path("about.toml")
DEFAULT_LOW_CONFIDENCE_THRESHOLD = 0.9


@dataclass
class Config:
    """Settings for a license_bom run.

    Attributes:
        accepted: Accepted license identifiers, in configuration order.
        exclude: ``fnmatch`` patterns of package names to skip.
        low_confidence_threshold: Classification scores below this value
            are reported as low confidence.
        workers: Number of classifier threads.
        corpus: Optional corpus artifact file or directory; the corpus
            cache is used when unset.
        thirdparty_namespace: Metadata table of a graph node holding the
            auxiliary manifest reference.
        thirdparty_key: Key inside that table naming the manifest file.
    """

    accepted: list[str] = field(default_factory=list)
    exclude: list[str] = field(default_factory=list)
    low_confidence_threshold: float = DEFAULT_LOW_CONFIDENCE_THRESHOLD
    workers: int = 1
    corpus: Optional[Path] = None
    thirdparty_namespace: str = "license-bom"
    thirdparty_key: str = "thirdparty-file-name"

    @property
    def policy(self) -> AcceptPolicy:
        """Return the accepted-license policy."""
        return AcceptPolicy.from_tags(self.accepted)

    @classmethod
    def load(cls, path: Path = DEFAULT_CONFIG_FILE) -> "Config":
        """Load and validate a configuration file.

        Relative ``corpus`` paths resolve against the file's directory.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the file is not valid TOML or a setting is invalid.
        """
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML in {path}: {e}") from e

        config = cls.from_dict(data)
        if config.corpus is not None and not config.corpus.is_absolute():
            config.corpus = path.parent / config.corpus
        return config

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Build a configuration from parsed TOML data.

        Raises:
            ValueError: If a setting has the wrong type or value.
        """
        accepted = _string_list(data, "accepted")
        for tag in accepted:
            try:
                AcceptPolicy.from_tags([tag])
            except MalformedExpression as e:
                raise ValueError(f"Invalid accepted license {tag!r}: {e.detail}") from e

        threshold = data.get("low-confidence-threshold", DEFAULT_LOW_CONFIDENCE_THRESHOLD)
        if not isinstance(threshold, (int, float)) or isinstance(threshold, bool):
            raise ValueError("'low-confidence-threshold' must be a number")
        if not 0.0 <= threshold <= 1.0:
            raise ValueError("'low-confidence-threshold' must be between 0 and 1")

        workers = data.get("workers", 1)
        if not isinstance(workers, int) or isinstance(workers, bool) or workers < 1:
            raise ValueError("'workers' must be a positive integer")

        corpus = data.get("corpus")
        if corpus is not None and not isinstance(corpus, str):
            raise ValueError("'corpus' must be a path string")

        thirdparty = data.get("thirdparty", {})
        if not isinstance(thirdparty, dict):
            raise ValueError("'thirdparty' must be a table")

        return cls(
            accepted=accepted,
            exclude=_string_list(data, "exclude"),
            low_confidence_threshold=float(threshold),
            workers=workers,
            corpus=Path(corpus) if corpus else None,
            thirdparty_namespace=str(thirdparty.get("namespace", "license-bom")),
            thirdparty_key=str(thirdparty.get("key", "thirdparty-file-name")),
        )


def _string_list(data: dict[str, Any], key: str) -> list[str]:
    value = data.get(key, [])
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"'{key}' must be a list of strings")
    return value
