"""Reference license corpus and similarity classifier.

A :class:`LicenseStore` holds the canonical text of every license in a
versioned snapshot of the SPDX license list. :meth:`LicenseStore.analyze`
maps arbitrary license text to the best-matching canonical license.

Texts are normalized (copyright lines dropped, lower-cased, common
spelling variants folded, reduced to alphanumeric words) and compared as
multisets of word bigrams using the Sørensen–Dice coefficient::

    score = 2 * |A ∩ B| / (|A| + |B|)

so identical normalized texts score exactly 1.0. Bigram counts for the
corpus are computed once at construction; the store is read-only
afterwards and can be shared between threads.
"""

import json
import logging
import re
import sqlite3
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Mapping, Optional

from license_bom.errors import CorpusUnavailable
from license_bom.models import ClassificationResult

if TYPE_CHECKING:
    from license_bom.cache import CorpusCache

logger = logging.getLogger(__name__)

_COPYRIGHT_RE = re.compile(r"^\s*(?:copyright\b|\(c\)|©).*$", re.IGNORECASE | re.MULTILINE)
_WORD_RE = re.compile(r"[a-z0-9]+")

# British/American and other spelling variants treated as equivalent.
_VARIANTS = {
    "licence": "license",
    "licences": "licenses",
    "licenced": "licensed",
    "licencing": "licensing",
    "authorised": "authorized",
    "organisation": "organization",
    "whilst": "while",
    "favour": "favor",
    "centre": "center",
}


def normalize(text: str) -> list[str]:
    """Reduce license text to the word tokens used for comparison."""
    text = _COPYRIGHT_RE.sub(" ", text).lower()
    return [_VARIANTS.get(word, word) for word in _WORD_RE.findall(text)]


def _bigrams(text: str) -> Counter:
    words = normalize(text)
    if len(words) < 2:
        return Counter((word,) for word in words)
    return Counter(zip(words, words[1:]))


def _dice(query: Counter, query_total: int, ref: Counter, ref_total: int) -> float:
    if not query_total or not ref_total:
        return 0.0
    small, large = (query, ref) if len(query) <= len(ref) else (ref, query)
    shared = sum(min(count, large[gram]) for gram, count in small.items() if gram in large)
    return 2.0 * shared / (query_total + ref_total)


class LicenseStore:
    """Read-only corpus of canonical license texts.

    Attributes:
        version: Version of the license list the corpus was built from.
    """

    def __init__(self, texts: Mapping[str, str], version: str = "unknown") -> None:
        """Build the corpus.

        Args:
            texts: Mapping of SPDX identifier to canonical license text.
            version: Version of the license list snapshot.

        Raises:
            CorpusUnavailable: If ``texts`` is empty.
        """
        if not texts:
            raise CorpusUnavailable("license corpus is empty")

        self.version = version
        self._texts = dict(texts)
        # Sorted so the first maximum found is the smallest identifier.
        self._entries = []
        for name in sorted(self._texts):
            grams = _bigrams(self._texts[name])
            self._entries.append((name, grams, sum(grams.values())))
        logger.debug(
            "Loaded license corpus %s with %d licenses", version, len(self._entries)
        )

    @classmethod
    def from_json(cls, path: Path) -> "LicenseStore":
        """Load a versioned corpus artifact.

        The artifact is a JSON object of the form
        ``{"license_list_version": "3.24", "licenses": {"MIT": "..."}}``.

        Raises:
            CorpusUnavailable: If the file is missing, unreadable or invalid.
        """
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CorpusUnavailable(f"unable to read corpus artifact: {e}", str(path)) from e

        licenses = data.get("licenses") if isinstance(data, dict) else None
        if not isinstance(licenses, dict) or not all(
            isinstance(text, str) for text in licenses.values()
        ):
            raise CorpusUnavailable("corpus artifact has no 'licenses' mapping", str(path))

        return cls(licenses, str(data.get("license_list_version", "unknown")))

    @classmethod
    def from_directory(cls, path: Path) -> "LicenseStore":
        """Load a corpus from ``<identifier>.txt`` files in a directory.

        An optional ``VERSION`` file holds the license list version.

        Raises:
            CorpusUnavailable: If the directory is missing or holds no texts.
        """
        if not path.is_dir():
            raise CorpusUnavailable("corpus directory not found", str(path))

        texts = {}
        try:
            for file in sorted(path.glob("*.txt")):
                texts[file.stem] = file.read_text(encoding="utf-8")
            version_file = path / "VERSION"
            version = (
                version_file.read_text(encoding="utf-8").strip()
                if version_file.exists()
                else "unknown"
            )
        except (OSError, UnicodeDecodeError) as e:
            raise CorpusUnavailable(f"unable to read corpus directory: {e}", str(path)) from e

        if not texts:
            raise CorpusUnavailable("corpus directory holds no license texts", str(path))
        return cls(texts, version)

    @classmethod
    def from_cache(cls, cache: "CorpusCache") -> "LicenseStore":
        """Load the corpus stored in a :class:`~license_bom.cache.CorpusCache`.

        Raises:
            CorpusUnavailable: If the cache is empty or cannot be read.
        """
        try:
            texts = cache.texts()
            version = cache.version
        except sqlite3.Error as e:
            raise CorpusUnavailable(f"unable to read corpus cache: {e}", str(cache.db_path)) from e

        if not texts:
            raise CorpusUnavailable(
                "corpus cache is empty, run 'license-bom corpus update'",
                str(cache.db_path),
            )
        return cls(texts, version or "unknown")

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "LicenseStore":
        """Load a corpus from a JSON artifact, a directory, or the default cache.

        Args:
            path: Artifact file or directory. Uses the default corpus cache
                when None.
        """
        if path is None:
            from license_bom.cache import CorpusCache

            try:
                cache = CorpusCache()
            except (OSError, sqlite3.Error) as e:
                raise CorpusUnavailable(f"unable to open corpus cache: {e}") from e
            return cls.from_cache(cache)
        if path.is_dir():
            return cls.from_directory(path)
        return cls.from_json(path)

    def __len__(self) -> int:
        return len(self._texts)

    def __contains__(self, name: object) -> bool:
        return name in self._texts

    @property
    def names(self) -> list[str]:
        """Return the sorted identifiers in the corpus."""
        return [name for name, _, _ in self._entries]

    def text_of(self, name: str) -> str:
        """Return the canonical text of a corpus license.

        Raises:
            KeyError: If the license is not in the corpus.
        """
        return self._texts[name]

    def analyze(self, text: str) -> ClassificationResult:
        """Return the best-matching corpus license for ``text``.

        Low scores are returned as-is; callers decide how to treat them.
        Ties are broken in favor of the lexicographically smallest identifier.
        """
        query = _bigrams(text)
        query_total = sum(query.values())

        best_name, best_score = self._entries[0][0], -1.0
        for name, grams, total in self._entries:
            score = _dice(query, query_total, grams, total)
            if score > best_score:
                best_name, best_score = name, score
                if score == 1.0:
                    break
        return ClassificationResult(name=best_name, score=best_score)

    def analyze_many(
        self, texts: Iterable[str], workers: int = 1
    ) -> list[ClassificationResult]:
        """Classify independent texts, optionally on a thread pool.

        Args:
            texts: License texts to classify.
            workers: Number of worker threads; 1 classifies inline.

        Returns:
            Results in input order.
        """
        texts = list(texts)
        if workers <= 1 or len(texts) <= 1:
            return [self.analyze(text) for text in texts]
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(self.analyze, texts))
