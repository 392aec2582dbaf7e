"""Aggregation pipeline producing the bill of licenses.

Merges the packages of the dependency graph export with the records of
auxiliary third-party manifests, classifies license files lacking an
identifier, deduplicates records and minimizes every package's license
requirements against the accepted-license policy.

Data-quality problems (count mismatches, unreadable or missing license
files, low-confidence classifications) are logged as warnings tagged with
a :class:`~license_bom.errors.Diagnostic` and never abort the run.
"""

import logging
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, Optional

from license_bom.classifier import LicenseStore
from license_bom.config import DEFAULT_LOW_CONFIDENCE_THRESHOLD, Config
from license_bom.errors import Diagnostic, InternalInconsistency, LicenseBomError
from license_bom.minimize import minimize_requirements
from license_bom.models import (
    DiscoveredPackage,
    LicenseFile,
    LicenseInfoKind,
    Package,
)
from license_bom.sources import GraphSource, ThirdPartySource

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Outcome of a pipeline run.

    Attributes:
        packages: Final package records, in discovery order.
        failures: Per-package minimization failures (only collected when
            running with ``keep_going``).
    """

    packages: list[Package] = field(default_factory=list)
    failures: list[LicenseBomError] = field(default_factory=list)


def is_excluded(name: str, rules: Iterable[str]) -> bool:
    """Return True if a package name matches one of the exclusion patterns."""
    return any(fnmatchcase(name, rule) for rule in rules)


def _read_license_files(node: DiscoveredPackage) -> list[LicenseFile]:
    files = []
    for ref in node.license_files:
        path = ref.path if ref.path.is_absolute() else node.manifest_dir / ref.path
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(
                "Unable to read license file %s: %s",
                path,
                e,
                extra={"diagnostic": Diagnostic.UNREADABLE_FILE},
            )
            continue
        files.append(LicenseFile(name=path.name, spdx=ref.license, text=text))
    return files


def collect_graph_licenses(
    nodes: Iterable[DiscoveredPackage], config: Config
) -> list[Package]:
    """Turn dependency graph nodes into package records.

    Args:
        nodes: Packages of the graph export.
        config: Run configuration (exclusion rules).

    Returns:
        Package records for every non-excluded node.

    Raises:
        InternalInconsistency: If a node is marked as ignored.
    """
    packages = []
    for node in nodes:
        if is_excluded(node.name, config.exclude):
            logger.debug("Skipping excluded package %s", node)
            continue

        info = node.license_info
        if info.kind is LicenseInfoKind.EXPR:
            n_spdx_licenses = sum(1 for _ in info.expression.requirements())
            if n_spdx_licenses != len(node.license_files):
                logger.warning(
                    "Mismatch between license SPDX and number of license files found "
                    "in package '%s'. SPDX specifies %d but found %d",
                    node,
                    n_spdx_licenses,
                    len(node.license_files),
                    extra={"diagnostic": Diagnostic.COUNT_MISMATCH},
                )
        elif info.kind is LicenseInfoKind.UNKNOWN:
            logger.warning(
                "Package '%s' has unknown license",
                node,
                extra={"diagnostic": Diagnostic.UNKNOWN_LICENSE},
            )
        else:
            raise InternalInconsistency(
                f"package '{node}' is marked as ignored and should have been "
                "filtered out by the graph export"
            )

        files = _read_license_files(node)
        if not files:
            logger.warning(
                "Unable to find any license files for %s",
                node,
                extra={"diagnostic": Diagnostic.NO_LICENSE_FILES},
            )

        packages.append(
            Package(
                package_name=node.name,
                package_version=node.version,
                package_url=node.url,
                license_spdx=str(info.expression) if info.expression else None,
                license_files=files,
            )
        )

    return packages


def thirdparty_manifest(node: DiscoveredPackage, config: Config) -> Optional[Path]:
    """Return the auxiliary manifest referenced by a graph node, if any."""
    table = node.metadata.get(config.thirdparty_namespace)
    if not isinstance(table, dict):
        return None
    file_name = table.get(config.thirdparty_key)
    if not isinstance(file_name, str) or not file_name:
        return None
    return node.manifest_dir / file_name


def augment_licenses(
    packages: Iterable[Package],
    store: LicenseStore,
    threshold: float = DEFAULT_LOW_CONFIDENCE_THRESHOLD,
    workers: int = 1,
) -> int:
    """Classify every license file that has no SPDX identifier.

    Low-confidence matches are still assigned, with a warning.

    Args:
        packages: Packages whose files are updated in place.
        store: Reference corpus.
        threshold: Scores below this value are reported as low confidence.
        workers: Number of classifier threads.

    Returns:
        Number of classified files.
    """
    pending = [
        (package, license_file)
        for package in packages
        for license_file in package.license_files
        if license_file.spdx is None
    ]
    results = store.analyze_many((lf.text for _, lf in pending), workers=workers)

    for (package, license_file), result in zip(pending, results):
        if not result.is_confident(threshold):
            logger.warning(
                "Low confidence of %.3f on license SPDX detection of %s for '%s' (best match %s)",
                result.score,
                license_file.name,
                package.identity,
                result.name,
                extra={"diagnostic": Diagnostic.LOW_CONFIDENCE},
            )
        license_file.spdx = result.name

    return len(pending)


def collect_thirdparty_licenses(
    nodes: Iterable[DiscoveredPackage], store: LicenseStore, config: Config
) -> list[Package]:
    """Load the third-party manifests referenced by graph nodes.

    Exclusion rules do not apply here: an excluded package may still ship
    a manifest describing its native dependencies.

    Raises:
        FileNotFoundError: If a referenced manifest does not exist.
        ValueError: If a referenced manifest is malformed.
    """
    packages: list[Package] = []
    for node in nodes:
        manifest = thirdparty_manifest(node, config)
        if manifest is None:
            continue

        try:
            records = ThirdPartySource(manifest).collect()
        except FileNotFoundError as e:
            raise FileNotFoundError(
                f"Unable to read third-party manifest of '{node}': {e}"
            ) from e
        except ValueError as e:
            raise ValueError(
                f"Unable to parse third-party manifest of '{node}': {e}"
            ) from e

        logger.debug("Read %d third-party packages from %s", len(records), manifest)
        augment_licenses(
            records, store, config.low_confidence_threshold, config.workers
        )
        packages.extend(records)

    return packages


def deduplicate(packages: Iterable[Package]) -> list[Package]:
    """Merge records sharing the same name and version.

    The first record wins; license files of later records that it does not
    already hold are appended, and missing URL/expression fields are filled.
    """
    merged: dict[tuple[str, str], Package] = {}
    for package in packages:
        key = (package.package_name, package.package_version)
        existing = merged.get(key)
        if existing is None:
            merged[key] = package
            continue

        seen = {(lf.name, lf.spdx, lf.text) for lf in existing.license_files}
        for license_file in package.license_files:
            if (license_file.name, license_file.spdx, license_file.text) not in seen:
                existing.license_files.append(license_file)
        existing.package_url = existing.package_url or package.package_url
        existing.license_spdx = existing.license_spdx or package.license_spdx
        logger.debug("Merged duplicate record of %s", existing.identity)

    return list(merged.values())


def run(
    graph_path: Path,
    config: Config,
    store: LicenseStore,
    keep_going: bool = False,
) -> PipelineResult:
    """Build the bill of licenses for a dependency graph export.

    Args:
        graph_path: Path to the graph export.
        config: Run configuration.
        store: Reference corpus used to classify unlabelled license files.
        keep_going: Collect per-package minimization failures instead of
            aborting on the first one.

    Returns:
        The final package records and any collected failures.
    """
    nodes = GraphSource(graph_path).collect()
    logger.info("Read %d packages from %s", len(nodes), graph_path)

    packages = collect_graph_licenses(nodes, config)
    packages.extend(collect_thirdparty_licenses(nodes, store, config))
    augment_licenses(packages, store, config.low_confidence_threshold, config.workers)

    packages = deduplicate(packages)
    failures = minimize_requirements(packages, config.policy, keep_going=keep_going)

    return PipelineResult(packages=packages, failures=failures)
