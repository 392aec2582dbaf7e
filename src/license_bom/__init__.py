"""license-bom - bill of licenses for multi-ecosystem projects.

This package resolves the licenses of a project's dependencies, identifies
unlabelled license texts against a reference corpus and reduces every
package's license obligations to the smallest set an organization accepts.
"""

__version__ = "0.1.0"

from license_bom.classifier import LicenseStore
from license_bom.errors import (
    CorpusUnavailable,
    InternalInconsistency,
    LicenseBomError,
    MalformedExpression,
    UnsatisfiableLicense,
)
from license_bom.expression import LicenseExpression, Requirement, parse
from license_bom.minimize import AcceptPolicy, minimized_requirements
from license_bom.models import ClassificationResult, LicenseFile, Package

__all__ = [
    "__version__",
    "AcceptPolicy",
    "ClassificationResult",
    "CorpusUnavailable",
    "InternalInconsistency",
    "LicenseBomError",
    "LicenseExpression",
    "LicenseFile",
    "LicenseStore",
    "MalformedExpression",
    "Package",
    "Requirement",
    "UnsatisfiableLicense",
    "minimized_requirements",
    "parse",
]
