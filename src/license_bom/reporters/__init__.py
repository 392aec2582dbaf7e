"""Output reporters for the bill of licenses.

This module provides reporters that serialize the final package records
for downstream compliance tooling.
"""

from license_bom.reporters.base import BaseReporter
from license_bom.reporters.json_reporter import JsonReporter

__all__ = ["BaseReporter", "JsonReporter"]
