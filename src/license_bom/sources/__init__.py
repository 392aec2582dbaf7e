"""Package sources for the license pipeline.

This module provides readers for the records handed over by external
collaborators: the dependency graph export and third-party manifests.
"""

from license_bom.sources.base import BaseSource
from license_bom.sources.graph import GraphSource
from license_bom.sources.thirdparty import ThirdPartySource

__all__ = [
    "BaseSource",
    "GraphSource",
    "ThirdPartySource",
]
