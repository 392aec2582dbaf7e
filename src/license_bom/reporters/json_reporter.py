"""JSON reporter for the bill of licenses."""

import json

from license_bom.models import Package
from license_bom.reporters.base import BaseReporter


class JsonReporter(BaseReporter):
    """Reporter that serializes package records as a JSON array.

    Attributes:
        indent: Indentation of the pretty-printed output.
    """

    def __init__(self, indent: int = 2) -> None:
        self.indent = indent

    def render(self, packages: list[Package]) -> str:
        """Render package records as a JSON array, one object per package."""
        return (
            json.dumps(
                [package.to_dict() for package in packages],
                indent=self.indent,
                ensure_ascii=False,
            )
            + "\n"
        )

    @property
    def format_name(self) -> str:
        return "json"

    @property
    def default_extension(self) -> str:
        return ".json"
