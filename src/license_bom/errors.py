"""Error taxonomy and diagnostic kinds for license_bom.

Fatal errors derive from :class:`LicenseBomError` and carry a context chain
that callers extend as the error crosses call boundaries (package identity,
operation name). Data-quality problems are not errors: they are logged as
warnings tagged with a :class:`Diagnostic` kind and processing continues.
"""

from enum import Enum
from typing import Iterable, Optional


class Diagnostic(str, Enum):
    """Kinds of non-fatal warnings emitted on the logging channel.

    Attached to log records as ``extra={"diagnostic": ...}``.
    """

    LOW_CONFIDENCE = "low-confidence-classification"
    COUNT_MISMATCH = "spdx-file-count-mismatch"
    NO_LICENSE_FILES = "no-license-files"
    UNREADABLE_FILE = "unreadable-file"
    UNKNOWN_LICENSE = "unknown-license"


class LicenseBomError(Exception):
    """Base class for fatal license_bom errors.

    Attributes:
        message: The innermost error message.
        context: Context entries, outermost first.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        self.context: list[str] = []

    def add_context(self, context: str) -> "LicenseBomError":
        """Prepend a context entry and return self for re-raising.

        Args:
            context: Description of the operation that failed
                (e.g. "Unable to minimize requirements of 'foo 1.0'").

        Returns:
            This error, so callers can ``raise err.add_context(...)``.
        """
        self.context.insert(0, context)
        return self

    def __str__(self) -> str:
        return ": ".join([*self.context, self.message])


class MalformedExpression(LicenseBomError, ValueError):
    """Raised when an SPDX expression cannot be parsed.

    Attributes:
        expression: The original expression string.
        position: Character offset where the error was detected.
        detail: Human-readable description of the problem.
    """

    def __init__(self, expression: str, position: int, detail: str) -> None:
        self.expression = expression
        self.position = position
        self.detail = detail
        super().__init__(
            f"invalid SPDX expression {expression!r} at position {position}: {detail}"
        )


class UnsatisfiableLicense(LicenseBomError):
    """Raised when no accepted license combination satisfies an expression.

    Attributes:
        expression: Serialized expression that could not be satisfied.
        accepted: Sorted accepted identifiers of the policy in effect.
    """

    def __init__(self, expression: str, accepted: Iterable[str]) -> None:
        self.expression = expression
        self.accepted = sorted(accepted)
        super().__init__(
            f"no combination of accepted licenses {self.accepted} satisfies "
            f"{expression!r}"
        )


class CorpusUnavailable(LicenseBomError):
    """Raised when the reference license corpus cannot be loaded."""

    def __init__(self, message: str, source: Optional[str] = None) -> None:
        self.source = source
        if source:
            message = f"{message} ({source})"
        super().__init__(message)


class InternalInconsistency(LicenseBomError):
    """Raised when a collaborator hands over data violating an invariant."""
