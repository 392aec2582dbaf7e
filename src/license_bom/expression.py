"""SPDX license expression model.

Parses SPDX license expressions into an immutable tree of requirements
combined with ``AND`` and ``OR``, and supports the structural queries the
minimization engine needs.

Operator precedence (tightest to loosest)::

    +  >  WITH  >  AND  >  OR

Leaves must be recognized tags: SPDX license identifiers known to the
``license-expression`` SPDX index (deprecated aliases included) or
``LicenseRef-`` references. The right side of ``WITH`` must be a known
SPDX exception or an ``AdditionRef-`` reference. Identifiers are
case-sensitive.

Usage::

    from license_bom.expression import parse

    expr = parse("MIT OR (Apache-2.0 AND BSD-3-Clause)")
    [str(req) for req in expr.requirements()]
    # ['MIT', 'Apache-2.0', 'BSD-3-Clause']
"""

import re
from dataclasses import dataclass
from functools import lru_cache, reduce
from typing import TYPE_CHECKING, Iterable, Iterator, Optional, Union

from boolean import PARSE_ERRORS, ParseError
from license_expression import (
    TOKEN_WITH,
    ExpressionError,
    LicenseSymbol,
    LicenseWithExceptionSymbol,
    get_spdx_licensing,
)

from license_bom.errors import MalformedExpression

if TYPE_CHECKING:
    from license_bom.minimize import AcceptPolicy

# SPDX licensing used for both the grammar and the identifier index
SPDX = get_spdx_licensing()


@dataclass(frozen=True)
class Requirement:
    """A single license requirement, the leaf of an expression.

    Attributes:
        license_id: SPDX identifier or ``LicenseRef-`` reference.
        or_later: True if the ``+`` suffix was present.
        exception: Exception identifier following ``WITH``, if any.
    """

    license_id: str
    or_later: bool = False
    exception: Optional[str] = None

    def __str__(self) -> str:
        base = f"{self.license_id}+" if self.or_later else self.license_id
        if self.exception:
            return f"{base} WITH {self.exception}"
        return base


@dataclass(frozen=True)
class And:
    """Conjunction: both operands must be satisfied."""

    left: "ExprNode"
    right: "ExprNode"

    def __str__(self) -> str:
        left = f"({self.left})" if isinstance(self.left, Or) else str(self.left)
        right = (
            f"({self.right})"
            if isinstance(self.right, (And, Or))
            else str(self.right)
        )
        return f"{left} AND {right}"


@dataclass(frozen=True)
class Or:
    """Disjunction: at least one operand must be satisfied."""

    left: "ExprNode"
    right: "ExprNode"

    def __str__(self) -> str:
        # Operators fold left, so a right operand of the same kind was grouped.
        right = f"({self.right})" if isinstance(self.right, Or) else str(self.right)
        return f"{self.left} OR {right}"


ExprNode = Union[Requirement, And, Or]


class LicenseExpression:
    """A parsed SPDX license expression.

    Immutable; equality and hashing follow the tree structure.
    """

    __slots__ = ("_root",)

    def __init__(self, root: ExprNode) -> None:
        self._root = root

    @classmethod
    def parse(cls, text: str) -> "LicenseExpression":
        """Parse expression text, see :func:`parse`."""
        return parse(text)

    @property
    def root(self) -> ExprNode:
        return self._root

    def requirements(self) -> Iterator[Requirement]:
        """Yield every leaf depth-first, left to right, duplicates included.

        Each call returns a fresh iterator.
        """
        return _iter_requirements(self._root)

    def evaluate(self, satisfied: Iterable[Requirement]) -> bool:
        """Evaluate the expression with exactly ``satisfied`` marked true."""
        return _evaluate(self._root, frozenset(satisfied))

    def minimized_requirements(
        self, accept: "AcceptPolicy"
    ) -> frozenset[Requirement]:
        """Return the minimal accepted requirement set satisfying this expression.

        Raises:
            UnsatisfiableLicense: If no accepted combination satisfies it.
        """
        from license_bom.minimize import minimized_requirements

        return minimized_requirements(self, accept)

    def to_string(self) -> str:
        """Return the canonical serialization."""
        return str(self._root)

    def __str__(self) -> str:
        return str(self._root)

    def __repr__(self) -> str:
        return f"LicenseExpression({str(self._root)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LicenseExpression):
            return NotImplemented
        return self._root == other._root

    def __hash__(self) -> int:
        return hash(self._root)


def _iter_requirements(node: ExprNode) -> Iterator[Requirement]:
    if isinstance(node, Requirement):
        yield node
    else:
        yield from _iter_requirements(node.left)
        yield from _iter_requirements(node.right)


def _evaluate(node: ExprNode, satisfied: frozenset[Requirement]) -> bool:
    if isinstance(node, Requirement):
        return node in satisfied
    if isinstance(node, And):
        return _evaluate(node.left, satisfied) and _evaluate(node.right, satisfied)
    return _evaluate(node.left, satisfied) or _evaluate(node.right, satisfied)


# ---------------------------------------------------------------------------
# Recognized tags
# ---------------------------------------------------------------------------

_IDSTRING = r"[A-Za-z0-9.\-]+"
_LICENSE_REF_RE = re.compile(rf"(?:DocumentRef-{_IDSTRING}:)?LicenseRef-{_IDSTRING}")
_ADDITION_REF_RE = re.compile(rf"(?:DocumentRef-{_IDSTRING}:)?AdditionRef-{_IDSTRING}")


@lru_cache(maxsize=1)
def _spdx_index() -> tuple[frozenset[str], frozenset[str]]:
    """Return (license ids, exception ids) known to the SPDX index."""
    licenses: set[str] = set()
    exceptions: set[str] = set()
    for symbol in SPDX.known_symbols.values():
        keys = {symbol.key, *symbol.aliases}
        if symbol.is_exception:
            exceptions.update(keys)
        else:
            licenses.update(keys)
    return frozenset(licenses), frozenset(exceptions)


def is_license_id(tag: str) -> bool:
    """Return True if ``tag`` is a recognized license identifier."""
    return bool(_LICENSE_REF_RE.fullmatch(tag)) or tag in _spdx_index()[0]


def is_exception_id(tag: str) -> bool:
    """Return True if ``tag`` is a recognized license exception identifier."""
    return bool(_ADDITION_REF_RE.fullmatch(tag)) or tag in _spdx_index()[1]


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _Leaf:
    """A leaf as spelled in the source text."""

    license: str
    exception: Optional[str]
    position: int


def _written_leaves(text: str) -> list[_Leaf]:
    """Tokenize ``text`` with the SPDX licensing and return its leaves in order.

    Raises:
        ParseError: On a misplaced ``WITH``.
        MalformedExpression: On empty parentheses.
    """
    leaves: list[_Leaf] = []
    previous = ""
    for token, token_string, position in SPDX.tokenize(text, simple=True):
        if previous == "(" and token_string == ")":
            raise MalformedExpression(text, position, "empty parentheses")
        if isinstance(token, LicenseWithExceptionSymbol):
            license_part, _, exception_part = token_string.split()
            leaves.append(_Leaf(license_part, exception_part, position))
        elif isinstance(token, LicenseSymbol):
            leaves.append(_Leaf(token_string, None, position))
        previous = token_string
    return leaves


def _requirement(text: str, leaf: _Leaf) -> Requirement:
    or_later = leaf.license.endswith("+")
    license_id = leaf.license[:-1] if or_later else leaf.license
    if not is_license_id(license_id):
        raise MalformedExpression(
            text, leaf.position, f"unknown license identifier {license_id!r}"
        )
    if leaf.exception is not None and not is_exception_id(leaf.exception):
        raise MalformedExpression(
            text,
            text.find(leaf.exception, leaf.position),
            f"unknown license exception {leaf.exception!r}",
        )
    return Requirement(license_id, or_later, leaf.exception)


def _convert(node, leaves: Iterator[Requirement]) -> ExprNode:
    """Fold an n-ary license_expression tree into binary And/Or nodes.

    Leaves are consumed from ``leaves`` in order of appearance.
    """
    if isinstance(node, SPDX.AND):
        return reduce(And, [_convert(arg, leaves) for arg in node.args])
    if isinstance(node, SPDX.OR):
        return reduce(Or, [_convert(arg, leaves) for arg in node.args])
    return next(leaves)


def _describe(error: ParseError) -> str:
    if error.token_type == TOKEN_WITH:
        return "WITH requires a single license on its left side"
    return PARSE_ERRORS.get(error.error_code, "invalid expression")


def parse(text: str) -> LicenseExpression:
    """Parse an SPDX license expression.

    The grammar is handled by the ``license-expression`` SPDX licensing. Each
    leaf is then checked against the SPDX index using its exact spelling, so
    ``mit`` is rejected even though the library would resolve it to ``MIT``.

    Args:
        text: Expression text (e.g. "MIT OR Apache-2.0").

    Returns:
        The parsed LicenseExpression.

    Raises:
        MalformedExpression: If the text does not follow the expression
            grammar or contains an unrecognized identifier.
    """
    if not isinstance(text, str) or not text.strip():
        raise MalformedExpression(str(text), 0, "empty expression")

    try:
        leaves = _written_leaves(text)
        tree = SPDX.parse(text, simple=True)
    except ParseError as e:
        # Errors found once the whole input is read carry no position.
        position = e.position if e.position >= 0 else len(text)
        raise MalformedExpression(text, position, _describe(e)) from e
    except ExpressionError as e:
        # Raised when an operator is missing an operand.
        raise MalformedExpression(text, len(text), str(e)) from e

    requirements = [_requirement(text, leaf) for leaf in leaves]
    return LicenseExpression(_convert(tree, iter(requirements)))


def parse_requirement(text: str) -> Requirement:
    """Parse text holding exactly one requirement (e.g. "GPL-2.0-only WITH
    Classpath-exception-2.0").

    Raises:
        MalformedExpression: If the text is not a single valid requirement.
    """
    root = parse(text).root
    if not isinstance(root, Requirement):
        raise MalformedExpression(text, 0, "expected a single license identifier")
    return root
