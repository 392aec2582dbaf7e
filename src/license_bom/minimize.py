"""Minimization of license requirements against an accepted-license policy.

Given an expression such as ``MIT OR Apache-2.0`` and a policy accepting
``MIT``, the engine selects the smallest set of accepted requirements that
still satisfies the expression (here ``{MIT}``) and prunes the package's
license files down to that selection.

The engine enumerates the minimal satisfying sets of every subtree:

- a leaf has the single option ``{leaf}`` when accepted, and none otherwise;
- ``AND`` combines every option of the left side with every option of the
  right side;
- ``OR`` offers the options of either side.

Options that are supersets of other options are discarded at each step,
and at most :data:`MAX_OPTIONS` of the smallest are kept.
The result is the option with the fewest requirements; ties go to the
option whose sorted serialized requirements compare lexicographically
smallest.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from license_bom.errors import LicenseBomError, UnsatisfiableLicense
from license_bom.expression import (
    And,
    ExprNode,
    LicenseExpression,
    Requirement,
    parse,
    parse_requirement,
)
from license_bom.models import Package

logger = logging.getLogger(__name__)

_Option = frozenset[Requirement]

#: Upper bound on the candidate sets kept per subtree.
MAX_OPTIONS = 32


@dataclass(frozen=True)
class AcceptPolicy:
    """Set of license identifiers an organization accepts.

    Identifiers are stored in their serialized form, so a requirement with
    an exception is accepted only when listed with that exception
    (e.g. "GPL-2.0-only WITH Classpath-exception-2.0").

    Attributes:
        identifiers: Normalized accepted identifiers.
    """

    identifiers: frozenset[str] = frozenset()

    @classmethod
    def from_tags(cls, tags: Iterable[str]) -> "AcceptPolicy":
        """Build a policy from identifier strings.

        Raises:
            MalformedExpression: If a tag is not a single valid requirement.
        """
        return cls(frozenset(str(parse_requirement(tag)) for tag in tags))

    def accepts(self, requirement: Requirement) -> bool:
        return str(requirement) in self.identifiers

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Requirement):
            return self.accepts(item)
        return item in self.identifiers

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.identifiers))

    def __len__(self) -> int:
        return len(self.identifiers)


def _prune(options: set[_Option]) -> list[_Option]:
    """Drop options that strictly contain another option.

    Returns the kept options ordered by :func:`_selection_key`.
    """
    kept: list[_Option] = []
    for option in sorted(options, key=_selection_key):
        if not any(smaller < option for smaller in kept):
            kept.append(option)
    return kept


def _options(node: ExprNode, accept: AcceptPolicy) -> list[_Option]:
    if isinstance(node, Requirement):
        if accept.accepts(node):
            return [frozenset({node})]
        return []

    left = _options(node.left, accept)
    right = _options(node.right, accept)
    if isinstance(node, And):
        options = _prune({lhs | rhs for lhs in left for rhs in right})
    else:
        options = _prune({*left, *right})
    if len(options) > MAX_OPTIONS:
        logger.debug(
            "Keeping the %d smallest of %d options for %s",
            MAX_OPTIONS,
            len(options),
            node,
        )
        del options[MAX_OPTIONS:]
    return options


def _selection_key(option: _Option) -> tuple[int, list[str]]:
    return len(option), sorted(str(req) for req in option)


def _reduce(expr: LicenseExpression, option: _Option) -> _Option:
    """Remove requirements from ``option`` while ``expr`` stays satisfied."""
    selected = set(option)
    for requirement in sorted(option, key=str, reverse=True):
        if expr.evaluate(selected - {requirement}):
            selected.discard(requirement)
    return frozenset(selected)


def minimized_requirements(
    expr: LicenseExpression, accept: AcceptPolicy
) -> frozenset[Requirement]:
    """Compute the minimal accepted requirement set satisfying ``expr``.

    The search is exhaustive while every subtree has at most
    :data:`MAX_OPTIONS` candidate sets. Past that, only the smallest
    candidates are carried upward, so the result stays satisfying and
    irreducible but may not be the smallest overall.

    Args:
        expr: Parsed license expression.
        accept: Accepted-license policy.

    Returns:
        The selected requirements. Every member is accepted by the policy,
        the expression evaluates true with exactly these requirements
        satisfied, and no proper subset does.

    Raises:
        UnsatisfiableLicense: If no accepted combination satisfies ``expr``.
    """
    options = _options(expr.root, accept)
    if not options:
        raise UnsatisfiableLicense(str(expr), accept.identifiers)
    return _reduce(expr, options[0])


def minimize_package(
    package: Package, accept: AcceptPolicy
) -> Optional[frozenset[Requirement]]:
    """Minimize a package's expression and prune its license files in place.

    A file is kept if it has no identifier (left for manual review) or its
    identifier is one of the selected requirements.

    Args:
        package: Package to minimize. Left untouched if it has no
            ``license_spdx``.
        accept: Accepted-license policy.

    Returns:
        The selected requirements, or None if the package has no expression.

    Raises:
        MalformedExpression: If ``license_spdx`` cannot be parsed.
        UnsatisfiableLicense: If the policy cannot satisfy the expression.
    """
    if package.license_spdx is None:
        return None

    try:
        minimized = parse(package.license_spdx).minimized_requirements(accept)
    except LicenseBomError as e:
        e.add_context(
            f"Unable to minimize requirements of '{package.identity}' "
            f"with {package.license_spdx!r}"
        )
        raise

    selected = {str(req) for req in minimized}
    kept = [
        lf for lf in package.license_files if lf.spdx is None or lf.spdx in selected
    ]
    dropped = len(package.license_files) - len(kept)
    if dropped:
        logger.debug(
            "Dropped %d license file(s) of %s not in %s",
            dropped,
            package.identity,
            sorted(selected),
        )
    package.license_files[:] = kept
    return minimized


def minimize_requirements(
    packages: Iterable[Package],
    accept: AcceptPolicy,
    keep_going: bool = False,
) -> list[LicenseBomError]:
    """Minimize the license requirements of every package.

    Example: ``MIT OR Apache-2.0`` with ``MIT`` accepted keeps only the
    MIT license file (and any unclassified files).

    Args:
        packages: Packages to minimize in place.
        accept: Accepted-license policy.
        keep_going: If True, log and collect per-package failures instead
            of raising the first one.

    Returns:
        The collected failures (always empty when ``keep_going`` is False).

    Raises:
        LicenseBomError: The first failure, when ``keep_going`` is False.
    """
    failures: list[LicenseBomError] = []
    for package in packages:
        try:
            minimize_package(package, accept)
        except LicenseBomError as e:
            if not keep_going:
                raise
            logger.error("%s", e)
            failures.append(e)
    return failures
