"""
Model formulas.

A small subset of R's Wilkinson notation, enough to describe the models
whose parameters get standardized:

    y ~ x1 + x2          main effects
    y ~ a:b              interaction only
    y ~ a * b            a + b + a:b
    y ~ x - 1            no intercept (also "+ 0" / "0 +")
    y ~ x + (1 | g)      random intercept for grouping column g

Terms are ordered by interaction order (all main effects first), which
is the order R's terms() produces and therefore the coefficient order.
"""

from __future__ import annotations

import itertools
import re
from dataclasses import dataclass

from pyeffectsize.core.exceptions import ValidationError


_NAME = re.compile(r'^[A-Za-z_.][A-Za-z0-9_.]*$')
_RANDOM = re.compile(r'\(\s*([^()|]+?)\s*\|\s*([^()|]+?)\s*\)')


@dataclass(frozen=True)
class Formula:
    """
    Parsed model formula.

    Attributes:
        response: Response column name.
        terms: Fixed-effect terms, each a tuple of variable names
            (length 1 = main effect, longer = interaction).
        intercept: Whether the fixed part has an intercept.
        groups: Grouping columns that carry a random intercept.
        text: The formula as written (normalized if built from parts).
    """
    response: str
    terms: tuple[tuple[str, ...], ...]
    intercept: bool = True
    groups: tuple[str, ...] = ()
    text: str = ''

    @property
    def term_labels(self) -> tuple[str, ...]:
        """Term labels as R prints them: 'x', 'a:b'."""
        return tuple(':'.join(t) for t in self.terms)

    @property
    def variables(self) -> tuple[str, ...]:
        """Every fixed-effect variable, in first-appearance order."""
        seen: dict[str, None] = {}
        for term in self.terms:
            for var in term:
                seen.setdefault(var, None)
        return tuple(seen)

    @property
    def is_mixed(self) -> bool:
        return bool(self.groups)

    def __str__(self) -> str:
        return self.text or _render(self)


def parse_formula(formula: str | Formula) -> Formula:
    """
    Parse a formula string. A Formula is returned unchanged.

    Raises:
        ValidationError: On syntax the mini-language does not support.

    Examples:
        >>> f = parse_formula("mpg ~ wt * am + (1 | cyl)")
        >>> f.term_labels
        ('wt', 'am', 'wt:am')
        >>> f.groups
        ('cyl',)
    """
    if isinstance(formula, Formula):
        return formula
    if not isinstance(formula, str):
        raise ValidationError(
            f"formula: expected str or Formula, got {type(formula).__name__}"
        )

    if formula.count('~') != 1:
        raise ValidationError(f"formula: expected exactly one '~' in {formula!r}")
    lhs, rhs = (part.strip() for part in formula.split('~'))

    if not _NAME.match(lhs):
        raise ValidationError(f"formula: response must be a column name, got {lhs!r}")

    if re.search(r'[-+*:]\s*$', rhs) or re.match(r'^\s*[+*:]', rhs):
        raise ValidationError(f"formula: dangling operator in {formula!r}")

    groups: list[str] = []
    for inner, group in _RANDOM.findall(rhs):
        if inner.strip() != '1':
            raise ValidationError(
                f"formula: only random intercepts '(1 | g)' are supported, got "
                f"'({inner} | {group})'"
            )
        if not _NAME.match(group):
            raise ValidationError(f"formula: bad grouping column {group!r}")
        if group not in groups:
            groups.append(group)
    rhs = _RANDOM.sub('', rhs)

    if '(' in rhs or ')' in rhs or '|' in rhs:
        raise ValidationError(f"formula: unsupported syntax in {formula!r}")

    intercept = True
    included: dict[tuple[str, ...], None] = {}
    removed: set[tuple[str, ...]] = set()

    for sign, piece in re.findall(r'([+-]?)\s*([^+-]+)', rhs):
        piece = piece.strip()
        if not piece:
            continue
        if piece in ('0', '1'):
            if sign == '-' or piece == '0':
                intercept = False
            else:
                intercept = True
            continue
        for term in _expand(piece):
            if sign == '-':
                removed.add(term)
            else:
                included.setdefault(term, None)

    terms = [t for t in included if t not in removed]
    terms.sort(key=len)

    if lhs in {v for t in terms for v in t}:
        raise ValidationError(f"formula: response {lhs!r} also appears as a predictor")
    if lhs in groups:
        raise ValidationError(f"formula: response {lhs!r} also appears as a grouping column")

    return Formula(
        response=lhs,
        terms=tuple(terms),
        intercept=intercept,
        groups=tuple(groups),
        text=formula.strip(),
    )


def _expand(piece: str) -> list[tuple[str, ...]]:
    """Expand 'a*b' and 'a:b' into term tuples."""
    if '*' in piece:
        names = [_check_name(p) for p in piece.split('*')]
        out = []
        for order in range(1, len(names) + 1):
            out.extend(itertools.combinations(names, order))
        return [tuple(t) for t in out]
    names = tuple(_check_name(p) for p in piece.split(':'))
    if len(set(names)) != len(names):
        raise ValidationError(f"formula: repeated variable in term {piece!r}")
    return [names]


def _check_name(name: str) -> str:
    name = name.strip()
    if not _NAME.match(name):
        raise ValidationError(f"formula: bad variable name {name!r}")
    return name


def _render(formula: Formula) -> str:
    parts = [] if formula.intercept else ['0']
    parts.extend(formula.term_labels)
    parts.extend(f'(1 | {g})' for g in formula.groups)
    return f"{formula.response} ~ {' + '.join(parts) or '1'}"
