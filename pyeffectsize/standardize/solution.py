"""
Standardization solution type.

User-facing wrapper around Result[StandardizedParams]: the output table,
per-term errors, and comparison between methods.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Iterator
import numpy as np

from pyeffectsize.core.result import Result
from pyeffectsize.core.compute.tolerances import STANDARDIZATION, ToleranceTier
from pyeffectsize.core.exceptions import EffectSizeError
from pyeffectsize.standardize._common import StandardizedCoefficient, StandardizedParams


@dataclass
class StandardizedSolution:
    """
    Standardized coefficients of one model under one method.

    Rows follow the model's term order. A term whose standardization failed
    has no row; its error is kept in ``errors`` and re-raised when the term
    is looked up.

    Examples:
        >>> std = standardize_parameters(fit, method='basic')
        >>> std['wt'].estimate
        >>> std.estimates                  # {'(Intercept)': ..., 'wt': ...}
        >>> std.raise_for_errors()
    """
    _result: Result[StandardizedParams]

    # === Table ===

    @property
    def coefficients(self) -> tuple[StandardizedCoefficient, ...]:
        return self._result.params.coefficients

    @property
    def term_names(self) -> tuple[str, ...]:
        """Every model term, including the ones that failed."""
        return self._result.params.term_names

    @property
    def estimates(self) -> dict[str, float]:
        return {row.term: row.estimate for row in self.coefficients}

    @property
    def standard_errors(self) -> dict[str, float]:
        return {row.term: row.se for row in self.coefficients}

    @property
    def approximate_terms(self) -> tuple[str, ...]:
        return tuple(row.term for row in self.coefficients if row.approximate)

    @property
    def errors(self) -> dict[str, EffectSizeError]:
        return dict(self._result.params.errors)

    @property
    def ok(self) -> bool:
        return not self._result.params.errors

    def raise_for_errors(self) -> None:
        """
        Raise the first per-term error, in model term order.

        Raises:
            EffectSizeError: The stored error, if any term failed
        """
        errors = self._result.params.errors
        for term in self.term_names:
            if term in errors:
                raise errors[term]

    def __getitem__(self, term: str) -> StandardizedCoefficient:
        errors = self._result.params.errors
        if term in errors:
            raise errors[term]
        for row in self.coefficients:
            if row.term == term:
                return row
        raise KeyError(f"no term '{term}'; terms: {self.term_names}")

    def __contains__(self, term: str) -> bool:
        return term in self.term_names

    def __iter__(self) -> Iterator[StandardizedCoefficient]:
        return iter(self.coefficients)

    def __len__(self) -> int:
        return len(self.coefficients)

    def to_dict(self) -> dict[str, list[Any]]:
        """Column-oriented table, e.g. for ``pandas.DataFrame(std.to_dict())``."""
        keys = ('term', 'estimate', 'se', 'ci_low', 'ci_high', 'approximate')
        table: dict[str, list[Any]] = {k: [] for k in keys}
        for row in self.coefficients:
            for k, v in asdict(row).items():
                table[k].append(v)
        return table

    # === Comparison ===

    def compare(self, other: StandardizedSolution) -> dict[str, float]:
        """
        Absolute estimate differences for the terms both solutions have.
        """
        mine = self.estimates
        theirs = other.estimates
        return {
            term: abs(mine[term] - theirs[term])
            for term in self.term_names
            if term in mine and term in theirs
        }

    def allclose(
        self,
        other: StandardizedSolution,
        tolerance: ToleranceTier = STANDARDIZATION,
        include_intercept: bool = True,
    ) -> bool:
        """True if every shared estimate agrees within the tolerance tier."""
        mine = self.estimates
        theirs = other.estimates
        shared = [
            t for t in self.term_names
            if t in mine and t in theirs and (include_intercept or t != '(Intercept)')
        ]
        if not shared:
            return False
        a = np.array([mine[t] for t in shared])
        b = np.array([theirs[t] for t in shared])
        return bool(np.allclose(a, b, rtol=tolerance.rtol, atol=tolerance.atol))

    # === Result envelope ===

    @property
    def method(self) -> str:
        return self._result.info['method']

    @property
    def response_spread(self) -> float:
        return self._result.params.response_spread

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def has_warning(self, substring: str) -> bool:
        return self._result.has_warning(substring)

    # === Display ===

    def summary(self) -> str:
        """Generate R-style summary output."""
        info = self._result.info
        ci_pct = int(round(info['ci'] * 100))
        flags = [f"robust={info['robust']}", f"two_sd={info['two_sd']}"]
        if info['exponentiate']:
            flags.append("exponentiated")
        lines = [
            "Standardized Parameters",
            "=" * 70,
            f"Method: {self.method} ({', '.join(flags)})",
            f"Model: {info['model_type']} ({info['family']}, link = {info['link']}), "
            f"n = {info['n_obs']}",
            "",
            f"{'Parameter':<22} {'Std. Coef.':>11} {'SE':>10} "
            f"{f'{ci_pct}% CI':>23}",
            "-" * 70,
        ]
        rows = {row.term: row for row in self.coefficients}
        errors = self._result.params.errors
        for term in self.term_names:
            if term in errors:
                lines.append(f"{term:<22} {'':>11} {'':>10}  ({type(errors[term]).__name__})")
                continue
            row = rows[term]
            mark = " ~" if row.approximate else ""
            lines.append(
                f"{term:<22} {row.estimate:11.4f} {row.se:10.4f} "
                f"[{row.ci_low:9.4f}, {row.ci_high:9.4f}]{mark}"
            )
        lines.append("-" * 70)
        if self.approximate_terms:
            lines.append("~ approximate; use method='refit' for exact values")
        for w in self.warnings:
            lines.append(f"Warning: {w}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"StandardizedSolution(method='{self.method}', terms={len(self.term_names)}, "
            f"errors={len(self._result.params.errors)})"
        )
