"""
Generic result container for all PyEffectSize computations.

The Result class is the envelope every domain-specific result uses, so
timing, warnings and method metadata are reported the same way whether the
payload is a fitted model, a standardization table, or an effect size.

Design decisions:
    - Generic over parameter payload P
    - info dict for flexible metadata (method, robust, family, ...)
    - timing is optional (don't burden unit tests)
    - Immutable (frozen=True)
"""

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

P = TypeVar('P')  # Parameter payload type


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result envelope for statistical computations.

    Attributes:
        params: Domain-specific parameters (coefficients, estimates, etc.)
        info: Structured metadata (method, convergence, diagnostics)
        timing: Execution timing breakdown, or None if not measured
        backend_name: Identifier of the code path that produced this result
        warnings: Non-fatal issues encountered during computation

    Examples:
        >>> Result(
        ...     params=StandardizedParams(...),
        ...     info={'method': 'posthoc', 'robust': False},
        ...     timing={'total_seconds': 0.01},
        ...     backend_name='cpu_posthoc'
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def has_warning(self, substring: str) -> bool:
        """Check if any warning contains the given substring."""
        return any(substring in w for w in self.warnings)
