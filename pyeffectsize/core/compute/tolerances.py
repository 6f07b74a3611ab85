"""
Tolerance tiers for numerical comparison.

Standardized coefficients obtained by different routes (refit vs. post-hoc
arithmetic) agree only up to floating-point error, or up to optimizer
tolerance when the refit is iterative. Used by the test suite and by
StandardizedSolution.compare().
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ToleranceTier:
    """Tolerance specification for numerical comparison."""
    rtol: float
    atol: float
    name: str
    description: str


# Closed-form arithmetic on float64 (QR-based OLS, dispersion formulas)
CPU_FP64 = ToleranceTier(
    rtol=1e-10,
    atol=1e-12,
    name='cpu_fp64',
    description='CPU double precision, closed-form paths',
)

# Refit vs. post-hoc agreement for direct (non-iterative) fits
STANDARDIZATION = ToleranceTier(
    rtol=1e-6,
    atol=1e-6,
    name='standardization',
    description='Agreement between standardization methods on the same model',
)

# Refit through an iterative optimizer (IRLS, profiled REML)
ITERATIVE = ToleranceTier(
    rtol=1e-4,
    atol=1e-5,
    name='iterative',
    description='Agreement when at least one side came from an optimizer',
)


def select_tolerance(iterative: bool = False) -> ToleranceTier:
    """Select the tier for comparing two standardizations."""
    return ITERATIVE if iterative else STANDARDIZATION
