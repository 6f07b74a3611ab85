"""
Capability string constants for PyEffectSize.

This module is the SINGLE SOURCE OF TRUTH for capability strings.
Import from here, never use raw strings.

The standardization engine never branches on a concrete model type; it
asks a ModelView which capabilities it has.

Usage:
    from pyeffectsize.core.capabilities import CAPABILITY_GROUPING

    if view.supports(CAPABILITY_GROUPING):
        groups = view.groups
"""

# Model exposes its numeric design/model matrix
CAPABILITY_DESIGN_MATRIX = 'design_matrix'

# Model carries a row -> group assignment (multilevel models)
CAPABILITY_GROUPING = 'grouping'

# Model can be re-estimated on a transformed dataset
CAPABILITY_REFIT = 'refit'

# Model exposes the coefficient covariance matrix
CAPABILITY_VCOV = 'vcov'

# Data can be returned as full numpy arrays in memory
CAPABILITY_MATERIALIZED = 'materialized'

# Data can be iterated multiple times
CAPABILITY_REPEATABLE = 'repeatable'

ALL_CAPABILITIES = frozenset({
    CAPABILITY_DESIGN_MATRIX,
    CAPABILITY_GROUPING,
    CAPABILITY_REFIT,
    CAPABILITY_VCOV,
    CAPABILITY_MATERIALIZED,
    CAPABILITY_REPEATABLE,
})

__all__ = [
    'CAPABILITY_DESIGN_MATRIX',
    'CAPABILITY_GROUPING',
    'CAPABILITY_REFIT',
    'CAPABILITY_VCOV',
    'CAPABILITY_MATERIALIZED',
    'CAPABILITY_REPEATABLE',
    'ALL_CAPABILITIES',
]
