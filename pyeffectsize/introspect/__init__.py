"""
Model introspection.

Turns heterogeneous fitted-model objects into one frozen ModelView exposing
coefficients, standard errors, df, the model matrix with per-column roles,
the response, and (for mixed models) grouping structure.
"""

from pyeffectsize.introspect._common import ModelView
from pyeffectsize.introspect.adapters import (
    introspect,
    register_adapter,
    unregister_adapter,
)
from pyeffectsize.introspect.levels import (
    classify_levels,
    grouping_labels,
    LEVEL_1,
    LEVEL_2,
)

__all__ = [
    "ModelView",
    "introspect",
    "register_adapter",
    "unregister_adapter",
    "classify_levels",
    "grouping_labels",
    "LEVEL_1",
    "LEVEL_2",
]
