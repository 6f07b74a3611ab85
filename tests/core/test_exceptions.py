"""
Tests for the PyEffectSize exception hierarchy.

Validates:
    - Inheritance chain (all exceptions catchable via EffectSizeError)
    - Diagnostic attributes and their None defaults
"""

import pytest

from pyeffectsize.core.exceptions import (
    ConvergenceError,
    DegenerateColumnError,
    DimensionError,
    EffectSizeError,
    IncompatibleModelsError,
    MissingGroupingError,
    NumericalError,
    RefitError,
    SingularMatrixError,
    UnsupportedTermError,
    ValidationError,
)


class TestInheritance:
    """Every exception is catchable via EffectSizeError."""

    @pytest.mark.parametrize("exc_type", [
        ValidationError, DimensionError, NumericalError, SingularMatrixError,
        DegenerateColumnError, MissingGroupingError, IncompatibleModelsError,
        RefitError, UnsupportedTermError,
    ])
    def test_catchable_as_base(self, exc_type):
        with pytest.raises(EffectSizeError):
            raise exc_type("boom")

    def test_convergence_error_is_base(self):
        with pytest.raises(EffectSizeError):
            raise ConvergenceError("no", iterations=10)

    def test_degenerate_column_is_numerical(self):
        assert issubclass(DegenerateColumnError, NumericalError)

    def test_missing_grouping_is_validation(self):
        assert issubclass(MissingGroupingError, ValidationError)

    def test_incompatible_models_is_validation(self):
        assert issubclass(IncompatibleModelsError, ValidationError)

    def test_refit_and_unsupported_are_not_validation(self):
        assert not issubclass(RefitError, ValidationError)
        assert not issubclass(UnsupportedTermError, ValidationError)


class TestAttributes:

    def test_degenerate_column_attributes(self):
        err = DegenerateColumnError("constant", column='x', term='x:z', spread=0.0)
        assert err.column == 'x'
        assert err.term == 'x:z'
        assert err.spread == 0.0
        assert str(err) == "constant"

    def test_degenerate_column_defaults(self):
        err = DegenerateColumnError("constant")
        assert err.column is None
        assert err.term is None
        assert err.spread is None

    def test_refit_error_attributes(self):
        err = RefitError("failed", model_type='LinearSolution', converged=False)
        assert err.model_type == 'LinearSolution'
        assert err.converged is False

    def test_unsupported_term_attributes(self):
        err = UnsupportedTermError("no", term='a:b', method='smart')
        assert err.term == 'a:b'
        assert err.method == 'smart'

    def test_incompatible_models_reason(self):
        assert IncompatibleModelsError("x", reason='n_obs').reason == 'n_obs'
        assert IncompatibleModelsError("x").reason is None

    def test_singular_matrix_attributes(self):
        err = SingularMatrixError("singular", matrix_name='X', rank=2, expected_rank=3)
        assert (err.matrix_name, err.rank, err.expected_rank) == ('X', 2, 3)

    def test_convergence_attributes(self):
        err = ConvergenceError("stuck", iterations=25, reason='max_iterations')
        assert err.iterations == 25
        assert err.reason == 'max_iterations'
