"""
Tests for dispersion estimation.

Reference values match R's sd() and mad().
"""

import pytest
import numpy as np

from pyeffectsize.core.exceptions import DegenerateColumnError, ValidationError
from pyeffectsize.dispersion import (
    DispersionPair,
    MAD_CONSTANT,
    dispersion,
    dispersion_within,
    dispersion_between,
)


class TestDispersion:

    def test_sample_sd(self):
        pair = dispersion([1.0, 2.0, 3.0, 4.0])
        assert pair.center == 2.5
        np.testing.assert_allclose(pair.spread, 1.2909944487358056, rtol=1e-12)
        assert pair.n == 4
        assert not pair.robust

    def test_mad(self):
        pair = dispersion([1.0, 2.0, 3.0, 100.0], robust=True)
        assert pair.center == 2.5
        # median |x - 2.5| = 1.0
        np.testing.assert_allclose(pair.spread, MAD_CONSTANT, rtol=1e-12)
        assert pair.robust

    def test_mad_matches_sd_for_normal_data(self, rng):
        x = rng.standard_normal(20000)
        np.testing.assert_allclose(
            dispersion(x, robust=True).spread, dispersion(x).spread, rtol=0.03
        )

    def test_rows_mask(self):
        pair = dispersion([1.0, 2.0, 3.0, 50.0], rows=np.array([True, True, True, False]))
        assert pair.center == 2.0
        assert pair.n == 3

    def test_rows_set(self):
        pair = dispersion([1.0, 2.0, 3.0, 50.0], rows={0, 2})
        assert pair.center == 2.0
        np.testing.assert_allclose(pair.spread, np.sqrt(2.0))

    def test_constant_is_not_an_error_until_used(self):
        pair = dispersion([3.0, 3.0, 3.0])
        assert pair.spread == 0.0
        assert pair.is_degenerate
        with pytest.raises(DegenerateColumnError, match="x:") as exc_info:
            pair.require_spread(column='x', term='x')
        assert exc_info.value.column == 'x'
        assert exc_info.value.spread == 0.0

    def test_too_few_values(self):
        with pytest.raises(ValidationError, match="at least 2"):
            dispersion([1.0])

    def test_rejects_nan(self):
        with pytest.raises(ValidationError, match="non-finite"):
            dispersion([1.0, np.nan, 2.0])

    def test_column_vector_accepted(self):
        pair = dispersion(np.array([[1.0], [3.0]]))
        assert pair.center == 2.0

    def test_scaled(self):
        pair = DispersionPair(center=1.0, spread=2.0).scaled(2.0)
        assert (pair.center, pair.spread) == (1.0, 4.0)


class TestGroupedDispersion:

    @pytest.fixture
    def grouped(self):
        values = np.array([1.0, 2.0, 3.0, 11.0, 12.0, 13.0])
        groups = np.array(['a', 'a', 'a', 'b', 'b', 'b'])
        return values, groups

    def test_within_removes_group_means(self, grouped):
        values, groups = grouped
        pair = dispersion_within(values, groups)
        # deviations: -1, 0, 1, -1, 0, 1
        np.testing.assert_allclose(pair.spread, np.std([-1, 0, 1, -1, 0, 1], ddof=1))
        assert pair.center == np.mean(values)

    def test_between_uses_group_means(self, grouped):
        values, groups = grouped
        pair = dispersion_between(values, groups)
        assert pair.n == 2
        assert pair.center == 7.0
        np.testing.assert_allclose(pair.spread, np.std([2.0, 12.0], ddof=1))

    def test_between_needs_two_groups(self):
        with pytest.raises(ValidationError, match="at least 2 groups"):
            dispersion_between([1.0, 2.0, 3.0], ['a', 'a', 'a'])

    def test_within_zero_for_level2_variable(self):
        pair = dispersion_within([5.0, 5.0, 7.0, 7.0], ['a', 'a', 'b', 'b'])
        assert pair.spread == 0.0

    def test_group_length_mismatch(self):
        with pytest.raises(ValidationError):
            dispersion_within([1.0, 2.0, 3.0], ['a', 'b'])

    def test_robust_within(self, grouped):
        values, groups = grouped
        pair = dispersion_within(values, groups, robust=True)
        # deviations from medians: -1, 0, 1 twice; MAD = 1.4826 * median(|d|) = 1.4826
        np.testing.assert_allclose(pair.spread, MAD_CONSTANT)
