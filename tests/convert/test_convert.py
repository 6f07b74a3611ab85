"""
Tests for effect-size conversions.

Reference values: R effectsize 0.8 on mtcars (cohens_d(mpg ~ am) = -1.48).
"""

import pytest
import numpy as np

from pyeffectsize import lm, glm, lmm
from pyeffectsize.convert import (
    CohensD,
    CohensF2,
    CorrelationR,
    GlassDelta,
    HedgesG,
    OddsRatio,
    cohens_d,
    cohens_f_squared,
    d_to_oddsratio,
    d_to_r,
    f2_from_r2,
    glass_delta,
    hedges_g,
    oddsratio_to_d,
    r_to_d,
    t_to_d,
    t_to_r,
)
from pyeffectsize.core.exceptions import (
    DegenerateColumnError,
    IncompatibleModelsError,
    NumericalError,
    ValidationError,
)


def _residualize(v, Z):
    beta, *_ = np.linalg.lstsq(Z, v, rcond=None)
    return v - Z @ beta


class TestTToR:

    def test_equals_partial_correlation(self, regression_data):
        fit = lm("y ~ x1 + x2", regression_data)
        r = t_to_r(fit.t_statistics[1], fit.df_residual)

        Z = np.column_stack([np.ones(regression_data.n_observations), regression_data['x2']])
        e_y = _residualize(regression_data['y'], Z)
        e_x = _residualize(regression_data['x1'], Z)
        partial = np.corrcoef(e_y, e_x)[0, 1]

        assert isinstance(r, CorrelationR)
        np.testing.assert_allclose(r.value, partial, rtol=1e-10)

    def test_sign_kept(self):
        assert t_to_r(-2.0, 10).value < 0
        np.testing.assert_allclose(t_to_r(2.0, 12).value, 2.0 / 4.0)

    def test_statistics_recorded(self):
        r = t_to_r(3.0, 27)
        assert r.statistics == {'t': 3.0, 'df_error': 27.0}
        assert r.method == 't-to-r'
        assert float(r) == r.value

    @pytest.mark.parametrize("t, df", [(1.0, 0), (1.0, -3), (np.nan, 10), ('2', 10), (True, 10)])
    def test_rejects(self, t, df):
        with pytest.raises(ValidationError):
            t_to_r(t, df)


class TestDConversions:

    def test_t_to_d(self):
        np.testing.assert_allclose(t_to_d(3.0, 36).value, 1.0)

    def test_r_to_d_inverse(self):
        d = r_to_d(0.6)
        assert isinstance(d, CohensD)
        np.testing.assert_allclose(d.value, 1.5)
        np.testing.assert_allclose(d_to_r(d.value).value, 0.6)

    @pytest.mark.parametrize("r", [1.0, -1.0, 1.2])
    def test_r_out_of_range(self, r):
        with pytest.raises(ValidationError, match=r"\(-1, 1\)"):
            r_to_d(r)

    def test_odds_ratio_round_trip(self):
        d = oddsratio_to_d(3.0)
        np.testing.assert_allclose(d.value, np.log(3.0) * np.sqrt(3.0) / np.pi)
        back = d_to_oddsratio(d.value)
        assert isinstance(back, OddsRatio)
        np.testing.assert_allclose(back.value, 3.0)

    def test_odds_ratio_must_be_positive(self):
        with pytest.raises(ValidationError):
            oddsratio_to_d(0.0)


class TestMeanDifferences:

    def test_cohens_d_two_samples(self):
        d = cohens_d([1.0, 2.0, 3.0], [2.0, 3.0, 4.0])
        np.testing.assert_allclose(d.value, -1.0)
        assert d.statistics['sd_pooled'] == 1.0
        assert d.method == 'pooled SD'

    def test_cohens_d_mtcars(self, mtcars):
        d = cohens_d(mtcars['mpg'], groups=mtcars['am'])
        # first sorted level ('0', automatic) is group a
        np.testing.assert_allclose(d.value, -1.478, atol=5e-3)
        assert d.statistics['levels'] == ('0', '1')
        assert (d.statistics['n_a'], d.statistics['n_b']) == (19, 13)

    def test_numeric_groups_sort_by_value(self):
        d = cohens_d([1.0, 2.0, 3.0, 10.0, 11.0, 12.0], groups=[9, 9, 9, 10, 10, 10])
        assert d.statistics['levels'] == ('9', '10')
        np.testing.assert_allclose(d.value, -9.0)

    def test_hedges_g_shrinks(self, mtcars):
        d = cohens_d(mtcars['mpg'], groups=mtcars['am'])
        g = hedges_g(mtcars['mpg'], groups=mtcars['am'])
        assert isinstance(g, HedgesG)
        j = 1 - 3 / (4 * 30 - 1)
        np.testing.assert_allclose(g.value, d.value * j)
        assert abs(g.value) < abs(d.value)

    def test_glass_delta_reference(self):
        a = [10.0, 12.0, 14.0]
        b = [1.0, 2.0, 3.0]
        delta_b = glass_delta(a, b)
        delta_a = glass_delta(a, b, reference='a')
        assert isinstance(delta_b, GlassDelta)
        np.testing.assert_allclose(delta_b.value, 10.0 / 1.0)
        np.testing.assert_allclose(delta_a.value, 10.0 / 2.0)

    def test_glass_delta_bad_reference(self):
        with pytest.raises(ValidationError, match="reference"):
            glass_delta([1.0, 2.0], [2.0, 3.0], reference='pooled')

    def test_zero_pooled_sd(self):
        with pytest.raises(DegenerateColumnError, match="pooled SD"):
            cohens_d([1.0, 1.0], [2.0, 2.0])

    def test_zero_reference_sd(self):
        with pytest.raises(DegenerateColumnError):
            glass_delta([1.0, 3.0], [2.0, 2.0])

    def test_groups_need_two_levels(self):
        with pytest.raises(ValidationError, match="exactly 2 levels"):
            cohens_d([1.0, 2.0, 3.0, 4.0], groups=['a', 'b', 'c', 'a'])

    def test_either_b_or_groups(self):
        with pytest.raises(ValidationError):
            cohens_d([1.0, 2.0])
        with pytest.raises(ValidationError, match="not both"):
            cohens_d([1.0, 2.0], [3.0, 4.0], groups=['a', 'b'])

    def test_group_needs_two_values(self):
        with pytest.raises(ValidationError, match="at least 2"):
            cohens_d([1.0], [2.0, 3.0])


class TestFSquared:

    def test_global_f2(self):
        f2 = f2_from_r2(0.2)
        assert isinstance(f2, CohensF2)
        np.testing.assert_allclose(f2.value, 0.25)

    def test_perfect_fit(self):
        with pytest.raises(NumericalError, match="unbounded"):
            f2_from_r2(1.0)

    def test_r2_range(self):
        with pytest.raises(ValidationError):
            f2_from_r2(1.2)

    def test_nested_models(self, mtcars):
        reduced = lm("mpg ~ wt", mtcars)
        full = lm("mpg ~ wt + hp", mtcars)
        f2 = cohens_f_squared(reduced, full)
        expected = (full.r_squared - reduced.r_squared) / (1 - full.r_squared)
        np.testing.assert_allclose(f2.value, expected, rtol=1e-12)
        assert f2.statistics['added_terms'] == ('hp',)
        assert f2.statistics['n_obs'] == 32

    def test_gaussian_glm_accepted(self, mtcars):
        f2_lm = cohens_f_squared(lm("mpg ~ wt", mtcars), lm("mpg ~ wt + hp", mtcars))
        f2_glm = cohens_f_squared(glm("mpg ~ wt", mtcars), glm("mpg ~ wt + hp", mtcars))
        np.testing.assert_allclose(f2_glm.value, f2_lm.value, rtol=1e-8)

    def test_different_observations(self, mtcars):
        subset = mtcars.subset(np.arange(20))
        with pytest.raises(IncompatibleModelsError) as exc_info:
            cohens_f_squared(lm("mpg ~ wt", subset), lm("mpg ~ wt + hp", mtcars))
        assert exc_info.value.reason == 'n_obs'

    def test_different_response(self, mtcars):
        with pytest.raises(IncompatibleModelsError) as exc_info:
            cohens_f_squared(lm("hp ~ wt", mtcars), lm("mpg ~ wt + cyl", mtcars))
        assert exc_info.value.reason == 'response'

    def test_not_nested(self, mtcars):
        with pytest.raises(IncompatibleModelsError) as exc_info:
            cohens_f_squared(lm("mpg ~ hp", mtcars), lm("mpg ~ wt", mtcars))
        assert exc_info.value.reason == 'not_nested'

    def test_no_r_squared(self, mtcars):
        reduced = glm("am_num ~ wt", mtcars, family='binomial')
        full = glm("am_num ~ wt + hp", mtcars, family='binomial')
        with pytest.raises(IncompatibleModelsError) as exc_info:
            cohens_f_squared(reduced, full)
        assert exc_info.value.reason == 'r_squared'

    def test_mixed_models_have_no_r_squared(self, multilevel_data):
        reduced = lmm("y ~ x + (1 | g)", multilevel_data)
        full = lmm("y ~ x + z + (1 | g)", multilevel_data)
        with pytest.raises(IncompatibleModelsError, match="R² unavailable"):
            cohens_f_squared(reduced, full)


class TestValueTypes:

    def test_repr(self):
        assert repr(CohensD(0.5, method='pooled SD')) == "CohensD(0.5, method='pooled SD')"
        assert repr(CorrelationR(0.25)) == "CorrelationR(0.25)"

    def test_frozen(self):
        d = CohensD(0.5)
        with pytest.raises(AttributeError):
            d.value = 1.0

    def test_kind(self):
        assert CohensD.kind == "Cohen's d"
        assert OddsRatio.kind == "odds ratio"
