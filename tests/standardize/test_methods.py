"""
Tests for the standardization methods.

Validates the defining relations between methods:
    - refit slope of a simple regression is Pearson's r
    - refit, posthoc and basic agree when every predictor is numeric
    - basic and posthoc differ on a factor by exactly SD(indicator)
    - smart divides contrasts by the reference group's response SD
    - pseudo uses within/between-group SDs by predictor level
"""

import pytest
import numpy as np
from scipy import stats

from pyeffectsize import DataSource, lm, glm, lmm, standardize_parameters, standardize_data
from pyeffectsize.convert import cohens_d, glass_delta
from pyeffectsize.core.compute.tolerances import ITERATIVE, STANDARDIZATION
from pyeffectsize.core.exceptions import DegenerateColumnError
from pyeffectsize.dispersion import dispersion, dispersion_within, dispersion_between
from pyeffectsize.standardize import refit


def _sd(x):
    return float(np.std(x, ddof=1))


class TestRefit:

    def test_simple_regression_slope_is_pearson_r(self, regression_data):
        fit = lm("y ~ x1", regression_data)
        std = standardize_parameters(fit, method='refit')
        r = np.corrcoef(regression_data['x1'], regression_data['y'])[0, 1]
        np.testing.assert_allclose(std['x1'].estimate, r, rtol=1e-10)
        np.testing.assert_allclose(std['(Intercept)'].estimate, 0.0, atol=1e-12)

    def test_binary_response_is_scaled(self, rng):
        n = 80
        x = rng.standard_normal(n)
        y = (x + rng.standard_normal(n) > 0).astype(float)
        fit = lm("y ~ x", DataSource.from_arrays(y=y, x=x))
        refitted = standardize_parameters(fit, method='refit')
        posthoc = standardize_parameters(fit, method='posthoc')
        r = np.corrcoef(x, y)[0, 1]
        np.testing.assert_allclose(refitted['x'].estimate, r, rtol=1e-10)
        np.testing.assert_allclose(posthoc['x'].estimate, r, rtol=1e-10)

    def test_mtcars_am(self, mtcars):
        fit = lm("mpg ~ am", mtcars)
        std = standardize_parameters(fit)
        np.testing.assert_allclose(std['am1'].estimate, 1.20, atol=5e-3)
        np.testing.assert_allclose(
            std['am1'].estimate, fit.coefficients[1] / _sd(mtcars['mpg']), rtol=1e-10
        )

    def test_mtcars_am_is_not_cohens_d(self, mtcars):
        std = standardize_parameters(lm("mpg ~ am", mtcars))
        d = cohens_d(mtcars['mpg'], groups=mtcars['am'])
        np.testing.assert_allclose(abs(d.value), 1.478, atol=5e-3)
        assert abs(std['am1'].estimate - abs(d.value)) > 0.2

    def test_factor_left_unscaled(self, mtcars):
        fit = lm("mpg ~ wt + am", mtcars)
        refit_view = refit(fit)
        assert refit_view.names[2] == 'am1'
        np.testing.assert_array_equal(refit_view.matrix.X[:, 2], fit.model_matrix.X[:, 2])

    def test_idempotent_on_standardized_data(self, mtcars):
        ds = standardize_data(mtcars)
        fit = lm("mpg ~ wt + hp + am", ds)
        std = standardize_parameters(fit)
        np.testing.assert_allclose(
            [std[t].estimate for t in fit.term_names], fit.coefficients, atol=1e-10
        )

    def test_refit_twice_is_stable(self, mtcars):
        fit = lm("mpg ~ wt + hp", mtcars)
        once = refit(fit)
        twice = refit(once)
        np.testing.assert_allclose(twice.coefficients, once.coefficients, atol=1e-10)

    def test_se_scales_with_estimate(self, mtcars):
        fit = lm("mpg ~ wt", mtcars)
        std = standardize_parameters(fit)
        ratio = _sd(mtcars['wt']) / _sd(mtcars['mpg'])
        np.testing.assert_allclose(std['wt'].se, fit.standard_errors[1] * ratio, rtol=1e-10)

    def test_interaction_is_exact(self, mtcars):
        std = standardize_parameters(lm("mpg ~ wt * hp", mtcars))
        assert std.approximate_terms == ()


class TestAgreement:

    def test_numeric_models_agree(self, mtcars):
        fit = lm("mpg ~ wt + hp", mtcars)
        r = standardize_parameters(fit, 'refit')
        p = standardize_parameters(fit, 'posthoc')
        b = standardize_parameters(fit, 'basic')
        assert r.allclose(p, STANDARDIZATION)
        assert r.allclose(b, STANDARDIZATION)
        assert max(p.compare(b).values()) < 1e-10

    def test_posthoc_matches_refit_with_factor(self, mtcars):
        fit = lm("mpg ~ wt + am", mtcars)
        r = standardize_parameters(fit, 'refit')
        p = standardize_parameters(fit, 'posthoc')
        assert r.allclose(p, STANDARDIZATION)

    def test_basic_differs_from_posthoc_on_factor(self, mtcars):
        fit = lm("mpg ~ wt + am", mtcars)
        p = standardize_parameters(fit, 'posthoc')
        b = standardize_parameters(fit, 'basic')
        np.testing.assert_allclose(b['wt'].estimate, p['wt'].estimate, rtol=1e-10)
        np.testing.assert_allclose(
            b['am1'].estimate / p['am1'].estimate, _sd(mtcars['am_num']), rtol=1e-10
        )

    def test_mtcars_basic_am(self, mtcars):
        b = standardize_parameters(lm("mpg ~ am", mtcars), 'basic')
        np.testing.assert_allclose(b['am1'].estimate, 0.600, atol=5e-3)

    def test_binary_numeric_treated_like_factor(self, mtcars):
        as_factor = standardize_parameters(lm("mpg ~ wt + am", mtcars), 'posthoc')
        as_binary = standardize_parameters(lm("mpg ~ wt + am_num", mtcars), 'posthoc')
        np.testing.assert_allclose(
            as_binary['am_num'].estimate, as_factor['am1'].estimate, rtol=1e-10
        )

    def test_robust_refit_matches_posthoc(self, mtcars):
        fit = lm("mpg ~ wt + hp", mtcars)
        r = standardize_parameters(fit, 'refit', robust=True)
        p = standardize_parameters(fit, 'posthoc', robust=True)
        assert r.allclose(p, STANDARDIZATION)
        mad = dispersion(mtcars['wt'], robust=True).spread
        np.testing.assert_allclose(
            p['wt'].estimate,
            fit.coefficients[1] * mad / dispersion(mtcars['mpg'], robust=True).spread,
            rtol=1e-10,
        )

    def test_two_sd_doubles_predictors_only(self, mtcars):
        fit = lm("mpg ~ wt + am", mtcars)
        one = standardize_parameters(fit, 'posthoc')
        two = standardize_parameters(fit, 'posthoc', two_sd=True)
        np.testing.assert_allclose(two['wt'].estimate, 2 * one['wt'].estimate, rtol=1e-12)
        np.testing.assert_allclose(two['am1'].estimate, one['am1'].estimate, rtol=1e-12)
        assert two.response_spread == one.response_spread

    def test_two_sd_refit_matches_posthoc(self, mtcars):
        fit = lm("mpg ~ wt + hp", mtcars)
        r = standardize_parameters(fit, 'refit', two_sd=True)
        p = standardize_parameters(fit, 'posthoc', two_sd=True)
        assert r.allclose(p, STANDARDIZATION)

    def test_binomial_refit_matches_posthoc(self, mtcars):
        fit = glm("am_num ~ wt", mtcars, family='binomial')
        r = standardize_parameters(fit, 'refit')
        p = standardize_parameters(fit, 'posthoc')
        assert r.allclose(p, ITERATIVE)
        # response stays on the logit scale
        np.testing.assert_allclose(
            p['wt'].estimate, fit.coefficients[1] * _sd(mtcars['wt']), rtol=1e-10
        )
        assert p.response_spread == 1.0

    def test_lmm_refit_matches_posthoc(self, multilevel_data):
        fit = lmm("y ~ x + z + (1 | g)", multilevel_data)
        r = standardize_parameters(fit, 'refit', seed=11)
        p = standardize_parameters(fit, 'posthoc')
        for term in ('x', 'z'):
            np.testing.assert_allclose(r[term].estimate, p[term].estimate, atol=1e-3)


class TestPosthoc:

    def test_interaction_flagged_approximate(self, mtcars):
        fit = lm("mpg ~ wt * hp", mtcars)
        with pytest.warns(RuntimeWarning, match="approximate"):
            std = standardize_parameters(fit, 'posthoc')
        assert std.approximate_terms == ('wt:hp',)
        assert std.has_warning("wt:hp")
        expected = (fit.coefficients[3] * _sd(mtcars['wt']) * _sd(mtcars['hp'])
                    / _sd(mtcars['mpg']))
        np.testing.assert_allclose(std['wt:hp'].estimate, expected, rtol=1e-10)

    def test_classic_alias(self, mtcars):
        std = standardize_parameters(lm("mpg ~ wt", mtcars), 'classic')
        assert std.method == 'posthoc'
        assert std.backend_name == 'cpu_posthoc'

    def test_intercept_se_from_vcov(self, mtcars):
        fit = lm("mpg ~ wt", mtcars)
        std = standardize_parameters(fit, 'posthoc')
        a = np.array([1.0, np.mean(mtcars['wt'])])
        expected = np.sqrt(a @ fit.vcov @ a) / _sd(mtcars['mpg'])
        np.testing.assert_allclose(std['(Intercept)'].se, expected, rtol=1e-10)


class TestSmart:

    def test_factor_uses_reference_group_sd(self, mtcars):
        fit = lm("mpg ~ am", mtcars)
        std = standardize_parameters(fit, 'smart')
        auto = mtcars['mpg'][mtcars['am'] == '0']
        manual = mtcars['mpg'][mtcars['am'] == '1']
        np.testing.assert_allclose(
            std['am1'].estimate, fit.coefficients[1] / _sd(auto), rtol=1e-10
        )
        delta = glass_delta(manual, auto)
        np.testing.assert_allclose(std['am1'].estimate, delta.value, rtol=1e-10)

    def test_numeric_terms_as_posthoc(self, mtcars):
        fit = lm("mpg ~ wt + cyl", mtcars)
        s = standardize_parameters(fit, 'smart')
        p = standardize_parameters(fit, 'posthoc')
        np.testing.assert_allclose(s['wt'].estimate, p['wt'].estimate, rtol=1e-12)
        four = mtcars['mpg'][mtcars['cyl'] == '4']
        np.testing.assert_allclose(
            s['cyl8'].estimate, fit.coefficients[3] / _sd(four), rtol=1e-10
        )

    def test_binary_reference_is_zero(self, mtcars):
        fit = lm("mpg ~ am_num", mtcars)
        std = standardize_parameters(fit, 'smart')
        auto = mtcars['mpg'][mtcars['am_num'] == 0]
        np.testing.assert_allclose(
            std['am_num'].estimate, fit.coefficients[1] / _sd(auto), rtol=1e-10
        )

    def test_factor_interaction_is_experimental(self, mtcars):
        fit = lm("mpg ~ wt * am", mtcars)
        with pytest.warns(RuntimeWarning, match="experimental"):
            std = standardize_parameters(fit, 'smart')
        auto = mtcars['mpg'][mtcars['am'] == '0']
        expected = fit.coefficients[3] * _sd(mtcars['wt']) / _sd(auto)
        np.testing.assert_allclose(std['wt:am1'].estimate, expected, rtol=1e-10)
        assert 'wt:am1' in std.approximate_terms


class TestPseudo:

    def test_level_specific_dispersions(self, multilevel_data):
        fit = lmm("y ~ x + z + (1 | g)", multilevel_data)
        std = standardize_parameters(fit, 'pseudo')
        g = fit.groups['g']
        X = fit.model_matrix.X
        y = fit.response

        x_within = dispersion_within(X[:, 1], g).spread
        y_within = dispersion_within(y, g).spread
        np.testing.assert_allclose(
            std['x'].estimate, fit.coefficients[1] * x_within / y_within, rtol=1e-10
        )

        z_between = dispersion_between(X[:, 2], g).spread
        y_between = dispersion_between(y, g).spread
        np.testing.assert_allclose(
            std['z'].estimate, fit.coefficients[2] * z_between / y_between, rtol=1e-10
        )
        assert np.isfinite(std['(Intercept)'].estimate)

    def test_differs_from_posthoc(self, multilevel_data):
        fit = lmm("y ~ x + z + (1 | g)", multilevel_data)
        pseudo = standardize_parameters(fit, 'pseudo')
        posthoc = standardize_parameters(fit, 'posthoc')
        assert not pseudo.allclose(posthoc, include_intercept=False)

    def test_two_sd_doubles_predictors(self, multilevel_data):
        fit = lmm("y ~ x + z + (1 | g)", multilevel_data)
        plain = standardize_parameters(fit, 'pseudo')
        doubled = standardize_parameters(fit, 'pseudo', two_sd=True)
        for term in ('x', 'z'):
            np.testing.assert_allclose(
                doubled[term].estimate, 2 * plain[term].estimate, rtol=1e-10
            )
            np.testing.assert_allclose(doubled[term].se, 2 * plain[term].se, rtol=1e-10)
        assert not doubled.has_warning("two_sd")

    def test_uses_t_with_model_df(self, multilevel_data):
        fit = lmm("y ~ x + (1 | g)", multilevel_data)
        row = standardize_parameters(fit, 'pseudo')['x']
        q = stats.t.ppf(0.975, fit.df_residual)
        np.testing.assert_allclose(row.ci_high, row.estimate + q * row.se, rtol=1e-10)


class TestConstantColumns:

    @pytest.fixture
    def constant_x(self, rng):
        return DataSource.from_arrays(y=rng.standard_normal(20), x=np.full(20, 2.0))

    def test_posthoc_records_error_per_term(self, constant_x):
        fit = lm("y ~ x - 1", constant_x)
        std = standardize_parameters(fit, 'posthoc')
        assert not std.ok
        assert isinstance(std.errors['x'], DegenerateColumnError)
        assert std.errors['x'].column == 'x'
        with pytest.raises(DegenerateColumnError):
            std['x']

    def test_refit_raises(self, constant_x):
        fit = lm("y ~ x - 1", constant_x)
        with pytest.raises(DegenerateColumnError, match="x:"):
            standardize_parameters(fit, 'refit')

    def test_constant_response_is_model_wide(self, rng):
        ds = DataSource.from_arrays(y=np.full(15, 4.0), x=rng.standard_normal(15))
        fit = lm("y ~ x", ds)
        for method in ('posthoc', 'smart', 'basic', 'refit'):
            with pytest.raises(DegenerateColumnError) as exc_info:
                standardize_parameters(fit, method)
            assert exc_info.value.column == 'y'
