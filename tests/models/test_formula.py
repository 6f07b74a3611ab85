"""
Tests for formula parsing and model matrix construction.
"""

import pytest
import numpy as np

from pyeffectsize import DataSource
from pyeffectsize.core.exceptions import ValidationError
from pyeffectsize.models import (
    Formula,
    parse_formula,
    build_model_matrix,
    ModelDesign,
    INTERCEPT_NAME,
    ROLE_BINARY,
    ROLE_FACTOR,
    ROLE_INTERACTION,
    ROLE_NUMERIC,
)
from pyeffectsize.models._contrasts import encode_treatment, interaction_columns, is_binary


class TestParseFormula:

    def test_main_effects(self):
        f = parse_formula("mpg ~ wt + hp")
        assert f.response == 'mpg'
        assert f.terms == (('wt',), ('hp',))
        assert f.intercept
        assert not f.is_mixed

    def test_star_expands(self):
        f = parse_formula("y ~ a * b")
        assert f.term_labels == ('a', 'b', 'a:b')

    def test_interactions_after_main_effects(self):
        f = parse_formula("y ~ a:b + c")
        assert f.term_labels == ('c', 'a:b')

    def test_three_way(self):
        f = parse_formula("y ~ a * b * c")
        assert f.term_labels == ('a', 'b', 'c', 'a:b', 'a:c', 'b:c', 'a:b:c')

    @pytest.mark.parametrize("text", ["y ~ x - 1", "y ~ 0 + x", "y ~ x + 0"])
    def test_no_intercept(self, text):
        f = parse_formula(text)
        assert not f.intercept
        assert f.term_labels == ('x',)

    def test_term_removal(self):
        f = parse_formula("y ~ a * b - a:b")
        assert f.term_labels == ('a', 'b')

    def test_random_intercept(self):
        f = parse_formula("y ~ x + (1 | subject)")
        assert f.groups == ('subject',)
        assert f.term_labels == ('x',)
        assert f.is_mixed

    def test_variables(self):
        f = parse_formula("y ~ a * b + c")
        assert f.variables == ('a', 'b', 'c')

    def test_formula_passthrough(self):
        f = Formula(response='y', terms=(('x',),))
        assert parse_formula(f) is f
        assert str(f) == "y ~ x"

    @pytest.mark.parametrize("text, match", [
        ("y x", "exactly one '~'"),
        ("y ~ x +", "dangling operator"),
        ("y ~ x + (x | g)", "only random intercepts"),
        ("y ~ log(x)", "unsupported syntax"),
        ("y ~ y + x", "also appears as a predictor"),
        ("y ~ a:a", "repeated variable"),
    ])
    def test_rejects(self, text, match):
        with pytest.raises(ValidationError, match=match):
            parse_formula(text)

    def test_non_string(self):
        with pytest.raises(ValidationError, match="expected str"):
            parse_formula(42)


class TestContrasts:

    def test_treatment_coding(self):
        X, levels, baseline = encode_treatment(np.array(['b', 'a', 'c', 'a']))
        assert baseline == 'a'
        assert levels == ['b', 'c']
        np.testing.assert_array_equal(X, [[1, 0], [0, 0], [0, 1], [0, 0]])

    def test_full_rank_dummies(self):
        X, levels, _ = encode_treatment(np.array(['b', 'a']), full_rank_dummies=True)
        assert levels == ['a', 'b']
        assert X.shape == (2, 2)

    def test_interaction_column_order(self):
        a = np.array([[1.0, 2.0], [3.0, 4.0]])
        b = np.array([[10.0], [20.0]])
        np.testing.assert_array_equal(interaction_columns(a, b), [[10, 20], [60, 80]])

    def test_is_binary(self):
        assert is_binary(np.array([0.0, 1.0, 1.0]))
        assert not is_binary(np.array([0.0, 2.0]))
        assert not is_binary(np.array([1.0, 1.0]))


class TestModelMatrix:

    def test_factor_and_numeric(self, mtcars):
        mm = build_model_matrix(parse_formula("mpg ~ wt + cyl"), mtcars)
        assert mm.column_names == (INTERCEPT_NAME, 'wt', 'cyl6', 'cyl8')
        assert mm.roles()['wt'] == ROLE_NUMERIC
        assert mm.roles()['cyl6'] == ROLE_FACTOR
        col = mm.columns[mm.index('cyl8')]
        assert col.levels == {'cyl': '8'}
        assert col.reference == {'cyl': '4'}
        assert mm.factor_levels == {'cyl': ['4', '6', '8']}

    def test_binary_numeric_role(self, mtcars):
        mm = build_model_matrix(parse_formula("mpg ~ am_num"), mtcars)
        assert mm.roles()['am_num'] == ROLE_BINARY

    def test_interaction_naming(self, mtcars):
        mm = build_model_matrix(parse_formula("mpg ~ wt * am"), mtcars)
        assert mm.column_names == (INTERCEPT_NAME, 'wt', 'am1', 'wt:am1')
        col = mm.columns[3]
        assert col.role == ROLE_INTERACTION
        assert col.variables == ('wt', 'am')
        assert col.factor_variables == ('am',)
        assert col.numeric_variables == ('wt',)
        np.testing.assert_array_equal(mm.X[:, 3], mm.X[:, 1] * mm.X[:, 2])

    def test_no_intercept_keeps_all_levels(self, mtcars):
        mm = build_model_matrix(parse_formula("mpg ~ am - 1"), mtcars)
        assert mm.column_names == ('am0', 'am1')
        assert not mm.has_intercept

    def test_unknown_variable(self, mtcars):
        with pytest.raises(ValidationError, match="'disp' not found"):
            build_model_matrix(parse_formula("mpg ~ disp"), mtcars)

    def test_single_level_factor(self):
        ds = DataSource.from_arrays(y=[1.0, 2.0, 3.0], g=['a', 'a', 'a'])
        with pytest.raises(ValidationError, match="at least 2 levels"):
            build_model_matrix(parse_formula("y ~ g"), ds)


class TestModelDesign:

    def test_build_from_mapping(self, rng):
        design = ModelDesign.build("y ~ x", {'y': rng.standard_normal(10),
                                             'x': rng.standard_normal(10)})
        assert design.n == 10
        assert design.p == 2

    def test_factor_response_rejected(self, mtcars):
        with pytest.raises(ValidationError, match="is a factor"):
            ModelDesign.build("am ~ wt", mtcars)

    def test_missing_response(self, mtcars):
        with pytest.raises(ValidationError, match="response 'disp'"):
            ModelDesign.build("disp ~ wt", mtcars)

    def test_too_few_rows(self):
        ds = DataSource.from_arrays(y=[1.0, 2.0], x=[1.0, 3.0])
        with pytest.raises(ValidationError, match="at least 3"):
            ModelDesign.build("y ~ x", ds)

    def test_grouping_labels_are_strings(self, multilevel_data):
        design = ModelDesign.build("y ~ x + (1 | g)", multilevel_data)
        assert design.groups['g'].dtype.kind == 'U'

    def test_unknown_grouping_column(self, mtcars):
        with pytest.raises(ValidationError, match="grouping column 'gear'"):
            ModelDesign.build("mpg ~ wt + (1 | gear)", mtcars)

    def test_bad_data_type(self):
        with pytest.raises(ValidationError, match="expected DataSource"):
            ModelDesign.build("y ~ x", [1, 2, 3])
