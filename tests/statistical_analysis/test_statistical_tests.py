"""Unit tests for src.statistical_analysis.statistical_tests."""

import numpy as np
import pandas as pd
import pytest
from scipy.stats import ttest_ind

from src.data_preparation.config import GABA_TCR, GLUTAMATE_TCR, SEVERITY_GROUP
from src.statistical_analysis.statistical_tests import (
    adjust_pvalues,
    pairwise_t_tests,
    pvalue_matrix,
)
from tests.statistical_analysis.generate_synthetic_data import (
    SEVERITY_LABELS,
    generate_synthetic_clean,
)

RANDOM_SEED = 42

# ─────────────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def synthetic_df():
    return generate_synthetic_clean(seed=11, n_per_group=15, missing_rate=0.1)


def _grouped_frame(groups):
    """Build a frame from {level: values} with the standard severity levels."""
    values, labels = [], []
    for level, group_values in groups.items():
        values.extend(group_values)
        labels.extend([level] * len(group_values))
    return pd.DataFrame(
        {
            GABA_TCR: np.asarray(values, dtype=float),
            SEVERITY_GROUP: pd.Categorical(labels, categories=SEVERITY_LABELS),
        }
    )


# ─────────────────────────────────────────────────────────────────────────────
# Tests for adjust_pvalues
# ─────────────────────────────────────────────────────────────────────────────


class TestAdjustPvalues:
    def test_bonferroni_multiplies_and_caps(self):
        adjusted = adjust_pvalues([0.01, 0.02, 0.50])
        np.testing.assert_allclose(adjusted, [0.03, 0.06, 1.00])

    def test_nan_is_kept_and_not_counted(self):
        adjusted = adjust_pvalues([0.01, np.nan, 0.02])
        assert np.isnan(adjusted[1])
        np.testing.assert_allclose(adjusted[[0, 2]], [0.02, 0.04])

    def test_all_nan(self):
        adjusted = adjust_pvalues([np.nan, np.nan])
        assert np.isnan(adjusted).all()

    @pytest.mark.parametrize("n", [1, 3, 10])
    def test_adjusted_between_raw_and_one(self, n):
        rng = np.random.default_rng(RANDOM_SEED + n)
        pvals = rng.uniform(0, 1, size=n)
        adjusted = adjust_pvalues(pvals)
        assert np.all(adjusted >= pvals)
        assert np.all(adjusted <= 1)

    def test_other_methods_are_passed_through(self):
        adjusted = adjust_pvalues([0.01, 0.02, 0.03], method="holm")
        np.testing.assert_allclose(adjusted, [0.03, 0.04, 0.04])

    @pytest.mark.parametrize("bad", [[-0.1, 0.5], [0.5, 1.5]])
    def test_out_of_range_raises(self, bad):
        with pytest.raises(ValueError, match="between 0 and 1"):
            adjust_pvalues(bad)

    def test_two_dimensional_raises(self):
        with pytest.raises(ValueError, match="one-dimensional"):
            adjust_pvalues([[0.1, 0.2]])


# ─────────────────────────────────────────────────────────────────────────────
# Tests for pairwise_t_tests
# ─────────────────────────────────────────────────────────────────────────────


class TestPairwiseTTests:
    def test_three_pairs_in_level_order(self, synthetic_df):
        results = pairwise_t_tests(synthetic_df, GABA_TCR)

        assert len(results) == 3
        pairs = list(zip(results["group_1"], results["group_2"]))
        assert pairs == [
            (SEVERITY_LABELS[0], SEVERITY_LABELS[1]),
            (SEVERITY_LABELS[0], SEVERITY_LABELS[2]),
            (SEVERITY_LABELS[1], SEVERITY_LABELS[2]),
        ]

    @pytest.mark.parametrize("measure", [GABA_TCR, GLUTAMATE_TCR])
    def test_adjusted_at_least_raw_and_at_most_one(self, synthetic_df, measure):
        results = pairwise_t_tests(synthetic_df, measure)
        assert (results["p_adjusted"] >= results["p_value"]).all()
        assert (results["p_adjusted"] <= 1).all()

    def test_matches_scipy_with_missing_values_excluded(self, synthetic_df):
        results = pairwise_t_tests(synthetic_df, GABA_TCR)
        g1, g2 = SEVERITY_LABELS[0], SEVERITY_LABELS[2]
        a = synthetic_df.loc[synthetic_df[SEVERITY_GROUP] == g1, GABA_TCR].dropna()
        b = synthetic_df.loc[synthetic_df[SEVERITY_GROUP] == g2, GABA_TCR].dropna()
        stat, p_value = ttest_ind(a, b)

        row = results[(results["group_1"] == g1) & (results["group_2"] == g2)].iloc[0]
        assert row["n_1"] == len(a)
        assert row["n_2"] == len(b)
        assert row["t_statistic"] == pytest.approx(stat)
        assert row["p_value"] == pytest.approx(p_value)
        assert row["p_adjusted"] == pytest.approx(min(1.0, 3 * p_value))

    def test_welch_option(self):
        df = _grouped_frame(
            {
                SEVERITY_LABELS[0]: [1.0, 1.2, 0.9, 1.1, 1.0, 1.05],
                SEVERITY_LABELS[1]: [2.0, 3.5, 0.5, 4.0],
                SEVERITY_LABELS[2]: [1.5, 1.6, 1.4],
            }
        )
        results = pairwise_t_tests(df, GABA_TCR, equal_var=False)
        _, expected = ttest_ind(
            [1.0, 1.2, 0.9, 1.1, 1.0, 1.05], [2.0, 3.5, 0.5, 4.0], equal_var=False
        )
        assert results.loc[0, "p_value"] == pytest.approx(expected)

    def test_pooled_sd_equals_two_sample_test_when_third_group_empty(self):
        a = [1.0, 1.2, 0.9, 1.1, 1.0]
        b = [1.4, 1.3, 1.6, 1.2]
        df = _grouped_frame({SEVERITY_LABELS[0]: a, SEVERITY_LABELS[1]: b})
        results = pairwise_t_tests(df, GABA_TCR, pool_sd=True)
        stat, p_value = ttest_ind(a, b)

        assert results.loc[0, "t_statistic"] == pytest.approx(stat)
        assert results.loc[0, "p_value"] == pytest.approx(p_value)
        # pairs involving the empty group cannot be tested
        assert results.loc[1:, "p_value"].isna().all()
        # only one valid comparison, so no inflation
        assert results.loc[0, "p_adjusted"] == pytest.approx(p_value)

    def test_pooled_sd_uses_all_groups(self, synthetic_df):
        student = pairwise_t_tests(synthetic_df, GABA_TCR)
        pooled = pairwise_t_tests(synthetic_df, GABA_TCR, pool_sd=True)
        assert not np.allclose(student["p_value"], pooled["p_value"])
        assert ((pooled["p_value"] >= 0) & (pooled["p_value"] <= 1)).all()

    def test_single_value_group_yields_nan(self):
        df = _grouped_frame(
            {
                SEVERITY_LABELS[0]: [1.0, 1.2, 0.9],
                SEVERITY_LABELS[1]: [2.0],
                SEVERITY_LABELS[2]: [1.5, 1.6, 1.4],
            }
        )
        results = pairwise_t_tests(df, GABA_TCR)

        assert np.isnan(results.loc[0, "p_value"])
        assert np.isnan(results.loc[2, "p_value"])
        assert not np.isnan(results.loc[1, "p_value"])


# ─────────────────────────────────────────────────────────────────────────────
# Tests for pvalue_matrix
# ─────────────────────────────────────────────────────────────────────────────


class TestPvalueMatrix:
    def test_lower_triangular_layout(self, synthetic_df):
        results = pairwise_t_tests(synthetic_df, GABA_TCR)
        matrix = pvalue_matrix(results, SEVERITY_LABELS)

        assert list(matrix.index) == SEVERITY_LABELS[1:]
        assert list(matrix.columns) == SEVERITY_LABELS[:-1]
        assert matrix.loc[SEVERITY_LABELS[1], SEVERITY_LABELS[0]] == results.loc[0, "p_adjusted"]
        assert matrix.loc[SEVERITY_LABELS[2], SEVERITY_LABELS[0]] == results.loc[1, "p_adjusted"]
        assert matrix.loc[SEVERITY_LABELS[2], SEVERITY_LABELS[1]] == results.loc[2, "p_adjusted"]
        assert np.isnan(matrix.loc[SEVERITY_LABELS[1], SEVERITY_LABELS[1]])

    def test_levels_inferred_from_results(self, synthetic_df):
        results = pairwise_t_tests(synthetic_df, GABA_TCR)
        matrix = pvalue_matrix(results, value_col="p_value")

        assert list(matrix.index) == SEVERITY_LABELS[1:]
        assert matrix.loc[SEVERITY_LABELS[2], SEVERITY_LABELS[1]] == results.loc[2, "p_value"]
