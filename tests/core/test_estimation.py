"""Unit tests for treatment-effect estimation."""

import numpy as np
import pytest
from scipy import stats

from ab_power.core import estimation
from ab_power.data import loaders
from ab_power.exceptions import DegenerateVariance, InsufficientData


@pytest.fixture
def experiment():
    """Balanced 800/800 experiment with exactly 50% and 62.5% conversion."""
    return loaders.generate_pricing_experiment(
        levels=[0.99, 1.99],
        conversion_rates=[0.50, 0.625],
        n_per_level=800,
        random_state=0,
        exact=True,
    )


class TestGroupSummaries:
    """Tests for per-level descriptive statistics."""

    def test_counts_and_means(self, experiment):
        """Exact generator gives known conversion rates."""
        summaries = estimation.group_summaries(experiment, outcome='converted')

        assert [s.level for s in summaries] == [0.99, 1.99]
        assert [s.count for s in summaries] == [800, 800]
        assert abs(summaries[0].mean - 0.50) < 1e-12
        assert abs(summaries[1].mean - 0.625) < 1e-12

    def test_revenue_mean(self, experiment):
        """Revenue mean is price x conversion rate."""
        summaries = estimation.group_summaries(experiment, outcome='revenue')
        assert abs(summaries[0].mean - 0.99 * 0.50) < 1e-12
        assert abs(summaries[1].mean - 1.99 * 0.625) < 1e-12

    def test_standard_error(self, experiment):
        """SE = sample SD / sqrt(n)."""
        summary = estimation.group_summaries(experiment, outcome='converted')[0]
        values = experiment.group(0.99, outcome='converted')
        assert abs(summary.std - values.std(ddof=1)) < 1e-12
        assert abs(summary.std_error - values.std(ddof=1) / np.sqrt(800)) < 1e-12

    def test_summary_frame(self, experiment):
        """Table form is indexed by price level."""
        frame = estimation.summary_frame(experiment)
        assert list(frame.index) == [0.99, 1.99]
        assert list(frame.columns) == ['count', 'mean', 'std', 'std_error']


class TestTwoSampleT:
    """Tests for the unpooled two-sample t-statistic."""

    def test_known_values(self):
        """Hand-computed example."""
        treatment = np.array([1.0, 2.0, 3.0, 4.0])
        control = np.array([0.0, 1.0, 2.0])

        estimate, se, t = estimation.two_sample_t(treatment, control)

        assert abs(estimate - 1.5) < 1e-12
        assert abs(se - np.sqrt(0.75)) < 1e-12
        assert abs(t - 1.5 / np.sqrt(0.75)) < 1e-12

    def test_matches_scipy_welch(self):
        """Same statistic as scipy's Welch t-test."""
        rng = np.random.default_rng(3)
        treatment = rng.normal(1.0, 2.0, 40)
        control = rng.normal(0.0, 1.0, 60)

        _, _, t = estimation.two_sample_t(treatment, control)
        expected, _ = stats.ttest_ind(treatment, control, equal_var=False)
        assert abs(t - expected) < 1e-10

    def test_insufficient_data(self):
        """A single observation has no variance estimate."""
        with pytest.raises(InsufficientData, match="at least 2 observations"):
            estimation.two_sample_t(np.array([1.0]), np.array([0.0, 1.0]))
        with pytest.raises(InsufficientData):
            estimation.two_sample_t(np.array([1.0, 2.0]), np.array([]))

    def test_zero_variance(self):
        """A constant group makes the statistic undefined."""
        with pytest.raises(DegenerateVariance, match="control"):
            estimation.two_sample_t(np.array([1.0, 0.0]), np.array([0.0, 0.0]))
        with pytest.raises(DegenerateVariance, match="treatment"):
            estimation.two_sample_t(np.array([1.0, 1.0]), np.array([0.0, 1.0]))

    def test_constant_nonzero_group(self):
        """Every visitor converting at one price is constant, not low-variance."""
        control = np.array([0.0, 0.99] * 80)
        with pytest.raises(DegenerateVariance, match="treatment"):
            estimation.two_sample_t(np.full(160, 1.99), control)
        with pytest.raises(DegenerateVariance, match="control"):
            estimation.two_sample_t(control, np.full(160, 1.99))


class TestDifferenceInMeans:
    """Tests for the full two-level comparison."""

    def test_result_keys(self, experiment):
        result = estimation.difference_in_means(experiment, 1.99, 0.99, outcome='converted')
        for key in ['mean_control', 'mean_treatment', 'difference', 'relative_lift',
                    'se_diff', 't_statistic', 'df', 'p_value', 'ci_lower', 'ci_upper',
                    'cohens_d', 'significant']:
            assert key in result

    def test_matches_scipy(self, experiment):
        """p-value agrees with scipy's Welch test."""
        result = estimation.difference_in_means(experiment, 1.99, 0.99, outcome='revenue')
        _, expected_p = stats.ttest_ind(
            experiment.group(1.99), experiment.group(0.99), equal_var=False
        )
        assert abs(result['p_value'] - expected_p) < 1e-10

    def test_effect_detected(self, experiment):
        """12.5pp lift on 800 per group is clearly significant."""
        result = estimation.difference_in_means(experiment, 1.99, 0.99, outcome='converted')
        assert abs(result['difference'] - 0.125) < 1e-12
        assert result['significant']
        assert result['ci_lower'] > 0
        assert abs(result['relative_lift'] - 0.25) < 1e-12

    def test_same_level_raises(self, experiment):
        with pytest.raises(ValueError, match="must differ"):
            estimation.difference_in_means(experiment, 0.99, 0.99)

    def test_unknown_level_raises(self, experiment):
        with pytest.raises(ValueError, match="not found"):
            estimation.difference_in_means(experiment, 2.49, 0.99)


class TestStandardizedEffect:
    """Tests for the observed Cohen's d."""

    def test_conversion_effect_size(self, experiment):
        """0.125 lift over a pooled SD near 0.49 is d of about 0.25."""
        d = estimation.standardized_effect(experiment, 1.99, 0.99, outcome='converted')
        assert 0.24 < d < 0.27

    def test_sign_follows_direction(self, experiment):
        d_up = estimation.standardized_effect(experiment, 1.99, 0.99, outcome='converted')
        d_down = estimation.standardized_effect(experiment, 0.99, 1.99, outcome='converted')
        assert abs(d_up + d_down) < 1e-12


class TestOLSTreatmentEffect:
    """Tests for the regression estimate."""

    def test_regression_equals_difference_in_means(self, experiment):
        """Dummy regression reproduces the difference and, with HC2, its SE."""
        diff = estimation.difference_in_means(experiment, 1.99, 0.99)
        ols = estimation.ols_treatment_effect(experiment, 1.99, 0.99)

        assert abs(ols['effect'] - diff['difference']) < 1e-10
        assert abs(ols['intercept'] - diff['mean_control']) < 1e-10
        assert abs(ols['se'] - diff['se_diff']) < 1e-10
        assert ols['nobs'] == 1600

    def test_classical_errors(self, experiment):
        """Non-robust errors are also available."""
        ols = estimation.ols_treatment_effect(experiment, 1.99, 0.99, cov_type='nonrobust')
        assert ols['se'] > 0
        assert ols['ci_lower'] < ols['effect'] < ols['ci_upper']

    def test_only_compared_levels_used(self):
        """A third price level does not enter the regression."""
        ds = loaders.generate_pricing_experiment(
            [0.99, 1.49, 1.99], [0.5, 0.45, 0.4], 300, random_state=1
        )
        ols = estimation.ols_treatment_effect(ds, 1.99, 0.99, outcome='converted')
        assert ols['nobs'] == 600
