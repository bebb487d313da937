"""
Treatment-Effect Estimation for Pricing Experiments
===================================================

Descriptive statistics per price level, the difference-in-means estimator
with its t-statistic, and a regression estimate of the same effect.

In a randomized experiment regressing the outcome on a treatment indicator

    outcome = b0 + b1 * treated + e

gives b0 = control mean and b1 = difference in means. With HC2 standard
errors, b1's standard error equals the unpooled two-sample formula used
throughout this package.

Example Usage:
--------------
>>> from ab_power.core import estimation
>>> from ab_power.data import loaders
>>>
>>> ds = loaders.generate_pricing_experiment([0.99, 1.99], [0.5, 0.4], 800, random_state=1)
>>> for s in estimation.group_summaries(ds):
...     print(f"price={s.level}: mean={s.mean:.3f} (SE {s.std_error:.3f}, n={s.count})")
>>>
>>> result = estimation.ols_treatment_effect(ds, treatment_level=1.99, control_level=0.99)
>>> print(f"Effect: {result['effect']:.3f}, p={result['p_value']:.4f}")
"""

from typing import Any, Dict, List, Tuple

import numpy as np
import pandas as pd
import statsmodels.api as sm
from scipy import stats

from ab_power.config import DEFAULT_ALPHA
from ab_power.core.power import cohens_d
from ab_power.data.records import GroupSummary, PricingDataset
from ab_power.exceptions import DegenerateVariance, InsufficientData


def group_summaries(dataset: PricingDataset, outcome: str = 'revenue') -> List[GroupSummary]:
    """Mean, standard error and count for every price level, ascending by price."""
    return [
        GroupSummary.from_values(level, dataset.group(level, outcome))
        for level in dataset.levels()
    ]


def summary_frame(dataset: PricingDataset, outcome: str = 'revenue') -> pd.DataFrame:
    """``group_summaries`` as a table indexed by price level."""
    rows = [
        {
            'level': s.level,
            'count': s.count,
            'mean': s.mean,
            'std': s.std,
            'std_error': s.std_error,
        }
        for s in group_summaries(dataset, outcome)
    ]
    return pd.DataFrame(rows).set_index('level')


def two_sample_t(treatment: np.ndarray, control: np.ndarray) -> Tuple[float, float, float]:
    """
    Difference in means, its standard error and the t-statistic.

    estimate = mean(treatment) - mean(control)
    se       = sqrt(var(treatment)/n_t + var(control)/n_c)   (ddof=1)
    t        = estimate / se

    Raises
    ------
    InsufficientData
        If either group has fewer than 2 observations
    DegenerateVariance
        If every value in either group is the same
    """
    n_t = len(treatment)
    n_c = len(control)
    if n_t < 2 or n_c < 2:
        raise InsufficientData(
            f"Each group must have at least 2 observations (treatment={n_t}, control={n_c})"
        )

    # Constant samples can have a rounding-sized variance (~1e-32), so test the range
    constant_t = np.ptp(treatment) == 0
    constant_c = np.ptp(control) == 0
    if constant_t or constant_c:
        raise DegenerateVariance(
            f"Zero variance in {'treatment' if constant_t else 'control'} group"
        )

    var_t = treatment.var(ddof=1)
    var_c = control.var(ddof=1)
    estimate = treatment.mean() - control.mean()
    se = np.sqrt(var_t / n_t + var_c / n_c)
    return float(estimate), float(se), float(estimate / se)


def _pair(dataset: PricingDataset, treatment_level: float, control_level: float,
          outcome: str) -> Tuple[np.ndarray, np.ndarray]:
    if treatment_level == control_level:
        raise ValueError("treatment_level and control_level must differ")
    return dataset.group(treatment_level, outcome), dataset.group(control_level, outcome)


def standardized_effect(
    dataset: PricingDataset,
    treatment_level: float,
    control_level: float,
    outcome: str = 'revenue',
) -> float:
    """Observed Cohen's d (pooled SD) of treatment vs control."""
    treatment, control = _pair(dataset, treatment_level, control_level, outcome)
    if len(treatment) < 2 or len(control) < 2:
        raise InsufficientData("Each group must have at least 2 observations")
    return cohens_d(
        mean1=control.mean(), mean2=treatment.mean(),
        std1=control.std(ddof=1), std2=treatment.std(ddof=1),
        n1=len(control), n2=len(treatment),
    )


def difference_in_means(
    dataset: PricingDataset,
    treatment_level: float,
    control_level: float,
    outcome: str = 'revenue',
    alpha: float = DEFAULT_ALPHA,
) -> Dict[str, float]:
    """
    Compare two price levels with the unpooled two-sample t-statistic.

    Parameters
    ----------
    dataset : PricingDataset
        Experiment data
    treatment_level, control_level : float
        Price levels to compare
    outcome : {'revenue', 'converted'}, default='revenue'
        Which outcome to compare
    alpha : float, default=0.05
        Significance level for the p-value decision and the CI

    Returns
    -------
    dict
        Dictionary with keys:
        - mean_control, mean_treatment, difference, relative_lift
        - se_diff, t_statistic
        - df: Welch-Satterthwaite degrees of freedom
        - p_value: two-sided Welch p-value
        - ci_lower, ci_upper
        - cohens_d: pooled-SD standardized effect
        - significant: p_value < alpha
    """
    treatment, control = _pair(dataset, treatment_level, control_level, outcome)
    difference, se, t_stat = two_sample_t(treatment, control)

    n_t, n_c = len(treatment), len(control)
    var_t, var_c = treatment.var(ddof=1), control.var(ddof=1)
    df = (var_c/n_c + var_t/n_t)**2 / (
        (var_c/n_c)**2 / (n_c - 1) + (var_t/n_t)**2 / (n_t - 1)
    )
    p_value = 2 * stats.t.sf(abs(t_stat), df)
    t_critical = stats.t.ppf(1 - alpha/2, df)

    mean_c = control.mean()
    return {
        'mean_control': float(mean_c),
        'mean_treatment': float(treatment.mean()),
        'difference': difference,
        'relative_lift': float(difference / mean_c if mean_c != 0 else np.nan),
        'se_diff': se,
        't_statistic': t_stat,
        'df': float(df),
        'p_value': float(p_value),
        'ci_lower': float(difference - t_critical * se),
        'ci_upper': float(difference + t_critical * se),
        'cohens_d': standardized_effect(dataset, treatment_level, control_level, outcome),
        'significant': bool(p_value < alpha),
    }


def ols_treatment_effect(
    dataset: PricingDataset,
    treatment_level: float,
    control_level: float,
    outcome: str = 'revenue',
    alpha: float = DEFAULT_ALPHA,
    cov_type: str = 'HC2',
) -> Dict[str, Any]:
    """
    Estimate the treatment effect by regressing the outcome on a treatment dummy.

    Parameters
    ----------
    dataset : PricingDataset
        Experiment data; only the two compared levels are used
    treatment_level, control_level : float
        Price levels to compare
    outcome : {'revenue', 'converted'}, default='revenue'
        Dependent variable
    alpha : float, default=0.05
        Significance level for the CI
    cov_type : str, default='HC2'
        statsmodels covariance type ('nonrobust' for classical OLS errors)

    Returns
    -------
    dict
        Dictionary with keys:
        - intercept: control-group mean
        - effect: coefficient on the treatment dummy
        - se, t_statistic, p_value, ci_lower, ci_upper
        - nobs, r_squared
        - significant
    """
    treatment, control = _pair(dataset, treatment_level, control_level, outcome)
    if len(treatment) < 2 or len(control) < 2:
        raise InsufficientData("Each group must have at least 2 observations")

    y = np.concatenate([control, treatment])
    treated = np.concatenate([np.zeros(len(control)), np.ones(len(treatment))])
    X = sm.add_constant(treated)

    model = sm.OLS(y, X).fit(cov_type=cov_type)
    ci = model.conf_int(alpha=alpha)

    return {
        'intercept': float(model.params[0]),
        'effect': float(model.params[1]),
        'se': float(model.bse[1]),
        't_statistic': float(model.tvalues[1]),
        'p_value': float(model.pvalues[1]),
        'ci_lower': float(ci[1, 0]),
        'ci_upper': float(ci[1, 1]),
        'nobs': int(model.nobs),
        'r_squared': float(model.rsquared),
        'significant': bool(model.pvalues[1] < alpha),
    }
