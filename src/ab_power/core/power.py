"""
Sample Size and Power Analysis for Two-Sample t-Tests
=====================================================

Closed-form power calculator for comparing two group means with an
equal-variance two-sample t-test. Given any three of

- n: sample size per group
- significance_level (alpha): two-sided Type I error rate
- power (1 - beta): probability of rejecting a false null
- effect_size (delta): mean difference / common standard deviation

the calculator solves for the fourth.

Power relationship:
    df    = 2n - 2
    ncp   = delta * sqrt(n / 2)
    crit  = t_{1 - alpha/2, df}
    power = P(T > crit) + P(T < -crit),   T ~ noncentral t(df, ncp)

Power is strictly increasing in n, |delta| and alpha (for delta != 0), so
solving for those uses a bracketed root search (``scipy.optimize.brentq``).
See ``ab_power.config`` for the tolerances.
Results agree with statsmodels' ``tt_ind_solve_power`` (ratio=1), which
serves as the reference implementation in the tests.

Example Usage:
--------------
>>> from ab_power.core import power
>>>
>>> # Power of a reduced experiment (160 visitors per price)
>>> pwr = power.solve_power(n=160, significance_level=0.05, effect_size=0.25)
>>> print(f"Power: {pwr:.1%}")
Power: 60.6%
>>>
>>> # Visitors needed per price for 80% power
>>> n = power.solve_power(significance_level=0.05, power=0.80, effect_size=0.25)
>>> print(f"Need {n:.1f} visitors per group")
Need 252.1 visitors per group
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import numpy as np
from scipy import stats
from scipy.optimize import brentq

from ab_power import config
from ab_power.exceptions import InvalidQuery


QUERY_FIELDS = ('n', 'significance_level', 'power', 'effect_size')


def _as_float(name: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidQuery(f"{name} must be a number, got {value!r}")


@dataclass(frozen=True)
class PowerQuery:
    """
    A power question with exactly one unknown (left as None).

    Example
    -------
    >>> PowerQuery(n=160, significance_level=0.05, effect_size=0.25).unknown
    'power'
    """
    n: Optional[float] = None
    significance_level: Optional[float] = None
    power: Optional[float] = None
    effect_size: Optional[float] = None

    @property
    def unknown(self) -> str:
        missing = [name for name in QUERY_FIELDS if getattr(self, name) is None]
        if len(missing) != 1:
            raise InvalidQuery(
                f"Exactly one of {list(QUERY_FIELDS)} must be None, "
                f"got {len(missing)} missing: {missing}"
            )
        return missing[0]

    def validate(self) -> str:
        """Check domains of the supplied fields and return the unknown one."""
        unknown = self.unknown

        if self.n is not None:
            n = _as_float('n', self.n)
            if not np.isfinite(n) or n <= 1:
                raise InvalidQuery(
                    f"n must be greater than 1 (df = 2n - 2 must be positive), got {self.n}"
                )
        if self.significance_level is not None:
            alpha = _as_float('significance_level', self.significance_level)
            if not (0 < alpha < 1):
                raise InvalidQuery(
                    f"significance_level must be between 0 and 1, got {self.significance_level}"
                )
        if self.power is not None:
            pwr = _as_float('power', self.power)
            if not (0 < pwr < 1):
                raise InvalidQuery(f"power must be between 0 and 1, got {self.power}")
        if self.effect_size is not None:
            delta = _as_float('effect_size', self.effect_size)
            if not np.isfinite(delta):
                raise InvalidQuery(f"effect_size must be a finite number, got {self.effect_size}")

        return unknown


def _power(n: float, effect_size: float, alpha: float) -> float:
    df = 2 * n - 2
    ncp = effect_size * np.sqrt(n / 2)
    crit = stats.t.ppf(1 - alpha / 2, df)
    upper = stats.nct.sf(crit, df, ncp)
    lower = stats.nct.cdf(-crit, df, ncp)
    return float(min(1.0, max(0.0, upper + lower)))


def _root(f: Callable[[float], float], lo: float, hi: float, unknown: str) -> float:
    x = brentq(f, lo, hi, xtol=config.ROOT_XTOL, rtol=config.ROOT_RTOL,
               maxiter=config.ROOT_MAXITER)
    if abs(f(x)) > config.POWER_TOLERANCE:
        raise InvalidQuery(
            f"Could not solve for {unknown} to within {config.POWER_TOLERANCE:g} of the target power"
        )
    return float(x)


def _solve_n(alpha: float, target: float, effect_size: float) -> float:
    def f(n):
        return _power(n, effect_size, alpha) - target

    lo = config.MIN_SAMPLE_SIZE
    if f(lo) >= 0:
        return lo

    hi = 2 * lo
    while f(hi) < 0:
        if hi >= config.MAX_SAMPLE_SIZE:
            raise InvalidQuery(
                f"Power {target} is unattainable for effect_size={effect_size} "
                f"with n up to {config.MAX_SAMPLE_SIZE:g} per group"
            )
        lo, hi = hi, 2 * hi
    return _root(f, lo, hi, 'n')


def _solve_effect_size(n: float, alpha: float, target: float) -> float:
    def f(delta):
        return _power(n, delta, alpha) - target

    # Under the null power equals alpha, the floor for every delta
    if f(0.0) >= 0:
        return 0.0

    lo, hi = 0.0, 1.0
    while f(hi) < 0:
        if hi >= config.MAX_EFFECT_SIZE:
            raise InvalidQuery(
                f"Power {target} is unattainable with n={n} per group"
            )
        lo, hi = hi, 2 * hi
    return _root(f, lo, hi, 'effect_size')


def _solve_alpha(n: float, target: float, effect_size: float) -> float:
    def f(alpha):
        return _power(n, effect_size, alpha) - target

    lo, hi = config.MIN_ALPHA, 1 - config.MIN_ALPHA
    if f(hi) < 0:
        raise InvalidQuery(
            f"Power {target} is unattainable for any significance level "
            f"with n={n} and effect_size={effect_size}"
        )
    if f(lo) > 0:
        raise InvalidQuery(
            f"Power {target} is exceeded for every significance level above "
            f"{config.MIN_ALPHA:g}; the effect is too large to solve for alpha"
        )
    return _root(f, lo, hi, 'significance_level')


def solve(query: PowerQuery) -> float:
    """
    Solve a ``PowerQuery`` for its missing field.

    Raises
    ------
    InvalidQuery
        If zero or several fields are missing, a supplied value is out of
        its domain, or the target power cannot be reached.
    """
    unknown = query.validate()

    if unknown == 'power':
        return _power(float(query.n), float(query.effect_size), float(query.significance_level))
    if unknown == 'n':
        return _solve_n(float(query.significance_level), float(query.power), float(query.effect_size))
    if unknown == 'effect_size':
        return _solve_effect_size(float(query.n), float(query.significance_level), float(query.power))
    return _solve_alpha(float(query.n), float(query.power), float(query.effect_size))


def solve_power(
    n: Optional[float] = None,
    significance_level: Optional[float] = None,
    power: Optional[float] = None,
    effect_size: Optional[float] = None,
) -> float:
    """
    Solve for whichever of the four parameters is left as None.

    Parameters
    ----------
    n : float, optional
        Sample size per group (must be > 1)
    significance_level : float, optional
        Two-sided alpha in (0, 1)
    power : float, optional
        Target power in (0, 1)
    effect_size : float, optional
        Standardized mean difference (Cohen's d). Sign does not matter.

    Returns
    -------
    float
        The missing parameter. Sample size is returned as a continuous
        value; round it up to plan an experiment.

    Example
    -------
    >>> solve_power(n=800, significance_level=0.05, effect_size=0.25)
    0.9988...
    >>> solve_power(n=160, significance_level=0.05, power=0.8)
    0.3144...
    """
    return solve(PowerQuery(
        n=n,
        significance_level=significance_level,
        power=power,
        effect_size=effect_size,
    ))


def power_ttest(n: float, effect_size: float, alpha: float = config.DEFAULT_ALPHA) -> float:
    """Closed-form power of the two-sided two-sample t-test."""
    return solve_power(n=n, significance_level=alpha, effect_size=effect_size)


def cohens_d(mean1: float, mean2: float, std1: float, std2: float,
             n1: int, n2: int) -> float:
    """
    Calculate Cohen's d effect size for means.

    Cohen's d is the standardized difference between two means,
    using pooled standard deviation.

    Parameters
    ----------
    mean1 : float
        Mean of group 1 (control)
    mean2 : float
        Mean of group 2 (treatment)
    std1 : float
        Standard deviation of group 1
    std2 : float
        Standard deviation of group 2
    n1 : int
        Sample size of group 1
    n2 : int
        Sample size of group 2

    Returns
    -------
    float
        Cohen's d effect size

    Notes
    -----
    Formula:
    pooled_std = √[((n1-1)×σ1² + (n2-1)×σ2²) / (n1+n2-2)]
    d = (μ2 - μ1) / pooled_std
    """
    if n1 + n2 <= 2:
        raise ValueError("Need more than 2 observations in total")

    pooled_var = ((n1 - 1) * std1**2 + (n2 - 1) * std2**2) / (n1 + n2 - 2)
    pooled_std = np.sqrt(pooled_var)
    if pooled_std == 0:
        raise ValueError("Pooled standard deviation is zero")

    return float((mean2 - mean1) / pooled_std)


def interpret_effect_size(effect_size: float) -> str:
    """
    Interpret Cohen's d.

    Returns "Negligible", "Small", "Medium", or "Large".

    Example
    -------
    >>> interpret_effect_size(0.25)
    'Small'
    """
    abs_effect = abs(effect_size)

    if abs_effect > 0.8:
        return "Large"
    elif abs_effect > 0.5:
        return "Medium"
    elif abs_effect > 0.2:
        return "Small"
    else:
        return "Negligible"


def required_samples(
    effect_size: float,
    alpha: float = config.DEFAULT_ALPHA,
    power: float = config.DEFAULT_POWER,
) -> int:
    """
    Required sample size PER GROUP, rounded up to a whole visitor.

    Example
    -------
    >>> required_samples(effect_size=0.25)
    253
    """
    n = solve_power(significance_level=alpha, power=power, effect_size=effect_size)
    return int(np.ceil(n))


def power_analysis_summary(
    n: float,
    effect_size: float,
    alpha: float = config.DEFAULT_ALPHA,
    target_power: float = config.DEFAULT_POWER,
) -> Dict[str, Any]:
    """
    Summarize the power of a design and what it would take to reach a target.

    Parameters
    ----------
    n : float
        Sample size per group in the design being evaluated
    effect_size : float
        Standardized effect (Cohen's d)
    alpha : float
        Two-sided significance level
    target_power : float
        Power the experiment should reach

    Returns
    -------
    dict
        Summary with achieved power, noncentrality, required sample sizes
        and an interpretation of the effect size. When no finite sample
        size reaches the target, required_per_group is None and
        required_note says why.

    Example
    -------
    >>> summary = power_analysis_summary(n=160, effect_size=0.25)
    >>> summary['underpowered']
    True
    """
    achieved = power_ttest(n, effect_size, alpha)
    df = 2 * n - 2

    if effect_size == 0:
        required = None
        required_note = "No sample size detects a zero effect"
    else:
        try:
            required = required_samples(effect_size, alpha, target_power)
            required_note = None
        except InvalidQuery as e:
            required = None
            required_note = str(e)

    return {
        'n_per_group': n,
        'effect_size': effect_size,
        'interpretation': interpret_effect_size(effect_size),
        'alpha': alpha,
        'df': df,
        'noncentrality': float(effect_size * np.sqrt(n / 2)),
        'critical_value': float(stats.t.ppf(1 - alpha / 2, df)),
        'power': achieved,
        'target_power': target_power,
        'underpowered': achieved < target_power,
        'required_per_group': required,
        'required_total': required * 2 if required is not None else None,
        'required_note': required_note,
    }
