"""
Monte Carlo Trial Simulation
============================

How would the experiment have turned out with fewer visitors? The simulator
answers this by re-running the analysis on random sub-samples of the
observed data:

1. Draw round(fraction x n_group) visitors from each of the two price levels
2. Compute the difference in means and its t-statistic
3. Repeat R times and count how often |t| > 1.96

The share of rejections is the empirical power of the smaller experiment,
which can be compared with the closed-form prediction from
``ab_power.core.power``.

Replicates are independent: each gets its own generator spawned from
``numpy.random.SeedSequence(seed)``, and writes only its own row of the
pre-sized output. The same seed always reproduces the same table.

A replicate whose sub-sample is too small (fewer than 2 per group) or has
zero variance has no t-statistic. It is kept in the table with
``t_statistic = NaN`` and a status, and left out of the rejection rate.

Example Usage:
--------------
>>> from ab_power.core import simulation
>>> from ab_power.data import loaders
>>>
>>> ds = loaders.generate_pricing_experiment([0.99, 1.99], [0.5, 0.625], 800,
...                                          random_state=0, exact=True)
>>> result = simulation.simulate_trials(
...     ds, treatment_level=1.99, control_level=0.99,
...     sampling_fraction=0.2, replicate_count=1000, seed=42,
...     outcome='converted',
... )
>>> print(f"Empirical power: {result.rejection_rate:.1%}")
>>> print(result.replicate_table.head())
"""

import warnings
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from scipy import stats

from ab_power import config
from ab_power.config import SimulationConfig
from ab_power.core import power
from ab_power.core.estimation import standardized_effect, two_sample_t
from ab_power.data.records import PricingDataset
from ab_power.exceptions import DegenerateVariance, InsufficientData


STATUS_OK = 'ok'
STATUS_INSUFFICIENT = 'insufficient_data'
STATUS_DEGENERATE = 'degenerate_variance'


@dataclass(frozen=True)
class SimulationResult:
    """
    Output of ``simulate_trials``.

    Attributes
    ----------
    replicate_table : pd.DataFrame
        One row per replicate (index ``replicate``) with columns
        estimate, t_statistic, n_treatment, n_control, status
    rejection_rate : float
        Share of defined replicates with |t| > critical value (NaN if none
        are defined)
    undefined_count : int
        Replicates without a t-statistic
    config : SimulationConfig
        Parameters the run used
    """
    replicate_table: pd.DataFrame
    rejection_rate: float
    undefined_count: int
    config: SimulationConfig

    @property
    def defined_count(self) -> int:
        return len(self.replicate_table) - self.undefined_count

    @property
    def rejections(self) -> int:
        t = self.replicate_table['t_statistic']
        return int((t.abs() > self.config.critical_value).sum())

    def summary(self) -> Dict[str, Any]:
        table = self.replicate_table
        defined = table[table['status'] == STATUS_OK]
        return {
            'replicates': len(table),
            'defined': self.defined_count,
            'undefined': self.undefined_count,
            'insufficient_data': int((table['status'] == STATUS_INSUFFICIENT).sum()),
            'degenerate_variance': int((table['status'] == STATUS_DEGENERATE).sum()),
            'rejections': self.rejections,
            'rejection_rate': self.rejection_rate,
            'mean_estimate': float(table['estimate'].mean()),
            'std_estimate': float(table['estimate'].std(ddof=1)) if len(table) > 1 else float('nan'),
            'mean_t_statistic': float(defined['t_statistic'].mean()) if len(defined) else float('nan'),
        }


def _run_replicate(
    rng: np.random.Generator,
    treatment: np.ndarray,
    control: np.ndarray,
    n_treatment: int,
    n_control: int,
    replace: bool,
) -> Tuple[float, float, str]:
    sample_t = rng.choice(treatment, size=n_treatment, replace=replace)
    sample_c = rng.choice(control, size=n_control, replace=replace)

    try:
        estimate, _, t_stat = two_sample_t(sample_t, sample_c)
        return estimate, t_stat, STATUS_OK
    except InsufficientData:
        if n_treatment and n_control:
            estimate = float(sample_t.mean() - sample_c.mean())
        else:
            estimate = float('nan')
        return estimate, float('nan'), STATUS_INSUFFICIENT
    except DegenerateVariance:
        return float(sample_t.mean() - sample_c.mean()), float('nan'), STATUS_DEGENERATE


def simulate_trials(
    dataset: PricingDataset,
    treatment_level: float,
    control_level: float,
    sampling_fraction: Optional[float] = None,
    replicate_count: int = config.DEFAULT_REPLICATES,
    seed: int = config.DEFAULT_SEED,
    sample_size: Optional[int] = None,
    replace: bool = False,
    outcome: str = 'revenue',
    critical_value: float = config.CRITICAL_VALUE,
) -> SimulationResult:
    """
    Re-sample both price levels repeatedly and re-estimate the effect.

    Parameters
    ----------
    dataset : PricingDataset
        Observed experiment; only the two compared levels are used
    treatment_level, control_level : float
        Price levels to compare (estimate = treatment - control)
    sampling_fraction : float, optional
        Share of each group to draw per replicate. Exactly one of
        sampling_fraction and sample_size is required.
    replicate_count : int, default=1000
        Number of replicates R
    seed : int, default=42
        Base seed; replicate i uses the i-th spawned child seed
    sample_size : int, optional
        Absolute number of draws per group
    replace : bool, default=False
        Sample with replacement (bootstrap) instead of sub-sampling
    outcome : {'revenue', 'converted'}, default='revenue'
        Outcome to compare
    critical_value : float, default=1.96
        |t| above this counts as a rejection (1.96 ~ alpha = 0.05)

    Returns
    -------
    SimulationResult

    Raises
    ------
    ValueError
        For invalid parameters or unknown price levels. Degenerate
        replicates never raise.

    Example
    -------
    >>> result = simulate_trials(ds, 1.99, 0.99, sampling_fraction=0.2, seed=1)
    >>> print(result.rejection_rate, result.undefined_count)
    """
    cfg = SimulationConfig(
        treatment_level=treatment_level,
        control_level=control_level,
        sampling_fraction=sampling_fraction,
        sample_size=sample_size,
        replicate_count=replicate_count,
        seed=seed,
        replace=replace,
        outcome=outcome,
        critical_value=critical_value,
    )

    pair = dataset.restrict([treatment_level, control_level])
    treatment = pair.group(treatment_level, outcome)
    control = pair.group(control_level, outcome)
    n_treatment = cfg.per_group_size(len(treatment))
    n_control = cfg.per_group_size(len(control))

    estimates = np.full(replicate_count, np.nan)
    t_stats = np.full(replicate_count, np.nan)
    statuses = np.empty(replicate_count, dtype=object)

    children = np.random.SeedSequence(seed).spawn(replicate_count)
    for i, child in enumerate(children):
        rng = np.random.default_rng(child)
        estimates[i], t_stats[i], statuses[i] = _run_replicate(
            rng, treatment, control, n_treatment, n_control, replace
        )

    table = pd.DataFrame({
        'estimate': estimates,
        't_statistic': t_stats,
        'n_treatment': n_treatment,
        'n_control': n_control,
        'status': statuses,
    }, index=pd.RangeIndex(replicate_count, name='replicate'))

    defined = ~np.isnan(t_stats)
    undefined_count = int((~defined).sum())
    if defined.any():
        rejection_rate = float(np.mean(np.abs(t_stats[defined]) > critical_value))
    else:
        rejection_rate = float('nan')

    if undefined_count:
        warnings.warn(
            f"{undefined_count} of {replicate_count} replicates have an undefined "
            f"t-statistic (groups of {n_treatment}/{n_control}); they are excluded "
            f"from the rejection rate",
            RuntimeWarning,
            stacklevel=2,
        )

    return SimulationResult(
        replicate_table=table,
        rejection_rate=rejection_rate,
        undefined_count=undefined_count,
        config=cfg,
    )


def simulate_power_curve(
    dataset: PricingDataset,
    treatment_level: float,
    control_level: float,
    fractions: Sequence[float] = config.DEFAULT_FRACTIONS,
    replicate_count: int = config.DEFAULT_REPLICATES,
    seed: int = config.DEFAULT_SEED,
    replace: bool = False,
    outcome: str = 'revenue',
    alpha: float = config.DEFAULT_ALPHA,
    return_results: bool = False,
) -> Union[pd.DataFrame, Tuple[pd.DataFrame, List[SimulationResult]]]:
    """
    Empirical vs closed-form power across sampling fractions.

    The closed-form prediction uses the standardized effect observed in the
    full data and the effective per-group size 2 n_t n_c / (n_t + n_c), so
    unequal groups get the same noncentrality as the t-test.

    Fraction k is simulated with seed ``seed + k`` so the rows are
    independent of each other yet reproducible.

    Returns
    -------
    pd.DataFrame
        One row per fraction with columns: fraction, n_treatment, n_control,
        rejection_rate, undefined_count, mean_estimate, predicted_power
    list of SimulationResult
        Only when ``return_results=True``: the run behind each row, in order
    """
    try:
        effect = standardized_effect(dataset, treatment_level, control_level, outcome)
    except ValueError:
        effect = float('nan')

    critical_value = round(float(stats.norm.ppf(1 - alpha / 2)), 2)
    rows = []
    runs = []
    for k, fraction in enumerate(fractions):
        with warnings.catch_warnings():
            warnings.simplefilter('ignore', RuntimeWarning)
            result = simulate_trials(
                dataset, treatment_level, control_level,
                sampling_fraction=fraction,
                replicate_count=replicate_count,
                seed=seed + k,
                replace=replace,
                outcome=outcome,
                critical_value=critical_value,
            )
        runs.append(result)

        n_t = int(result.replicate_table['n_treatment'].iloc[0])
        n_c = int(result.replicate_table['n_control'].iloc[0])
        n_eff = 2 * n_t * n_c / (n_t + n_c) if n_t + n_c else 0.0
        if n_eff > 1 and np.isfinite(effect):
            predicted = power.power_ttest(n_eff, effect, alpha)
        else:
            predicted = float('nan')

        rows.append({
            'fraction': fraction,
            'n_treatment': n_t,
            'n_control': n_c,
            'rejection_rate': result.rejection_rate,
            'undefined_count': result.undefined_count,
            'mean_estimate': float(result.replicate_table['estimate'].mean()),
            'predicted_power': predicted,
        })

    curve = pd.DataFrame(rows)
    if return_results:
        return curve, runs
    return curve
