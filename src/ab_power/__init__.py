"""
Power Analysis for Randomized Pricing Experiments
=================================================

A small package for planning and stress-testing A/B experiments, worked
through on a randomized pricing experiment (price level assigned at random,
conversion observed, revenue = price x converted).

Modules:
--------
- core.power: closed-form two-sample t-test power / sample size calculator
- core.estimation: group summaries, difference in means, OLS effect
- core.simulation: Monte Carlo sub-sampling of an observed experiment
- data: typed dataset records, CSV loader, synthetic generator
- pipelines: end-to-end analysis with a printed report

Example Usage:
--------------
>>> from ab_power.core import power, simulation
>>> from ab_power.data import loaders
>>>
>>> # Power of 160 visitors per price at d = 0.25
>>> pwr = power.solve_power(n=160, significance_level=0.05, effect_size=0.25)
>>>
>>> # Empirical power of a 20% sub-sample of a synthetic experiment
>>> ds = loaders.generate_pricing_experiment([0.99, 1.99], [0.5, 0.625], 800,
...                                          random_state=0, exact=True)
>>> result = simulation.simulate_trials(ds, 1.99, 0.99, sampling_fraction=0.2,
...                                     outcome='converted')
>>> print(f"{pwr:.1%} predicted, {result.rejection_rate:.1%} simulated")

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
__license__ = "MIT"

from ab_power.data import loaders
from ab_power.core import power, estimation, simulation
from ab_power.exceptions import InvalidQuery, InsufficientData, DegenerateVariance

__all__ = [
    "loaders",
    "power",
    "estimation",
    "simulation",
    "InvalidQuery",
    "InsufficientData",
    "DegenerateVariance",
]
