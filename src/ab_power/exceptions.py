"""
Errors raised by the power calculator and the trial simulator.

All three subclass ValueError, so callers that already guard numeric input
with ``except ValueError`` keep working.

- InvalidQuery: malformed power-analysis input. Always fatal to the call.
- InsufficientData: a sampled group has fewer than 2 observations.
- DegenerateVariance: a sampled group has zero variance, so the t-statistic
  is undefined.

The last two are recovered per replicate inside the simulator.
"""


class InvalidQuery(ValueError):
    """Power query with a wrong number of unknowns or an out-of-domain value."""


class InsufficientData(ValueError):
    """Fewer than 2 observations in a group."""


class DegenerateVariance(ValueError):
    """Zero variance in a group; the standard error is 0."""
