"""
Defaults and Numerical Tolerances
=================================

Module-level constants shared by the power calculator, the trial simulator
and the pipeline. Functions use them as keyword defaults; the CLI overrides
them through its arguments.

Root-finding tolerance
----------------------
The calculator solves for n, effect size or alpha with ``scipy.optimize.brentq``
using ``ROOT_XTOL`` / ``ROOT_RTOL`` on the unknown. Every solution is then
checked to reproduce the requested power to within ``POWER_TOLERANCE``
(1e-6); a solution that misses it raises InvalidQuery instead of returning a
silently inaccurate value.

Example Usage:
--------------
>>> from ab_power.config import SimulationConfig
>>> cfg = SimulationConfig(treatment_level=1.99, control_level=0.99,
...                        sampling_fraction=0.2, replicate_count=1000)
>>> cfg.per_group_size(800)
160
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


DEFAULT_ALPHA = 0.05
DEFAULT_POWER = 0.80

# |t| above this counts as a rejection (two-sided, alpha = 0.05)
CRITICAL_VALUE = 1.96

ROOT_XTOL = 1e-10
ROOT_RTOL = 1e-12
ROOT_MAXITER = 200
POWER_TOLERANCE = 1e-6

# Smallest per-group n the solver considers (df = 2n - 2 = 2)
MIN_SAMPLE_SIZE = 2.0
MAX_SAMPLE_SIZE = 1e9
MAX_EFFECT_SIZE = 1e3
MIN_ALPHA = 1e-12

DEFAULT_REPLICATES = 1000
DEFAULT_SEED = 42
DEFAULT_FRACTIONS: Tuple[float, ...] = (0.2, 0.5, 1.0)

OUTCOMES = ("revenue", "converted")


@dataclass(frozen=True)
class SimulationConfig:
    """
    Validated parameters for one Monte Carlo run.

    Exactly one of ``sampling_fraction`` and ``sample_size`` must be given.
    Without replacement the fraction must lie in (0, 1]; with replacement
    any positive fraction is allowed.
    """

    treatment_level: float
    control_level: float
    sampling_fraction: Optional[float] = None
    sample_size: Optional[int] = None
    replicate_count: int = DEFAULT_REPLICATES
    seed: int = DEFAULT_SEED
    replace: bool = False
    outcome: str = "revenue"
    critical_value: float = CRITICAL_VALUE

    def __post_init__(self):
        if (self.sampling_fraction is None) == (self.sample_size is None):
            raise ValueError("Provide exactly one of sampling_fraction or sample_size")
        if self.treatment_level == self.control_level:
            raise ValueError("treatment_level and control_level must differ")
        if self.sampling_fraction is not None:
            if not np.isfinite(self.sampling_fraction) or self.sampling_fraction <= 0:
                raise ValueError("sampling_fraction must be positive")
            if not self.replace and self.sampling_fraction > 1:
                raise ValueError(
                    "sampling_fraction must be in (0, 1] when sampling without replacement"
                )
        if self.sample_size is not None and self.sample_size < 0:
            raise ValueError("sample_size must be non-negative")
        if self.replicate_count < 1:
            raise ValueError("replicate_count must be at least 1")
        if self.outcome not in OUTCOMES:
            raise ValueError(f"Unknown outcome '{self.outcome}'. Available: {list(OUTCOMES)}")
        if self.critical_value <= 0:
            raise ValueError("critical_value must be positive")

    def per_group_size(self, group_count: int) -> int:
        """Number of draws from a group holding ``group_count`` observations."""
        if self.sample_size is not None:
            size = int(self.sample_size)
        else:
            size = int(np.rint(self.sampling_fraction * group_count))
        if not self.replace and size > group_count:
            raise ValueError(
                f"Cannot draw {size} observations without replacement "
                f"from a group of {group_count}"
            )
        return size
