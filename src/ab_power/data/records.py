"""
Typed Records for Pricing Experiment Data
=========================================

A pricing experiment assigns each visitor a price level at random and records
whether they bought. Revenue follows directly: revenue = price x converted.

Instead of passing data frames around and looking columns up by name, the
analysis code works on ``PricingDataset``, whose fields are fixed numpy
arrays. The arrays are read-only, so a dataset can be shared between
simulation replicates without copying.

Example Usage:
--------------
>>> from ab_power.data.records import Observation, PricingDataset
>>> ds = PricingDataset.from_observations([
...     Observation(price=0.99, converted=1),
...     Observation(price=0.99, converted=0),
...     Observation(price=1.99, converted=1),
... ])
>>> ds.levels()
[0.99, 1.99]
>>> ds.group(0.99, outcome='revenue')
array([0.99, 0.  ])
"""

from dataclasses import dataclass
from typing import Iterable, List, Sequence

import numpy as np
import pandas as pd

from ab_power.config import OUTCOMES


@dataclass(frozen=True)
class Observation:
    """One visitor: the price shown and whether they converted (0/1)."""
    price: float
    converted: int

    @property
    def revenue(self) -> float:
        return self.price * self.converted


@dataclass(frozen=True)
class GroupSummary:
    """
    Aggregate of one price level's outcome.

    ``std`` uses ddof=1 and ``std_error`` is std / sqrt(count). Both are NaN
    for groups with fewer than 2 observations.
    """
    level: float
    count: int
    mean: float
    std: float
    std_error: float

    @classmethod
    def from_values(cls, level: float, values: np.ndarray) -> "GroupSummary":
        values = np.asarray(values, dtype=float)
        count = len(values)
        if count == 0:
            raise ValueError(f"No observations for level {level}")
        mean = float(values.mean())
        if count < 2:
            std = float('nan')
            std_error = float('nan')
        else:
            std = float(values.std(ddof=1))
            std_error = std / np.sqrt(count)
        return cls(level=level, count=count, mean=mean, std=std, std_error=float(std_error))


def _readonly(values: np.ndarray) -> np.ndarray:
    values = np.array(values, copy=True)
    values.setflags(write=False)
    return values


@dataclass(frozen=True, eq=False)
class PricingDataset:
    """
    Immutable columnar store of pricing experiment observations.

    Parameters
    ----------
    price : np.ndarray
        Price level shown to each visitor (the treatment label)
    converted : np.ndarray
        Binary conversion indicator

    Notes
    -----
    Build instances with ``from_frame`` or ``from_observations``; both
    validate the input. ``revenue`` is derived, never stored separately.
    """
    price: np.ndarray
    converted: np.ndarray

    def __post_init__(self):
        price = np.asarray(self.price, dtype=float)
        converted = np.asarray(self.converted)

        if price.ndim != 1 or converted.ndim != 1:
            raise ValueError("price and converted must be one-dimensional")
        if len(price) != len(converted):
            raise ValueError(
                f"price and converted lengths differ ({len(price)} vs {len(converted)})"
            )
        if not np.all(np.isfinite(price)) or np.any(price < 0):
            raise ValueError("Prices must be finite and non-negative")
        if not np.all(np.isin(converted, [0, 1])):
            raise ValueError("converted must contain only 0 and 1")

        object.__setattr__(self, 'price', _readonly(price))
        object.__setattr__(self, 'converted', _readonly(converted.astype(np.int64)))

    @property
    def revenue(self) -> np.ndarray:
        return _readonly(self.price * self.converted)

    def __len__(self) -> int:
        return len(self.price)

    @classmethod
    def from_observations(cls, observations: Iterable[Observation]) -> "PricingDataset":
        observations = list(observations)
        return cls(
            price=np.array([obs.price for obs in observations], dtype=float),
            converted=np.array([obs.converted for obs in observations], dtype=np.int64),
        )

    @classmethod
    def from_frame(
        cls,
        df: pd.DataFrame,
        price_col: str = 'price',
        converted_col: str = 'converted',
    ) -> "PricingDataset":
        """
        Build a dataset from a data frame.

        Any revenue column in ``df`` is ignored and recomputed from price and
        conversion, so the two can never disagree.
        """
        missing = [c for c in (price_col, converted_col) if c not in df.columns]
        if missing:
            raise ValueError(
                f"Missing required columns: {missing}. "
                f"Available: {df.columns.tolist()}"
            )
        if df[[price_col, converted_col]].isna().any().any():
            raise ValueError("price and converted must not contain missing values")

        converted = df[converted_col]
        if converted.dtype == bool:
            converted = converted.astype(int)

        return cls(
            price=df[price_col].to_numpy(dtype=float),
            converted=converted.to_numpy(),
        )

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({
            'price': self.price,
            'converted': self.converted,
            'revenue': self.revenue,
        })

    def levels(self) -> List[float]:
        """Distinct price levels, ascending."""
        return [float(level) for level in np.unique(self.price)]

    def outcome(self, name: str) -> np.ndarray:
        if name == 'revenue':
            return self.revenue
        if name == 'converted':
            return self.converted
        raise ValueError(f"Unknown outcome '{name}'. Available: {list(OUTCOMES)}")

    def _mask(self, level: float) -> np.ndarray:
        mask = np.isclose(self.price, level)
        if not mask.any():
            raise ValueError(f"Price level {level} not found. Available: {self.levels()}")
        return mask

    def group(self, level: float, outcome: str = 'revenue') -> np.ndarray:
        """Outcome values for one price level (a fresh, writeable copy)."""
        values = self.outcome(outcome)
        return np.array(values[self._mask(level)], dtype=float)

    def restrict(self, levels: Sequence[float]) -> "PricingDataset":
        """New dataset holding only the given price levels."""
        mask = np.zeros(len(self), dtype=bool)
        for level in levels:
            mask |= self._mask(level)
        return PricingDataset(price=self.price[mask], converted=self.converted[mask])
