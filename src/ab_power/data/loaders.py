"""
Data Loading Utilities for Pricing Experiment Datasets
======================================================

Load a pricing experiment from CSV, or generate a synthetic one with known
conversion rates per price level.

Datasets:
---------
1. Pricing Experiment
   - Columns: price (treatment level), converted (0/1), revenue (optional,
     recomputed as price x converted)
   - Use: power analysis, sub-sampling simulations

Example Usage:
--------------
>>> from ab_power.data import loaders
>>>
>>> # Load the experiment from the default location
>>> ds = loaders.load_pricing_experiment()
>>>
>>> # Or build a synthetic experiment with known rates
>>> ds = loaders.generate_pricing_experiment(
...     levels=[0.99, 1.99],
...     conversion_rates=[0.50, 0.625],
...     n_per_level=800,
...     random_state=42,
... )
>>>
>>> info = loaders.get_dataset_info('pricing_experiment')
>>> print(info['description'])
"""

from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import numpy as np
import pandas as pd

from ab_power.data.records import PricingDataset


# Dataset metadata registry
DATASETS = {
    "pricing_experiment": {
        "name": "Pricing Experiment",
        "file_name": "pricing_experiment.csv",
        "default_dir": "./data/raw/pricing_experiment",
        "description": "Randomized price test: visitors see one price level, conversion is recorded",
        "features": ["price", "converted", "revenue"],
    },
}


def get_dataset_info(dataset_name: str) -> Dict[str, Any]:
    """
    Get metadata about available datasets.

    Parameters
    ----------
    dataset_name : str
        Currently only 'pricing_experiment'

    Returns
    -------
    dict
        Dataset metadata including file name and expected columns
    """
    if dataset_name not in DATASETS:
        raise ValueError(
            f"Unknown dataset '{dataset_name}'. "
            f"Available: {list(DATASETS.keys())}"
        )
    return DATASETS[dataset_name]


def load_pricing_experiment(
    path: Optional[str] = None,
    cache_dir: Optional[str] = None,
    sample_frac: float = 1.0,
    random_state: int = 42,
    verbose: bool = True,
) -> PricingDataset:
    """
    Load a pricing experiment from CSV.

    Parameters
    ----------
    path : str, optional
        Full path to the CSV file. Takes precedence over ``cache_dir``.
    cache_dir : str, optional
        Directory containing ``pricing_experiment.csv``.
        Default: './data/raw/pricing_experiment'
    sample_frac : float, default=1.0
        Fraction of rows to keep (0.0-1.0]. Use smaller values for quick runs.
    random_state : int, default=42
        Random seed for reproducible row sampling when sample_frac < 1.0
    verbose : bool, default=True
        Print a short summary of what was loaded.

    Returns
    -------
    PricingDataset
        Validated, read-only dataset

    Notes
    -----
    Column names are normalised (stripped, lower-cased, spaces to
    underscores) so 'Price' and ' Converted ' are accepted. Boolean
    conversion columns are cast to 0/1.

    Example
    -------
    >>> ds = load_pricing_experiment(path='prices.csv', verbose=False)
    >>> ds.levels()
    [0.99, 1.49, 1.99]
    """
    if not (0 < sample_frac <= 1.0):
        raise ValueError("sample_frac must be in (0, 1]")

    info = get_dataset_info("pricing_experiment")
    if path is not None:
        file_path = Path(path)
    else:
        file_path = Path(cache_dir or info["default_dir"]) / info["file_name"]

    if not file_path.exists():
        raise FileNotFoundError(
            f"Dataset not found at: {file_path}\n\n"
            "Export the experiment as CSV with at least the columns:\n"
            "  price, converted\n\n"
            f"And place it in: {info['default_dir']}/{info['file_name']}\n"
            "or pass --data / path= explicitly.\n\n"
            "To try the pipeline without data, use the synthetic generator:\n"
            "  python run_pipelines.py --synthetic"
        )

    if verbose:
        print(f"Loading pricing experiment from {file_path}...")
    df = pd.read_csv(file_path)

    # Standardize column names (remove spaces, lowercase)
    df.columns = df.columns.str.strip().str.lower().str.replace(" ", "_")

    if sample_frac < 1.0:
        df = df.sample(frac=sample_frac, random_state=random_state)

    dataset = PricingDataset.from_frame(df)

    if verbose:
        print(f"Loaded pricing experiment: {len(dataset):,} rows, "
              f"{len(dataset.levels())} price levels")
        for level in dataset.levels():
            rate = dataset.group(level, outcome='converted').mean()
            print(f"  Conversion rate (price={level:g}): {rate:.2%}")
        if sample_frac < 1.0:
            print(f"  Sampled to {len(dataset):,} rows ({sample_frac:.1%} of full dataset)")

    return dataset


def generate_pricing_experiment(
    levels: Sequence[float],
    conversion_rates: Sequence[float],
    n_per_level: int,
    random_state: Optional[int] = None,
    exact: bool = False,
) -> PricingDataset:
    """
    Generate a synthetic balanced pricing experiment.

    Parameters
    ----------
    levels : sequence of float
        Price levels, one per arm
    conversion_rates : sequence of float
        True conversion probability for each level, in [0, 1]
    n_per_level : int
        Visitors assigned to each level
    random_state : int, optional
        Random seed for reproducibility
    exact : bool, default=False
        If True, each level gets exactly round(rate x n) conversions in a
        shuffled order, so group means equal the requested rates. Otherwise
        conversions are Bernoulli draws.

    Returns
    -------
    PricingDataset

    Example
    -------
    >>> ds = generate_pricing_experiment([0.99, 1.99], [0.5, 0.625], 800,
    ...                                  random_state=0, exact=True)
    >>> ds.group(1.99, outcome='converted').mean()
    0.625
    """
    if len(levels) != len(conversion_rates):
        raise ValueError("levels and conversion_rates must have the same length")
    if len(set(levels)) != len(levels):
        raise ValueError("Price levels must be distinct")
    if n_per_level < 1:
        raise ValueError("n_per_level must be positive")
    if not all(0 <= rate <= 1 for rate in conversion_rates):
        raise ValueError("Conversion rates must be between 0 and 1")

    rng = np.random.default_rng(random_state)

    prices = []
    conversions = []
    for level, rate in zip(levels, conversion_rates):
        if exact:
            n_converted = int(round(rate * n_per_level))
            converted = np.zeros(n_per_level, dtype=np.int64)
            converted[:n_converted] = 1
            rng.shuffle(converted)
        else:
            converted = rng.binomial(1, rate, n_per_level)
        prices.append(np.full(n_per_level, float(level)))
        conversions.append(converted)

    return PricingDataset(
        price=np.concatenate(prices),
        converted=np.concatenate(conversions),
    )
