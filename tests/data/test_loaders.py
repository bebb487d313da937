"""Tests for dataset loading and generation."""

import numpy as np
import pandas as pd
import pytest

from ab_power.data import loaders


@pytest.fixture
def csv_path(tmp_path):
    """Small experiment CSV with messy headers."""
    df = pd.DataFrame({
        ' Price ': [0.99] * 4 + [1.99] * 4,
        'Converted': [1, 0, 1, 0, 1, 0, 0, 0],
    })
    path = tmp_path / "pricing_experiment.csv"
    df.to_csv(path, index=False)
    return path


class TestDatasetInfo:
    """Tests for the dataset registry."""

    def test_known_dataset(self):
        info = loaders.get_dataset_info('pricing_experiment')
        assert info['file_name'] == 'pricing_experiment.csv'
        assert 'price' in info['features']

    def test_unknown_dataset(self):
        with pytest.raises(ValueError, match="Unknown dataset"):
            loaders.get_dataset_info('cookie_cats')


class TestLoadPricingExperiment:
    """Tests for CSV loading."""

    def test_load_from_path(self, csv_path):
        ds = loaders.load_pricing_experiment(path=str(csv_path), verbose=False)
        assert len(ds) == 8
        assert ds.levels() == [0.99, 1.99]
        assert ds.group(0.99, outcome='converted').mean() == 0.5

    def test_load_from_cache_dir(self, csv_path):
        ds = loaders.load_pricing_experiment(cache_dir=str(csv_path.parent), verbose=False)
        assert len(ds) == 8

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Dataset not found"):
            loaders.load_pricing_experiment(cache_dir=str(tmp_path), verbose=False)

    def test_sampling_is_reproducible(self, csv_path):
        first = loaders.load_pricing_experiment(path=str(csv_path), sample_frac=0.5,
                                                random_state=1, verbose=False)
        second = loaders.load_pricing_experiment(path=str(csv_path), sample_frac=0.5,
                                                 random_state=1, verbose=False)
        assert len(first) == 4
        assert np.array_equal(first.price, second.price)

    def test_invalid_sample_frac(self, csv_path):
        with pytest.raises(ValueError, match="sample_frac"):
            loaders.load_pricing_experiment(path=str(csv_path), sample_frac=0, verbose=False)

    def test_verbose_output(self, csv_path, capsys):
        loaders.load_pricing_experiment(path=str(csv_path), verbose=True)
        out = capsys.readouterr().out
        assert "Loaded pricing experiment: 8 rows, 2 price levels" in out
        assert "price=0.99" in out


class TestGeneratePricingExperiment:
    """Tests for the synthetic generator."""

    def test_exact_rates(self):
        ds = loaders.generate_pricing_experiment(
            [0.99, 1.99], [0.5, 0.625], 800, random_state=0, exact=True
        )
        assert len(ds) == 1600
        assert ds.group(0.99, outcome='converted').sum() == 400
        assert ds.group(1.99, outcome='converted').sum() == 500

    def test_exact_rates_are_shuffled(self):
        ds = loaders.generate_pricing_experiment(
            [0.99], [0.5], 100, random_state=0, exact=True
        )
        converted = ds.group(0.99, outcome='converted')
        assert not np.array_equal(converted, np.sort(converted)[::-1])

    def test_random_rates_reproducible(self):
        first = loaders.generate_pricing_experiment([0.99, 1.99], [0.3, 0.4], 500, random_state=5)
        second = loaders.generate_pricing_experiment([0.99, 1.99], [0.3, 0.4], 500, random_state=5)
        assert np.array_equal(first.converted, second.converted)
        assert 0.2 < first.group(0.99, outcome='converted').mean() < 0.4

    def test_invalid_inputs(self):
        with pytest.raises(ValueError, match="same length"):
            loaders.generate_pricing_experiment([0.99, 1.99], [0.5], 10)
        with pytest.raises(ValueError, match="distinct"):
            loaders.generate_pricing_experiment([0.99, 0.99], [0.5, 0.5], 10)
        with pytest.raises(ValueError, match="between 0 and 1"):
            loaders.generate_pricing_experiment([0.99], [1.5], 10)
        with pytest.raises(ValueError, match="n_per_level must be positive"):
            loaders.generate_pricing_experiment([0.99], [0.5], 0)
