"""Tests for the command-line entry point."""

import pytest

import run_pipelines


class TestParser:
    """Argument parsing."""

    def test_defaults(self):
        args = run_pipelines.build_parser().parse_args([])
        assert args.outcome == 'revenue'
        assert args.fractions == (0.2, 0.5, 1.0)
        assert not args.synthetic

    def test_fraction_list(self):
        args = run_pipelines.build_parser().parse_args(['--fractions', '0.1, 0.3'])
        assert args.fractions == (0.1, 0.3)

    def test_bad_fraction_list(self):
        with pytest.raises(SystemExit):
            run_pipelines.build_parser().parse_args(['--fractions', 'half'])

    def test_bad_outcome(self):
        with pytest.raises(SystemExit):
            run_pipelines.build_parser().parse_args(['--outcome', 'profit'])


class TestMain:
    """Exit codes."""

    def test_synthetic_run_succeeds(self):
        code = run_pipelines.main(['--synthetic', '--quiet', '--replicates', '20',
                                   '--fractions', '0.2'])
        assert code == 0

    def test_missing_data_fails(self, tmp_path, capsys):
        code = run_pipelines.main(['--data', str(tmp_path / 'missing.csv'), '--quiet'])
        assert code == 1
        assert "Dataset not found" in capsys.readouterr().err
