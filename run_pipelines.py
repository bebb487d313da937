"""
Run the Pricing Experiment Power Analysis

This script runs the end-to-end power analysis pipeline on a pricing
experiment CSV, or on a synthetic experiment when no data is at hand.

Usage:
    # Analyse the experiment at the default location
    uv run python run_pipelines.py

    # Analyse a specific file and price pair
    uv run python run_pipelines.py --data prices.csv --treatment 1.99 --control 0.99

    # Try it without data
    uv run python run_pipelines.py --synthetic

    # Run quietly
    uv run python run_pipelines.py --synthetic --quiet
"""

import argparse
import sys

from ab_power import config
from ab_power.pipelines import run_pricing_analysis


def _fractions(value: str):
    try:
        fractions = tuple(float(v) for v in value.split(',') if v.strip())
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid fraction list: {value!r}")
    if not fractions:
        raise argparse.ArgumentTypeError("at least one fraction is required")
    return fractions


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run the pricing experiment power analysis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Default CSV location (./data/raw/pricing_experiment/pricing_experiment.csv)
  python run_pipelines.py

  # Synthetic experiment, conversion instead of revenue
  python run_pipelines.py --synthetic --outcome converted

  # Custom simulation grid
  python run_pipelines.py --synthetic --fractions 0.1,0.2,0.5 --replicates 2000
        """
    )

    parser.add_argument('--data', default=None, help='Path to the experiment CSV')
    parser.add_argument('--synthetic', action='store_true',
                        help='Use a generated experiment instead of a CSV')
    parser.add_argument('--treatment', type=float, default=None,
                        help='Treatment price level (default: highest price)')
    parser.add_argument('--control', type=float, default=None,
                        help='Control price level (default: lowest price)')
    parser.add_argument('--outcome', choices=list(config.OUTCOMES), default='revenue',
                        help='Outcome to analyse (default: revenue)')
    parser.add_argument('--replicates', type=int, default=config.DEFAULT_REPLICATES,
                        help=f'Replicates per fraction (default: {config.DEFAULT_REPLICATES})')
    parser.add_argument('--seed', type=int, default=config.DEFAULT_SEED,
                        help=f'Random seed (default: {config.DEFAULT_SEED})')
    parser.add_argument('--fractions', type=_fractions, default=config.DEFAULT_FRACTIONS,
                        help='Comma-separated sampling fractions (default: 0.2,0.5,1.0)')
    parser.add_argument('--alpha', type=float, default=config.DEFAULT_ALPHA,
                        help='Two-sided significance level (default: 0.05)')
    parser.add_argument('--quiet', action='store_true', help='Suppress verbose output')
    return parser


def main(argv=None):
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    verbose = not args.quiet

    try:
        result = run_pricing_analysis(
            path=args.data,
            treatment_level=args.treatment,
            control_level=args.control,
            outcome=args.outcome,
            fractions=args.fractions,
            replicate_count=args.replicates,
            seed=args.seed,
            alpha=args.alpha,
            synthetic=args.synthetic,
            verbose=verbose,
        )
        if verbose:
            pa = result['power_analysis']['full_sample']
            print(f"\nPower at observed sample size: {pa['power']:.1%}")
        return 0

    except Exception as e:
        print(f"\nError: {e}", file=sys.stderr)
        if verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == '__main__':
    sys.exit(main())
