"""
Pipeline demonstrations.

Available pipelines:
- pricing_pipeline: Power analysis of a randomized pricing experiment
"""

# Lazy imports so ``python -m ab_power.pipelines.pricing_pipeline`` does not
# import the module twice.

__all__ = [
    'run_pricing_analysis',
]


def __getattr__(name: str):
    """
    Lazy import pipeline functions on first access.

    Raises
    ------
    AttributeError
        If the requested attribute doesn't exist
    """
    if name == 'run_pricing_analysis':
        from ab_power.pipelines.pricing_pipeline import run_pricing_analysis
        return run_pricing_analysis
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
