"""Core statistical methods: power calculation, estimation, simulation."""

from ab_power.core import power, estimation, simulation

__all__ = ["power", "estimation", "simulation"]
