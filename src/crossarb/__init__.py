"""crossarb - cross-venue prediction market arbitrage."""

__version__ = "0.1.0"
