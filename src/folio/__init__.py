"""Portfolio registry: target allocations, ownership and rebalance bookkeeping."""

__version__ = "0.1.0"
