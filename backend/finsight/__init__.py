"""FinSight: personal finance tracking with recurring-transaction automation."""

__version__ = "1.0.0"
