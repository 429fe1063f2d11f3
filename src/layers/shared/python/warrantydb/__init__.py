"""WarrantyDB shared layer: warranty lifecycle and inspection reminder engine."""

__version__ = "0.1.0"
