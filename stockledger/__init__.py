"""Material inventory ledger with project reservations and settlement."""

__version__ = "1.0.0"
