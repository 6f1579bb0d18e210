"""passportsheet: passport photo crop, tone and print-sheet pipeline."""

__version__ = "0.1.0"
