"""CreditFlow - bank statement credit extraction and monthly analysis."""

__version__ = "1.0.0"
