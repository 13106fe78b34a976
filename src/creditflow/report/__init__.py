"""Report formatting and export."""
from .formatter import format_brl, format_date, format_month, format_period, format_generated_at
from .generator import ReportGenerator, MonthlyReport, SummaryCard, default_file_name

__all__ = [
    "format_brl",
    "format_date",
    "format_month",
    "format_period",
    "format_generated_at",
    "ReportGenerator",
    "MonthlyReport",
    "SummaryCard",
    "default_file_name"
]
