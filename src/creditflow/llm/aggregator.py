"""Monthly aggregation of credit entries."""
from collections import defaultdict
from decimal import Decimal
from typing import Dict, Iterable, Optional, Sequence, Tuple

from .models import AggregationResult, BestMonth, Entry, Statistics, to_decimal
from creditflow.utils.logger import get_logger

logger = get_logger()

ZERO = Decimal("0")


class Aggregator:
    """Aggregates entries by description and month."""

    def aggregate(self, entries: Sequence[Entry], display_name: Optional[str] = None) -> AggregationResult:
        """
        Build the description x month pivot with totals and statistics.

        Entries with an empty description or a date that is not a real
        YYYY-MM-DD date are left out of every sum but still count as
        transactions.

        Args:
            entries: Entries in display order
            display_name: Name shown on reports

        Returns:
            AggregationResult object
        """
        cells: Dict[Tuple[str, str], Decimal] = {}
        row_totals: Dict[str, Decimal] = defaultdict(Decimal)
        column_totals: Dict[str, Decimal] = defaultdict(Decimal)
        grand_total = ZERO
        skipped = 0

        for entry in entries:
            if not entry.is_aggregatable:
                skipped += 1
                continue

            month = entry.month_key
            amount = to_decimal(entry.amount)
            key = (entry.description, month)
            cells[key] = cells.get(key, ZERO) + amount
            row_totals[entry.description] += amount
            column_totals[month] += amount
            grand_total += amount

        sorted_descriptions = sorted(row_totals)
        sorted_months = sorted(column_totals)

        monthly_average = grand_total / len(sorted_months) if sorted_months else ZERO
        statistics = Statistics(
            transaction_count=len(entries),
            monthly_average=monthly_average,
            best_month=best_month(column_totals.items())
        )

        logger.info(
            f"Aggregated {len(entries) - skipped} entries into {len(sorted_descriptions)} descriptions "
            f"across {len(sorted_months)} months ({skipped} skipped)"
        )

        return AggregationResult(
            cells=cells,
            row_totals=dict(row_totals),
            column_totals=dict(column_totals),
            grand_total=grand_total,
            sorted_descriptions=sorted_descriptions,
            sorted_months=sorted_months,
            statistics=statistics,
            display_name=display_name
        )


def best_month(column_totals: Iterable[Tuple[str, Decimal]]) -> Optional[BestMonth]:
    """Month with the highest total; ties go to the earliest month key."""
    best = None
    for month, total in sorted(column_totals):
        if best is None or total > best.total:
            best = BestMonth(month=month, total=total)
    return best


def aggregate(entries: Sequence[Entry], display_name: Optional[str] = None) -> AggregationResult:
    """Module-level shortcut for Aggregator().aggregate."""
    return Aggregator().aggregate(entries, display_name)
