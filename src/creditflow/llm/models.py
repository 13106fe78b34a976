"""Data models for extraction and aggregation."""
import re
from dataclasses import dataclass, field
from datetime import date as Date, datetime
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def to_decimal(value) -> Decimal:
    """Convert a JSON number, text or Decimal into a Decimal."""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Not a number: {value!r}") from e


def month_key(date_text: str) -> Optional[str]:
    """Return the YYYY-MM key of a well-formed YYYY-MM-DD date, else None."""
    if not isinstance(date_text, str) or not DATE_PATTERN.match(date_text):
        return None
    try:
        datetime.strptime(date_text, "%Y-%m-%d")
    except ValueError:
        return None
    return date_text[:7]


@dataclass
class Entry:
    """A single credit transaction."""
    description: str
    amount: Decimal
    date: str

    @classmethod
    def blank(cls, today: Optional[Date] = None) -> "Entry":
        """Entry inserted by the user before editing."""
        today = today or Date.today()
        return cls(description="", amount=Decimal("0"), date=today.isoformat())

    @property
    def month_key(self) -> Optional[str]:
        return month_key(self.date)

    @property
    def is_aggregatable(self) -> bool:
        return bool(self.description) and self.month_key is not None


@dataclass
class ExtractionResult:
    """Validated output of one extraction call."""
    client_name: str
    entries: List[Entry] = field(default_factory=list)


@dataclass(frozen=True)
class BestMonth:
    month: str
    total: Decimal


@dataclass(frozen=True)
class Statistics:
    transaction_count: int
    monthly_average: Decimal
    best_month: Optional[BestMonth]


@dataclass
class AggregationResult:
    """Monthly pivot of entries by description."""
    cells: Dict[Tuple[str, str], Decimal]
    row_totals: Dict[str, Decimal]
    column_totals: Dict[str, Decimal]
    grand_total: Decimal
    sorted_descriptions: List[str]
    sorted_months: List[str]
    statistics: Statistics
    display_name: Optional[str] = None

    def cell(self, description: str, month: str) -> Optional[Decimal]:
        """Summed amount for a cell, or None when it has no entries."""
        return self.cells.get((description, month))

    def has_cell(self, description: str, month: str) -> bool:
        return (description, month) in self.cells


# Wire schemas for the extraction service response

class EntrySchema(BaseModel):
    """Pydantic schema for a single extracted entry."""
    description: str = ""
    amount: float = Field(allow_inf_nan=False)
    date: str = ""


class ExtractionResponse(BaseModel):
    """Pydantic schema for the extraction service response."""
    clientName: Optional[str]
    entries: List[EntrySchema]

    def to_result(self) -> ExtractionResult:
        return ExtractionResult(
            client_name=self.clientName or "",
            entries=[
                Entry(description=item.description, amount=to_decimal(item.amount), date=item.date)
                for item in self.entries
            ]
        )
