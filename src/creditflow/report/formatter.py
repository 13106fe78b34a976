"""Brazilian Portuguese formatting for report values."""
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Sequence

from creditflow.llm.models import month_key, to_decimal

MONTH_NAMES = {
    "01": "Janeiro", "02": "Fevereiro", "03": "Março", "04": "Abril",
    "05": "Maio", "06": "Junho", "07": "Julho", "08": "Agosto",
    "09": "Setembro", "10": "Outubro", "11": "Novembro", "12": "Dezembro"
}

NOT_AVAILABLE = "N/A"
EMPTY_CELL = "-"

_SEPARATORS = str.maketrans({",": ".", ".": ","})


def format_brl(value) -> str:
    """Format an amount as Brazilian reais, e.g. R$ 1.234,56."""
    amount = to_decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    digits = f"{abs(amount):,.2f}".translate(_SEPARATORS)
    return f"{sign}R$ {digits}"


def format_month(month_key: str) -> str:
    """Format a YYYY-MM key as e.g. Janeiro/24."""
    year, _, month = month_key.partition("-")
    name = MONTH_NAMES.get(month)
    if not name:
        return month_key
    return f"{name}/{year[2:]}"


def format_date(date_text: str) -> str:
    """Format a YYYY-MM-DD date as DD/MM/YYYY, or N/A when it is not a valid date."""
    if month_key(date_text) is None:
        return NOT_AVAILABLE
    year, month, day = date_text.split("-")
    return f"{day}/{month}/{year}"


def format_period(sorted_months: Sequence[str]) -> str:
    """Span covered by the report, e.g. Janeiro/24 a Março/24."""
    if not sorted_months:
        return NOT_AVAILABLE
    first = format_month(sorted_months[0])
    last = format_month(sorted_months[-1])
    return first if first == last else f"{first} a {last}"


def format_generated_at(moment: datetime) -> str:
    """Long date and short time, e.g. 19 de outubro de 2026 às 14:05."""
    month = MONTH_NAMES[f"{moment.month:02d}"].lower()
    return f"{moment.day} de {month} de {moment.year} às {moment:%H:%M}"
