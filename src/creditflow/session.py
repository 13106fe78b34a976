"""Analysis session: holds the current entries and applies user edits."""
import uuid
from datetime import date as Date, datetime
from decimal import Decimal
from typing import List, Optional

from creditflow.llm.aggregator import Aggregator
from creditflow.llm.extraction_client import ExtractionClient
from creditflow.llm.models import AggregationResult, Entry, ExtractionResult, to_decimal
from creditflow.report.generator import MonthlyReport, ReportGenerator
from creditflow.utils.exceptions import CreditFlowError, SessionBusyError, ValidationError
from creditflow.utils.logger import get_logger, set_session_context

logger = get_logger()

EDITABLE_FIELDS = ("description", "amount", "date")


class AnalysisSession:
    """Transient state of one statement analysis."""

    def __init__(self, client: ExtractionClient, aggregator: Optional[Aggregator] = None,
                 report_generator: Optional[ReportGenerator] = None):
        self.client = client
        self.aggregator = aggregator or Aggregator()
        self.report_generator = report_generator or ReportGenerator()
        self.session_id = uuid.uuid4().hex[:8]
        self.entries: List[Entry] = []
        self.client_name = ""
        self.display_name = ""
        self.error: Optional[str] = None
        self.in_flight = False

    async def analyze(self, document: bytes, media_type: str) -> ExtractionResult:
        """Run one extraction and replace the held entries with its result."""
        if self.in_flight:
            raise SessionBusyError("An analysis is already running. Wait for it to finish.")

        set_session_context(self.session_id)
        self.in_flight = True
        self.clear()

        try:
            result = await self.client.extract(document, media_type)
        except CreditFlowError as e:
            self.entries = []
            self.error = str(e)
            logger.error(f"Analysis failed: {e}")
            raise
        finally:
            self.in_flight = False

        self.entries = list(result.entries)
        self.client_name = result.client_name
        self.display_name = result.client_name
        logger.info(f"Analysis complete: {len(self.entries)} entries")
        return result

    def add_entry(self, today: Optional[Date] = None) -> Entry:
        entry = Entry.blank(today)
        self.entries.append(entry)
        return entry

    def update_entry(self, index: int, field: str, value) -> Entry:
        """Apply an edit from the table; unparsable amounts become zero."""
        if field not in EDITABLE_FIELDS:
            raise ValidationError(f"Unknown entry field '{field}'")

        entry = self._entry_at(index)
        if field == "amount":
            try:
                entry.amount = to_decimal(value)
            except ValueError:
                entry.amount = Decimal("0")
            if not entry.amount.is_finite():
                entry.amount = Decimal("0")
        else:
            setattr(entry, field, str(value))
        return entry

    def delete_entry(self, index: int) -> Entry:
        entry = self._entry_at(index)
        del self.entries[index]
        return entry

    def rename(self, name: str) -> str:
        """Confirm a new display name; blank names are ignored."""
        if name and name.strip():
            self.display_name = name
        return self.display_name

    def clear(self) -> None:
        self.entries = []
        self.client_name = ""
        self.display_name = ""
        self.error = None

    def summary(self) -> AggregationResult:
        return self.aggregator.aggregate(self.entries, self.display_name)

    def report(self, generated_at: Optional[datetime] = None) -> MonthlyReport:
        return self.report_generator.build(self.summary(), self.entries, generated_at)

    def _entry_at(self, index: int) -> Entry:
        if not 0 <= index < len(self.entries):
            raise ValidationError(f"No entry at position {index}")
        return self.entries[index]
