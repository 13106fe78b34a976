"""Monthly credit report built from an aggregation result."""
import csv
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from creditflow.llm.models import AggregationResult, Entry
from creditflow.utils.exceptions import ValidationError
from creditflow.utils.logger import get_logger
from .formatter import (
    EMPTY_CELL,
    NOT_AVAILABLE,
    format_brl,
    format_date,
    format_generated_at,
    format_month,
    format_period,
)

logger = get_logger()

REPORT_TITLE = "Relatório de Análise de Créditos"
REPORT_SUBTITLE = "Gerado pelo Analisador de Extratos com IA"
DETAIL_TITLE = "Extrato Detalhado de Créditos"
DETAIL_HEAD = ["Data", "Descrição", "Valor (R$)"]


@dataclass
class SummaryCard:
    title: str
    value: str
    note: str = ""


@dataclass
class MonthlyReport:
    """Export-ready report: header lines, summary cards, pivot and detail rows."""
    title: str
    subtitle: str
    client_line: Optional[str]
    period: str
    generated_at: str
    summary: List[SummaryCard] = field(default_factory=list)
    head: List[str] = field(default_factory=list)
    body: List[List[str]] = field(default_factory=list)
    foot: List[str] = field(default_factory=list)
    detail_title: str = DETAIL_TITLE
    detail_head: List[str] = field(default_factory=lambda: list(DETAIL_HEAD))
    detail: List[List[str]] = field(default_factory=list)

    @property
    def rows(self) -> List[List[str]]:
        """Head, body and foot as one list of rows."""
        return [self.head] + self.body + [self.foot]

    @property
    def detail_rows(self) -> List[List[str]]:
        return [self.detail_head] + self.detail


def default_file_name(client_name: Optional[str], extension: str = "csv") -> str:
    """Export file name derived from the client name."""
    safe_name = re.sub(r"[^a-z0-9]", "_", (client_name or "").strip().lower())
    safe_name = re.sub(r"_{2,}", "_", safe_name)
    if safe_name:
        return f"relatorio_creditos_{safe_name}.{extension}"
    return f"relatorio_analise_creditos.{extension}"


def _detail_sort_key(entry: Entry) -> Tuple[int, str]:
    # Undated entries go last, keeping their original order
    return (0, entry.date) if entry.month_key else (1, "")


class ReportGenerator:
    """Builds MonthlyReport objects and writes them out."""

    def build(self, result: AggregationResult, entries: Sequence[Entry] = (),
              generated_at: Optional[datetime] = None) -> MonthlyReport:
        """
        Format an aggregation result for presentation.

        Args:
            result: Aggregation of the entries
            entries: Raw entries for the per-transaction detail table
            generated_at: Timestamp shown on the report (defaults to now)

        Returns:
            MonthlyReport object
        """
        generated_at = generated_at or datetime.now()
        stats = result.statistics
        months = result.sorted_months

        name = (result.display_name or "").strip()
        best_label, best_note = self._best_month_labels(result)

        summary = [
            SummaryCard("Total de Créditos", format_brl(result.grand_total)),
            SummaryCard("Nº de Transações", str(stats.transaction_count)),
            SummaryCard("Média Mensal", format_brl(stats.monthly_average)),
            SummaryCard("Mês de Maior Receita", best_label, best_note),
        ]

        head = ["Análise Mensal por Descrição"] + [format_month(m) for m in months] + ["Total"]

        body = []
        for description in result.sorted_descriptions:
            row = [description]
            for month in months:
                value = result.cell(description, month)
                row.append(EMPTY_CELL if value is None else format_brl(value))
            row.append(format_brl(result.row_totals[description]))
            body.append(row)

        foot = (
            ["Total Mensal"]
            + [format_brl(result.column_totals[m]) for m in months]
            + [format_brl(result.grand_total)]
        )

        detail = [
            [format_date(entry.date), entry.description, format_brl(entry.amount)]
            for entry in sorted(entries, key=_detail_sort_key)
        ]

        return MonthlyReport(
            title=REPORT_TITLE,
            subtitle=REPORT_SUBTITLE,
            client_line=f"Cliente: {name}" if name else None,
            period=format_period(months),
            generated_at=format_generated_at(generated_at),
            summary=summary,
            head=head,
            body=body,
            foot=foot,
            detail=detail
        )

    @staticmethod
    def _best_month_labels(result: AggregationResult) -> Tuple[str, str]:
        best = result.statistics.best_month
        if best is None:
            return NOT_AVAILABLE, ""
        return format_month(best.month), f"({format_brl(best.total)})"

    def write_csv(self, report: MonthlyReport, path: Path) -> Path:
        """Write the pivot table, then the detail table, to a CSV file."""
        path = Path(path)
        if not report.body:
            raise ValidationError("There are no credits to export.")

        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerows(report.rows)
            writer.writerow([])
            writer.writerow([report.detail_title])
            writer.writerows(report.detail_rows)

        logger.info(f"Report written to {path} ({len(report.body)} descriptions, {len(report.detail)} entries)")
        return path

    @staticmethod
    def render_text(report: MonthlyReport) -> str:
        """Plain-text rendering for terminals."""
        lines = [report.title]
        if report.client_line:
            lines.append(report.client_line)
        lines.append(f"Período Analisado: {report.period}")
        lines.append(f"Gerado em: {report.generated_at}")
        lines.append("")

        for card in report.summary:
            note = f" {card.note}" if card.note else ""
            lines.append(f"{card.title}: {card.value}{note}")
        lines.append("")

        lines.extend(_table_lines(report.rows, footer=True))

        if report.detail:
            lines.append("")
            lines.append(report.detail_title)
            lines.extend(_table_lines(report.detail_rows))

        return "\n".join(lines)


def _table_lines(rows: List[List[str]], footer: bool = False) -> List[str]:
    """Align rows into columns; the first column is left-aligned."""
    widths = [max(len(row[i]) for row in rows) for i in range(len(rows[0]))]
    rule = "-" * (sum(widths) + 2 * (len(widths) - 1))

    lines = []
    for index, row in enumerate(rows):
        cells = [row[0].ljust(widths[0])] + [cell.rjust(w) for cell, w in zip(row[1:], widths[1:])]
        lines.append("  ".join(cells))
        if index == 0 or (footer and index == len(rows) - 2):
            lines.append(rule)
    return lines
