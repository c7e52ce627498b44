# app/services/export_service.py
import datetime
from typing import Iterable, Sequence

from app.schemas.report import ReportRow
from app.services.query_service import field_value

CASE_COLUMNS = ["date", "case_id", "branch", "brand", "reason", "city", "aging", "status", "remark"]
CASE_HEADERS = ["Date", "ID", "Branch", "Brand", "Reason", "City", "Aging", "Status", "Remark"]

REPORT_COLUMNS = ["branch", "total", "open", "closed", "avg_aging", "compliance"]
REPORT_HEADERS = ["Branch", "Total", "Open", "Closed", "Avg Aging", "Compliance (%)"]

CASE_EXPORT_FILENAME = "escalations_export.csv"


def csv_field(value) -> str:
    """Quote only values holding a comma or a double quote."""
    text = "" if value is None else str(value)
    if "," in text or '"' in text:
        text = '"' + text.replace('"', '""') + '"'
    return text


def _render(headers: Sequence[str], columns: Sequence[str], rows: Iterable) -> str:
    lines = [",".join(headers)]
    for row in rows:
        lines.append(",".join(csv_field(field_value(row, col)) for col in columns))
    return "\n".join(lines) + "\n"


def export_escalations_csv(rows: Iterable) -> str:
    return _render(CASE_HEADERS, CASE_COLUMNS, rows)


def export_report_csv(report_rows: Iterable[ReportRow]) -> str:
    return _render(REPORT_HEADERS, REPORT_COLUMNS, (r.model_dump() for r in report_rows))


def report_filename(today: datetime.date = None) -> str:
    today = today or datetime.date.today()
    return f"Branch_Performance_Summary_{today.isoformat()}.csv"
