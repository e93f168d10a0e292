"""
task_import.py — CSV work-schedule (iş programı) import.

File layout, one task per line after a header row:

    title, start date (YYYY-MM-DD), due date (YYYY-MM-DD), weight (%)

The weight column is optional. Rows missing a title or either date are
skipped silently, as are blank lines; rows whose dates or weight cannot
be used are skipped and reported back so the caller can show them.
"""
import csv
import io
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from pydantic import ValidationError

from santiye.models.domain import Task, TaskPriority, TaskStatus

logger = logging.getLogger("santiye-import")

TEMPLATE_FILENAME = "is_programi_sablon.csv"
TEMPLATE_HEADER = [
    "İş Kalemi Adı",
    "Başlangıç Tarihi (YYYY-MM-DD)",
    "Bitiş Tarihi (YYYY-MM-DD)",
    "Pursantaj (%)",
]
TEMPLATE_EXAMPLE = ["Örnek Duvar İmalatı", "2024-06-01", "2024-06-15", "10"]

_BOM = "\ufeff"


@dataclass
class SkippedRow:
    line: int      # 1-based line number in the file
    reason: str


@dataclass
class TaskImportResult:
    tasks: List[Task] = field(default_factory=list)
    skipped_rows: List[SkippedRow] = field(default_factory=list)

    @property
    def added_count(self) -> int:
        return len(self.tasks)


def _parse_weight(raw: Optional[str]) -> float:
    """Missing or non-numeric weight counts as 0."""
    if not raw:
        return 0.0
    try:
        return float(raw.replace("%", "").strip())
    except ValueError:
        return 0.0


def parse_task_csv(text: str) -> TaskImportResult:
    """Parse an uploaded schedule CSV into new To Do tasks."""
    result = TaskImportResult()
    if text.startswith(_BOM):
        text = text[len(_BOM):]

    reader = csv.reader(io.StringIO(text))
    for line_no, parts in enumerate(reader, start=1):
        if line_no == 1:
            continue   # header
        if len(parts) < 3:
            continue
        title, start_raw, end_raw = (p.strip() for p in parts[:3])
        if not (title and start_raw and end_raw):
            continue

        try:
            start = date.fromisoformat(start_raw)
            due = date.fromisoformat(end_raw)
        except ValueError:
            result.skipped_rows.append(SkippedRow(line_no, f"invalid date in '{start_raw}' / '{end_raw}'"))
            continue

        weight = _parse_weight(parts[3].strip() if len(parts) > 3 else None)
        try:
            task = Task(
                title=title,
                start_date=start,
                due_date=due,
                weight=weight,
                status=TaskStatus.TODO,
                priority=TaskPriority.MEDIUM,
            )
        except ValidationError as exc:
            result.skipped_rows.append(SkippedRow(line_no, f"invalid row: {exc.errors()[0]['msg']}"))
            continue
        result.tasks.append(task)

    logger.info(
        "CSV import parsed: %d task(s), %d skipped row(s)",
        result.added_count,
        len(result.skipped_rows),
    )
    return result


def csv_template() -> str:
    """Downloadable template: BOM + header + one example row."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(TEMPLATE_HEADER)
    writer.writerow(TEMPLATE_EXAMPLE)
    return _BOM + buf.getvalue().rstrip("\n")
