"""
Report export: CSV, printable HTML and Excel.

Every exporter takes the flat row dicts produced by the report engine
(header = keys of the first row) and returns in-memory content; nothing
is written to disk.

PDF is produced by the host's print-to-PDF on the HTML document; no
binary PDF encoding happens here.
"""

import csv
import html
import io
import logging
from datetime import date, datetime, timezone

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

logger = logging.getLogger(__name__)

HEADER_FILL = PatternFill(start_color="354A5F", end_color="354A5F", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True, size=11)
THIN_BORDER = Border(
    left=Side(style="thin"),
    right=Side(style="thin"),
    top=Side(style="thin"),
    bottom=Side(style="thin"),
)

EXPORT_FORMATS = {
    "csv": ("text/csv", "csv"),
    "html": ("text/html", "html"),
    "xlsx": ("application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", "xlsx"),
}


def export_filename(prefix: str, ext: str, today: date | None = None) -> str:
    """``reconciliation-2024-05-01.csv`` style download name."""
    today = today or datetime.now(timezone.utc).date()
    return f"{prefix}-{today.isoformat()}.{ext}"


# ══════════════════════════════════════════════════════════════════════════════
# CSV
# ══════════════════════════════════════════════════════════════════════════════


def _quote(value) -> str:
    return '"' + str(value).replace('"', '""') + '"'


def generate_csv(rows: list[dict]) -> str:
    """Quoted CSV with a header row from the keys of the first row.

    Every field is wrapped in double quotes and internal quotes are
    doubled. Rows are joined with ``\\n``. No rows → empty string.
    """
    if not rows:
        return ""
    headers = list(rows[0].keys())
    lines = [",".join(_quote(h) for h in headers)]
    for row in rows:
        lines.append(",".join(_quote(row.get(h, "")) for h in headers))
    return "\n".join(lines)


def parse_csv_rows(text: str) -> list[dict]:
    """Parse CSV text (as produced by ``generate_csv``) back into row dicts."""
    if not text:
        return []
    return list(csv.DictReader(io.StringIO(text)))


# ══════════════════════════════════════════════════════════════════════════════
# Printable HTML
# ══════════════════════════════════════════════════════════════════════════════


def rows_to_html_table(rows: list[dict]) -> str:
    """HTML table: one header row plus one row per data row (values escaped)."""
    if not rows:
        return "<p>No data for the selected filters.</p>"
    headers = list(rows[0].keys())
    head = "".join(f"<th>{html.escape(str(h))}</th>" for h in headers)
    body = "".join(
        "<tr>" + "".join(f"<td>{html.escape(str(row.get(h, '')))}</td>" for h in headers) + "</tr>"
        for row in rows
    )
    return f"<table><thead><tr>{head}</tr></thead><tbody>{body}</tbody></table>"


def generate_print_html(title: str, rows: list[dict]) -> str:
    """
    Generate an HTML report suitable for printing / PDF conversion.
    Returns HTML string with inline CSS for print-friendliness.
    """
    safe_title = html.escape(title)
    generated = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    return f"""<!DOCTYPE html>
<html><head>
<meta charset="utf-8">
<title>{safe_title}</title>
<style>
    body {{ font-family: Arial, sans-serif; margin: 20px; color: #333; }}
    h1 {{ color: #333; margin-bottom: 4px; }}
    .meta {{ color: #666; font-size: 13px; margin-bottom: 16px; }}
    table {{ width: 100%; border-collapse: collapse; margin-top: 20px; }}
    th, td {{ border: 1px solid #ddd; padding: 8px; text-align: left; }}
    th {{ background-color: #f2f2f2; }}
    @media print {{ body {{ margin: 10px; }} }}
</style>
</head><body>
<h1>{safe_title}</h1>
<p class="meta">Generated {generated}</p>
{rows_to_html_table(rows)}
</body></html>"""


# ══════════════════════════════════════════════════════════════════════════════
# Excel
# ══════════════════════════════════════════════════════════════════════════════


def _apply_header_style(ws, row: int, col_count: int) -> None:
    """Apply dark-header styling to an Excel row (1-indexed)."""
    for col in range(1, col_count + 1):
        cell = ws.cell(row=row, column=col)
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT
        cell.border = THIN_BORDER
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)


def _auto_width(ws) -> None:
    """Auto-size column widths based on content (capped at 60 chars)."""
    for col in ws.columns:
        max_len = 0
        col_letter = get_column_letter(col[0].column)
        for cell in col:
            if cell.value is not None:
                max_len = max(max_len, min(len(str(cell.value)), 60))
        ws.column_dimensions[col_letter].width = max(max_len + 4, 12)


def generate_report_xlsx(title: str, rows: list[dict]) -> bytes:
    """Single-sheet workbook: title, generated stamp, header row, data rows.

    Returns raw .xlsx bytes ready to stream to the client.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = title[:31]

    ws["A1"] = title
    ws["A1"].font = Font(size=16, bold=True, color="354A5F")
    ws["A2"] = f"Generated: {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M UTC')}"
    ws["A2"].font = Font(italic=True, color="666666")

    header_row = 4
    if rows:
        headers = list(rows[0].keys())
        for col, header in enumerate(headers, 1):
            ws.cell(row=header_row, column=col, value=header)
        _apply_header_style(ws, header_row, len(headers))
        for r, row in enumerate(rows, header_row + 1):
            for col, header in enumerate(headers, 1):
                ws.cell(row=r, column=col, value=row.get(header)).border = THIN_BORDER
        _auto_width(ws)
    else:
        ws.cell(row=header_row, column=1, value="No data for the selected filters.")

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def render(fmt: str, title: str, rows: list[dict]):
    """Render rows in one of ``EXPORT_FORMATS``; returns (content, mimetype, ext)."""
    mimetype, ext = EXPORT_FORMATS[fmt]
    if fmt == "csv":
        content = generate_csv(rows)
    elif fmt == "html":
        content = generate_print_html(title, rows)
    else:
        content = generate_report_xlsx(title, rows)
    logger.info("Rendered %s export %r (%d rows)", fmt, title, len(rows))
    return content, mimetype, ext
