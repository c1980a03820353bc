"""Routes for browsing every record held by the in-memory storage."""
from __future__ import annotations

import html
import json
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse

from app.dependencies.services import get_storage
from app.services.storage import BrowsableStorage, InvoiceStorage

router = APIRouter()

_SECTIONS = (
    ("clients", "Clients"),
    ("invoices", "Invoices"),
    ("line_items", "Line Items"),
)


def _stringify(value: Any) -> str:
    """Return a JSON-friendly string representation for table cells."""
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (str, int, float, bool)):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return json.dumps(value, default=str)


def _build_table(title: str, rows: Iterable[Mapping[str, Any]]) -> str:
    row_list: List[Dict[str, Any]] = [dict(row) for row in rows]
    section_parts = [f"<section><h2>{html.escape(title)}</h2>"]
    if not row_list:
        section_parts.append("<p>No records found.</p></section>")
        return "".join(section_parts)

    columns: List[str] = []
    for row in row_list:
        for key in row.keys():
            if key not in columns:
                columns.append(key)

    header = "".join(f"<th>{html.escape(column)}</th>" for column in columns)
    body_rows: List[str] = []
    for row in row_list:
        cells = "".join(
            f"<td>{html.escape(_stringify(row.get(column)))}</td>" for column in columns
        )
        body_rows.append(f"<tr>{cells}</tr>")
    section_parts.append(
        f"<table><thead><tr>{header}</tr></thead><tbody>{''.join(body_rows)}</tbody></table>"
    )
    section_parts.append("</section>")
    return "".join(section_parts)


@router.get("/store-view", response_class=HTMLResponse)
async def view_store(storage: InvoiceStorage = Depends(get_storage)) -> HTMLResponse:
    """Render all stored records as HTML tables."""
    if not isinstance(storage, BrowsableStorage):
        raise HTTPException(status_code=404, detail="Storage backend cannot be browsed")

    records = storage.snapshot()
    sections_html = "".join(
        _build_table(title, records.get(key, [])) for key, title in _SECTIONS
    )
    html_content = f"""
    <html>
        <head>
            <title>Store Overview</title>
            <style>
                body {{ font-family: Arial, sans-serif; margin: 2rem; }}
                h1 {{ text-align: center; }}
                section {{ margin-bottom: 2rem; }}
                table {{ border-collapse: collapse; width: 100%; }}
                th, td {{ border: 1px solid #ccc; padding: 0.5rem; text-align: left; }}
                th {{ background-color: #f0f0f0; }}
                tbody tr:nth-child(even) {{ background-color: #fafafa; }}
            </style>
        </head>
        <body>
            <h1>Store Overview</h1>
            {sections_html}
        </body>
    </html>
    """

    return HTMLResponse(content=html_content)
