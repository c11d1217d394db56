"""Render resource records as text tables or JSON."""

import json
from typing import Any, Dict, Iterable, List, Optional, Sequence

MAX_CELL_WIDTH = 40


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (dict, list)):
        text = json.dumps(value, ensure_ascii=False, sort_keys=True)
    else:
        text = str(value)
    text = text.replace("\n", " ")
    if len(text) > MAX_CELL_WIDTH:
        text = text[: MAX_CELL_WIDTH - 3] + "..."
    return text


def render_table(items: Sequence[Dict[str, Any]], columns: Iterable[str]) -> str:
    """
    Render records as a fixed-width text table.

    Args:
        items: Records to render
        columns: Record keys to show, in order

    Returns:
        Table text (header, separator, one line per record)
    """
    columns = list(columns)
    rows: List[List[str]] = [[_cell(item.get(col)) for col in columns] for item in items]
    widths = [
        max([len(col)] + [len(row[i]) for row in rows])
        for i, col in enumerate(columns)
    ]

    lines = [" ".join(f"{col.upper():<{widths[i]}}" for i, col in enumerate(columns)).rstrip()]
    lines.append("-" * (sum(widths) + len(widths) - 1))
    for row in rows:
        lines.append(" ".join(f"{row[i]:<{widths[i]}}" for i in range(len(columns))).rstrip())
    return "\n".join(lines)


def render_page_footer(page: int, total_pages: int, total: int) -> str:
    return f"Page {page} of {max(total_pages, 1)} ({total} total)"


def render_json(data: Any, indent: Optional[int] = 2) -> str:
    """Serialize to JSON (pydantic models via model_dump)."""
    if hasattr(data, "model_dump"):
        data = data.model_dump()
    elif isinstance(data, list):
        data = [d.model_dump() if hasattr(d, "model_dump") else d for d in data]
    return json.dumps(data, indent=indent, ensure_ascii=False, default=str)
