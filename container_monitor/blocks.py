from datetime import datetime
from typing import Any, Dict, List, Optional

from container_monitor.data import ContainerStat
from container_monitor.helper import format_decimal, utc_timestamp

Block = Dict[str, Any]

TITLE = "Container Stats"
MARKER = "Managed by simple-container-monitor"
TABLE_HEADER = ["Container", "CPU (%)", "RAM (MB)"]


def text_item(content: str, **annotations: Any) -> Dict[str, Any]:
    item: Dict[str, Any] = {"type": "text", "text": {"content": content}}
    if annotations:
        item["annotations"] = annotations
    return item


def paragraph_block(content: str, **annotations: Any) -> Block:
    return {
        "object": "block",
        "type": "paragraph",
        "paragraph": {"rich_text": [text_item(content, **annotations)]},
    }


def table_row(cells: List[str]) -> Block:
    return {
        "type": "table_row",
        "table_row": {"cells": [[text_item(cell)] for cell in cells]},
    }


def stats_table_block(stats: List[ContainerStat]) -> Block:
    rows = [table_row(TABLE_HEADER)] + [
        table_row(
            [
                stat.name,
                format_decimal(stat.cpu_percent),
                format_decimal(stat.memory_mb),
            ]
        )
        for stat in stats
    ]

    return {
        "object": "block",
        "type": "table",
        "table": {
            "table_width": len(TABLE_HEADER),
            "has_column_header": True,
            "has_row_header": False,
            "children": rows,
        },
    }


def render_stats_block(
    stats: List[ContainerStat], now: Optional[datetime] = None
) -> Block:
    """Render the stats snapshot as a single quote block.

    Layout of the quote:
    - Bold title as the quote's own text
    - `Updated: <timestamp>` paragraph
    - Container / CPU (%) / RAM (MB) table
    - Gray italic marker paragraph identifying blocks owned by this monitor

    Args:
        stats (List[ContainerStat]): Stats to render, possibly empty
        now (Optional[datetime]): Time of the snapshot, defaults to the current UTC time

    Returns:
        Block: A block tree ready to be appended as a page child
    """
    return {
        "object": "block",
        "type": "quote",
        "quote": {
            "rich_text": [text_item(TITLE, bold=True)],
            "children": [
                paragraph_block(f"Updated: {utc_timestamp(now)}"),
                stats_table_block(stats),
                paragraph_block(MARKER, color="gray", bold=False, italic=True),
            ],
        },
    }


def paragraph_text(block: Block) -> str:
    if block.get("type") != "paragraph":
        return ""

    rich_text = (block.get("paragraph") or {}).get("rich_text") or []
    return "".join(
        (item.get("text") or {}).get("content") or "" for item in rich_text
    )


def has_marker(children: List[Block]) -> bool:
    return any(MARKER in paragraph_text(child) for child in children)
