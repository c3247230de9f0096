"""Local figures and CSV export for a generated BOM."""
from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from typing import List, Sequence, Tuple

import pandas as pd

from .models import BOMLineItem, BOMResult, BOMSummary

LOGGER = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"
CSV_HEADERS: Sequence[str] = ("Category", "Item", "Description", "Quantity", "Unit", "Rate", "Amount")


def total_cost(items: Sequence[BOMLineItem]) -> float:
    """Sum of line item amounts, recomputed locally rather than trusting the model."""

    return float(sum(item.amount for item in items))


def category_breakdown(items: Sequence[BOMLineItem]) -> List[Tuple[str, float]]:
    """Return ``(category, amount)`` pairs sorted by amount, largest first.

    Items without a category label are grouped under ``"Uncategorized"``.
    Ties keep the order in which the categories first appear.
    """

    if not items:
        return []
    frame = pd.DataFrame(
        {
            "CATEGORY": [(item.category or "").strip() or UNCATEGORIZED for item in items],
            "AMOUNT": [float(item.amount) for item in items],
        }
    )
    grouped = frame.groupby("CATEGORY", sort=False)["AMOUNT"].sum()
    grouped = grouped.sort_values(ascending=False, kind="mergesort")
    return [(str(label), float(amount)) for label, amount in grouped.items()]


def summarize(result: BOMResult) -> BOMSummary:
    return BOMSummary(
        total_cost=total_cost(result.items),
        category_breakdown=category_breakdown(result.items),
        item_count=len(result.items),
        currency=result.currency,
    )


def _csv_number(value: float) -> float | int:
    number = float(value)
    return int(number) if number.is_integer() else number


def render_csv(items: Sequence[BOMLineItem]) -> str:
    """Serialise ``items`` with quoted text columns and bare numeric columns.

    Whole numbers are written without a decimal part and amounts are rounded
    to two decimals.
    """

    buffer = io.StringIO()
    buffer.write(",".join(CSV_HEADERS) + "\n")
    writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    for item in items:
        writer.writerow(
            [
                item.category,
                item.item,
                item.description,
                _csv_number(item.quantity),
                item.unit,
                _csv_number(item.rate),
                _csv_number(round(item.amount, 2)),
            ]
        )
    return buffer.getvalue()


def write_csv(items: Sequence[BOMLineItem], path: str | Path) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(render_csv(items), encoding="utf-8")
    LOGGER.debug("Wrote %d BOM row(s) to %s", len(items), target)
    return target


__all__ = [
    "CSV_HEADERS",
    "UNCATEGORIZED",
    "category_breakdown",
    "render_csv",
    "summarize",
    "total_cost",
    "write_csv",
]
