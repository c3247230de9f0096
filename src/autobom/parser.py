"""Turn raw provider text into a validated :class:`BOMResult`.

The top-level payload is checked against a Draft 7 JSON schema. Line items
are then validated one by one: numeric fields may arrive as numbers or as
numeric strings, and items without a usable quantity or rate are dropped and
reported in ``BOMResult.anomalies`` instead of leaking NaN into totals.
Amounts are always recomputed from quantity and rate and kept unrounded;
rounding to two decimals happens only where the BOM is displayed.
"""
from __future__ import annotations

import json
import logging
import math
import re
from typing import Any, Dict, List, Mapping, Optional, Tuple

from jsonschema import Draft7Validator

from .config import DEFAULT_CURRENCY
from .errors import MalformedResponseError
from .models import BOMLineItem, BOMMetadata, BOMResult

LOGGER = logging.getLogger(__name__)

AMOUNT_TOLERANCE = 0.01

BOM_PAYLOAD_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["items"],
    "properties": {
        "metadata": {"type": ["object", "null"]},
        "items": {"type": "array", "items": {"type": "object"}},
        "totalCost": {"type": ["number", "string", "null"]},
        "currency": {"type": ["string", "null"]},
        "notes": {"type": ["string", "null"]},
    },
}

_VALIDATOR = Draft7Validator(BOM_PAYLOAD_SCHEMA)

_METADATA_KEYS = {
    "projectName": "project_name",
    "drawingNumber": "drawing_number",
    "client": "client",
    "date": "date",
    "totalWeight": "total_weight",
}
_NUMERIC_NOISE = re.compile(r"[,\s$₹]|INR|Rs\.?", re.IGNORECASE)


def _to_number(value: object) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            numeric = float(value)
        except (OverflowError, ValueError):
            return None
    else:
        text = _NUMERIC_NOISE.sub("", str(value))
        if not text:
            return None
        try:
            numeric = float(text)
        except ValueError:
            return None
    if math.isnan(numeric) or math.isinf(numeric):
        return None
    return numeric


def _to_text(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _parse_metadata(raw: object) -> BOMMetadata:
    if not isinstance(raw, Mapping):
        return BOMMetadata()
    values = {}
    for key, attr in _METADATA_KEYS.items():
        text = _to_text(raw.get(key))
        values[attr] = text or None
    return BOMMetadata(**values)


def _parse_item(index: int, raw: Mapping[str, Any]) -> Tuple[Optional[BOMLineItem], List[str]]:
    label = _to_text(raw.get("item")) or f"item #{index + 1}"
    notes: List[str] = []

    quantity = _to_number(raw.get("quantity"))
    rate = _to_number(raw.get("rate"))
    missing = [name for name, value in (("quantity", quantity), ("rate", rate)) if value is None]
    if missing:
        notes.append(f"Skipped {label}: missing or non-numeric {', '.join(missing)}")
        return None, notes

    amount = quantity * rate
    if not math.isfinite(amount):
        notes.append(f"Skipped {label}: quantity x rate is out of range")
        return None, notes
    reported_amount = _to_number(raw.get("amount"))
    if reported_amount is None:
        notes.append(f"{label}: amount missing; computed {amount:.2f}")
    elif abs(reported_amount - amount) > AMOUNT_TOLERANCE:
        notes.append(f"{label}: reported amount {reported_amount:.2f} replaced with quantity x rate = {amount:.2f}")

    item = BOMLineItem(
        category=_to_text(raw.get("category")),
        item=_to_text(raw.get("item")),
        description=_to_text(raw.get("description")),
        unit=_to_text(raw.get("unit")),
        quantity=quantity,
        rate=rate,
        amount=amount,
    )
    return item, notes


def parse_bom_response(raw_text: str) -> BOMResult:
    """Parse ``raw_text`` from a provider into a :class:`BOMResult`."""

    if raw_text is None or not str(raw_text).strip():
        raise MalformedResponseError("Provider response is empty", raw_text=raw_text)
    try:
        payload = json.loads(raw_text)
    except (json.JSONDecodeError, TypeError, ValueError, RecursionError) as exc:
        raise MalformedResponseError(f"Provider response is not valid JSON: {exc}", raw_text=raw_text) from exc

    errors = sorted(_VALIDATOR.iter_errors(payload), key=lambda err: list(err.path))
    if errors:
        details = "; ".join(err.message for err in errors[:3])
        raise MalformedResponseError(f"Provider response does not match the BOM shape: {details}", raw_text=raw_text)

    items: List[BOMLineItem] = []
    anomalies: List[str] = []
    for index, raw_item in enumerate(payload["items"]):
        item, notes = _parse_item(index, raw_item)
        anomalies.extend(notes)
        if item is not None:
            items.append(item)

    total = float(sum(item.amount for item in items))
    reported_total = _to_number(payload.get("totalCost"))
    if reported_total is not None and abs(reported_total - total) > AMOUNT_TOLERANCE:
        anomalies.append(f"Reported total {reported_total:.2f} differs from line item sum {total:.2f}")

    for note in anomalies:
        LOGGER.warning("BOM response: %s", note)

    return BOMResult(
        metadata=_parse_metadata(payload.get("metadata")),
        items=items,
        total_cost=total,
        currency=_to_text(payload.get("currency")) or DEFAULT_CURRENCY,
        notes=_to_text(payload.get("notes")) or None,
        reported_total_cost=reported_total,
        anomalies=anomalies,
    )


__all__ = ["BOM_PAYLOAD_SCHEMA", "parse_bom_response"]
