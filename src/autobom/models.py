from __future__ import annotations

import base64
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class AttachedFile:
    """A drawing or document the user attached to the project."""

    path: Path
    mime_type: str

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")


@dataclass(frozen=True)
class EncodedFile:
    """Base64 payload of an attached file, tagged with its MIME type."""

    mime_type: str
    data: str
    name: str = ""

    def raw_bytes(self) -> bytes:
        return base64.b64decode(self.data)

    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


@dataclass
class ProjectInput:
    """Free-text scope notes plus the ordered list of attached files."""

    description: str = ""
    files: List[AttachedFile] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.description.strip() and not self.files


@dataclass(frozen=True)
class BOMMetadata:
    project_name: Optional[str] = None
    drawing_number: Optional[str] = None
    client: Optional[str] = None
    date: Optional[str] = None
    total_weight: Optional[str] = None

    def fields(self) -> List[Tuple[str, str]]:
        """Return ``(label, value)`` pairs for the fields that are present."""

        pairs = [
            ("Project", self.project_name),
            ("Drawing No", self.drawing_number),
            ("Client", self.client),
            ("Date", self.date),
            ("Weight", self.total_weight),
        ]
        return [(label, value) for label, value in pairs if value]

    def to_dict(self) -> Dict[str, str]:
        data = {
            "projectName": self.project_name,
            "drawingNumber": self.drawing_number,
            "client": self.client,
            "date": self.date,
            "totalWeight": self.total_weight,
        }
        return {key: value for key, value in data.items() if value is not None}


@dataclass(frozen=True)
class BOMLineItem:
    """One priced row of the bill of materials."""

    category: str
    item: str
    description: str
    unit: str
    quantity: float
    rate: float
    amount: float

    def to_dict(self) -> Dict[str, object]:
        return {
            "category": self.category,
            "item": self.item,
            "description": self.description,
            "unit": self.unit,
            "quantity": self.quantity,
            "rate": self.rate,
            "amount": self.amount,
        }


@dataclass
class BOMResult:
    """Parsed provider output held for one generate/view/reset cycle."""

    metadata: BOMMetadata
    items: List[BOMLineItem]
    total_cost: float
    currency: str = "INR"
    notes: Optional[str] = None
    reported_total_cost: Optional[float] = None
    anomalies: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {
            "metadata": self.metadata.to_dict(),
            "items": [item.to_dict() for item in self.items],
            "totalCost": self.total_cost,
            "currency": self.currency,
        }
        if self.notes:
            data["notes"] = self.notes
        return data


@dataclass(frozen=True)
class BOMSummary:
    """Figures derived locally from the line items."""

    total_cost: float
    category_breakdown: List[Tuple[str, float]]
    item_count: int
    currency: str = "INR"


__all__ = [
    "AttachedFile",
    "BOMLineItem",
    "BOMMetadata",
    "BOMResult",
    "BOMSummary",
    "EncodedFile",
    "ProjectInput",
]
