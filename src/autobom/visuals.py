"""Optional cost breakdown chart for a generated BOM."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Dict, List, Tuple

try:  # pragma: no cover - optional dependency
    import matplotlib

    matplotlib.use("Agg")  # Ensure headless operation on CI/servers.
    import matplotlib.pyplot as plt
except Exception:  # pragma: no cover - matplotlib unavailable or misconfigured
    plt = None  # type: ignore

from .models import BOMResult
from .presenter import category_breakdown

COLORS = ["#3B82F6", "#10B981", "#F59E0B", "#EF4444", "#8B5CF6", "#EC4899", "#6366F1"]


def _write_figure(fig: "plt.Figure", path: Path, dpi: int = 140) -> Tuple[Path, bytes]:
    path.parent.mkdir(parents=True, exist_ok=True)
    buffer = io.BytesIO()
    fig.savefig(buffer, format="png", dpi=dpi, bbox_inches="tight")
    png_bytes = buffer.getvalue()
    with open(path, "wb") as handle:
        handle.write(png_bytes)
    plt.close(fig)
    return path, png_bytes


def emit_category_chart(
    result: BOMResult,
    output_dir: str | Path,
    *,
    filename: str = "cost_breakdown.png",
) -> Dict[str, object]:
    """Draw the per-category cost breakdown as a donut chart."""

    if plt is None:
        return {"charts": [], "skipped": ["matplotlib not available"]}

    breakdown = [(label, amount) for label, amount in category_breakdown(result.items) if amount > 0]
    if not breakdown:
        return {"charts": [], "skipped": ["cost breakdown skipped (no positive amounts)"]}

    charts: List[str] = []
    skipped: List[str] = []
    try:
        labels = [label for label, _ in breakdown]
        values = [amount for _, amount in breakdown]
        colors = [COLORS[index % len(COLORS)] for index in range(len(values))]
        fig, ax = plt.subplots(figsize=(7, 6), dpi=140)
        ax.pie(
            values,
            colors=colors,
            startangle=90,
            counterclock=False,
            wedgeprops={"width": 0.4, "edgecolor": "white"},
        )
        ax.set_title("Cost Breakdown")
        ax.axis("equal")
        ax.legend(
            [f"{label} ({result.currency} {value:,.2f})" for label, value in breakdown],
            loc="upper center",
            bbox_to_anchor=(0.5, -0.02),
            frameon=False,
            fontsize="small",
        )
        fig.tight_layout()
        path, _ = _write_figure(fig, Path(output_dir) / filename)
        charts.append(str(path))
    except Exception as exc:  # pragma: no cover - robust path
        skipped.append(f"failed to save {filename}: {exc}")

    return {"charts": charts, "skipped": skipped}


__all__ = ["emit_category_chart"]
