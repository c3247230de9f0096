from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .cancellation import CancelToken
from .config import RuntimeConfig, load_config
from .encoding import attach_file
from .errors import ReadError
from .models import BOMResult, ProjectInput
from .pdf_export import write_pdf
from .pipeline import generate_bom
from .presenter import write_csv
from .providers import BOMProvider
from .settings import ProviderSettings, SettingsStore

LOGGER = logging.getLogger(__name__)

CSV_NAME = "BOM_Estimate.csv"
PDF_NAME = "Detailed_BOM.pdf"
JSON_NAME = "bom_result.json"


@dataclass
class EstimateOptions:
    rate_list_path: Optional[Path] = None
    rate_list_text: str = ""
    description: str = ""
    files: List[Path] = field(default_factory=list)
    output_dir: Optional[Path] = None
    provider: Optional[str] = None
    timeout: Optional[float] = None
    chart: bool = False


@dataclass
class EstimateOutcome:
    result: BOMResult
    artifacts: Dict[str, Path]


def write_artifacts(
    result: BOMResult,
    output_dir: Path,
    settings: Optional[ProviderSettings] = None,
    *,
    chart: bool = False,
) -> Dict[str, Path]:
    """Write the CSV, PDF and JSON views of ``result`` into ``output_dir``."""

    output_dir.mkdir(parents=True, exist_ok=True)
    artifacts = {
        "csv": write_csv(result.items, output_dir / CSV_NAME),
        "pdf": write_pdf(result, output_dir / PDF_NAME, settings),
    }
    json_path = output_dir / JSON_NAME
    json_path.write_text(json.dumps(result.to_dict(), indent=2), encoding="utf-8")
    artifacts["json"] = json_path
    if chart:
        from .visuals import emit_category_chart

        outcome = emit_category_chart(result, output_dir)
        for reason in outcome["skipped"]:
            LOGGER.info("Chart skipped: %s", reason)
        if outcome["charts"]:
            artifacts["chart"] = Path(outcome["charts"][0])
    return artifacts


def estimate(
    options: EstimateOptions,
    *,
    config: Optional[RuntimeConfig] = None,
    settings: Optional[ProviderSettings] = None,
    provider: Optional[BOMProvider] = None,
    cancel: Optional[CancelToken] = None,
) -> EstimateOutcome:
    """Programmatic interface to generate a BOM and write its artifacts.

    The artifact map has keys csv, pdf, json and, when requested and
    available, chart.
    """

    cfg = config or load_config(os.environ, options)
    current = settings or SettingsStore(cfg.settings_path).load()
    if options.provider:
        current = current.updated(provider=options.provider)

    rate_list = options.rate_list_text
    if options.rate_list_path:
        try:
            rate_list = Path(options.rate_list_path).read_text(encoding="utf-8")
        except OSError as exc:
            raise ReadError(f"Unable to read rate list {options.rate_list_path}: {exc}", path=options.rate_list_path) from exc

    project = ProjectInput(
        description=options.description,
        files=[attach_file(path) for path in options.files],
    )
    result = generate_bom(rate_list, project, current, cfg, cancel=cancel, provider=provider)
    output_dir = Path(options.output_dir) if options.output_dir else cfg.output_dir
    artifacts = write_artifacts(result, output_dir, current, chart=options.chart)
    return EstimateOutcome(result=result, artifacts=artifacts)


__all__ = ["EstimateOptions", "EstimateOutcome", "estimate", "write_artifacts"]
