import argparse
import logging
import os
from pathlib import Path
from typing import Dict, Optional, Sequence

from dotenv import load_dotenv

from .api import EstimateOptions, estimate
from .config import load_config as load_runtime_config
from .errors import BOMError, ReadError, user_message
from .reporting import make_summary_text
from .settings import PROVIDERS, ProviderSettings, SettingsStore, mask_secret

logger = logging.getLogger(__name__)

# Command line names for the persisted settings fields.
SETTING_FIELDS: Dict[str, str] = {
    "provider": "provider",
    "gemini-api-key": "gemini_api_key",
    "groq-api-key": "groq_api_key",
    "groq-model": "groq_model",
    "business-name": "business_name",
    "business-address": "business_address",
    "business-contact": "business_contact",
}
SECRET_FIELDS = {"gemini_api_key", "groq_api_key"}


def _read_description(args: argparse.Namespace) -> str:
    parts = []
    if args.description:
        parts.append(args.description)
    if args.description_file:
        try:
            parts.append(Path(args.description_file).read_text(encoding="utf-8"))
        except OSError as exc:
            raise ReadError(f"Unable to read description {args.description_file}: {exc}", path=args.description_file) from exc
    return "\n".join(part.strip() for part in parts if part.strip())


def run_generate(args: argparse.Namespace) -> int:
    runtime_cfg = load_runtime_config(os.environ, args)
    settings = SettingsStore(runtime_cfg.settings_path).load()
    try:
        description = _read_description(args)
    except ReadError as exc:
        logger.error("Error: %s", user_message(exc))
        return 2
    options = EstimateOptions(
        rate_list_path=Path(args.rate_list),
        description=description,
        files=[Path(path) for path in args.file or []],
        output_dir=runtime_cfg.output_dir,
        provider=args.provider,
        timeout=runtime_cfg.timeout_seconds,
        chart=args.chart,
    )
    logger.info("Generating BOM with %s", options.provider or settings.provider)
    try:
        outcome = estimate(options, config=runtime_cfg, settings=settings)
    except BOMError as exc:
        logger.debug("Generation failed", exc_info=True)
        logger.error("Error: %s", user_message(exc))
        return 2
    except KeyboardInterrupt:
        logger.error("Generation cancelled.")
        return 130

    logger.info("")
    logger.info(make_summary_text(outcome.result))
    logger.info("Outputs written:")
    for path in outcome.artifacts.values():
        logger.info(" - %s", path)
    return 0


def _show_settings(settings: ProviderSettings, path: Path) -> None:
    logger.info("Settings file: %s", path)
    for name, attr in SETTING_FIELDS.items():
        value = getattr(settings, attr)
        if attr in SECRET_FIELDS:
            value = mask_secret(value) or "(not set)"
        logger.info("  %-17s %s", name, value if value != "" else "(not set)")


def run_settings(args: argparse.Namespace) -> int:
    runtime_cfg = load_runtime_config(os.environ, args)
    store = SettingsStore(runtime_cfg.settings_path)
    settings = store.load()
    if args.settings_command == "set":
        changes: Dict[str, str] = {}
        for assignment in args.assignments:
            if "=" not in assignment:
                logger.error("Expected KEY=VALUE, got %r", assignment)
                return 2
            key, value = assignment.split("=", 1)
            attr = SETTING_FIELDS.get(key.strip())
            if attr is None:
                logger.error("Unknown setting %r; expected one of %s", key, ", ".join(SETTING_FIELDS))
                return 2
            changes[attr] = value.strip()
        try:
            settings = settings.updated(**changes)
        except ValueError as exc:
            logger.error("%s", exc)
            return 2
        store.save(settings)
        logger.info("Settings saved.")
    _show_settings(settings, store.path)
    return 0


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate a priced Bill of Materials from drawings and a rate list")
    parser.add_argument("--settings-path", help="Path to the persisted settings JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Increase logging verbosity")
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Generate a BOM and export CSV/PDF")
    generate.add_argument("--rate-list", required=True, help="Text file with the rate list (name, price, unit per line)")
    generate.add_argument("--description", help="Project scope / notes")
    generate.add_argument("--description-file", help="Text file with the project scope / notes")
    generate.add_argument("--file", action="append", help="Drawing image or PDF to attach (repeatable)")
    generate.add_argument("--provider", choices=PROVIDERS, help="Override the provider stored in settings")
    generate.add_argument("--output-dir", help="Directory for generated outputs")
    generate.add_argument("--timeout", type=float, help="Seconds to wait for the provider before giving up")
    generate.add_argument("--currency", help="Currency code requested from the provider")
    generate.add_argument("--chart", action="store_true", help="Also render the cost breakdown chart")
    generate.set_defaults(handler=run_generate)

    settings = subparsers.add_parser("settings", help="Show or update stored settings")
    settings_sub = settings.add_subparsers(dest="settings_command", required=True)
    settings_sub.add_parser("show", help="Print the stored settings with keys masked")
    setter = settings_sub.add_parser("set", help="Update settings, e.g. provider=groq groq-api-key=...")
    setter.add_argument("assignments", nargs="+", metavar="KEY=VALUE")
    settings.set_defaults(handler=run_settings)
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    runtime_cfg = load_runtime_config(os.environ, args)
    log_level = logging.DEBUG if runtime_cfg.verbose else logging.INFO
    logging.basicConfig(level=log_level, format="%(message)s")
    try:
        return args.handler(args)
    except Exception:  # pragma: no cover
        logger.exception("Fatal error during BOM generation")
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
