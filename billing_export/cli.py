"""Command line entry point for billing exports and label settings."""
import argparse
import json
import sys
from pathlib import Path
from typing import Dict, List, Optional

from billing_export.core.errors import ExportError
from billing_export.core.logging import configure_logging
from billing_export.core.models import ServicePlan, Surcharge
from billing_export.core.periods import DEFAULT_PERIOD, PERIOD_CHOICES
from billing_export.core.utils import get_config_value
from billing_export.ingestion.api import CrmApi
from billing_export.processing.labels import DEFAULT_LABEL_FILE, load_label_config, save_label_config
from billing_export.processing.pipeline import PAYMENT_FORMATS, ExportOptions, export_payments, run_export
from billing_export.processing.progress import DEFAULT_PROGRESS_FILE, FileProgressReporter, read_progress


def _label_file() -> Path:
    return Path(get_config_value("LABEL_MAPPING_FILE", str(DEFAULT_LABEL_FILE)))


def _progress_file() -> Path:
    return Path(get_config_value("EXPORT_PROGRESS_FILE", str(DEFAULT_PROGRESS_FILE)))


def _add_range_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--organization", type=int, help="Organization ID to export")
    parser.add_argument("--period", choices=PERIOD_CHOICES, default=DEFAULT_PERIOD)
    parser.add_argument("--date-from", help="Start date (YYYY-MM-DD) for --period custom")
    parser.add_argument("--date-to", help="End date (YYYY-MM-DD) for --period custom")
    parser.add_argument("--output-dir", type=Path, default=Path("output"))


def _parse_assignments(values: Optional[List[str]]) -> Dict[str, str]:
    """Turn ``ID=LABEL`` arguments into a mapping; ``ID=`` clears a label."""

    assignments: Dict[str, str] = {}
    for value in values or []:
        if "=" not in value:
            raise argparse.ArgumentTypeError(f"Expected ID=LABEL, got {value!r}")
        key, label = value.split("=", 1)
        assignments[key.strip()] = label
    return assignments


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI entry point."""

    parser = argparse.ArgumentParser(description="Export UCRM payments and sales for bookkeeping")
    subparsers = parser.add_subparsers(dest="command", required=True)

    export = subparsers.add_parser("export", help="Build the full ZIP bundle")
    _add_range_arguments(export)
    export.add_argument("--include-pdfs", action="store_true", help="Add invoice and credit note PDFs")

    payments = subparsers.add_parser("payments", help="Write only the payments report")
    _add_range_arguments(payments)
    payments.add_argument("--format", choices=PAYMENT_FORMATS, default="csv")

    labels = subparsers.add_parser("labels", help="Show or change accounting labels")
    labels_sub = labels.add_subparsers(dest="labels_command", required=True)
    labels_sub.add_parser("show", help="Print the saved label mapping")
    labels_sub.add_parser("list", help="List service plans and surcharges with their labels")
    set_parser = labels_sub.add_parser("set", help="Update labels")
    set_parser.add_argument("--internet-label", help="Default label for Internet plans")
    set_parser.add_argument("--plan", action="append", metavar="ID=LABEL", help="Label for a service plan")
    set_parser.add_argument("--surcharge", action="append", metavar="ID=LABEL", help="Label for a surcharge")

    subparsers.add_parser("progress", help="Print the progress of a running export")
    return parser


def _options(args: argparse.Namespace) -> ExportOptions:
    return ExportOptions(
        organization_id=args.organization,
        period=args.period,
        date_from=args.date_from,
        date_to=args.date_to,
        output_dir=args.output_dir,
        include_pdfs=getattr(args, "include_pdfs", False),
        label_file=_label_file(),
    )


def _run_labels(args: argparse.Namespace) -> None:
    path = _label_file()
    config = load_label_config(path)

    if args.labels_command == "set":
        config.update(
            internet_label=args.internet_label,
            plans=_parse_assignments(args.plan),
            surcharges=_parse_assignments(args.surcharge),
        )
        save_label_config(config, path)
        print(f"Saved {path}")
    elif args.labels_command == "list":
        api = CrmApi.from_env()
        for raw in api.get("service-plans"):
            plan = ServicePlan.from_api(raw)
            label = config.plans.get(str(plan.id)) or (config.internet_label if plan.is_internet else "")
            print(f"plan\t{plan.id}\t{plan.plan_type}\t{plan.name}\t{label}")
        for raw in api.get("surcharges"):
            surcharge = Surcharge.from_api(raw)
            print(f"surcharge\t{surcharge.id}\t\t{surcharge.name}\t{config.surcharges.get(str(surcharge.id), '')}")
    else:
        print(json.dumps(config.to_dict(), ensure_ascii=False, indent=2))


def main(argv: Optional[List[str]] = None) -> None:
    """Entrypoint for running exports from the command line."""

    configure_logging()
    args = build_parser().parse_args(argv)

    try:
        if args.command == "export":
            with FileProgressReporter(_progress_file()) as progress:
                result = run_export(CrmApi.from_env(), _options(args), progress=progress)
            print(f"Wrote {result.bundle_path}")
            if result.missing_numbers:
                print(f"Missing invoice numbers: {', '.join(result.missing_numbers)}")
        elif args.command == "payments":
            output_path = export_payments(CrmApi.from_env(), _options(args), fmt=args.format)
            print(f"Wrote {output_path}")
        elif args.command == "labels":
            _run_labels(args)
        else:
            state = read_progress(_progress_file())
            print(json.dumps(state) if state else "No export running")
    except (ExportError, argparse.ArgumentTypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
