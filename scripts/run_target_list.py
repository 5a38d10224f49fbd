"""
Build a target list workbook and PDF from a company export on the CLI.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from app.domain.target_list import ReportConfig
from app.ingestion.table_parser import TableParseError, TableParser
from app.logging_utils import configure_logging
from app.rendering.common import RenderError, build_output_filename
from app.rendering.document import DocumentRenderer
from app.rendering.workbook import WorkbookRenderer
from app.services.enrichment_service import get_enrichment_service

logger = logging.getLogger(__name__)


def _print_summary_progress(index: int, total: int, company_name: str) -> None:
    print(f"[{index}/{total}] Summarizing {company_name or '(unnamed)'}", file=sys.stderr)


def _print_logo_progress(completed: int, total: int) -> None:
    print(f"Logos {completed}/{total}", file=sys.stderr)


def main() -> int:
    parser = argparse.ArgumentParser(description="Generate an enriched target list.")
    parser.add_argument("input", type=Path, help="Sourcescrub export (.csv or .xlsx).")
    parser.add_argument("--title", required=True, help="Report title used in outputs and file names.")
    parser.add_argument(
        "--format",
        dest="output_format",
        choices=("detailed", "minimal"),
        default="detailed",
        help="Target List column layout.",
    )
    parser.add_argument("--company-name", default=None, help="Optional client name for the title block.")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("."),
        help="Directory for the generated files.",
    )
    parser.add_argument("--no-pdf", action="store_true", help="Skip the PDF document.")
    args = parser.parse_args()

    configure_logging()

    try:
        parsed = TableParser().parse(args.input.read_bytes(), args.input.name)
    except (OSError, TableParseError) as exc:
        print(f"Unable to read {args.input}: {exc}", file=sys.stderr)
        return 2

    for warning in parsed.validation.warnings:
        print(f"Warning: {warning}", file=sys.stderr)
    if not parsed.validation.is_valid:
        for error in parsed.validation.errors:
            print(f"Error: {error}", file=sys.stderr)
        return 2

    result = get_enrichment_service().enrich(
        parsed.rows,
        on_summary_progress=_print_summary_progress,
        on_logo_progress=_print_logo_progress,
    )

    config = ReportConfig(
        report_title=args.title,
        output_format=args.output_format,
        company_name=args.company_name,
    )
    args.output_dir.mkdir(parents=True, exist_ok=True)
    outputs: list[str] = []
    try:
        workbook_path = args.output_dir / build_output_filename(args.title, "xlsx")
        workbook_path.write_bytes(
            WorkbookRenderer().render(
                config=config,
                source_headers=parsed.headers,
                source_rows=parsed.rows,
                companies=result.companies,
            )
        )
        outputs.append(str(workbook_path))

        if not args.no_pdf:
            document_path = args.output_dir / build_output_filename(args.title, "pdf")
            document_path.write_bytes(
                DocumentRenderer().render(config=config, companies=result.companies)
            )
            outputs.append(str(document_path))
    except RenderError as exc:
        logger.error("Rendering failed: %s", exc)
        return 1

    stats = result.stats
    payload = {
        "outputs": outputs,
        "total": stats.total,
        "excellent": stats.excellent,
        "good": stats.good,
        "needs_review": stats.needs_review,
        "fallbacks": stats.fallbacks,
        "average_retries": round(stats.average_retries, 2),
        "logos_by_source": stats.logos_by_source,
    }
    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
