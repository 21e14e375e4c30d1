"""Command-line interface for single and batch document extraction.

``extract`` prints the JSON report for one file; ``batch`` processes a
folder of documents and exports one CSV row per file.
"""

import argparse
import csv
import json
import sys
import time
from pathlib import Path

from docverify.ocr.document_processor import DocumentProcessor
from docverify.ocr.workspace import install_termination_hooks
from docverify.types import DocumentReport, DocumentType
from docverify.utils.config import AppConfig, load_config
from docverify.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_DOCUMENT_TYPES = [t.value for t in DocumentType]
_META_COLUMNS = [
    "filename",
    "status",
    "method",
    "page_count",
    "processed_page_count",
    "confidence",
    "confidence_level",
    "detected_institution",
    "processing_time_s",
    "error",
]


def _find_documents(input_dir: Path, extensions: list[str]) -> list[Path]:
    """Find all supported document files directly inside a directory.

    Args:
        input_dir: Directory to scan for documents.
        extensions: Accepted file extensions, including the dot.

    Returns:
        Sorted list of document file paths.
    """
    accepted = {e.lower() for e in extensions}
    return sorted(
        p for p in input_dir.iterdir() if p.is_file() and p.suffix.lower() in accepted
    )


def _report_row(report: DocumentReport, elapsed_s: float) -> dict[str, object]:
    """Flatten a report into one CSV row."""
    if not report.success or report.extraction is None or report.analysis is None:
        return {
            "filename": report.source_file,
            "status": "failed",
            "processing_time_s": round(elapsed_s, 2),
            "error": report.error,
        }

    row: dict[str, object] = {
        "filename": report.source_file,
        "status": "success",
        "method": str(report.extraction.method),
        "page_count": report.extraction.page_count,
        "processed_page_count": report.extraction.processed_page_count,
        "confidence": round(report.extraction.confidence, 2),
        "confidence_level": str(report.analysis.confidence_level),
        "detected_institution": report.analysis.detected_institution,
        "processing_time_s": round(elapsed_s, 2),
        "error": report.extraction.error,
    }
    row.update(report.analysis.detected_fields)
    return row


def process_folder(
    input_dir: Path,
    output_csv: Path,
    document_type: str,
    verbose: bool = False,
    config: AppConfig | None = None,
) -> dict[str, int]:
    """Process all documents in a folder and export results to CSV.

    Args:
        input_dir: Directory containing document files.
        output_csv: Path for the output CSV file.
        document_type: Declared type shared by every document.
        verbose: Whether to print per-file progress.
        config: Configuration to use; loaded from disk when omitted.

    Returns:
        Summary dict with total, successful, and failed counts.
    """
    config = config or load_config()
    files = _find_documents(input_dir, config.pipeline.supported_extensions)
    if not files:
        logger.warning("No documents found in %s", input_dir)
        return {"total": 0, "successful": 0, "failed": 0}

    logger.info("Found %d documents to process", len(files))

    rows: list[dict[str, object]] = []
    successful = 0

    with DocumentProcessor(config) as processor:
        for i, file_path in enumerate(files, 1):
            if verbose:
                print(f"Processing [{i}/{len(files)}]: {file_path.name}")

            start_time = time.time()
            report = processor.process(file_path, document_type)
            rows.append(_report_row(report, time.time() - start_time))
            if report.success:
                successful += 1

    _write_csv(rows, output_csv)
    logger.info("Results written to %s", output_csv)

    summary = {
        "total": len(files),
        "successful": successful,
        "failed": len(files) - successful,
    }
    _print_summary(summary, output_csv)
    return summary


def _write_csv(rows: list[dict[str, object]], output_path: Path) -> None:
    """Write result rows to a CSV file, meta columns first.

    Args:
        rows: List of row dictionaries.
        output_path: Path for the output CSV file.
    """
    if not rows:
        return

    all_keys: set[str] = set()
    for r in rows:
        all_keys.update(r.keys())

    field_columns = sorted(all_keys - set(_META_COLUMNS))
    columns = [c for c in _META_COLUMNS if c in all_keys] + field_columns

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=columns, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(rows)


def _print_summary(summary: dict[str, int], output_csv: Path) -> None:
    print(f"\n{'=' * 50}")
    print("Batch Processing Complete")
    print(f"{'=' * 50}")
    print(f"Total:      {summary['total']}")
    print(f"Successful: {summary['successful']}")
    print(f"Failed:     {summary['failed']}")
    print(f"Output:     {output_csv}")


def extract_single(
    file_path: Path, document_type: str, config: AppConfig | None = None
) -> dict[str, object]:
    """Process a single document and return the flattened report."""
    with DocumentProcessor(config or load_config()) as processor:
        report = processor.process(file_path, document_type)
    result = report.to_dict()
    result["filename"] = file_path.name
    return result


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="Proof document text extraction",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-c", "--config", type=Path, help="YAML configuration file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    batch_parser = subparsers.add_parser("batch", help="Process a folder of documents")
    batch_parser.add_argument(
        "input_dir", type=Path, help="Input directory with documents"
    )
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("results.csv"),
        help="Output CSV file (default: results.csv)",
    )
    batch_parser.add_argument(
        "-t", "--type", choices=_DOCUMENT_TYPES, required=True, dest="doc_type",
        help="Document type of every file in the folder",
    )
    batch_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose output"
    )

    single_parser = subparsers.add_parser("extract", help="Process a single document")
    single_parser.add_argument("file", type=Path, help="Document file to process")
    single_parser.add_argument(
        "-t", "--type", choices=_DOCUMENT_TYPES, required=True, dest="doc_type",
        help="Document type",
    )
    single_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    args = parser.parse_args(argv)

    config = load_config(args.config)
    setup_logging(config.log_level)

    if args.command == "batch":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        install_termination_hooks()
        process_folder(args.input_dir, args.output, args.doc_type, args.verbose, config)
    elif args.command == "extract":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        install_termination_hooks()
        result = extract_single(args.file, args.doc_type, config)
        output_str = json.dumps(result, indent=2, ensure_ascii=False)
        if args.output:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(output_str, encoding="utf-8")
            print(f"Output written to {args.output}")
        else:
            print(output_str)
        if not result["success"]:
            sys.exit(2)
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
