#!/usr/bin/env python
"""
Command-line interface for the PDF structure reconstruction pipeline.

Usage:
    python -m pdfxml.cli --input <pdf_or_tokens_json> --output <output_dir> [options]

Examples:
    # Convert a PDF to XML
    python -m pdfxml.cli --input document.pdf --output ./output

    # Convert a token dump to every format using four worker threads
    python -m pdfxml.cli --input tokens.json --output ./output --format all --workers 4
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("pdfxml")


def setup_argparser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        description="PDF Structure Reconstruction - infer paragraphs, tables and lists and export XML",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Convert a PDF to XML:
    pdfxml --input document.pdf --output ./output

  Export every format:
    pdfxml --input document.pdf --output ./output --format all

  Process only specific pages, keep going when a page fails:
    pdfxml --input document.pdf --output ./output --pages 1-5 --isolate-page-failures
        """
    )

    # Required arguments
    parser.add_argument(
        "--input", "-i",
        required=True,
        help="Input PDF file or JSON token dump"
    )

    parser.add_argument(
        "--output", "-o",
        required=True,
        help="Output directory for generated files"
    )

    # Optional arguments
    parser.add_argument(
        "--format", "-f",
        nargs="+",
        default=["xml"],
        choices=["xml", "json", "markdown", "all"],
        help="Output format(s) (default: xml)"
    )

    parser.add_argument(
        "--name",
        default=None,
        help="Document name written to the output (default: input file stem)"
    )

    parser.add_argument(
        "--created-at",
        default=None,
        help="Fixed ISO-8601 creation timestamp, for reproducible output (default: now, UTC)"
    )

    parser.add_argument(
        "--pages",
        type=str,
        default=None,
        help="Page range to process, e.g., '1-5' or '1,3,5' (default: all)"
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of worker threads for page processing (default: 1)"
    )

    parser.add_argument(
        "--isolate-page-failures",
        action="store_true",
        help="Mark failing pages as failed instead of aborting the conversion"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress non-error output"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 1.0.0"
    )

    return parser


def parse_page_range(page_str: str, max_pages: int) -> List[int]:
    """Parse page range string to list of page numbers."""
    pages = []

    for part in page_str.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            start, end = part.split("-")
            start = max(int(start), 1)
            end = min(int(end), max_pages)
            pages.extend(range(start, end + 1))
        else:
            page = int(part)
            if 1 <= page <= max_pages:
                pages.append(page)

    return sorted(set(pages))


def run_pipeline(args) -> int:
    """Run the structure reconstruction pipeline."""
    from pdfxml.config import get_config
    from pdfxml.exceptions import PdfXmlError
    from pdfxml.utils.io import load_pdf_tokens, load_token_pages, detect_input_type, ensure_dir
    from pdfxml.utils.io import ProcessingProgress
    from pdfxml.utils.assembler import DocumentAssembler
    from pdfxml.utils.export import DocumentExporter

    start_time = time.time()

    config = get_config()
    if config.debug_mode:
        logger.setLevel(logging.DEBUG)
    if args.workers is not None:
        config.max_workers = max(1, args.workers)
    if args.isolate_page_failures:
        config.isolate_page_failures = True

    input_path = Path(args.input)
    config.document_name = args.name or input_path.stem
    if args.created_at:
        config.created_at = args.created_at

    output_dir = Path(args.output)
    ensure_dir(output_dir)

    progress = ProcessingProgress()
    if args.verbose:
        progress.subscribe(lambda fraction: logger.debug(f"Progress: {fraction:.0%}"))

    # Detect input type and load tokens
    input_type = detect_input_type(input_path)
    logger.info(f"Input type detected: {input_type}")

    try:
        if input_type == "pdf":
            pages = load_pdf_tokens(input_path, config=config.extraction, progress=progress)
        elif input_type == "tokens":
            pages = load_token_pages(input_path)
        else:
            logger.error(f"Unsupported input: {input_path}")
            return 1
    except (PdfXmlError, FileNotFoundError) as e:
        logger.error(f"Token extraction failed: {e}")
        return 1

    logger.info(f"Loaded {len(pages)} page(s)")

    # Filter pages if specified
    if args.pages:
        page_numbers = parse_page_range(args.pages, len(pages))
        pages = [p for i, p in enumerate(pages, 1) if i in page_numbers]
        logger.info(f"Processing pages: {page_numbers}")

    assembler = DocumentAssembler(config)

    logger.info("Processing document...")
    try:
        document = assembler.convert(pages, progress=progress)
    except PdfXmlError as e:
        logger.error(f"Processing failed: {e}")
        return 1

    exporter = DocumentExporter(output_dir, input_path.stem)
    export_results = exporter.export(document, args.format)
    for fmt, path in export_results.items():
        logger.info(f"Exported {fmt}: {path}")

    # Print summary
    elapsed = time.time() - start_time
    metrics = document.metrics

    if not args.quiet:
        print("\n" + "=" * 60)
        print("STRUCTURE RECONSTRUCTION COMPLETE")
        print("=" * 60)
        print(f"Source: {input_path}")
        print(f"Output: {output_dir}")
        print(f"Pages processed: {metrics.pages_processed} (failed: {metrics.pages_failed})")
        print(f"Processing time: {elapsed:.2f}s")
        print()
        print("Blocks:")
        print(f"  Paragraphs: {metrics.paragraphs_total}")
        print(f"  Tables: {metrics.tables_total} ({metrics.table_rows_total} rows)")
        print(f"  Lists: {metrics.lists_total} ({metrics.list_items_total} items)")
        print("=" * 60)

    return 0


def main():
    """Main entry point."""
    parser = setup_argparser()
    args = parser.parse_args()

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    elif args.quiet:
        logging.getLogger().setLevel(logging.ERROR)

    try:
        exit_code = run_pipeline(args)
        sys.exit(exit_code)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)


if __name__ == "__main__":
    main()
