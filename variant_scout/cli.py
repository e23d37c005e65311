"""Command-line interface for the variant finder.

Usage:
    python -m variant_scout.cli --url https://www.amazon.com/dp/B000000001
    python -m variant_scout.cli --url URL --long-desc "Light/Medium - 530" --output variants.xlsx
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from variant_scout.config import ScraperConfig, config_from_env
from variant_scout.errors import VariantScoutError
from variant_scout.exporters import export_results
from variant_scout.models import VariantResult
from variant_scout.service import VariantRequest, build_supervisor, error_payload


def setup_logging(verbose: bool = False) -> None:
    """Configure loguru logging.

    Args:
        verbose: Whether to enable debug logging
    """
    logger.remove()  # Remove default handler

    log_level = "DEBUG" if verbose else "INFO"
    log_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
        "<level>{message}</level>"
    )

    logger.add(sys.stderr, format=log_format, level=log_level, colorize=True)
    logger.add(
        "logs/variant_scout_{time:YYYY-MM-DD}.log",
        format=log_format,
        level="DEBUG",
        rotation="1 day",
        retention="30 days",
    )


def read_long_description(file_path: str) -> str:
    """Read a long description from a text file.

    Raises:
        FileNotFoundError: If file doesn't exist
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Description file not found: {file_path}")
    return path.read_text(encoding="utf-8").strip()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Find every matching variant of a product page",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Resolve variants and print JSON
  python -m variant_scout.cli --url https://www.amazon.com/dp/B000000001

  # Match against a canonical description and export to Excel
  python -m variant_scout.cli --url URL --long-desc "Light/Medium - 530" --output variants.xlsx

  # Watch the browser while it works
  python -m variant_scout.cli --url URL --headed --verbose
        """,
    )

    parser.add_argument("--url", "-u", required=True, help="Reference product page URL")

    desc_group = parser.add_mutually_exclusive_group()
    desc_group.add_argument("--long-desc", "-d", default="", help="Reference long description")
    desc_group.add_argument(
        "--long-desc-file", "-f", help="Path to file containing the long description"
    )

    parser.add_argument(
        "--output",
        "-o",
        help="Also export results to this file (.json, .csv or .xlsx)",
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Run the browser with a visible window",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose debug logging (includes match traces)",
    )
    return parser


async def find_variants(request: VariantRequest, config: ScraperConfig) -> list[VariantResult]:
    """Run the supervised variant search and always close the browser."""
    supervisor = build_supervisor(config)
    supervisor.browser_manager.install_signal_handlers()
    try:
        return await supervisor.run(request.url, request.long_description)
    finally:
        await supervisor.browser_manager.reset()


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        long_description = args.long_desc
        if args.long_desc_file:
            long_description = read_long_description(args.long_desc_file)

        config = config_from_env()
        if args.headed:
            config.headless = False

        request = VariantRequest.from_payload(
            {"url": args.url, "longDesc": long_description}
        )
        results = asyncio.run(find_variants(request, config))
    except (VariantScoutError, FileNotFoundError) as e:
        logger.error(f"Variant search failed: {e}")
        print(json.dumps(error_payload(e), indent=2))
        return 1
    except asyncio.CancelledError:
        logger.warning("Interrupted, browser closed")
        return 130

    print(json.dumps([result.to_dict() for result in results], indent=2, ensure_ascii=False))
    logger.success(f"Found {len(results)} products")

    if args.output:
        try:
            path = export_results(results, args.output)
            logger.info(f"Exported to {path}")
        except (ValueError, OSError) as e:
            logger.error(f"Export failed: {e}")
            return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
