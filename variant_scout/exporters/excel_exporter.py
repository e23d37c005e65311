"""Spreadsheet exporters for variant results."""

from pathlib import Path
from typing import Any

import pandas as pd
from loguru import logger

from variant_scout.models import VariantResult

MAX_COLUMN_WIDTH = 50


def _results_to_frame(results: list[VariantResult]) -> pd.DataFrame:
    if not results:
        raise ValueError("Cannot export empty result list")
    return pd.DataFrame([_result_to_row(result) for result in results])


def export_to_excel(
    results: list[VariantResult], output_path: str = "output/variants.xlsx"
) -> Path:
    """Export variant results to Excel XLSX format.

    Args:
        results: Variant results to export
        output_path: Path to output XLSX file

    Returns:
        Path to created XLSX file

    Raises:
        ValueError: If results list is empty
    """
    df = _results_to_frame(results)

    output_file = Path(output_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    with pd.ExcelWriter(output_file, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name="Variants", index=False)

        # Auto-adjust column widths
        worksheet = writer.sheets["Variants"]
        for column in worksheet.columns:
            max_length = max(len(str(cell.value or "")) for cell in column)
            worksheet.column_dimensions[column[0].column_letter].width = min(
                max_length + 2, MAX_COLUMN_WIDTH
            )

    logger.info(f"Exported {len(results)} variants to {output_file}")
    return output_file


def export_to_csv(
    results: list[VariantResult], output_path: str = "output/variants.csv"
) -> Path:
    """Export variant results to CSV.

    Raises:
        ValueError: If results list is empty
    """
    df = _results_to_frame(results)

    output_file = Path(output_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(output_file, index=False, encoding="utf-8")

    logger.info(f"Exported {len(results)} variants to {output_file}")
    return output_file


def _result_to_row(result: VariantResult) -> dict[str, Any]:
    return {
        "ASIN": result.identifier,
        "Title": result.title,
        "Shade": result.shade,
        "URL": result.url,
        "Pack Quantity": result.pack_quantity,
        "Main Product": "Yes" if result.is_main else "No",
        "Notes": result.note,
    }
