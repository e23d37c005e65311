"""Result exporters for the CLI --output flag, selected by file extension."""

from pathlib import Path

from variant_scout.exporters.excel_exporter import export_to_csv, export_to_excel
from variant_scout.exporters.json_exporter import write_json_atomic
from variant_scout.models import VariantResult

EXPORTERS = {
    ".json": write_json_atomic,
    ".csv": export_to_csv,
    ".xlsx": export_to_excel,
}


def export_results(results: list[VariantResult], output_path: str) -> Path:
    """Export results with the exporter matching the file extension.

    Raises:
        ValueError: If the extension is not supported or results is empty
    """
    suffix = Path(output_path).suffix.lower()
    if suffix not in EXPORTERS:
        available = ", ".join(EXPORTERS)
        raise ValueError(f"Unsupported output format: {suffix or output_path}. Available: {available}")
    return EXPORTERS[suffix](results, output_path)
