"""JSON exporter for variant results."""

import json
import os
import tempfile
from pathlib import Path

from loguru import logger

from variant_scout.models import VariantResult


def write_json_atomic(results: list[VariantResult], output_path: str) -> Path:
    """Write results as a JSON array atomically using temp file + rename.

    Args:
        results: Variant results to write
        output_path: Destination file path

    Returns:
        Path to the written file

    Raises:
        ValueError: If results list is empty
    """
    if not results:
        raise ValueError("Cannot export empty result list")

    output_dir = os.path.dirname(output_path)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)

    with tempfile.NamedTemporaryFile(
        mode="w", encoding="utf-8", dir=output_dir or None, delete=False, suffix=".tmp"
    ) as tmp_file:
        json.dump([r.to_dict() for r in results], tmp_file, indent=2, ensure_ascii=False)
        tmp_path = tmp_file.name

    try:
        os.replace(tmp_path, output_path)
    except OSError:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise

    logger.info(f"Wrote {len(results)} variants to {output_path}")
    return Path(output_path)
