"""Export pose datasets to JSON format."""

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from posestudio.core.dataset import Dataset

logger = logging.getLogger(__name__)


def dataset_to_json(dataset: "Dataset", indent: int = 2) -> str:
    """
    Serialize a dataset as a JSON array of ``{"data": [...], "label": ...}``.

    An empty dataset serializes as ``[]``.
    """
    return json.dumps(dataset.to_list(), indent=indent)


def export_json(dataset: "Dataset", output_path: Path) -> Path:
    """
    Export a dataset to a JSON file.

    Args:
        dataset: Samples to export
        output_path: Output JSON file path

    Returns:
        The path written
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w") as f:
        f.write(dataset_to_json(dataset))

    logger.info(f"Exported {len(dataset)} samples to {output_path}")
    return output_path
