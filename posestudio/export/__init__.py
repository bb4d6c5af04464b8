"""Dataset export."""

from posestudio.export.json_export import dataset_to_json, export_json

__all__ = ["dataset_to_json", "export_json"]
