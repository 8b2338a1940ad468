"""Data preparation for export."""

import datetime
import json
from typing import Any, Dict

from ..core.constants import FileConstants


def prepare_export(kind: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Wrap an operation result for JSON export."""
    export_data = dict(payload)
    export_data["metadata"] = {
        "kind": kind,
        "export_timestamp": None,  # Will be set by export_to_json
        "version": FileConstants.EXPORT_VERSION,
    }
    return export_data


def load_json(filename: str) -> Any:
    """Read a JSON document written by ``export_to_json`` or by hand."""
    with open(filename, "r", encoding="utf-8") as f:
        return json.load(f)


def export_to_json(data: Dict[str, Any], filename: str) -> None:
    """Export data to JSON file."""
    data.setdefault("metadata", {})["export_timestamp"] = datetime.datetime.now().isoformat()

    with open(filename, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
