"""Utility modules for reviewmatch."""

from .data_prep import export_to_json, load_json, prepare_export

__all__ = [
    "export_to_json",
    "load_json",
    "prepare_export",
]
