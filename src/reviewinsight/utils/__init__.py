"""Utility modules for ReviewInsight."""

from .data_prep import export_to_json, prepare_export, load_classified_reviews

__all__ = [
    "export_to_json",
    "prepare_export",
    "load_classified_reviews",
]
