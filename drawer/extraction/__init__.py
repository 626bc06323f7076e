"""Extraction normalization package."""

from drawer.extraction.normalizer import (
    ExtractionError,
    ExtractionFormatError,
    ExtractionParseError,
    find_json_span,
    normalize_extraction,
    normalize_with_report,
    parse_extraction_payload,
)

__all__ = [
    "ExtractionError",
    "ExtractionFormatError",
    "ExtractionParseError",
    "find_json_span",
    "normalize_extraction",
    "normalize_with_report",
    "parse_extraction_payload",
]
