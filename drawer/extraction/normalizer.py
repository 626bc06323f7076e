"""
Extraction Normalizer

Turns the free text returned by the extraction model into a fully
normalized ExtractedDocument.

There are exactly two ways to fail, and both mean the response could not
be read as JSON at all:

- ExtractionFormatError: no {...} span in the text
- ExtractionParseError: the span is not a valid JSON object

Everything else is field-local and is absorbed by ExtractedDocument's
coercion rules. Fields that fell back to defaults are logged, never raised.
"""

import datetime as dt
import json
from typing import Any, Optional

from drawer.audit import get_logger
from drawer.models.document import ExtractedDocument

log = get_logger(__name__)


class ExtractionError(Exception):
    """Base exception for extraction failures."""
    pass


class ExtractionFormatError(ExtractionError):
    """The model response contains no JSON object."""
    pass


class ExtractionParseError(ExtractionError):
    """The JSON object in the model response is malformed."""
    pass


def find_json_span(text: str) -> Optional[str]:
    """
    Return the text from the first "{" to the last "}", or None.

    Models often wrap the object in prose or markdown fences; the outermost
    braces are taken as the object.
    """
    start = text.find("{")
    end = text.rfind("}") + 1
    if start >= 0 and end > start:
        return text[start:end]
    return None


def parse_extraction_payload(text: str) -> dict[str, Any]:
    """Locate and decode the JSON object in a model response."""
    json_str = find_json_span(text or "")
    if json_str is None:
        raise ExtractionFormatError(
            "Failed to extract data from the document. "
            "Please try a clearer image or PDF."
        )

    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as e:
        raise ExtractionParseError(f"The extracted data was not valid JSON: {e.msg}") from e

    if not isinstance(data, dict):
        raise ExtractionParseError("The extracted data was not a JSON object")
    return data


def normalize_with_report(
    text: str,
    today: Optional[dt.date] = None,
) -> tuple[ExtractedDocument, list[str]]:
    """
    Validate and default a raw model response.

    Args:
        text: Raw model output expected to contain one JSON object
        today: Fallback document date (defaults to the current UTC date)

    Returns:
        (record, defaulted_fields) - the record satisfies every document
        invariant; defaulted_fields names the fields that fell back

    Raises:
        ExtractionFormatError: No JSON object in the text
        ExtractionParseError: Malformed JSON
    """
    data = parse_extraction_payload(text)

    context: dict[str, Any] = {"today": today, "defaulted": []}
    extracted = ExtractedDocument.model_validate(data, context=context)
    defaulted = list(dict.fromkeys(context["defaulted"]))

    if defaulted:
        log.debug("extraction_fields_defaulted", fields=defaulted)

    return extracted, defaulted


def normalize_extraction(
    text: str,
    today: Optional[dt.date] = None,
) -> ExtractedDocument:
    """Normalize a raw model response, discarding the defaulting report."""
    extracted, _ = normalize_with_report(text, today)
    return extracted
