"""
Schedule Response Parser
========================

Validates and sanitizes raw completion text into ScheduleItem objects.

The model output is untrusted. Rules applied to every response:

1. The first top-level JSON array literal in the text is used (the model may add
   prose or code fences around it); without one, the whole text is parsed.
2. The parsed value must be a list.
3. Every element must be an object; one bad element rejects the response.
4. Per element:
   - description (``assignment``, then ``description``): non-empty string
   - due date (``due_date``, then ``date``): kept only if it is a
     YYYY-MM-DD string naming a real calendar day, otherwise None
   - location: non-empty string, otherwise None
   - source: non-empty string
5. An empty list is a valid result.

Any rejection raises ResponseValidationError, which the extractor treats
as a retryable failure.
"""

import json
import re
from datetime import date
from typing import Any

from schedule_ingest.schemas.domain import ScheduleItem
from schedule_ingest.utils.errors import ResponseValidationError

DESCRIPTION_KEYS = ("assignment", "description")
DATE_KEYS = ("due_date", "date")
LOCATION_KEYS = ("location",)
SOURCE_KEYS = ("source",)

DESCRIPTION_MAX_LENGTH = 500
LOCATION_MAX_LENGTH = 255
SOURCE_MAX_LENGTH = 255

_ISO_DATE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
_decoder = json.JSONDecoder()


def _bracket_region_end(text: str, start: int) -> int:
    """
    Index just past the ``]`` matching the ``[`` at ``start``.

    Brackets inside JSON string literals are ignored. An unclosed bracket
    runs to the end of ``text``.
    """
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                return index + 1
    return len(text)


def find_json_array(text: str) -> str:
    """
    Locate the first top-level JSON array literal in ``text``.

    Each ``[`` outside an earlier bracketed region is tried as the start of
    a JSON array. A region that fails to decode is skipped whole, so an
    array nested inside a malformed outer array is never returned.

    Returns:
        The array literal, or the whole text when no array is found
    """
    start = text.find("[")
    while start != -1:
        try:
            _, end = _decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            end = _bracket_region_end(text, start)
        else:
            return text[start:end]
        start = text.find("[", end)
    return text


def parse_iso_date(value: Any) -> date | None:
    """
    Accept only strict YYYY-MM-DD strings naming a real calendar day.

    ``2024-02-30`` and ``2024-2-5`` both give None, as does any non-string.
    """
    if not isinstance(value, str) or not _ISO_DATE.fullmatch(value):
        return None
    try:
        parsed = date.fromisoformat(value)
    except ValueError:
        return None
    return parsed if parsed.isoformat() == value else None


def _first_present(item: dict[str, Any], keys: tuple[str, ...]) -> Any:
    """Return the value of the first key present in ``item``."""
    for key in keys:
        if key in item:
            return item[key]
    return None


def _required_text(item: dict[str, Any], keys: tuple[str, ...], index: int, max_length: int) -> str:
    value = _first_present(item, keys)
    if not isinstance(value, str) or not value.strip():
        raise ResponseValidationError(
            message=f"Item {index}: {keys[0]} must be a non-empty string",
            details={"index": index, "field": keys[0]},
        )
    return value.strip()[:max_length]


def _optional_text(item: dict[str, Any], keys: tuple[str, ...], max_length: int) -> str | None:
    value = _first_present(item, keys)
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value[:max_length] if value else None


def validate_item(item: Any, index: int) -> ScheduleItem:
    """
    Validate one array element.

    Raises:
        ResponseValidationError: If the element is not an object or a
            mandatory field is missing/blank
    """
    if not isinstance(item, dict):
        raise ResponseValidationError(
            message=f"Item {index} is not an object",
            details={"index": index, "type": type(item).__name__},
        )

    return ScheduleItem(
        description=_required_text(item, DESCRIPTION_KEYS, index, DESCRIPTION_MAX_LENGTH),
        due_date=parse_iso_date(_first_present(item, DATE_KEYS)),
        location=_optional_text(item, LOCATION_KEYS, LOCATION_MAX_LENGTH),
        source=_required_text(item, SOURCE_KEYS, index, SOURCE_MAX_LENGTH),
    )


def parse_schedule_response(response_text: str) -> list[ScheduleItem]:
    """
    Parse raw completion text into validated schedule items.

    Args:
        response_text: Raw text returned by the completion client

    Returns:
        Validated items in response order (possibly empty)

    Raises:
        ResponseValidationError: If the response is empty, not JSON, not an
            array, or contains an invalid element
    """
    if not response_text or not response_text.strip():
        raise ResponseValidationError(message="Empty response from completion service")

    candidate = find_json_array(response_text)
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise ResponseValidationError(
            message=f"Invalid JSON response: {e.msg}",
            details={"position": e.pos, "preview": response_text[:200]},
        ) from e

    if not isinstance(parsed, list):
        raise ResponseValidationError(
            message="Response is not an array",
            details={"type": type(parsed).__name__},
        )

    return [validate_item(item, index) for index, item in enumerate(parsed)]
