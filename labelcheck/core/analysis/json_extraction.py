"""
JSON object extraction from model output.

Models sometimes wrap the requested JSON object in prose or a code fence.
Extraction is split into independently testable stages:

1. extract_json_object: locate a balanced top-level {...} substring
2. parse_json_object: decode it and require a JSON object

Schema validation is the third stage (report_validation).

Dependencies: json (stdlib)
System role: Defensive parsing of completion responses
"""

import json
import logging
import re
from collections.abc import Iterator
from typing import Any

from labelcheck.core.exceptions import ResponseParseError

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"```(?:json|JSON)?[ \t]*\n(.*?)```", re.DOTALL)


def _matching_brace(text: str, start: int) -> int | None:
    """Return the index of the brace closing text[start], or None if it never closes."""
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
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return None


def _balanced_objects(text: str) -> Iterator[str]:
    """
    Yield each balanced top-level {...} span, skipping braces inside strings.

    A '{' that never closes (prose such as "Analysis {draft follows:") does
    not swallow the rest of the text; scanning resumes at the next '{'.
    """
    position = 0
    while True:
        start = text.find("{", position)
        if start == -1:
            return
        end = _matching_brace(text, start)
        if end is None:
            position = start + 1
            continue
        yield text[start : end + 1]
        position = end + 1


def iter_json_candidates(text: str) -> Iterator[str]:
    """
    Yield candidate JSON object substrings in preference order.

    Objects inside fenced code blocks come first, then objects found in
    the raw text.

    Args:
        text: Raw model output

    Yields:
        str: Balanced {...} substrings
    """
    seen: set[str] = set()
    for fence in _CODE_FENCE.finditer(text):
        for candidate in _balanced_objects(fence.group(1)):
            if candidate not in seen:
                seen.add(candidate)
                yield candidate
    for candidate in _balanced_objects(text):
        if candidate not in seen:
            seen.add(candidate)
            yield candidate


def extract_json_object(text: str) -> str:
    """
    Locate the first top-level JSON object in model output.

    Args:
        text: Raw model output

    Returns:
        str: The first balanced {...} substring

    Raises:
        ResponseParseError: No balanced object found (stage 'extract')
    """
    for candidate in iter_json_candidates(text):
        return candidate
    raise ResponseParseError(
        "Model response does not contain a JSON object",
        stage="extract",
        details={"response_length": len(text)},
    )


def parse_json_object(candidate: str) -> dict[str, Any]:
    """
    Decode a candidate substring into a JSON object.

    Args:
        candidate: Substring returned by extract_json_object

    Returns:
        dict: Decoded object

    Raises:
        ResponseParseError: Invalid JSON or not an object (stage 'decode')
    """
    try:
        value = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise ResponseParseError(
            f"Model response contains invalid JSON: {e.msg}",
            stage="decode",
            details={"line": e.lineno, "column": e.colno},
        ) from e
    if not isinstance(value, dict):
        raise ResponseParseError(
            f"Expected a JSON object, got {type(value).__name__}",
            stage="decode",
        )
    return value


def extract_and_parse(text: str) -> dict[str, Any]:
    """
    Run extraction and decoding, trying later candidates if the first is not valid JSON.

    Prose such as "{see below}" before the real object is skipped.

    Args:
        text: Raw model output

    Returns:
        dict: First candidate that decodes to a JSON object

    Raises:
        ResponseParseError: No candidate found, or none decodes
    """
    first_error: ResponseParseError | None = None
    for candidate in iter_json_candidates(text):
        try:
            return parse_json_object(candidate)
        except ResponseParseError as e:
            first_error = first_error or e
            logger.debug(f"{__name__}:extract_and_parse - Skipping undecodable candidate: {e.message}")

    if first_error is not None:
        raise first_error
    raise ResponseParseError(
        "Model response does not contain a JSON object",
        stage="extract",
        details={"response_length": len(text)},
    )
