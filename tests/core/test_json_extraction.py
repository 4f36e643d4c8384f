"""
Test suite for model output JSON extraction.

Covers the extract and decode stages independently: balanced-brace
scanning, fenced code blocks, prose around the object and failure stages.

System role: Verification of defensive response parsing
"""

import pytest

from labelcheck.core.analysis.json_extraction import (
    extract_and_parse,
    extract_json_object,
    iter_json_candidates,
    parse_json_object,
)
from labelcheck.core.exceptions import ResponseParseError


class TestExtractJsonObject:
    """Test suite for the extract stage."""

    def test_extract_should_return_bare_object(self) -> None:
        assert extract_json_object('{"a": 1}') == '{"a": 1}'

    def test_extract_should_skip_surrounding_prose(self) -> None:
        # Arrange
        text = 'Here is my analysis of the label.\n{"product_name": "X", "n": {"k": 2}}\nLet me know!'

        # Act
        candidate = extract_json_object(text)

        # Assert
        assert candidate == '{"product_name": "X", "n": {"k": 2}}'

    def test_extract_should_ignore_braces_inside_strings(self) -> None:
        text = '{"details": "use } and { freely", "ok": true}'

        assert extract_json_object(text) == text

    def test_extract_should_handle_escaped_quotes(self) -> None:
        text = '{"details": "say \\"}\\" here", "ok": true} trailing'

        assert extract_json_object(text) == '{"details": "say \\"}\\" here", "ok": true}'

    def test_extract_should_resume_after_unclosed_brace_in_prose(self) -> None:
        # Arrange
        text = 'Analysis {draft follows:\n{"product_name": "Milk Bar", "n": {"k": 2}}'

        # Act
        candidate = extract_json_object(text)

        # Assert
        assert candidate == '{"product_name": "Milk Bar", "n": {"k": 2}}'

    def test_extract_should_prefer_fenced_block(self) -> None:
        # Arrange
        text = 'Format: {"example": true}\n```json\n{"real": 1}\n```'

        # Act
        candidates = list(iter_json_candidates(text))

        # Assert
        assert candidates[0] == '{"real": 1}'
        assert '{"example": true}' in candidates

    def test_extract_should_raise_at_extract_stage_without_object(self) -> None:
        with pytest.raises(ResponseParseError) as exc_info:
            extract_json_object("I could not analyze this label.")

        assert exc_info.value.details["stage"] == "extract"

    def test_extract_should_raise_for_unbalanced_object(self) -> None:
        with pytest.raises(ResponseParseError) as exc_info:
            extract_json_object('{"product_name": "X"')

        assert exc_info.value.details["stage"] == "extract"


class TestParseJsonObject:
    """Test suite for the decode stage."""

    def test_parse_should_decode_object(self) -> None:
        assert parse_json_object('{"a": [1, 2]}') == {"a": [1, 2]}

    def test_parse_should_raise_at_decode_stage_for_invalid_json(self) -> None:
        with pytest.raises(ResponseParseError) as exc_info:
            parse_json_object("{product_name: 'X'}")

        assert exc_info.value.details["stage"] == "decode"


class TestExtractAndParse:
    """Test suite for the combined pipeline."""

    def test_should_parse_prose_with_trailing_json(self) -> None:
        # Arrange
        text = (
            "After reviewing the label against 21 CFR 101, here are my findings. "
            'The full report follows:\n{"product_name": "Granola", "overall_assessment": '
            '{"primary_compliance_status": "compliant", "summary": "ok"}}'
        )

        # Act
        data = extract_and_parse(text)

        # Assert
        assert data["product_name"] == "Granola"
        assert data["overall_assessment"]["primary_compliance_status"] == "compliant"

    def test_should_skip_undecodable_candidate(self) -> None:
        text = 'Template: {see below}\n{"product_name": "Granola"}'

        assert extract_and_parse(text) == {"product_name": "Granola"}

    def test_should_parse_object_after_stray_open_brace(self) -> None:
        # Arrange
        text = (
            "Analysis {draft follows:\n"
            '{"product_name": "Milk Bar", "overall_assessment": '
            '{"primary_compliance_status": "likely_compliant", "summary": "minor gaps"}}'
        )

        # Act
        data = extract_and_parse(text)

        # Assert
        assert data["product_name"] == "Milk Bar"
        assert data["overall_assessment"]["primary_compliance_status"] == "likely_compliant"

    def test_should_raise_first_decode_error_when_nothing_decodes(self) -> None:
        with pytest.raises(ResponseParseError) as exc_info:
            extract_and_parse("{not json} and {also not}")

        assert exc_info.value.details["stage"] == "decode"

    def test_should_raise_extract_error_for_empty_text(self) -> None:
        with pytest.raises(ResponseParseError) as exc_info:
            extract_and_parse("")

        assert exc_info.value.details["stage"] == "extract"
