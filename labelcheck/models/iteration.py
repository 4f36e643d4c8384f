"""
Iteration domain models.

Iteration input and result payloads form a tagged union keyed by
IterationType: each type has its own schema, and stored JSON is parsed back
into the matching variant when a session history is loaded.

Dependencies: pydantic
System role: Typed iteration history contracts
"""

import enum
from datetime import datetime
from typing import Any, Literal, Union
import uuid

from pydantic import BaseModel, ConfigDict, Field, model_validator

from labelcheck.core.ingestion.models import ContentSource
from labelcheck.models.report import ComplianceReport


class IterationType(str, enum.Enum):
    """
    Kinds of steps recorded in an analysis session.

    IMAGE_ANALYSIS: First analysis of an uploaded label image or PDF
    TEXT_CHECK: Analysis of typed or PDF label text the user is testing
    CHAT_QUESTION: Follow-up question answered in the context of the session
    REVISED_ANALYSIS: Re-analysis of a revised label upload
    """

    IMAGE_ANALYSIS = "image_analysis"
    TEXT_CHECK = "text_check"
    CHAT_QUESTION = "chat_question"
    REVISED_ANALYSIS = "revised_analysis"


ANALYSIS_ITERATION_TYPES = frozenset(
    {IterationType.IMAGE_ANALYSIS, IterationType.TEXT_CHECK, IterationType.REVISED_ANALYSIS}
)


class ImageAnalysisInput(BaseModel):
    """Metadata describing an uploaded label file."""

    file_name: str | None = None
    media_type: str
    file_size: int
    source: ContentSource
    label_name: str | None = None


class RevisedAnalysisInput(ImageAnalysisInput):
    """Revised upload analyzed against an earlier report."""

    baseline_iteration_id: uuid.UUID | None = None


class TextCheckInput(BaseModel):
    """Typed text or PDF content checked before finalizing a label."""

    input_type: Literal["text", "pdf"]
    source: ContentSource
    text_content: str | None = Field(default=None, description="Stored copy, possibly truncated")
    truncated: bool = False
    file_name: str | None = None
    file_size: int | None = None


class ChatQuestionInput(BaseModel):
    """A follow-up question from the user."""

    message: str


class ChatAnswer(BaseModel):
    """Answer to a chat question."""

    response: str


IterationInput = Union[RevisedAnalysisInput, ImageAnalysisInput, TextCheckInput, ChatQuestionInput]
IterationResult = Union[ComplianceReport, ChatAnswer]

INPUT_PAYLOADS: dict[IterationType, type[BaseModel]] = {
    IterationType.IMAGE_ANALYSIS: ImageAnalysisInput,
    IterationType.REVISED_ANALYSIS: RevisedAnalysisInput,
    IterationType.TEXT_CHECK: TextCheckInput,
    IterationType.CHAT_QUESTION: ChatQuestionInput,
}

RESULT_PAYLOADS: dict[IterationType, type[BaseModel]] = {
    IterationType.IMAGE_ANALYSIS: ComplianceReport,
    IterationType.REVISED_ANALYSIS: ComplianceReport,
    IterationType.TEXT_CHECK: ComplianceReport,
    IterationType.CHAT_QUESTION: ChatAnswer,
}


def parse_input_payload(iteration_type: IterationType, data: dict[str, Any]) -> IterationInput:
    """Validate stored input JSON into the variant for its iteration type."""
    return INPUT_PAYLOADS[IterationType(iteration_type)].model_validate(data)


def parse_result_payload(iteration_type: IterationType, data: dict[str, Any]) -> IterationResult:
    """Validate stored result JSON into the variant for its iteration type."""
    return RESULT_PAYLOADS[IterationType(iteration_type)].model_validate(data)


def check_payload_types(
    iteration_type: IterationType,
    input_payload: BaseModel,
    result_payload: BaseModel,
) -> None:
    """
    Ensure payload variants match the iteration type.

    Raises:
        TypeError: If either payload is the wrong variant
    """
    expected_input = INPUT_PAYLOADS[iteration_type]
    expected_result = RESULT_PAYLOADS[iteration_type]
    # exact match: RevisedAnalysisInput subclasses ImageAnalysisInput
    if type(input_payload) is not expected_input:
        raise TypeError(
            f"{iteration_type.value} expects {expected_input.__name__} input, "
            f"got {type(input_payload).__name__}"
        )
    if not isinstance(result_payload, expected_result):
        raise TypeError(
            f"{iteration_type.value} expects {expected_result.__name__} result, "
            f"got {type(result_payload).__name__}"
        )


class IterationRecord(BaseModel):
    """One immutable step of a session with typed payloads."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    session_id: uuid.UUID
    sequence: int
    iteration_type: IterationType
    input: IterationInput
    result: IterationResult
    parent_iteration_id: uuid.UUID | None = None
    file_ref: str | None = None
    created_at: datetime

    @model_validator(mode="before")
    @classmethod
    def _select_payload_variants(cls, data: Any) -> Any:
        """
        Parse raw input/result dicts into the variant named by iteration_type.

        The payload unions are untagged, so without this an image_analysis
        input dumped to JSON would validate back as RevisedAnalysisInput.
        """
        if not isinstance(data, dict):
            return data
        try:
            iteration_type = IterationType(data.get("iteration_type"))
        except ValueError:
            return data
        parsed = dict(data)
        if isinstance(parsed.get("input"), dict):
            parsed["input"] = parse_input_payload(iteration_type, parsed["input"])
        if isinstance(parsed.get("result"), dict):
            parsed["result"] = parse_result_payload(iteration_type, parsed["result"])
        return parsed

    @classmethod
    def from_row(cls, row: Any) -> "IterationRecord":
        """
        Build a record from an AnalysisIterationModel row.

        Args:
            row: ORM row with input_data/result_data JSON columns

        Returns:
            IterationRecord: Record with payloads parsed into their typed variants
        """
        return cls(
            id=row.id,
            session_id=row.session_id,
            sequence=row.sequence,
            iteration_type=row.iteration_type,
            input=parse_input_payload(row.iteration_type, row.input_data),
            result=parse_result_payload(row.iteration_type, row.result_data),
            parent_iteration_id=row.parent_iteration_id,
            file_ref=row.file_ref,
            created_at=row.created_at,
        )

    @property
    def is_analysis(self) -> bool:
        return self.iteration_type in ANALYSIS_ITERATION_TYPES

    @property
    def order_key(self) -> tuple[datetime, int]:
        return (self.created_at, self.sequence)

    @property
    def report(self) -> ComplianceReport | None:
        return self.result if isinstance(self.result, ComplianceReport) else None
