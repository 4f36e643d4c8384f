"""
Test suite for CompletionClient and ComplianceAnalysisEngine.

Uses LangChain's FakeListChatModel as the completion service and
AsyncMock models for timeout and rate-limit behaviour.

System role: Verification of model invocation and response handling
"""

import asyncio
import json
import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.language_models import FakeListChatModel
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from labelcheck.core.analysis import (
    AssembledPrompt,
    ComplianceAnalysisEngine,
    CompletionClient,
    CompletionRequest,
    PromptMode,
)
from labelcheck.core.exceptions import (
    NoContentReturnedError,
    RateLimitedError,
    ResponseParseError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from labelcheck.core.ingestion.models import ImagePayload
from labelcheck.models.report import ComplianceStatus, RecommendationPriority, SectionStatus


class RateLimitError(Exception):
    """Stand-in for a provider 429 error."""

    status_code = 429


def make_prompt(mode: PromptMode, baseline: bool = False) -> AssembledPrompt:
    return AssembledPrompt(
        cached_prefix="regulatory context and instructions",
        dynamic_suffix="label content",
        mode=mode,
        baseline_iteration_id=uuid.uuid4() if baseline else None,
    )


def engine_with_responses(*responses: str) -> ComplianceAnalysisEngine:
    client = CompletionClient(FakeListChatModel(responses=list(responses)), retry_base_delay_seconds=0)
    return ComplianceAnalysisEngine(client)


class TestCompletionClient:
    """Test suite for the completion client."""

    def test_build_messages_should_split_prefix_and_suffix(self) -> None:
        # Arrange
        client = CompletionClient(FakeListChatModel(responses=["ok"]))

        # Act
        messages = client.build_messages(CompletionRequest(instructions="PREFIX {x}", content="SUFFIX"))

        # Assert
        assert isinstance(messages[0], SystemMessage)
        assert messages[0].content == "PREFIX {x}"
        assert isinstance(messages[1], HumanMessage)
        assert messages[1].content == "SUFFIX"

    def test_build_messages_should_attach_image(self) -> None:
        # Arrange
        client = CompletionClient(FakeListChatModel(responses=["ok"]))
        image = ImagePayload(base64_data="aGVsbG8=", media_type="image/jpeg")

        # Act
        messages = client.build_messages(CompletionRequest(instructions="P", content="S", image=image))

        # Assert
        blocks = messages[-1].content
        assert blocks[0] == {"type": "text", "text": "S"}
        assert blocks[1]["image_url"]["url"] == "data:image/jpeg;base64,aGVsbG8="

    async def test_should_retry_rate_limited_calls(self) -> None:
        # Arrange
        model = MagicMock()
        model.ainvoke = AsyncMock(side_effect=[RateLimitError("slow down"), AIMessage(content="answer")])
        client = CompletionClient(model, max_retries=3, retry_base_delay_seconds=0)

        # Act
        response = await client.complete(CompletionRequest(instructions="P", content="S"))

        # Assert
        assert response.text == "answer"
        assert model.ainvoke.await_count == 2

    async def test_should_raise_rate_limited_after_retries(self) -> None:
        model = MagicMock()
        model.ainvoke = AsyncMock(side_effect=RateLimitError("slow down"))
        client = CompletionClient(model, max_retries=2, retry_base_delay_seconds=0)

        with pytest.raises(RateLimitedError):
            await client.complete(CompletionRequest(instructions="P", content="S"))

        assert model.ainvoke.await_count == 2

    async def test_should_time_out_slow_calls(self) -> None:
        # Arrange
        async def never_returns(messages):
            await asyncio.sleep(5)

        model = MagicMock()
        model.ainvoke = never_returns
        client = CompletionClient(model, timeout_seconds=0.01)

        # Act / Assert
        with pytest.raises(UpstreamTimeoutError) as exc_info:
            await client.complete(CompletionRequest(instructions="P", content="S"))
        assert exc_info.value.retryable is True

    async def test_should_not_retry_other_errors(self) -> None:
        model = MagicMock()
        model.ainvoke = AsyncMock(side_effect=ConnectionError("reset"))
        client = CompletionClient(model, retry_base_delay_seconds=0)

        with pytest.raises(UpstreamUnavailableError):
            await client.complete(CompletionRequest(instructions="P", content="S"))

        model.ainvoke.assert_awaited_once()

    async def test_should_reject_empty_response(self) -> None:
        client = CompletionClient(FakeListChatModel(responses=["   "]))

        with pytest.raises(NoContentReturnedError):
            await client.complete(CompletionRequest(instructions="P", content="S"))

    async def test_should_use_json_model_when_expected(self) -> None:
        # Arrange
        json_model = MagicMock()
        json_model.ainvoke = AsyncMock(return_value=AIMessage(content='{"a": 1}'))
        client = CompletionClient(FakeListChatModel(responses=["plain"]), json_model=json_model)

        # Act
        response = await client.complete(CompletionRequest(instructions="P", content="S", expect_json=True))

        # Assert
        assert response.text == '{"a": 1}'


class TestComplianceAnalysisEngine:
    """Test suite for analysis and chat through the engine."""

    async def test_text_analysis_should_flag_missing_allergen_statement(self, report_payload) -> None:
        # Arrange
        engine = engine_with_responses(json.dumps(report_payload()))

        # Act
        report = await engine.analyze_text(
            "Contains milk, no allergen statement", make_prompt(PromptMode.TEXT_ANALYSIS)
        )

        # Assert
        assert report.allergen_labeling.status != SectionStatus.COMPLIANT
        assert any("FALCPA" in rec.regulation for rec in report.recommendations)

    async def test_revision_should_parse_comparison(self, report_payload) -> None:
        # Arrange
        payload = report_payload(
            comparison={
                "issues_resolved": [],
                "issues_remaining": ["Missing Contains statement"],
                "new_issues": [],
                "improvement_summary": "No change",
            }
        )
        engine = engine_with_responses(json.dumps(payload))
        image = ImagePayload(base64_data="aGVsbG8=", media_type="image/jpeg")

        # Act
        report = await engine.analyze_image(image, make_prompt(PromptMode.IMAGE_ANALYSIS, baseline=True))

        # Assert
        assert isinstance(report.comparison.issues_resolved, list)
        assert isinstance(report.comparison.new_issues, list)

    async def test_should_parse_prose_with_trailing_json(self, report_payload) -> None:
        # Arrange
        text = "Here is the compliance analysis you requested.\n\n" + json.dumps(report_payload())
        engine = engine_with_responses(text)

        # Act
        report = await engine.analyze_text("label text here", make_prompt(PromptMode.TEXT_ANALYSIS))

        # Assert
        assert report.product_name == "Oat Crunch Granola"

    async def test_should_raise_parse_error_for_non_json_reply(self) -> None:
        engine = engine_with_responses("I am unable to read this label.")

        with pytest.raises(ResponseParseError) as exc_info:
            await engine.analyze_text("label text here", make_prompt(PromptMode.TEXT_ANALYSIS))

        assert exc_info.value.details["stage"] == "extract"

    async def test_should_reconcile_overall_status(self, report_payload) -> None:
        # Arrange
        payload = report_payload(overall_assessment={"primary_compliance_status": "compliant", "summary": "s"})
        engine = engine_with_responses(json.dumps(payload))

        # Act
        report = await engine.analyze_text("label text here", make_prompt(PromptMode.TEXT_ANALYSIS))

        # Assert
        assert report.overall_assessment.primary_compliance_status == ComplianceStatus.NON_COMPLIANT
        assert report.status_normalizations[-1].original == "compliant"

    async def test_should_append_monitoring_recommendation_last(self, report_payload) -> None:
        # Arrange
        engine = engine_with_responses(json.dumps(report_payload()))

        # Act
        report = await engine.analyze_text("label text here", make_prompt(PromptMode.TEXT_ANALYSIS))

        # Assert
        assert len(report.recommendations) == 2
        monitoring = report.recommendations[-1]
        assert monitoring.priority == RecommendationPriority.LOW
        assert monitoring.recommendation.startswith("Continue monitoring for compliance")
        assert monitoring.regulation == "General FDA guidelines for product labeling"

    async def test_chat_should_return_stripped_answer(self) -> None:
        engine = engine_with_responses("  Add a Contains statement below the ingredients.  ")

        answer = await engine.chat("How do I fix it?", make_prompt(PromptMode.CHAT))

        assert answer == "Add a Contains statement below the ingredients."

    async def test_should_reject_prompt_for_other_mode(self) -> None:
        engine = engine_with_responses("unused")

        with pytest.raises(ValueError):
            await engine.chat("Q", make_prompt(PromptMode.TEXT_ANALYSIS))
