"""
Compliance analysis engine.

Issues image-analysis, text-analysis and chat requests to the completion
service and turns analysis responses into validated ComplianceReports:
extract JSON object, decode, normalize and validate, check comparison,
reconcile overall status. A response that cannot be parsed is an error,
never an empty report.

Dependencies: labelcheck.core.analysis
System role: Model invocation and response contract enforcement
"""

import logging

from labelcheck.core.analysis.comparison import check_comparison
from labelcheck.core.analysis.completion_client import CompletionClient, CompletionRequest
from labelcheck.core.analysis.compliance_prompts import PromptMode
from labelcheck.core.analysis.context_assembler import AssembledPrompt
from labelcheck.core.analysis.json_extraction import extract_and_parse
from labelcheck.core.analysis.post_processor import post_process
from labelcheck.core.analysis.report_validation import validate_report
from labelcheck.core.exceptions import ResponseParseError
from labelcheck.core.ingestion.models import ImagePayload
from labelcheck.models.report import ComplianceReport
from labelcheck.observability.log_utils import log_with_context

logger = logging.getLogger(__name__)


def _require_mode(prompt: AssembledPrompt, expected: PromptMode) -> None:
    if prompt.mode is not expected:
        raise ValueError(f"Prompt assembled for {prompt.mode.value}, expected {expected.value}")


class ComplianceAnalysisEngine:
    """Run compliance analyses and chat answers against the completion service."""

    def __init__(self, client: CompletionClient) -> None:
        self._client = client

    async def analyze_image(self, image: ImagePayload, prompt: AssembledPrompt) -> ComplianceReport:
        """
        Analyze a label image.

        Args:
            image: Encoded label image
            prompt: Prompt assembled for IMAGE_ANALYSIS

        Returns:
            ComplianceReport: Validated report

        Raises:
            UpstreamError: Completion service failure (timeout, rate limit, unavailable, empty)
            ResponseParseError: Response is not a conforming JSON report
        """
        _require_mode(prompt, PromptMode.IMAGE_ANALYSIS)
        logger.info(
            f"{__name__}:analyze_image - START",
            extra={"media_type": image.media_type, "has_baseline": prompt.has_baseline},
        )
        response = await self._client.complete(
            CompletionRequest(
                instructions=prompt.cached_prefix,
                content=prompt.dynamic_suffix,
                image=image,
                expect_json=True,
            )
        )
        return self.parse_report(response.text, baseline_expected=prompt.has_baseline)

    async def analyze_text(self, text: str, prompt: AssembledPrompt) -> ComplianceReport:
        """
        Analyze label text.

        Args:
            text: Label text (already framed into the prompt suffix)
            prompt: Prompt assembled for TEXT_ANALYSIS

        Returns:
            ComplianceReport: Validated report

        Raises:
            UpstreamError: Completion service failure
            ResponseParseError: Response is not a conforming JSON report
        """
        _require_mode(prompt, PromptMode.TEXT_ANALYSIS)
        logger.info(
            f"{__name__}:analyze_text - START",
            extra={"text_length": len(text), "has_baseline": prompt.has_baseline},
        )
        response = await self._client.complete(
            CompletionRequest(
                instructions=prompt.cached_prefix,
                content=prompt.dynamic_suffix,
                expect_json=True,
            )
        )
        return self.parse_report(response.text, baseline_expected=prompt.has_baseline)

    async def chat(self, message: str, prompt: AssembledPrompt) -> str:
        """
        Answer a follow-up question.

        Args:
            message: User question (already framed into the prompt suffix)
            prompt: Prompt assembled for CHAT

        Returns:
            str: Answer text

        Raises:
            UpstreamError: Completion service failure
        """
        _require_mode(prompt, PromptMode.CHAT)
        logger.info(f"{__name__}:chat - START", extra={"message_length": len(message)})
        response = await self._client.complete(
            CompletionRequest(instructions=prompt.cached_prefix, content=prompt.dynamic_suffix)
        )
        return response.text.strip()

    def parse_report(self, text: str, baseline_expected: bool = False) -> ComplianceReport:
        """
        Turn raw model output into a validated report.

        Args:
            text: Raw response text
            baseline_expected: Whether the prompt asked for a comparison

        Returns:
            ComplianceReport: Report with normalizations recorded

        Raises:
            ResponseParseError: Extraction, decoding or validation failed
        """
        try:
            report = validate_report(extract_and_parse(text))
        except ResponseParseError as e:
            log_with_context(
                logger,
                logging.ERROR,
                f"{__name__}:parse_report - Failed at stage {e.details.get('stage')}",
                error_msg=e.message,
                response_preview=text[:500],
            )
            raise

        check_comparison(report, baseline_expected)
        report = post_process(report)
        if report.status_normalizations:
            log_with_context(
                logger,
                logging.WARNING,
                f"{__name__}:parse_report - Applied {len(report.status_normalizations)} normalizations",
                fields=[entry.field for entry in report.status_normalizations],
            )
        return report
