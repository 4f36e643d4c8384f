"""
Analysis service orchestrator.

Runs one analysis or chat call as an independent unit of work:

1. Validate input and authorize the caller (before any model spend)
2. Normalize the artifact, then load regulatory context scoped to the
   product category (label text, else the previous analysis)
3. Assemble the prompt from the session history
4. Call the compliance analysis engine
5. Append the iteration

If step 5 fails the computed result is still returned with
history_saved=False; the write failure is logged separately.

Dependencies: labelcheck.core, labelcheck.application.services.session_service
System role: Analysis use case orchestration
"""

import logging
from uuid import UUID

from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel

from labelcheck.application.services.session_service import SessionService
from labelcheck.configs.analysis import AnalysisSettings
from labelcheck.core.access import AccessContext
from labelcheck.core.analysis import ComplianceAnalysisEngine, ContextAssembler, PromptInput
from labelcheck.core.analysis.comparison import find_baseline
from labelcheck.core.analysis.context_assembler import AssembledPrompt
from labelcheck.core.exceptions import PayloadTooLargeError, PersistenceError, ValidationError
from labelcheck.core.ingestion import (
    Artifact,
    ContentKind,
    ImageQualityReport,
    IngestionNormalizer,
    NormalizedContent,
    truncate_for_storage,
)
from labelcheck.core.regulatory import RegulatoryContextBuilder, select_product_category
from labelcheck.models.analysis import AnalysisResponse, ChatResponse
from labelcheck.models.iteration import (
    ChatAnswer,
    ChatQuestionInput,
    ImageAnalysisInput,
    IterationType,
    RevisedAnalysisInput,
    TextCheckInput,
)
from labelcheck.models.report import ComplianceReport
from labelcheck.models.session import SessionRecord, SessionWithIterations
from labelcheck.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)


class AnalysisService:
    """Orchestrates label analysis and chat requests."""

    def __init__(
        self,
        sessions: SessionService,
        normalizer: IngestionNormalizer,
        context_builder: RegulatoryContextBuilder,
        assembler: ContextAssembler,
        engine: ComplianceAnalysisEngine,
        settings: AnalysisSettings,
    ) -> None:
        """
        Initialize analysis service.

        Args:
            sessions: Session/iteration store bound to the request's database session
            normalizer: Ingestion normalizer
            context_builder: Regulatory context builder (process-wide cache)
            assembler: Context assembler (process-wide prefix memo)
            engine: Compliance analysis engine
            settings: Analysis limits
        """
        self.sessions = sessions
        self.normalizer = normalizer
        self.context_builder = context_builder
        self.assembler = assembler
        self.engine = engine
        self.settings = settings

    async def analyze_label(
        self,
        access: AccessContext,
        data: bytes,
        media_type: str | None,
        file_name: str | None = None,
        session_id: UUID | None = None,
        label_name: str | None = None,
    ) -> tuple[AnalysisResponse, bool]:
        """
        Analyze an uploaded label image or PDF.

        The first analysis in a session is recorded as image_analysis; later
        uploads are revised_analysis linked to the previous analysis.

        Args:
            access: Caller access context
            data: Uploaded bytes
            media_type: Declared media type
            file_name: Uploaded file name
            session_id: Existing session, or None to start a new one
            label_name: Optional label name used as the new session's title

        Returns:
            tuple: (AnalysisResponse, whether a new session was created)
        """
        logger.info(
            f"{__name__}:analyze_label - START",
            extra={"session_id": str(session_id) if session_id else None, "file_size": len(data)},
        )
        history = await self._load_history(session_id, access) if session_id else None

        artifact = Artifact.from_bytes(data, media_type, file_name)
        content, regulatory_context = await self._normalize_with_context(artifact, history)

        session_created = history is None
        if history is None:
            session = await self.sessions.create_session(access, title=label_name or file_name)
            history = SessionWithIterations(session=session)

        prompt, report = await self._run_analysis(history, content, regulatory_context)

        if prompt.has_baseline:
            iteration_type = IterationType.REVISED_ANALYSIS
            input_payload: BaseModel = RevisedAnalysisInput(
                file_name=file_name,
                media_type=media_type or "application/octet-stream",
                file_size=len(data),
                source=content.source,
                label_name=label_name,
                baseline_iteration_id=prompt.baseline_iteration_id,
            )
        else:
            iteration_type = IterationType.IMAGE_ANALYSIS
            input_payload = ImageAnalysisInput(
                file_name=file_name,
                media_type=media_type or "application/octet-stream",
                file_size=len(data),
                source=content.source,
                label_name=label_name,
            )

        iteration_id = await self._record_iteration(
            history.session,
            iteration_type,
            input_payload,
            report,
            access,
            file_ref=file_name,
            parent_iteration_id=prompt.baseline_iteration_id,
        )
        response = AnalysisResponse(
            session_id=history.session.id,
            iteration_id=iteration_id,
            analysis_type=iteration_type,
            history_saved=iteration_id is not None,
            report=report,
        )
        return response, session_created

    async def analyze_text(
        self,
        access: AccessContext,
        session_id: UUID,
        text: str,
    ) -> AnalysisResponse:
        """
        Check typed label text against a session's latest analysis.

        Args:
            access: Caller access context
            session_id: Existing session
            text: Prospective label text

        Returns:
            AnalysisResponse: Report, with a comparison when a baseline exists
        """
        logger.info(f"{__name__}:analyze_text - START", extra={"session_id": str(session_id)})
        # length limits apply before the session lookup and any model call
        text = self.normalizer.validate_text(text)
        history = await self._load_history(session_id, access)

        content, regulatory_context = await self._normalize_with_context(Artifact.from_text(text), history)
        prompt, report = await self._run_analysis(history, content, regulatory_context)

        stored_text, truncated = truncate_for_storage(content.text, self.settings.max_stored_text_length)
        input_payload = TextCheckInput(
            input_type="text",
            source=content.source,
            text_content=stored_text,
            truncated=truncated,
        )
        return await self._text_check_response(history, prompt, report, input_payload, access)

    async def analyze_pdf(
        self,
        access: AccessContext,
        session_id: UUID,
        data: bytes,
        file_name: str | None = None,
    ) -> AnalysisResponse:
        """
        Check a prospective label PDF against a session's latest analysis.

        Args:
            access: Caller access context
            session_id: Existing session
            data: PDF bytes
            file_name: Uploaded file name

        Returns:
            AnalysisResponse: Report, with a comparison when a baseline exists
        """
        logger.info(f"{__name__}:analyze_pdf - START", extra={"session_id": str(session_id)})
        history = await self._load_history(session_id, access)

        artifact = Artifact.from_bytes(data, "application/pdf", file_name)
        content, regulatory_context = await self._normalize_with_context(artifact, history)
        prompt, report = await self._run_analysis(history, content, regulatory_context)

        stored_text, truncated = None, False
        if content.kind == ContentKind.TEXT:
            stored_text, truncated = truncate_for_storage(
                content.text, self.settings.max_stored_text_length
            )
        input_payload = TextCheckInput(
            input_type="pdf",
            source=content.source,
            text_content=stored_text,
            truncated=truncated,
            file_name=file_name,
            file_size=len(data),
        )
        return await self._text_check_response(
            history, prompt, report, input_payload, access, file_ref=file_name
        )

    async def check_image_quality(
        self,
        data: bytes,
        media_type: str | None,
        file_name: str | None = None,
    ) -> ImageQualityReport:
        """
        Assess a label photo before the user spends an analysis on it.

        Nothing is recorded and no model is called.

        Args:
            data: Uploaded image bytes
            media_type: Declared media type
            file_name: Uploaded file name

        Returns:
            ImageQualityReport: Metrics, issues and overall rating
        """
        artifact = Artifact.from_bytes(data, media_type, file_name)
        report = await run_in_threadpool(self.normalizer.check_image_quality, artifact)
        logger.info(
            f"{__name__}:check_image_quality - Quality {report.quality_score}/100",
            extra={"rating": report.recommendation.value, "issue_count": len(report.issues)},
        )
        return report

    async def chat(
        self,
        access: AccessContext,
        session_id: UUID,
        message: str,
        parent_iteration_id: UUID | None = None,
    ) -> ChatResponse:
        """
        Answer a follow-up question in the context of a session.

        Args:
            access: Caller access context
            session_id: Existing session
            message: User question
            parent_iteration_id: Optional iteration the question follows up on

        Returns:
            ChatResponse: Answer and stored iteration id

        Raises:
            ValidationError: Empty or oversized message, or parent not in session
        """
        message = message.strip()
        if not message:
            raise ValidationError("Message must not be empty", field="message")
        if len(message) > self.settings.max_chat_message_length:
            raise PayloadTooLargeError(
                f"Message must be at most {self.settings.max_chat_message_length} characters",
                limit=self.settings.max_chat_message_length,
                actual=len(message),
                field="message",
            )

        history = await self._load_history(session_id, access)
        if parent_iteration_id is not None and all(
            it.id != parent_iteration_id for it in history.iterations
        ):
            raise ValidationError(
                "Parent iteration does not belong to this session",
                field="parent_iteration_id",
            )

        regulatory_context = await self._regulatory_context(None, history)
        prompt = self.assembler.assemble(
            history.session, history.iterations, regulatory_context, PromptInput.chat(message)
        )
        answer = await self.engine.chat(message, prompt)

        iteration_id = await self._record_iteration(
            history.session,
            IterationType.CHAT_QUESTION,
            ChatQuestionInput(message=message),
            ChatAnswer(response=answer),
            access,
            parent_iteration_id=parent_iteration_id,
        )
        return ChatResponse(
            response=answer,
            iteration_id=iteration_id,
            history_saved=iteration_id is not None,
        )

    async def _load_history(self, session_id: UUID, access: AccessContext) -> SessionWithIterations:
        return await self.sessions.get_session_with_iterations(session_id, access)

    async def _normalize_with_context(
        self,
        artifact: Artifact,
        history: SessionWithIterations | None,
    ) -> tuple[NormalizedContent, str]:
        # Decoding is CPU-bound; the category needs the decoded text
        content = await run_in_threadpool(self.normalizer.normalize, artifact)
        text = content.text if content.kind == ContentKind.TEXT else None
        return content, await self._regulatory_context(text, history)

    async def _regulatory_context(self, text: str | None, history: SessionWithIterations | None) -> str:
        """Render regulatory context for the product category, or for all documents when unknown."""
        baseline = find_baseline(history.iterations) if history else None
        previous_category = baseline.report.product_category if baseline else None
        category = select_product_category(text, previous_category)
        logger.debug(
            f"{__name__}:_regulatory_context - Selected product category",
            extra={"category": category.value if category else None},
        )
        return await self.context_builder.get_context(category.value if category else None)

    async def _run_analysis(
        self,
        history: SessionWithIterations,
        content: NormalizedContent,
        regulatory_context: str,
    ) -> tuple[AssembledPrompt, ComplianceReport]:
        if content.kind == ContentKind.TEXT:
            prompt = self.assembler.assemble(
                history.session, history.iterations, regulatory_context, PromptInput.label_text(content.text)
            )
            report = await self.engine.analyze_text(content.text, prompt)
        else:
            prompt = self.assembler.assemble(
                history.session, history.iterations, regulatory_context, PromptInput.label_image()
            )
            report = await self.engine.analyze_image(content.image, prompt)
        return prompt, report

    async def _text_check_response(
        self,
        history: SessionWithIterations,
        prompt: AssembledPrompt,
        report: ComplianceReport,
        input_payload: TextCheckInput,
        access: AccessContext,
        file_ref: str | None = None,
    ) -> AnalysisResponse:
        iteration_id = await self._record_iteration(
            history.session,
            IterationType.TEXT_CHECK,
            input_payload,
            report,
            access,
            file_ref=file_ref,
            parent_iteration_id=prompt.baseline_iteration_id,
        )
        return AnalysisResponse(
            session_id=history.session.id,
            iteration_id=iteration_id,
            analysis_type=IterationType.TEXT_CHECK,
            history_saved=iteration_id is not None,
            report=report,
        )

    async def _record_iteration(
        self,
        session: SessionRecord,
        iteration_type: IterationType,
        input_payload: BaseModel,
        result_payload: BaseModel,
        access: AccessContext,
        file_ref: str | None = None,
        parent_iteration_id: UUID | None = None,
    ) -> UUID | None:
        """Append the iteration; a store failure leaves the computed result intact."""
        try:
            iteration = await self.sessions.add_iteration(
                session.id,
                iteration_type,
                input_payload,
                result_payload,
                access,
                file_ref=file_ref,
                parent_iteration_id=parent_iteration_id,
            )
        except PersistenceError as e:
            log_exception_with_context(
                logger,
                f"{__name__}:_record_iteration - Analysis succeeded, history write failed",
                e,
                session_id=str(session.id),
                iteration_type=iteration_type.value,
            )
            return None
        return iteration.id
