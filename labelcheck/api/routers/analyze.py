"""
Analysis API endpoints.

Routes:
- POST /analyze - Analyze an uploaded label image or PDF
- POST /analyze/text - Check typed label text (JSON) or a label PDF (multipart)
- POST /analyze/chat - Ask a follow-up question about a session
- POST /analyze/check-quality - Assess a label photo before analyzing it

Dependencies: labelcheck.application.services.analysis_service, labelcheck.models
System role: Analysis HTTP API
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError as PydanticValidationError
from starlette.datastructures import UploadFile as StarletteUploadFile

from labelcheck.api.deps import get_access_context, get_analysis_service
from labelcheck.application.services.analysis_service import AnalysisService
from labelcheck.core.access import AccessContext
from labelcheck.core.exceptions import ValidationError
from labelcheck.core.ingestion import ImageQualityReport
from labelcheck.models.analysis import AnalysisResponse, ChatRequest, ChatResponse, TextAnalysisRequest
from labelcheck.models.common import ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analyze", tags=["analyze"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    413: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
    504: {"model": ErrorResponse},
}


def _parse_session_id(value: object) -> UUID:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("session_id is required", field="session_id")
    try:
        return UUID(value.strip())
    except ValueError as e:
        raise ValidationError("session_id must be a UUID", field="session_id") from e


@router.post("", response_model=AnalysisResponse, responses=ERROR_RESPONSES)
async def analyze_label(
    response: Response,
    file: UploadFile = File(...),
    session_id: UUID | None = Form(default=None),
    label_name: str | None = Form(default=None),
    access: AccessContext = Depends(get_access_context),
    analysis_service: AnalysisService = Depends(get_analysis_service),
) -> AnalysisResponse:
    """
    Analyze an uploaded label.

    Flow:
    1. Read the upload (image or PDF)
    2. Normalize, analyze and record through AnalysisService
    3. Return 201 when a new session was started, 200 otherwise

    Args:
        response: Outgoing response (status set per session creation)
        file: Label image or PDF
        session_id: Existing session to continue
        label_name: Optional label name for a new session
        access: Caller access context
        analysis_service: Injected AnalysisService

    Returns:
        AnalysisResponse: Report with session and iteration metadata
    """
    data = await file.read()
    result, session_created = await analysis_service.analyze_label(
        access,
        data=data,
        media_type=file.content_type,
        file_name=file.filename,
        session_id=session_id,
        label_name=label_name,
    )
    response.status_code = 201 if session_created else 200
    return result


@router.post("/text", response_model=AnalysisResponse, responses=ERROR_RESPONSES)
async def analyze_text(
    request: Request,
    access: AccessContext = Depends(get_access_context),
    analysis_service: AnalysisService = Depends(get_analysis_service),
) -> AnalysisResponse:
    """
    Check prospective label content against a session's latest analysis.

    Accepts JSON {session_id, text} or multipart {session_id, pdf}.

    Args:
        request: Incoming request
        access: Caller access context
        analysis_service: Injected AnalysisService

    Returns:
        AnalysisResponse: Report, with a comparison when the session has a prior analysis
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        session_id = _parse_session_id(form.get("session_id"))
        pdf = form.get("pdf")
        if not isinstance(pdf, StarletteUploadFile):
            raise ValidationError("A pdf file is required", field="pdf")
        data = await pdf.read()
        return await analysis_service.analyze_pdf(access, session_id, data, file_name=pdf.filename)

    try:
        body = TextAnalysisRequest.model_validate_json(await request.body())
    except PydanticValidationError as e:
        raise RequestValidationError(e.errors()) from e
    return await analysis_service.analyze_text(access, body.session_id, body.text)


@router.post("/chat", response_model=ChatResponse, responses=ERROR_RESPONSES)
async def chat(
    request: ChatRequest,
    access: AccessContext = Depends(get_access_context),
    analysis_service: AnalysisService = Depends(get_analysis_service),
) -> ChatResponse:
    """
    Answer a follow-up question about a session.

    Args:
        request: ChatRequest with session_id, message and optional parent_iteration_id
        access: Caller access context
        analysis_service: Injected AnalysisService

    Returns:
        ChatResponse: Answer with stored iteration id
    """
    return await analysis_service.chat(
        access,
        request.session_id,
        request.message,
        parent_iteration_id=request.parent_iteration_id,
    )


@router.post("/check-quality", response_model=ImageQualityReport, responses=ERROR_RESPONSES)
async def check_quality(
    file: UploadFile = File(...),
    access: AccessContext = Depends(get_access_context),
    analysis_service: AnalysisService = Depends(get_analysis_service),
) -> ImageQualityReport:
    """
    Assess resolution, blur, brightness and contrast of a label photo.

    No session is touched and no analysis is recorded.

    Args:
        file: Label image
        access: Caller access context
        analysis_service: Injected AnalysisService

    Returns:
        ImageQualityReport: Metrics, issues with suggestions and an overall rating
    """
    data = await file.read()
    logger.debug(
        f"{__name__}:check_quality - Quality check requested",
        extra={"file_size": len(data), "user_id": str(access.user_id)},
    )
    return await analysis_service.check_image_quality(
        data, media_type=file.content_type, file_name=file.filename
    )
