from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from starlette.concurrency import run_in_threadpool

from skillmatch.helpers.parsing import extract_text, validate_upload
from skillmatch.models.response import ApiResponse, Page, ResumeUploadResponse
from skillmatch.models.schemas import MatchModel, ResumeDetail, ResumeSummary
from skillmatch.services.container import ServiceContainer, get_container
from skillmatch.utils.exceptions import ExceptionContext, NotFoundError
from skillmatch.utils.logging_config import get_logger, PerformanceMonitor

router = APIRouter()
logger = get_logger(__name__)

MAX_PAGE_SIZE = 50


@router.post("/upload", response_model=ApiResponse, status_code=201)
async def upload_resume(
    request: Request,
    file: UploadFile = File(...),
    services: ServiceContainer = Depends(get_container),
):
    """Upload and analyze a resume"""
    request_id = getattr(request.state, 'request_id', 'unknown')
    data = await file.read()
    validate_upload(file.filename, file.content_type, len(data))

    logger.info(f"Processing file: {file.filename}", extra={"request_id": request_id})
    with PerformanceMonitor("upload_resume", logger, threshold_ms=10000):
        raw_text = await run_in_threadpool(extract_text, data, file.filename)
        with ExceptionContext("ingest_resume", logger, request_id=request_id, file_name=file.filename):
            resume = await services.documents.ingest_resume(file.filename, raw_text)

    return ApiResponse(data=ResumeUploadResponse(
        id=resume["id"],
        file_name=resume["file_name"],
        extracted_skills=resume["extracted_skills"],
        vector_id=resume["vector_id"],
        created_at=resume["created_at"],
    ))


@router.get("", response_model=ApiResponse)
async def list_resumes(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    services: ServiceContainer = Depends(get_container),
):
    """Get all resumes, newest first"""
    limit = min(limit, MAX_PAGE_SIZE)
    with ExceptionContext("list_resumes", logger, page=page, limit=limit):
        docs, total = await services.store.list_resumes(skip=(page - 1) * limit, limit=limit)
        items = [ResumeSummary(**d) for d in docs]
    return ApiResponse(data=Page(items=items, page=page, limit=limit, total=total))


@router.get("/{resume_id}", response_model=ApiResponse)
async def get_resume(resume_id: str, services: ServiceContainer = Depends(get_container)):
    """Get a single resume with its job matches"""
    with ExceptionContext("fetch_resume", logger, resume_id=resume_id):
        resume = await services.store.get_resume(resume_id)
        if not resume:
            raise NotFoundError("Resume not found", resource="resume", resource_id=resume_id)
        matches = await services.store.list_matches_for_resume(resume_id)
    detail = ResumeDetail(**resume, job_matches=[MatchModel(**m) for m in matches])
    return ApiResponse(data=detail)


@router.delete("/{resume_id}", response_model=ApiResponse)
async def delete_resume(resume_id: str, services: ServiceContainer = Depends(get_container)):
    """Delete a resume, its vector and its matches"""
    with ExceptionContext("delete_resume", logger, resume_id=resume_id):
        await services.documents.delete_resume(resume_id)
    return ApiResponse(data={"message": "Resume deleted successfully"})
