from fastapi import APIRouter, Depends, Query, Request

from skillmatch.models.requests import FindCandidatesRequest, JobMatchRequest
from skillmatch.models.response import ApiResponse, Page
from skillmatch.models.schemas import JobSummary, MatchModel
from skillmatch.services.container import ServiceContainer, get_container
from skillmatch.utils.exceptions import ExceptionContext, NotFoundError
from skillmatch.utils.logging_config import get_logger, PerformanceMonitor

router = APIRouter()
logger = get_logger(__name__)

MAX_PAGE_SIZE = 50


@router.post("/match", response_model=ApiResponse, status_code=201)
async def match_job(
    payload: JobMatchRequest,
    request: Request,
    services: ServiceContainer = Depends(get_container),
):
    """Match a job description against a resume"""
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.info(
        f"Match requested for resume {payload.resume_id}",
        extra={"request_id": request_id, "resume_id": payload.resume_id}
    )
    with PerformanceMonitor("match_job", logger, threshold_ms=15000):
        with ExceptionContext("match_job", logger, request_id=request_id, resume_id=payload.resume_id):
            result = await services.orchestrator.run(payload)
    return ApiResponse(data=result)


@router.post("/find-candidates", response_model=ApiResponse)
async def find_candidates(payload: FindCandidatesRequest, services: ServiceContainer = Depends(get_container)):
    """Find best matching resumes for a job description"""
    with ExceptionContext("find_candidates", logger, top_k=payload.top_k):
        candidates = await services.finder.find_candidates(payload.job_description, payload.top_k)
    return ApiResponse(data=candidates)


@router.get("", response_model=ApiResponse)
async def list_jobs(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    services: ServiceContainer = Depends(get_container),
):
    """Get all job descriptions, newest first"""
    limit = min(limit, MAX_PAGE_SIZE)
    with ExceptionContext("list_jobs", logger, page=page, limit=limit):
        docs, total = await services.store.list_jobs(skip=(page - 1) * limit, limit=limit)
        items = [JobSummary(**d) for d in docs]
    return ApiResponse(data=Page(items=items, page=page, limit=limit, total=total))


@router.get("/{job_id}/matches", response_model=ApiResponse)
async def get_job_matches(job_id: str, services: ServiceContainer = Depends(get_container)):
    """Get all matches for a job, best first"""
    with ExceptionContext("fetch_job_matches", logger, job_id=job_id):
        job = await services.store.get_job(job_id)
        if not job:
            raise NotFoundError("Job not found", resource="job", resource_id=job_id)
        matches = await services.store.list_matches_for_job(job_id)
    return ApiResponse(data=[MatchModel(**m) for m in matches])


@router.delete("/{job_id}", response_model=ApiResponse)
async def delete_job(job_id: str, services: ServiceContainer = Depends(get_container)):
    """Delete a job description, its vector and its matches"""
    with ExceptionContext("delete_job", logger, job_id=job_id):
        await services.documents.delete_job(job_id)
    return ApiResponse(data={"message": "Job deleted successfully"})
