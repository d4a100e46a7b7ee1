from typing import List

from starlette.concurrency import run_in_threadpool

from skillmatch.models.models import Candidate
from skillmatch.services.db import RecordStore
from skillmatch.services.matching import to_percentage
from skillmatch.services.oracles import Embedder
from skillmatch.services.vector_index import VectorIndexHandle
from skillmatch.utils.exceptions import ExternalServiceUnavailable, SkillMatchBaseException, ValidationError
from skillmatch.utils.logging_config import get_logger

logger = get_logger(__name__)

MIN_TOP_K = 1
MAX_TOP_K = 20


def clamp_top_k(top_k: int) -> int:
    return max(MIN_TOP_K, min(MAX_TOP_K, int(top_k)))


class CandidateFinder:
    """Nearest stored resumes for a job description."""

    def __init__(self, store: RecordStore, vectors: VectorIndexHandle, embedder: Embedder):
        self.store = store
        self.vectors = vectors
        self.embedder = embedder

    async def find_candidates(self, job_description: str, top_k: int = 5) -> List[Candidate]:
        if not isinstance(job_description, str) or not job_description.strip():
            raise ValidationError("Job description is required", field="job_description")
        top_k = clamp_top_k(top_k)

        try:
            embedding = await run_in_threadpool(self.embedder.embed, job_description)
        except SkillMatchBaseException:
            raise
        except Exception as e:
            raise ExternalServiceUnavailable(
                f"embedding oracle failed: {e}", service_name="embedding", cause=e
            ) from e

        hits = await self.vectors.find_similar(embedding, top_k, "resume")
        resumes = await self.store.get_resumes_by_ids([h.owner_id for h in hits])

        candidates = []
        for hit in hits:
            resume = resumes.get(hit.owner_id)
            if resume is None:
                # vector outlived its resume
                logger.debug(f"Dropping dangling vector {hit.id}")
                continue
            candidates.append(Candidate(
                resume_id=resume["id"],
                file_name=resume.get("file_name"),
                extracted_skills=resume.get("extracted_skills") or {},
                created_at=resume.get("created_at"),
                similarity_score=to_percentage(hit.score),
            ))
        logger.info(f"Found {len(candidates)} candidates (top_k={top_k})")
        return candidates
