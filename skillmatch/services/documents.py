from typing import Any, Dict

from starlette.concurrency import run_in_threadpool

from skillmatch.services.db import RecordStore
from skillmatch.services.normalizer import combined_skills, normalize_profile
from skillmatch.services.oracles import Embedder, SkillExtractor
from skillmatch.services.vector_index import VectorIndexHandle, vector_id_for
from skillmatch.utils.exceptions import (
    ExternalServiceUnavailable,
    ExtractionFailure,
    NotFoundError,
    SkillMatchBaseException,
    ValidationError,
)
from skillmatch.utils.logging_config import get_logger

logger = get_logger(__name__)

MIN_RESUME_LENGTH = 100


class DocumentService:
    """Resume ingestion and resume/job deletion, keeping vectors in step with records."""

    def __init__(self, store: RecordStore, vectors: VectorIndexHandle,
                 extractor: SkillExtractor, embedder: Embedder):
        self.store = store
        self.vectors = vectors
        self.extractor = extractor
        self.embedder = embedder

    async def ingest_resume(self, file_name: str, raw_text: str) -> Dict[str, Any]:
        if len(raw_text or "") < MIN_RESUME_LENGTH:
            raise ValidationError(
                "Resume content is too short. Please upload a complete resume.", field="file"
            )

        try:
            profile = normalize_profile(await run_in_threadpool(self.extractor.extract_skills, raw_text))
        except SkillMatchBaseException:
            raise
        except Exception as e:
            raise ExtractionFailure(f"Failed to extract skills: {e}", cause=e) from e

        try:
            embedding = await run_in_threadpool(self.embedder.embed, raw_text)
        except SkillMatchBaseException:
            raise
        except Exception as e:
            raise ExternalServiceUnavailable(
                f"embedding oracle failed: {e}", service_name="embedding", cause=e
            ) from e

        resume = await self.store.create_resume(file_name, raw_text, profile.model_dump())
        vector_id = await self.vectors.upsert_resume(
            resume["id"], embedding, combined_skills(profile), profile.current_role
        )
        await self.store.set_resume_vector(resume["id"], vector_id)
        resume["vector_id"] = vector_id
        logger.info(f"Resume processed successfully: {resume['id']}")
        return resume

    async def delete_resume(self, resume_id: str) -> None:
        resume = await self.store.get_resume(resume_id)
        if not resume:
            raise NotFoundError("Resume not found", resource="resume", resource_id=resume_id)
        await self.vectors.delete_vector(resume.get("vector_id") or vector_id_for("resume", resume_id))
        await self.store.delete_resume(resume_id)
        logger.info(f"Deleted resume {resume_id}")

    async def delete_job(self, job_id: str) -> None:
        job = await self.store.get_job(job_id)
        if not job:
            raise NotFoundError("Job not found", resource="job", resource_id=job_id)
        await self.vectors.delete_vector(job.get("vector_id") or vector_id_for("job", job_id))
        await self.store.delete_job(job_id)
        logger.info(f"Deleted job {job_id}")
