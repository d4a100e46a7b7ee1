"""
Match orchestration as a LangGraph state machine.

validate_input -> lookup_resume -> extract_job_skills -> embed_job ->
persist_job_record -> index_job_vector -> embed_resume -> query_similarity ->
reconcile_gaps -> generate_questions -> generate_recommendations -> upsert_match

Every step runs once. The first failure aborts the run and propagates; job and
vector records written before the failure are left in place.
"""
from typing import Any, Callable, Dict, List, Optional, TypedDict

from langgraph.graph import StateGraph, END
from starlette.concurrency import run_in_threadpool

from skillmatch.models.models import MatchResult, SkillGap, SkillProfile
from skillmatch.models.requests import JobMatchRequest
from skillmatch.services.db import RecordStore
from skillmatch.services.matching import reconcile, to_percentage
from skillmatch.services.normalizer import combined_skills, normalize_profile
from skillmatch.services.oracles import (
    Embedder,
    SkillExtractor,
    TextGenerator,
    interview_questions,
    recommendations_for,
)
from skillmatch.services.vector_index import VectorIndexHandle
from skillmatch.utils.exceptions import (
    ExternalServiceUnavailable,
    ExtractionFailure,
    NotFoundError,
    SkillMatchBaseException,
    ValidationError,
)
from skillmatch.utils.logging_config import get_logger

logger = get_logger(__name__)

MIN_DESCRIPTION_LENGTH = 50
SIMILARITY_TOP_K = 10


class MatchState(TypedDict, total=False):
    request: JobMatchRequest
    resume: Dict[str, Any]
    job_profile: SkillProfile
    job_embedding: List[float]
    job: Dict[str, Any]
    job_vector_id: str
    resume_embedding: List[float]
    similarity_score: float
    skill_gaps: SkillGap
    questions: List[str]
    advice: List[str]
    match: MatchResult


async def _call_oracle(service_name: str, fn: Callable, *args) -> Any:
    try:
        return await run_in_threadpool(fn, *args)
    except SkillMatchBaseException:
        raise
    except Exception as e:
        if service_name == "extraction":
            raise ExtractionFailure(f"Failed to extract skills: {e}", cause=e) from e
        raise ExternalServiceUnavailable(
            f"{service_name} oracle failed: {e}", service_name=service_name, cause=e
        ) from e


class MatchOrchestrator:
    def __init__(
        self,
        store: RecordStore,
        vectors: VectorIndexHandle,
        extractor: SkillExtractor,
        embedder: Embedder,
        generator: TextGenerator,
    ):
        self.store = store
        self.vectors = vectors
        self.extractor = extractor
        self.embedder = embedder
        self.generator = generator
        self.graph = self.build_graph()

    # -------- nodes --------
    async def validate_input(self, state: MatchState):
        req = state["request"]
        if not (req.resume_id or "").strip():
            raise ValidationError("Resume ID is required", field="resume_id")
        if not (req.job_title or "").strip():
            raise ValidationError("Job title is required", field="job_title")
        if len(req.job_description or "") < MIN_DESCRIPTION_LENGTH:
            raise ValidationError(
                f"Job description must be at least {MIN_DESCRIPTION_LENGTH} characters",
                field="job_description",
            )
        return {}

    async def lookup_resume(self, state: MatchState):
        resume_id = state["request"].resume_id
        resume = await self.store.get_resume(resume_id)
        if not resume:
            raise NotFoundError("Resume not found", resource="resume", resource_id=resume_id)
        logger.info(f"Matching job '{state['request'].job_title}' against resume {resume_id}")
        return {"resume": resume}

    async def extract_job_skills(self, state: MatchState):
        raw = await _call_oracle("extraction", self.extractor.extract_skills, state["request"].job_description)
        return {"job_profile": normalize_profile(raw)}

    async def embed_job(self, state: MatchState):
        embedding = await _call_oracle("embedding", self.embedder.embed, state["request"].job_description)
        return {"job_embedding": embedding}

    async def persist_job_record(self, state: MatchState):
        req = state["request"]
        job = await self.store.create_job(
            title=req.job_title,
            description=req.job_description,
            required_skills=state["job_profile"].model_dump(),
            company=req.company,
        )
        return {"job": job}

    async def index_job_vector(self, state: MatchState):
        job = state["job"]
        vector_id = await self.vectors.upsert_job(
            job["id"], state["job_embedding"], combined_skills(state["job_profile"]), job["title"]
        )
        await self.store.set_job_vector(job["id"], vector_id)
        return {"job_vector_id": vector_id}

    async def embed_resume(self, state: MatchState):
        embedding = await _call_oracle("embedding", self.embedder.embed, state["resume"].get("raw_text", ""))
        return {"resume_embedding": embedding}

    async def query_similarity(self, state: MatchState):
        hits = await self.vectors.find_similar(state["resume_embedding"], SIMILARITY_TOP_K, "job")
        hit = next((h for h in hits if h.id == state["job_vector_id"]), None)
        if hit is None:
            logger.warning(
                f"Job vector {state['job_vector_id']} not among top {SIMILARITY_TOP_K} results, scoring 0"
            )
            return {"similarity_score": 0.0}
        return {"similarity_score": to_percentage(hit.score)}

    async def reconcile_gaps(self, state: MatchState):
        resume_profile = normalize_profile(state["resume"].get("extracted_skills"))
        return {"skill_gaps": reconcile(resume_profile, state["job_profile"])}

    async def generate_questions(self, state: MatchState):
        questions = await run_in_threadpool(
            interview_questions, self.generator, state["skill_gaps"], state["request"].job_title
        )
        return {"questions": questions}

    async def generate_recommendations(self, state: MatchState):
        advice = await run_in_threadpool(
            recommendations_for, self.generator, state["skill_gaps"], state["request"].job_title
        )
        return {"advice": advice}

    async def upsert_match(self, state: MatchState):
        req = state["request"]
        job = state["job"]
        gaps = state["skill_gaps"]
        doc = await self.store.upsert_match(req.resume_id, job["id"], {
            "job_title": req.job_title,
            "similarity_score": state["similarity_score"],
            "skill_gaps": gaps.model_dump(),
            "matched_skills": list(gaps.matched),
            "interview_questions": state["questions"],
            "recommendations": state["advice"],
        })
        logger.info(f"Match saved: {doc['id']} with score {state['similarity_score']}%")
        match = MatchResult(
            id=doc["id"],
            resume_id=req.resume_id,
            job_id=job["id"],
            job_title=req.job_title,
            similarity_score=state["similarity_score"],
            skill_gaps=gaps,
            matched_skills=list(gaps.matched),
            interview_questions=state["questions"],
            recommendations=state["advice"],
        )
        return {"match": match}

    def build_graph(self):
        steps = [
            ("validate_input", self.validate_input),
            ("lookup_resume", self.lookup_resume),
            ("extract_job_skills", self.extract_job_skills),
            ("embed_job", self.embed_job),
            ("persist_job_record", self.persist_job_record),
            ("index_job_vector", self.index_job_vector),
            ("embed_resume", self.embed_resume),
            ("query_similarity", self.query_similarity),
            ("reconcile_gaps", self.reconcile_gaps),
            ("generate_questions", self.generate_questions),
            ("generate_recommendations", self.generate_recommendations),
            ("upsert_match", self.upsert_match),
        ]
        g = StateGraph(MatchState)
        for name, node in steps:
            g.add_node(name, node)
        g.set_entry_point(steps[0][0])
        for (prev, _), (nxt, _) in zip(steps, steps[1:]):
            g.add_edge(prev, nxt)
        g.add_edge(steps[-1][0], END)
        return g.compile()

    async def run(self, request: JobMatchRequest) -> MatchResult:
        final: Optional[MatchState] = await self.graph.ainvoke({"request": request})
        return final["match"]
