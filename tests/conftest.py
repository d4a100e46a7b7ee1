"""
Pytest configuration and shared fixtures.

Deterministic stand-ins for the oracles and an in-memory record store, so the
pipeline can be exercised without Ollama or MongoDB.
"""
import os
import uuid
from datetime import datetime
from typing import Any, Dict, List

os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("VECTOR_BACKEND", "memory")

import pytest

from skillmatch.services.container import wire_services
from skillmatch.services.vector_index import InMemoryVectorStore, VectorIndexHandle

RESUME_TEXT = (
    "Jane Doe. Senior backend engineer with eight years of experience building "
    "Python services with Django and Docker on AWS. Led a team of five."
)
JOB_DESCRIPTION = (
    "We are hiring a backend engineer to build Python APIs with Django, "
    "deploy on AWS and containerise services with Docker and Kubernetes."
)


class StubExtractor:
    def __init__(self, profiles: Dict[str, Any] = None, default: Any = None):
        self.profiles = profiles or {}
        self.default = default if default is not None else {}
        self.calls: List[str] = []

    def extract_skills(self, text):
        self.calls.append(text)
        return self.profiles.get(text, self.default)


class StubEmbedder:
    def __init__(self, vectors: Dict[str, List[float]] = None, default=None):
        self.vectors = vectors or {}
        self.default = default or [1.0, 0.0, 0.0]
        self.calls: List[str] = []

    def embed(self, text):
        self.calls.append(text)
        return self.vectors.get(text, self.default)


class StubGenerator:
    def __init__(self, payload: Any = None, error: Exception = None):
        self.payload = payload
        self.error = error
        self.prompts: List[str] = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.payload


class FailingOracle:
    """Raises on any call; used to prove a step never ran or to fail one."""

    def __init__(self, error: Exception = None):
        self.error = error or RuntimeError("oracle down")
        self.calls = 0

    def _fail(self, *args):
        self.calls += 1
        raise self.error

    extract_skills = _fail
    embed = _fail
    generate = _fail


class MemoryRecordStore:
    """In-memory stand-in for RecordStore with the same coroutine API."""

    def __init__(self):
        self.resumes: Dict[str, Dict[str, Any]] = {}
        self.jobs: Dict[str, Dict[str, Any]] = {}
        self.matches: Dict[tuple, Dict[str, Any]] = {}

    async def init_indexes(self):
        return None

    async def create_resume(self, file_name, raw_text, extracted_skills):
        doc = {
            "id": str(uuid.uuid4()), "file_name": file_name, "raw_text": raw_text,
            "extracted_skills": extracted_skills, "vector_id": None, "created_at": datetime.utcnow(),
        }
        self.resumes[doc["id"]] = doc
        return dict(doc)

    async def get_resume(self, resume_id):
        doc = self.resumes.get(resume_id)
        return dict(doc) if doc else None

    async def get_resumes_by_ids(self, resume_ids):
        return {i: dict(self.resumes[i]) for i in resume_ids if i in self.resumes}

    async def list_resumes(self, skip=0, limit=10):
        docs = sorted(self.resumes.values(), key=lambda d: d["created_at"], reverse=True)
        page = [
            {**d, "match_count": sum(1 for k in self.matches if k[0] == d["id"])}
            for d in docs[skip:skip + limit]
        ]
        return page, len(docs)

    async def set_resume_vector(self, resume_id, vector_id):
        self.resumes[resume_id]["vector_id"] = vector_id

    async def delete_resume(self, resume_id):
        for key in [k for k in self.matches if k[0] == resume_id]:
            del self.matches[key]
        return self.resumes.pop(resume_id, None) is not None

    async def create_job(self, title, description, required_skills, company=None):
        doc = {
            "id": str(uuid.uuid4()), "title": title, "company": company, "description": description,
            "required_skills": required_skills, "vector_id": None, "created_at": datetime.utcnow(),
        }
        self.jobs[doc["id"]] = doc
        return dict(doc)

    async def get_job(self, job_id):
        doc = self.jobs.get(job_id)
        return dict(doc) if doc else None

    async def list_jobs(self, skip=0, limit=10):
        docs = sorted(self.jobs.values(), key=lambda d: d["created_at"], reverse=True)
        page = [
            {**d, "match_count": sum(1 for k in self.matches if k[1] == d["id"])}
            for d in docs[skip:skip + limit]
        ]
        return page, len(docs)

    async def set_job_vector(self, job_id, vector_id):
        self.jobs[job_id]["vector_id"] = vector_id

    async def delete_job(self, job_id):
        for key in [k for k in self.matches if k[1] == job_id]:
            del self.matches[key]
        return self.jobs.pop(job_id, None) is not None

    async def upsert_match(self, resume_id, job_id, fields):
        key = (resume_id, job_id)
        now = datetime.utcnow()
        existing = self.matches.get(key)
        if existing is None:
            existing = {"id": str(uuid.uuid4()), "resume_id": resume_id, "job_id": job_id, "created_at": now}
        existing.update(fields, updated_at=now)
        self.matches[key] = existing
        return dict(existing)

    async def list_matches_for_job(self, job_id):
        found = [dict(m) for k, m in self.matches.items() if k[1] == job_id]
        return sorted(found, key=lambda m: m["similarity_score"], reverse=True)

    async def list_matches_for_resume(self, resume_id):
        found = [dict(m) for k, m in self.matches.items() if k[0] == resume_id]
        return sorted(found, key=lambda m: m["similarity_score"], reverse=True)


@pytest.fixture
def resume_profile() -> Dict[str, Any]:
    return {
        "technicalSkills": ["Python", "AWS"],
        "frameworks": ["Django", "React"],
        "languages": ["English"],
        "tools": ["Docker"],
        "softSkills": ["Leadership"],
        "yearsOfExperience": 8,
        "currentRole": "Senior Backend Engineer",
    }


@pytest.fixture
def job_profile() -> Dict[str, Any]:
    return {
        "technicalSkills": ["Python", "AWS"],
        "frameworks": ["Django", "React.js"],
        "tools": ["Docker", "Kubernetes"],
        "softSkills": ["Communication"],
    }


@pytest.fixture
def store():
    return MemoryRecordStore()


@pytest.fixture
def vector_store():
    return InMemoryVectorStore()


@pytest.fixture
def vectors(vector_store):
    return VectorIndexHandle(vector_store, poll_interval=0.01, ready_timeout=0.1)


@pytest.fixture
def extractor(resume_profile, job_profile):
    return StubExtractor({RESUME_TEXT: resume_profile, JOB_DESCRIPTION: job_profile})


@pytest.fixture
def embedder():
    return StubEmbedder({
        RESUME_TEXT: [0.9, 0.1, 0.0],
        JOB_DESCRIPTION: [1.0, 0.0, 0.0],
    })


@pytest.fixture
def generator():
    return StubGenerator({
        "questions": [f"Question {i}?" for i in range(1, 10)],
        "recommendations": [f"Recommendation {i}" for i in range(1, 10)],
    })


@pytest.fixture
def services(store, vectors, extractor, embedder, generator):
    return wire_services(store, vectors, extractor, embedder, generator)
