"""
Vector index for resume and job embeddings.

A store backend holds VectorRecords and ranks them by cosine similarity.
VectorIndexHandle owns one backend, initialises it once (single flight) and
is shared by the match orchestrator and the candidate finder.
"""
import asyncio
import time
from typing import Dict, Iterable, List, Optional, Protocol

import numpy as np
from pymongo import ASCENDING

from skillmatch.models.models import VectorKind, VectorMatch, VectorRecord
from skillmatch.utils.exceptions import (
    ExternalServiceUnavailable,
    SkillMatchBaseException,
    VectorIndexTimeout,
)
from skillmatch.utils.logging_config import get_logger

logger = get_logger(__name__)


def vector_id_for(kind: VectorKind, owner_id: str) -> str:
    return f"{kind}_{owner_id}"


def rank_records(records: Iterable[VectorRecord], embedding: List[float], top_k: int) -> List[VectorMatch]:
    records = list(records)
    if not records or top_k <= 0:
        return []
    q = np.asarray(embedding, dtype=np.float32).reshape(-1,)
    mat = np.asarray([r.embedding for r in records], dtype=np.float32)
    if mat.ndim != 2 or mat.shape[1] != q.shape[0]:
        raise ValueError(f"embedding dimension mismatch: index={mat.shape}, query={q.shape}")
    norms = np.linalg.norm(mat, axis=1) * np.linalg.norm(q)
    norms[norms == 0] = np.inf
    sims = (mat @ q) / norms
    idx = np.argsort(-sims, kind="stable")[:top_k]
    return [
        VectorMatch(
            id=records[i].vector_id,
            score=float(sims[i]),
            kind=records[i].kind,
            owner_id=records[i].owner_id,
            skills=records[i].skills,
            title=records[i].title,
        )
        for i in idx
    ]


class VectorStore(Protocol):
    async def create_if_missing(self) -> None: ...
    async def is_ready(self) -> bool: ...
    async def upsert(self, record: VectorRecord) -> None: ...
    async def query(self, embedding: List[float], top_k: int, kind: Optional[VectorKind] = None) -> List[VectorMatch]: ...
    async def delete(self, vector_id: str) -> None: ...


class InMemoryVectorStore:
    """Process-local store, for development runs and tests."""

    def __init__(self):
        self.records: Dict[str, VectorRecord] = {}

    async def create_if_missing(self) -> None:
        return None

    async def is_ready(self) -> bool:
        return True

    async def upsert(self, record: VectorRecord) -> None:
        self.records[record.vector_id] = record

    async def query(self, embedding, top_k, kind=None):
        candidates = [r for r in self.records.values() if kind is None or r.kind == kind]
        return rank_records(candidates, embedding, top_k)

    async def delete(self, vector_id: str) -> None:
        self.records.pop(vector_id, None)


class MongoVectorStore:
    """Embeddings kept in a Mongo collection, ranked with numpy."""

    def __init__(self, collection):
        self.collection = collection

    async def create_if_missing(self) -> None:
        await self.collection.create_index([("kind", ASCENDING)])
        await self.collection.create_index([("owner_id", ASCENDING)])

    async def is_ready(self) -> bool:
        result = await self.collection.database.command("ping")
        return bool(result.get("ok"))

    async def upsert(self, record: VectorRecord) -> None:
        doc = record.model_dump()
        await self.collection.replace_one({"_id": record.vector_id}, {"_id": record.vector_id, **doc}, upsert=True)

    async def query(self, embedding, top_k, kind=None):
        query = {"kind": kind} if kind else {}
        docs = await self.collection.find(query, {"_id": 0}).to_list(length=None)
        return rank_records([VectorRecord(**d) for d in docs], embedding, top_k)

    async def delete(self, vector_id: str) -> None:
        await self.collection.delete_one({"_id": vector_id})


class VectorIndexHandle:
    """Lazily initialised, single-flight guarded handle over a VectorStore."""

    def __init__(self, store: VectorStore, poll_interval: float = 2.0, ready_timeout: float = 60.0):
        self.store = store
        self.poll_interval = poll_interval
        self.ready_timeout = ready_timeout
        self._ready = False
        self._lock = asyncio.Lock()

    @property
    def ready(self) -> bool:
        return self._ready

    async def ensure_ready(self) -> None:
        if self._ready:
            return
        async with self._lock:
            if self._ready:
                return
            try:
                await self.store.create_if_missing()
                await self._wait_until_ready()
            except SkillMatchBaseException:
                raise
            except Exception as e:
                logger.error(f"Error initializing vector index: {e}")
                raise ExternalServiceUnavailable(
                    "Failed to initialize vector index", service_name="vector_index", cause=e
                ) from e
            self._ready = True
            logger.info("Vector index is ready")

    async def _wait_until_ready(self) -> None:
        deadline = time.monotonic() + self.ready_timeout
        while True:
            try:
                if await self.store.is_ready():
                    return
            except Exception as e:
                # not queryable yet
                logger.debug(f"Vector index not ready yet: {e}")
            if time.monotonic() + self.poll_interval > deadline:
                raise VectorIndexTimeout(
                    "Timeout waiting for vector index to be ready", timeout=self.ready_timeout
                )
            await asyncio.sleep(self.poll_interval)

    async def _upsert(self, kind: VectorKind, owner_id: str, embedding: List[float],
                      skills: List[str], title: Optional[str]) -> str:
        await self.ensure_ready()
        vector_id = vector_id_for(kind, owner_id)
        record = VectorRecord(
            vector_id=vector_id, kind=kind, owner_id=owner_id,
            embedding=embedding, skills=list(skills), title=title or "",
        )
        try:
            await self.store.upsert(record)
        except Exception as e:
            logger.error(f"Error upserting {kind} vector: {e}")
            raise ExternalServiceUnavailable(
                f"Failed to store {kind} in vector index", service_name="vector_index", cause=e
            ) from e
        logger.info(f"Upserted {kind} vector: {vector_id}")
        return vector_id

    async def upsert_resume(self, resume_id: str, embedding: List[float], skills: List[str],
                            title: Optional[str] = None) -> str:
        return await self._upsert("resume", resume_id, embedding, skills, title)

    async def upsert_job(self, job_id: str, embedding: List[float], skills: List[str], title: str) -> str:
        return await self._upsert("job", job_id, embedding, skills, title)

    async def find_similar(self, embedding: List[float], top_k: int = 5,
                           kind: Optional[VectorKind] = None) -> List[VectorMatch]:
        await self.ensure_ready()
        try:
            return await self.store.query(embedding, top_k, kind)
        except Exception as e:
            logger.error(f"Error querying similar vectors: {e}")
            raise ExternalServiceUnavailable(
                "Failed to search vector index", service_name="vector_index", cause=e
            ) from e

    async def delete_vector(self, vector_id: str) -> None:
        await self.ensure_ready()
        try:
            await self.store.delete(vector_id)
        except Exception as e:
            logger.error(f"Error deleting vector {vector_id}: {e}")
            raise ExternalServiceUnavailable(
                f"Failed to delete vector {vector_id}", service_name="vector_index", cause=e
            ) from e
        logger.info(f"Deleted vector: {vector_id}")
