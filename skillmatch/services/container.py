from dataclasses import dataclass

from fastapi import Request

from skillmatch import config
from skillmatch.services.candidates import CandidateFinder
from skillmatch.services.db import RecordStore, create_database
from skillmatch.services.documents import DocumentService
from skillmatch.services.graph import MatchOrchestrator
from skillmatch.services.oracles import (
    Embedder,
    OllamaEmbedder,
    OllamaGenerator,
    OllamaSkillExtractor,
    SkillExtractor,
    TextGenerator,
)
from skillmatch.services.vector_index import InMemoryVectorStore, MongoVectorStore, VectorIndexHandle
from skillmatch.utils.exceptions import InternalError
from skillmatch.utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class ServiceContainer:
    store: RecordStore
    vectors: VectorIndexHandle
    orchestrator: MatchOrchestrator
    finder: CandidateFinder
    documents: DocumentService


def wire_services(store, vectors: VectorIndexHandle, extractor: SkillExtractor,
                  embedder: Embedder, generator: TextGenerator) -> ServiceContainer:
    return ServiceContainer(
        store=store,
        vectors=vectors,
        orchestrator=MatchOrchestrator(store, vectors, extractor, embedder, generator),
        finder=CandidateFinder(store, vectors, embedder),
        documents=DocumentService(store, vectors, extractor, embedder),
    )


def build_container() -> ServiceContainer:
    """Build the production services from environment configuration."""
    db = create_database()
    if config.VECTOR_BACKEND == "memory":
        logger.warning("Using in-memory vector store; vectors are lost on restart")
        vector_store = InMemoryVectorStore()
    else:
        vector_store = MongoVectorStore(db[config.VECTOR_COLLECTION])
    vectors = VectorIndexHandle(
        vector_store,
        poll_interval=config.INDEX_POLL_INTERVAL,
        ready_timeout=config.INDEX_READY_TIMEOUT,
    )
    return wire_services(
        RecordStore(db), vectors,
        OllamaSkillExtractor(), OllamaEmbedder(), OllamaGenerator(),
    )


def get_container(request: Request) -> ServiceContainer:
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise InternalError("Services are not initialized")
    return container
