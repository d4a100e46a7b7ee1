import pytest

from skillmatch.services.candidates import CandidateFinder, clamp_top_k
from skillmatch.services.matching import to_percentage
from skillmatch.utils.exceptions import ExternalServiceUnavailable, ValidationError

from conftest import FailingOracle, StubEmbedder


async def seed(store, vectors, n):
    ids = []
    for i in range(n):
        resume = await store.create_resume(f"cv{i}.pdf", "text", {"tools": ["Git"]})
        await vectors.upsert_resume(resume["id"], [1.0, i / 10.0], ["Git"])
        ids.append(resume["id"])
    return ids


@pytest.mark.parametrize("requested,expected", [(-5, 1), (0, 1), (1, 1), (7, 7), (20, 20), (21, 20), (500, 20)])
def test_clamp_top_k(requested, expected):
    assert clamp_top_k(requested) == expected


@pytest.mark.asyncio
async def test_ranked_candidates_with_percentages(store, vectors):
    ids = await seed(store, vectors, 3)
    embedder = StubEmbedder(default=[1.0, 0.0])
    finder = CandidateFinder(store, vectors, embedder)

    candidates = await finder.find_candidates("Looking for a Git expert", top_k=2)

    assert [c.resume_id for c in candidates] == ids[:2]
    assert candidates[0].similarity_score == 100.0
    assert candidates[1].similarity_score == to_percentage(1.0 / (1.0 + 0.01) ** 0.5)
    assert candidates[0].file_name == "cv0.pdf"
    assert candidates[0].extracted_skills == {"tools": ["Git"]}
    assert embedder.calls == ["Looking for a Git expert"]


@pytest.mark.asyncio
@pytest.mark.parametrize("requested,expected", [(0, 1), (-3, 1), (50, 20)])
async def test_top_k_is_clamped(store, vectors, requested, expected):
    await seed(store, vectors, 25)
    finder = CandidateFinder(store, vectors, StubEmbedder(default=[1.0, 0.0]))

    candidates = await finder.find_candidates("Any job", top_k=requested)

    assert len(candidates) == expected


@pytest.mark.asyncio
async def test_only_resume_vectors_are_considered(store, vectors):
    ids = await seed(store, vectors, 1)
    await vectors.upsert_job("job-1", [1.0, 0.0], ["Git"], "Job")
    finder = CandidateFinder(store, vectors, StubEmbedder(default=[1.0, 0.0]))

    candidates = await finder.find_candidates("Any job", top_k=5)

    assert [c.resume_id for c in candidates] == ids


@pytest.mark.asyncio
async def test_dangling_vectors_are_dropped(store, vectors):
    ids = await seed(store, vectors, 3)
    del store.resumes[ids[0]]  # record gone, vector left behind
    finder = CandidateFinder(store, vectors, StubEmbedder(default=[1.0, 0.0]))

    candidates = await finder.find_candidates("Any job", top_k=3)

    assert [c.resume_id for c in candidates] == ids[1:]


@pytest.mark.asyncio
async def test_blank_description_rejected_without_embedding(store, vectors):
    embedder = FailingOracle()
    finder = CandidateFinder(store, vectors, embedder)

    with pytest.raises(ValidationError):
        await finder.find_candidates("   ", top_k=5)

    assert embedder.calls == 0


@pytest.mark.asyncio
async def test_embedding_failure_is_typed(store, vectors):
    finder = CandidateFinder(store, vectors, FailingOracle(ConnectionError("refused")))

    with pytest.raises(ExternalServiceUnavailable) as exc_info:
        await finder.find_candidates("Any job", top_k=5)

    assert exc_info.value.service_name == "embedding"
