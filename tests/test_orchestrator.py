import pytest

from skillmatch.models.requests import JobMatchRequest
from skillmatch.services.container import wire_services
from skillmatch.services.matching import to_percentage
from skillmatch.utils.exceptions import (
    ExternalServiceUnavailable,
    ExtractionFailure,
    NotFoundError,
    ValidationError,
)

from conftest import JOB_DESCRIPTION, RESUME_TEXT, FailingOracle, StubEmbedder, StubGenerator


async def seed_resume(services) -> str:
    resume = await services.documents.ingest_resume("jane.pdf", RESUME_TEXT)
    return resume["id"]


def match_request(resume_id, **overrides):
    data = {"resume_id": resume_id, "job_title": "Backend Engineer", "job_description": JOB_DESCRIPTION}
    data.update(overrides)
    return JobMatchRequest(**data)


@pytest.mark.asyncio
async def test_match_happy_path(services, store, vector_store, extractor, embedder, generator):
    resume_id = await seed_resume(services)

    result = await services.orchestrator.run(match_request(resume_id, company="Acme"))

    assert result.resume_id == resume_id
    assert result.job_title == "Backend Engineer"
    assert result.skill_gaps.matched == ["Python", "AWS", "Django", "Docker"]
    assert result.skill_gaps.partial == ["React.js"]
    assert result.skill_gaps.missing == ["Kubernetes"]
    assert result.matched_skills == result.skill_gaps.matched
    assert result.similarity_score == to_percentage(0.9 / (0.81 + 0.01) ** 0.5)
    assert len(result.interview_questions) == 7
    assert len(result.recommendations) == 5

    job = store.jobs[result.job_id]
    assert job["company"] == "Acme"
    assert job["vector_id"] == f"job_{result.job_id}"
    assert job["required_skills"]["tools"] == ["Docker", "Kubernetes"]
    assert vector_store.records[f"job_{result.job_id}"].skills == [
        "Python", "AWS", "Django", "React.js", "Docker", "Kubernetes"
    ]
    assert store.matches[(resume_id, result.job_id)]["id"] == result.id


@pytest.mark.asyncio
@pytest.mark.parametrize("overrides,field", [
    ({"resume_id": ""}, "resume_id"),
    ({"resume_id": "   "}, "resume_id"),
    ({"job_title": ""}, "job_title"),
    ({"job_description": "x" * 49}, "job_description"),
])
async def test_invalid_input_fails_before_any_oracle_call(store, vectors, overrides, field):
    extractor, embedder, generator = FailingOracle(), FailingOracle(), FailingOracle()
    services = wire_services(store, vectors, extractor, embedder, generator)

    with pytest.raises(ValidationError) as exc_info:
        await services.orchestrator.run(match_request(**{"resume_id": "some-id", **overrides}))

    assert exc_info.value.details["field"] == field
    assert extractor.calls == embedder.calls == generator.calls == 0
    assert store.jobs == {}
    assert not vectors.ready


@pytest.mark.asyncio
async def test_description_of_exactly_fifty_characters_is_accepted(services, store):
    resume_id = await seed_resume(services)
    result = await services.orchestrator.run(match_request(resume_id, job_description="y" * 50))
    assert result.job_id in store.jobs


@pytest.mark.asyncio
async def test_unknown_resume_creates_nothing(services, store, vector_store, extractor):
    calls_before = len(extractor.calls)

    with pytest.raises(NotFoundError):
        await services.orchestrator.run(match_request("missing-resume"))

    assert store.jobs == {}
    assert not any(k.startswith("job_") for k in vector_store.records)
    assert len(extractor.calls) == calls_before


@pytest.mark.asyncio
async def test_extraction_failure_is_typed(store, vectors, extractor, embedder, generator):
    services = wire_services(store, vectors, extractor, embedder, generator)
    resume_id = await seed_resume(services)
    services.orchestrator.extractor = FailingOracle(ConnectionError("ollama down"))

    with pytest.raises(ExtractionFailure) as exc_info:
        await services.orchestrator.run(match_request(resume_id))

    assert exc_info.value.service_name == "extraction"
    assert store.jobs == {}


@pytest.mark.asyncio
async def test_resume_embedding_failure_leaves_job_in_place(services, store, vector_store):
    resume_id = await seed_resume(services)

    class JobOnlyEmbedder(StubEmbedder):
        def embed(self, text):
            if text == RESUME_TEXT:
                raise TimeoutError("embedding timed out")
            return super().embed(text)

    services.orchestrator.embedder = JobOnlyEmbedder()

    with pytest.raises(ExternalServiceUnavailable) as exc_info:
        await services.orchestrator.run(match_request(resume_id))

    assert exc_info.value.service_name == "embedding"
    # no rollback: the job and its vector survive the failed run
    assert len(store.jobs) == 1
    job_id = next(iter(store.jobs))
    assert f"job_{job_id}" in vector_store.records
    assert store.matches == {}


@pytest.mark.asyncio
async def test_job_vector_outside_top_ten_scores_zero(services, vectors):
    resume_id = await seed_resume(services)
    # eleven jobs that sit closer to the resume than the one being matched
    for i in range(11):
        await vectors.upsert_job(f"decoy{i}", [0.9, 0.1, 0.0], [], "Decoy")
    services.orchestrator.embedder = StubEmbedder({
        RESUME_TEXT: [0.9, 0.1, 0.0],
        JOB_DESCRIPTION: [0.0, 0.0, 1.0],
    })

    result = await services.orchestrator.run(match_request(resume_id))

    assert result.similarity_score == 0.0
    assert result.skill_gaps.matched  # the rest of the pipeline still ran


@pytest.mark.asyncio
async def test_generator_failure_uses_fallbacks(services):
    resume_id = await seed_resume(services)
    services.orchestrator.generator = StubGenerator(error=RuntimeError("model overloaded"))

    result = await services.orchestrator.run(match_request(resume_id))

    assert result.interview_questions[0] == (
        "Tell me about your experience relevant to this Backend Engineer role."
    )
    assert len(result.interview_questions) == 5
    assert result.recommendations[0] == "Focus on learning: Kubernetes"
    assert len(result.recommendations) == 4


@pytest.mark.asyncio
async def test_repeated_match_for_same_pair_overwrites(services, store):
    resume_id = await seed_resume(services)
    first = await services.orchestrator.run(match_request(resume_id))

    # replay the final step for the same (resume, job) pair with new values
    second = await services.orchestrator.upsert_match({
        "request": match_request(resume_id),
        "job": store.jobs[first.job_id],
        "similarity_score": 12.5,
        "skill_gaps": first.skill_gaps,
        "questions": ["Only one?"],
        "advice": ["Learn k8s"],
    })

    assert second["match"].id == first.id
    assert len(store.matches) == 1
    saved = store.matches[(resume_id, first.job_id)]
    assert saved["similarity_score"] == 12.5
    assert saved["interview_questions"] == ["Only one?"]
    assert saved["recommendations"] == ["Learn k8s"]


@pytest.mark.asyncio
async def test_two_runs_with_same_description_give_one_match_per_pair(services, store):
    resume_id = await seed_resume(services)

    a = await services.orchestrator.run(match_request(resume_id))
    b = await services.orchestrator.run(match_request(resume_id))

    assert a.job_id != b.job_id
    assert sorted(store.matches) == sorted([(resume_id, a.job_id), (resume_id, b.job_id)])
