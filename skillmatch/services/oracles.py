"""
External oracles consumed by the matching pipeline.

The pipeline only depends on the three protocols below. The Ollama-backed
implementations are what the service runs with; tests plug in deterministic
stand-ins.
"""
from typing import Any, List, Optional, Protocol

import requests

from skillmatch.helpers.prompts import EXTRACT_PROMPT, QUESTIONS_PROMPT, RECOMMENDATIONS_PROMPT
from skillmatch.models.models import SkillGap, SkillProfile
from skillmatch.services.normalizer import normalize_profile
from skillmatch.utils.exceptions import ExternalServiceUnavailable, ExtractionFailure
from skillmatch.utils.logging_config import get_logger
from skillmatch.utils.utils import ollama_embed, ollama_generate, safe_json

logger = get_logger(__name__)

MAX_ORACLE_CHARS = 8000
MAX_QUESTIONS = 7
MAX_RECOMMENDATIONS = 5


class SkillExtractor(Protocol):
    def extract_skills(self, text: str) -> SkillProfile: ...


class Embedder(Protocol):
    def embed(self, text: str) -> List[float]: ...


class TextGenerator(Protocol):
    def generate(self, prompt: str) -> Any: ...


def truncate_for_embedding(text: str) -> str:
    return (text or "")[:MAX_ORACLE_CHARS]


class OllamaSkillExtractor:
    def __init__(self, model: str = None):
        self.model = model

    def extract_skills(self, text: str) -> SkillProfile:
        prompt = EXTRACT_PROMPT.format(doc=(text or "")[:MAX_ORACLE_CHARS])
        try:
            resp = ollama_generate(prompt, model=self.model, temperature=0.3)
        except requests.RequestException as e:
            raise ExtractionFailure(f"Failed to extract skills: {e}", cause=e) from e

        data = safe_json(resp, fallback=None)
        if not isinstance(data, dict) or not data:
            logger.warning("Extraction oracle returned malformed output, using empty profile")
            data = {}
        return normalize_profile(data)


class OllamaEmbedder:
    def __init__(self, model: str = None):
        self.model = model

    def embed(self, text: str) -> List[float]:
        try:
            return ollama_embed(truncate_for_embedding(text), model=self.model)
        except (requests.RequestException, ValueError, KeyError) as e:
            raise ExternalServiceUnavailable(
                f"Failed to generate embedding: {e}", service_name="embedding", cause=e
            ) from e


class OllamaGenerator:
    def __init__(self, model: str = None, temperature: float = 0.7):
        self.model = model
        self.temperature = temperature

    def generate(self, prompt: str) -> Any:
        resp = ollama_generate(prompt, model=self.model, temperature=self.temperature)
        return safe_json(resp, fallback=None)


def default_questions(job_title: str) -> List[str]:
    return [
        f"Tell me about your experience relevant to this {job_title} role.",
        "Describe a challenging project you worked on and how you overcame obstacles.",
        "How do you stay updated with the latest technologies in your field?",
        "Can you walk me through your problem-solving process?",
        "Where do you see yourself in 5 years?",
    ]


def default_recommendations(missing: List[str]) -> List[str]:
    recommendations = [
        "Consider taking online courses to strengthen your technical skills.",
        "Build side projects to gain practical experience.",
        "Contribute to open-source projects in your area of interest.",
    ]
    if missing:
        recommendations.insert(0, f"Focus on learning: {', '.join(missing[:3])}")
    return recommendations


def _list_from(payload: Any, key: str) -> Optional[List[str]]:
    items = payload.get(key) if isinstance(payload, dict) else payload
    if not isinstance(items, list):
        return None
    return [str(i).strip() for i in items if str(i).strip()]


def _ask(generator: TextGenerator, prompt: str, key: str) -> Optional[List[str]]:
    try:
        payload = generator.generate(prompt)
    except Exception as e:
        logger.warning(f"Generation oracle failed for '{key}', using defaults: {e}")
        return None
    items = _list_from(payload, key)
    if not items:
        logger.warning(f"Generation oracle returned no usable '{key}', using defaults")
        return None
    return items


def interview_questions(generator: TextGenerator, gaps: SkillGap, job_title: str) -> List[str]:
    prompt = QUESTIONS_PROMPT.format(
        job_title=job_title,
        matched=", ".join(gaps.matched),
        missing=", ".join(gaps.missing),
        partial=", ".join(gaps.partial),
    )
    questions = _ask(generator, prompt, "questions") or default_questions(job_title)
    return questions[:MAX_QUESTIONS]


def recommendations_for(generator: TextGenerator, gaps: SkillGap, job_title: str) -> List[str]:
    if not gaps.missing and not gaps.partial:
        return ["Great match! Your skills align well with this position."]

    prompt = RECOMMENDATIONS_PROMPT.format(
        job_title=job_title,
        missing=", ".join(gaps.missing),
        partial=", ".join(gaps.partial),
    )
    recommendations = _ask(generator, prompt, "recommendations") or default_recommendations(gaps.missing)
    return recommendations[:MAX_RECOMMENDATIONS]
