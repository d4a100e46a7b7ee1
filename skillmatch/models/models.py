from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime

VectorKind = Literal["resume", "job"]


class SkillProfile(BaseModel):
    """Normalized skill-extraction result. List fields are never absent."""
    technical_skills: List[str] = Field(default_factory=list)
    frameworks: List[str] = Field(default_factory=list)
    languages: List[str] = Field(default_factory=list)
    tools: List[str] = Field(default_factory=list)
    soft_skills: List[str] = Field(default_factory=list)
    years_of_experience: Optional[float] = None
    current_role: Optional[str] = None
    education: List[str] = Field(default_factory=list)
    certifications: List[str] = Field(default_factory=list)


class SkillGap(BaseModel):
    matched: List[str] = Field(default_factory=list)
    partial: List[str] = Field(default_factory=list)
    missing: List[str] = Field(default_factory=list)


class MatchResult(BaseModel):
    id: str
    resume_id: str
    job_id: str
    job_title: str = ""
    similarity_score: float = Field(ge=0.0, le=100.0)
    skill_gaps: SkillGap
    matched_skills: List[str] = Field(default_factory=list)
    interview_questions: List[str] = Field(default_factory=list, max_length=7)
    recommendations: List[str] = Field(default_factory=list, max_length=5)


class VectorRecord(BaseModel):
    vector_id: str
    kind: VectorKind
    owner_id: str
    embedding: List[float]
    skills: List[str] = Field(default_factory=list)
    title: Optional[str] = None


class VectorMatch(BaseModel):
    id: str
    score: float
    kind: VectorKind
    owner_id: str
    skills: List[str] = Field(default_factory=list)
    title: Optional[str] = None


class Candidate(BaseModel):
    resume_id: str
    file_name: Optional[str] = None
    extracted_skills: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    similarity_score: float
