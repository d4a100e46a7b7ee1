from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

# -------- Resumes --------
class ResumeModel(BaseModel):
    id: str
    file_name: str
    raw_text: str = ""
    extracted_skills: Dict[str, Any] = Field(default_factory=dict)
    vector_id: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

class ResumeSummary(BaseModel):
    id: str
    file_name: str
    extracted_skills: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    match_count: int = 0

# -------- Job Descriptions --------
class JobModel(BaseModel):
    id: str
    title: str
    company: Optional[str] = None
    description: str = ""
    required_skills: Dict[str, Any] = Field(default_factory=dict)
    vector_id: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

class JobSummary(BaseModel):
    id: str
    title: str
    company: Optional[str] = None
    required_skills: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    match_count: int = 0

# -------- Matches --------
class MatchModel(BaseModel):
    id: str
    resume_id: str
    job_id: str
    job_title: str = ""
    similarity_score: float
    skill_gaps: Dict[str, List[str]] = Field(default_factory=dict)
    matched_skills: List[str] = []
    interview_questions: List[str] = []
    recommendations: List[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class ResumeDetail(ResumeModel):
    job_matches: List[MatchModel] = []
