from pydantic import BaseModel
from typing import Any, Optional
from datetime import datetime


class ApiResponse(BaseModel):
    success: bool = True
    data: Any = None


class ResumeUploadResponse(BaseModel):
    id: str
    file_name: str
    extracted_skills: dict
    vector_id: Optional[str] = None
    created_at: datetime


class Page(BaseModel):
    items: list
    page: int
    limit: int
    total: int
