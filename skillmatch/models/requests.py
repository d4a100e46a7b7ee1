from pydantic import BaseModel
from typing import Optional

# Request bodies. Field constraints are enforced by the services so that bad
# input surfaces as a ValidationError (400) before any external call.

class JobMatchRequest(BaseModel):
    resume_id: str = ""
    job_title: str = ""
    job_description: str = ""
    company: Optional[str] = None

class FindCandidatesRequest(BaseModel):
    job_description: str = ""
    top_k: int = 5
