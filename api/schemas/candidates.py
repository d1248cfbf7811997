"""Candidate schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class CandidateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    domicile: Optional[str] = Field(None, max_length=255)


class CandidateScore(BaseModel):
    id: int = Field(gt=0)
    score: float = Field(ge=0, description="Screening score; positive means qualified")
    skills: Optional[str] = None


class ScoreRequest(BaseModel):
    candidates: list[CandidateScore] = Field(min_length=1, max_length=500)


class CandidateFilter(BaseModel):
    """Candidates of a department and/or position, split by position archive state."""

    department_id: Optional[int] = Field(None, gt=0)
    position_id: Optional[int] = Field(None, gt=0)
    archived: bool = Field(default=False, description="Only candidates of archived positions")


class CandidateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    domicile: Optional[str] = None
    position_id: int
    cv_file: str
    cv_file_url: Optional[str] = None
    score: float
    skills: Optional[str] = None
    is_qualified: bool
    created_at: datetime
