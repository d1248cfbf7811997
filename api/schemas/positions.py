"""Job position schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PositionCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    department_id: int = Field(gt=0)
    education: Optional[str] = Field(None, max_length=255)
    location: Optional[str] = Field(None, max_length=255)
    min_work_exp: int = Field(default=0, ge=0, le=80, description="Minimum years of experience")
    description: Optional[str] = None
    qualification: Optional[str] = None


class PositionUpdate(BaseModel):
    """Partial update; moving a position to another department is allowed within the tenant."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    department_id: Optional[int] = Field(None, gt=0)
    education: Optional[str] = Field(None, max_length=255)
    location: Optional[str] = Field(None, max_length=255)
    min_work_exp: Optional[int] = Field(None, ge=0, le=80)
    description: Optional[str] = None
    qualification: Optional[str] = None


class QualifiedCandidatesUpdate(BaseModel):
    qualified_candidates: str = Field(description="Screening summary of qualified candidates")


class PositionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    department_id: int
    education: Optional[str] = None
    location: Optional[str] = None
    min_work_exp: int
    description: Optional[str] = None
    qualification: Optional[str] = None
    is_resolved: bool
    is_trash: bool
    is_archive: bool
    removed_at: Optional[datetime] = None
    qualified_candidates: Optional[str] = None
    uploaded_cv: int
    filtered_cv: int
    created_at: datetime
