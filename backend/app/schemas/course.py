"""Course request bodies."""

from typing import Literal, Optional

from pydantic import BaseModel, Field

SkillLevel = Literal["beginner", "intermediate", "advanced"]


class CourseCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    weeks: int = Field(ge=1)
    tuition: float = Field(ge=0)
    minimum_skill: SkillLevel
    scholarship_available: bool = False


class CourseUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1)
    weeks: Optional[int] = Field(default=None, ge=1)
    tuition: Optional[float] = Field(default=None, ge=0)
    minimum_skill: Optional[SkillLevel] = None
    scholarship_available: Optional[bool] = None
