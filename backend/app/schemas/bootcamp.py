"""
Bootcamp request bodies.

Derived fields (slug, location, average_cost, average_rating, photo, user_id)
are not accepted from clients; they are not declared here and extra keys are
ignored.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

Career = Literal["Web Development", "Mobile Development", "UI/UX", "Data Science", "Business", "Other"]


def _check_website(value: Optional[str]) -> Optional[str]:
    if value is not None and not value.startswith(("http://", "https://")):
        raise ValueError("Please use a valid URL with HTTP or HTTPS")
    return value


def _check_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("Please add a name")
    return value


class BootcampCreate(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    description: str = Field(min_length=1, max_length=500)
    website: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=20)
    email: Optional[EmailStr] = None
    address: str = Field(min_length=1, description="Free-form address, geocoded on save")
    careers: List[Career] = Field(min_length=1)
    housing: bool = False
    job_assistance: bool = False
    job_guarantee: bool = False
    accept_gi: bool = False

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return _check_name(v)

    @field_validator("website")
    @classmethod
    def validate_website(cls, v: Optional[str]) -> Optional[str]:
        return _check_website(v)


class BootcampUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    website: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=20)
    email: Optional[EmailStr] = None
    address: Optional[str] = Field(default=None, min_length=1)
    careers: Optional[List[Career]] = Field(default=None, min_length=1)
    housing: Optional[bool] = None
    job_assistance: Optional[bool] = None
    job_guarantee: Optional[bool] = None
    accept_gi: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: Optional[str]) -> Optional[str]:
        return _check_name(v)

    @field_validator("website")
    @classmethod
    def validate_website(cls, v: Optional[str]) -> Optional[str]:
        return _check_website(v)
