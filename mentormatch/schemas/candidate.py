from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from mentormatch.schemas.preference import blank_to_none
from mentormatch.utils import normalize_tags


class CandidateProfile(BaseModel):
    """A mentor's profile as seen by the matchers."""

    candidate_id: str = Field(description="Mentor user id")
    industry: str | None = Field(default=None, description="Mentor's industry")
    current_role: str | None = Field(default=None, description="Mentor's current role")
    seniority_level: str | None = Field(default=None, description="Mentor's seniority level name")
    previous_roles: str | None = Field(default=None, description="Roles the mentor held before")
    mentoring_style: str | None = Field(default=None, description="How the mentor mentors")
    years_experience: int | None = Field(
        default=None, ge=0, description="Mentor's years of experience"
    )
    cultural_background: str | None = Field(default=None, description="Mentor's cultural background")
    availability: str | None = Field(default=None, description="When the mentor is available")
    tags: list[str] = Field(
        default_factory=list,
        description="Free-text labels, deduplicated case-insensitively, at most 30",
    )
    updated_at: datetime | None = Field(default=None, description="Last profile change")

    @field_validator(
        "industry",
        "current_role",
        "seniority_level",
        "previous_roles",
        "mentoring_style",
        "cultural_background",
        "availability",
        "years_experience",
        mode="before",
    )
    @classmethod
    def _blank_is_absent(cls, value):
        return blank_to_none(value)

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value):
        return normalize_tags(value)
