from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from mentormatch.config import MAX_FACTORS
from mentormatch.schemas.factor import Factor
from mentormatch.utils import normalize_tags

_TEXT_FIELDS = (
    "industry",
    "role",
    "seniority",
    "previous_roles",
    "mentoring_style",
    "cultural_background",
    "availability",
)


def blank_to_none(value):
    """Treat empty or whitespace-only strings as an absent value."""
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class PreferenceProfile(BaseModel):
    """What a mentee is looking for in a mentor, plus how they rank each factor."""

    seeker_id: str = Field(description="Mentee user id")
    industry: str | None = Field(default=None, description="Desired mentor industry")
    role: str | None = Field(default=None, description="Desired mentor role")
    seniority: str | None = Field(
        default=None,
        description="Minimum seniority: Junior, Mid-level, Senior, Manager, Director or Executive",
    )
    previous_roles: str | None = Field(default=None, description="Roles the mentor should have held")
    mentoring_style: str | None = Field(default=None, description="Preferred mentoring style")
    years_experience: int | None = Field(
        default=None, ge=0, description="Required years of mentor experience"
    )
    cultural_background: str | None = Field(default=None, description="Preferred cultural background")
    availability: str | None = Field(default=None, description="Preferred meeting availability")
    factor_order: list[Factor] = Field(
        default_factory=list,
        description="Factors ranked by importance, most important first",
    )
    tags: list[str] = Field(default_factory=list, description="Goal tags for tag overlap scoring")
    updated_at: datetime | None = Field(default=None, description="Last profile change")

    @field_validator(*_TEXT_FIELDS, "years_experience", mode="before")
    @classmethod
    def _blank_is_absent(cls, value):
        return blank_to_none(value)

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value):
        return normalize_tags(value)

    @field_validator("factor_order", mode="before")
    @classmethod
    def _parse_factor_order(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            value = [part for part in value.split(",") if part.strip()]

        order: list[Factor] = []
        for item in value:
            factor = Factor.parse(item)
            if factor is None:
                continue
            if factor in order:
                raise ValueError(f"duplicate factor in factor_order: {factor.value}")
            order.append(factor)

        if len(order) > MAX_FACTORS:
            raise ValueError(f"factor_order has more than {MAX_FACTORS} entries")
        return order
