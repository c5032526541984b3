from enum import Enum, IntEnum


class Factor(str, Enum):
    """Comparison dimensions a mentee can rank by importance."""

    INDUSTRY = "industry"
    ROLE = "role"
    SENIORITY = "seniority"
    PREVIOUS_ROLES = "previous_roles"
    MENTORING_STYLE = "mentoring_style"
    EXPERIENCE = "experience"
    CULTURAL_BACKGROUND = "cultural_background"
    AVAILABILITY = "availability"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @classmethod
    def parse(cls, value: "str | Factor") -> "Factor | None":
        """Resolve a factor identifier, including the profile form's legacy ids.

        Returns None for identifiers that do not name a scored factor
        (e.g. the "dreamCompanies" rank the preference form also stores).
        """
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("-", "_").replace(" ", "_")
        return _ALIASES.get(key)


_LABELS = {
    Factor.INDUSTRY: "Industry",
    Factor.ROLE: "Role",
    Factor.SENIORITY: "Seniority",
    Factor.PREVIOUS_ROLES: "Previous Roles",
    Factor.MENTORING_STYLE: "Mentoring Style",
    Factor.EXPERIENCE: "Experience",
    Factor.CULTURAL_BACKGROUND: "Cultural",
    Factor.AVAILABILITY: "Availability",
}

_ALIASES = {member.value: member for member in Factor}
_ALIASES.update(
    {
        "currentindustry": Factor.INDUSTRY,
        "currentrole": Factor.ROLE,
        "senioritylevel": Factor.SENIORITY,
        "seniority_level": Factor.SENIORITY,
        "previousroles": Factor.PREVIOUS_ROLES,
        "mentoringstyle": Factor.MENTORING_STYLE,
        "yearsexperience": Factor.EXPERIENCE,
        "years_experience": Factor.EXPERIENCE,
        "culturalbackground": Factor.CULTURAL_BACKGROUND,
        "culturebackground": Factor.CULTURAL_BACKGROUND,
        "culture_background": Factor.CULTURAL_BACKGROUND,
    }
)


class SeniorityLevel(IntEnum):
    """Seniority levels in ascending order.

    The integer values are the ordinals used by the seniority matcher.
    Use _missing_ for lenient string parsing ("Mid-level", "mid level").
    """

    JUNIOR = 1
    MID_LEVEL = 2
    SENIOR = 3
    MANAGER = 4
    DIRECTOR = 5
    EXECUTIVE = 6

    @classmethod
    def _missing_(cls, value):
        """Allow case and separator insensitive lookup by level name."""
        if isinstance(value, str):
            key = value.strip().lower().replace("-", "_").replace(" ", "_")
            for member in cls:
                if member.name.lower() == key:
                    return member
        return None
