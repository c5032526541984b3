"""Per-factor comparison rules between a mentee's preferences and a mentor.

Every matcher takes the seeker's value first and the candidate's value
second and returns a score in [0, 1], or None when either side is missing.
A None factor is left out of weighting entirely; it is not a zero.
"""

import re
from collections.abc import Callable

from mentormatch.schemas.candidate import CandidateProfile
from mentormatch.schemas.factor import Factor, SeniorityLevel
from mentormatch.schemas.preference import PreferenceProfile

FILLER_WORDS = frozenset({"and", "or", "the", "a", "an", "of", "in", "with", "for", "to", "by"})

# Substring of a token -> related keywords it also contributes
INDUSTRY_SYNONYMS: dict[str, tuple[str, ...]] = {
    "account": ("accounting", "audit"),
    "financ": ("finance", "banking", "investment"),
    "tech": ("technology", "software", "it"),
    "consult": ("consulting", "advisory"),
    "startup": ("startup", "entrepreneur"),
    "health": ("healthcare", "medical"),
    "educat": ("education", "academic"),
}

ROLE_SYNONYM_GROUPS: tuple[frozenset[str], ...] = (
    frozenset({"swe", "software engineer", "full stack developer", "developer", "programmer"}),
    frozenset({"internal auditor", "auditor", "senior internal auditor", "assurance associate"}),
    frozenset({"auditor", "internal auditor", "external auditor", "senior auditor", "assurance associate"}),
    frozenset({"accountant", "graduate accountant", "senior accountant", "financial accountant"}),
    frozenset({"finance", "financial analyst", "finance manager", "financial advisor"}),
)

ROLE_SHARED_KEYWORDS = ("auditor", "accountant", "finance", "internal", "senior")
PREVIOUS_ROLE_KEYWORDS = ("auditor", "accountant", "finance", "big 4")
CULTURE_KEYWORDS = ("chinese", "english", "international")
AVAILABILITY_KEYWORDS = ("weekly", "weekday", "after hours", "during the week")
MENTORING_STYLE_KEYWORDS = ("coach", "task", "mentor")

MENTORING_STYLE_DEFAULT = 0.5

_PUNCTUATION = re.compile(r"[^\w\s]")


def _normalize(value: str | None) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def _contains_either(seeker: str, candidate: str) -> bool:
    return seeker in candidate or candidate in seeker


def _shares_keyword(seeker: str, candidate: str, keywords: tuple[str, ...]) -> bool:
    return any(k in seeker and k in candidate for k in keywords)


def _text_match(
    seeker_value: str | None,
    candidate_value: str | None,
    keywords: tuple[str, ...],
    default: float = 0.0,
) -> float | None:
    """Containment in either direction or a shared keyword scores 1.0."""
    seeker = _normalize(seeker_value)
    candidate = _normalize(candidate_value)
    if not seeker or not candidate:
        return None

    if _contains_either(seeker, candidate):
        return 1.0
    if _shares_keyword(seeker, candidate, keywords):
        return 1.0
    return default


def extract_industry_keywords(industry: str) -> list[str]:
    """Tokenize an industry string and expand tokens through the synonym table.

    Args:
        industry: Normalized (lowercased) industry text.

    Returns:
        Unique keywords in first-seen order.
    """
    cleaned = _PUNCTUATION.sub(" ", industry)
    words = [
        word
        for word in cleaned.split()
        if len(word) > 2 and word not in FILLER_WORDS and not word.isdigit()
    ]

    keywords: list[str] = []
    for word in words:
        keywords.append(word)
        for stem, related in INDUSTRY_SYNONYMS.items():
            if stem in word:
                keywords.extend(related)

    return list(dict.fromkeys(keywords))


def match_industry(seeker_value: str | None, candidate_value: str | None) -> float | None:
    """Score industry fit by containment, then by expanded keyword overlap.

    The overlap is the share of the seeker's keywords that are a substring
    of (or contain) some candidate keyword, capped at 1.0.
    """
    seeker = _normalize(seeker_value)
    candidate = _normalize(candidate_value)
    if not seeker or not candidate:
        return None

    if seeker == candidate or _contains_either(seeker, candidate):
        return 1.0

    seeker_keywords = extract_industry_keywords(seeker)
    candidate_keywords = extract_industry_keywords(candidate)
    if not seeker_keywords:
        return 0.0

    overlapping = [
        keyword
        for keyword in seeker_keywords
        if any(keyword in other or other in keyword for other in candidate_keywords)
    ]
    if not overlapping:
        return 0.0

    return min(len(overlapping) / len(seeker_keywords), 1.0)


def _in_group(text: str, group: frozenset[str]) -> bool:
    return any(term in text for term in group)


def match_role(seeker_value: str | None, candidate_value: str | None) -> float | None:
    """Score role fit by containment, synonym groups, then shared keywords. Binary."""
    seeker = _normalize(seeker_value)
    candidate = _normalize(candidate_value)
    if not seeker or not candidate:
        return None

    if _contains_either(seeker, candidate):
        return 1.0

    for group in ROLE_SYNONYM_GROUPS:
        if _in_group(seeker, group) and _in_group(candidate, group):
            return 1.0

    if _shares_keyword(seeker, candidate, ROLE_SHARED_KEYWORDS):
        return 1.0
    return 0.0


def seniority_ordinal(level: str) -> int:
    """Map a level name to its ordinal; unknown names count as Junior."""
    try:
        return SeniorityLevel(level).value
    except ValueError:
        return SeniorityLevel.JUNIOR.value


def match_seniority(seeker_value: str | None, candidate_value: str | None) -> float | None:
    """Full credit at or above the required level, 0.6 one level below, else 0."""
    if not _normalize(seeker_value) or not _normalize(candidate_value):
        return None

    required = seniority_ordinal(seeker_value)
    actual = seniority_ordinal(candidate_value)

    if actual >= required:
        return 1.0
    if actual == required - 1:
        return 0.6
    return 0.0


def match_experience(seeker_years: int | None, candidate_years: int | None) -> float | None:
    """Full credit at or above the required years, 0.7 one year short, else 0.1.

    Zero years on either side is treated as not provided.
    """
    if not seeker_years or not candidate_years:
        return None

    if candidate_years >= seeker_years:
        return 1.0
    if candidate_years == seeker_years - 1:
        return 0.7
    return 0.1


def match_previous_roles(seeker_value: str | None, candidate_value: str | None) -> float | None:
    return _text_match(seeker_value, candidate_value, PREVIOUS_ROLE_KEYWORDS)


def match_cultural_background(seeker_value: str | None, candidate_value: str | None) -> float | None:
    return _text_match(seeker_value, candidate_value, CULTURE_KEYWORDS)


def match_availability(seeker_value: str | None, candidate_value: str | None) -> float | None:
    return _text_match(seeker_value, candidate_value, AVAILABILITY_KEYWORDS)


def match_mentoring_style(seeker_value: str | None, candidate_value: str | None) -> float | None:
    """Like the other text matchers, but a mismatch still earns half credit."""
    return _text_match(
        seeker_value,
        candidate_value,
        MENTORING_STYLE_KEYWORDS,
        default=MENTORING_STYLE_DEFAULT,
    )


Matcher = Callable[[object, object], float | None]

# factor -> (matcher, PreferenceProfile attribute, CandidateProfile attribute)
FACTOR_MATCHERS: dict[Factor, tuple[Matcher, str, str]] = {
    Factor.INDUSTRY: (match_industry, "industry", "industry"),
    Factor.ROLE: (match_role, "role", "current_role"),
    Factor.SENIORITY: (match_seniority, "seniority", "seniority_level"),
    Factor.PREVIOUS_ROLES: (match_previous_roles, "previous_roles", "previous_roles"),
    Factor.MENTORING_STYLE: (match_mentoring_style, "mentoring_style", "mentoring_style"),
    Factor.EXPERIENCE: (match_experience, "years_experience", "years_experience"),
    Factor.CULTURAL_BACKGROUND: (match_cultural_background, "cultural_background", "cultural_background"),
    Factor.AVAILABILITY: (match_availability, "availability", "availability"),
}


def score_factors(
    preference: PreferenceProfile,
    candidate: CandidateProfile,
) -> dict[Factor, float]:
    """Run every matcher for a pair and keep only the factors that scored.

    Args:
        preference: Mentee preference profile.
        candidate: Mentor profile.

    Returns:
        Mapping of scored factor to its matcher score, in Factor order.
    """
    scores: dict[Factor, float] = {}
    for factor, (matcher, seeker_attr, candidate_attr) in FACTOR_MATCHERS.items():
        score = matcher(getattr(preference, seeker_attr), getattr(candidate, candidate_attr))
        if score is not None:
            scores[factor] = score
    return scores
