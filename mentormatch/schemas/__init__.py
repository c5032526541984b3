"""Pydantic models shared across mentormatch."""

from mentormatch.schemas.candidate import CandidateProfile
from mentormatch.schemas.factor import Factor, SeniorityLevel
from mentormatch.schemas.match import (
    FactorContribution,
    MatchResult,
    RefreshSummary,
    ScoreResult,
    ScoreTrace,
)
from mentormatch.schemas.preference import PreferenceProfile

__all__ = [
    "CandidateProfile",
    "Factor",
    "FactorContribution",
    "MatchResult",
    "PreferenceProfile",
    "RefreshSummary",
    "ScoreResult",
    "ScoreTrace",
    "SeniorityLevel",
]
