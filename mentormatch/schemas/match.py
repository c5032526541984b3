from datetime import datetime

from pydantic import BaseModel, Field

from mentormatch.schemas.factor import Factor


class FactorContribution(BaseModel):
    """How one scored factor fed into a preference score."""

    factor: Factor
    raw_score: float = Field(description="Matcher output (0-1)")
    weight: float = Field(description="Allocated weight (0-1)")
    contribution: float = Field(description="raw_score * weight")


class ScoreTrace(BaseModel):
    """Structured record of how a score was composed. Diagnostic only."""

    contributions: list[FactorContribution] = Field(default_factory=list)
    absent_factors: list[Factor] = Field(
        default_factory=list,
        description="Factors skipped because one side had no value",
    )
    policy: str = Field(description="Weight policy used")
    blend_mode: str = Field(description="Score blend mode used")
    tag_overlap: float = Field(default=0.0, description="Share of seeker tags the candidate shares (0-1)")

    @property
    def weights(self) -> dict[Factor, float]:
        return {c.factor: c.weight for c in self.contributions}


class ScoreResult(BaseModel):
    """Output of the scoring engine for one seeker/candidate pair."""

    score: int = Field(ge=0, le=100, description="Final score used for ranking")
    preference_score: int = Field(ge=0, le=100, description="Weighted factor score before tag blending")
    tag_score: float = Field(ge=0, le=30, description="Tag overlap component (0-30)")
    breakdown: str = Field(description="Human-readable score composition")
    trace: ScoreTrace


class MatchResult(BaseModel):
    """A persisted ranking row, one per (seeker_id, candidate_id)."""

    seeker_id: str
    candidate_id: str
    score: int = Field(ge=0, le=100)
    preference_score: int = Field(ge=0, le=100)
    tag_score: float = Field(default=0.0, ge=0, le=30)
    breakdown: str = ""
    updated_at: datetime | None = None


class RefreshSummary(BaseModel):
    """Outcome of one ranking refresh for a seeker."""

    seeker_id: str
    created: int = 0
    updated: int = 0
    total: int = 0
    skipped: int = Field(default=0, description="Candidates that failed to score")
    incremental: bool = Field(default=False, description="Whether only changed candidates were scanned")
    top: list[MatchResult] = Field(default_factory=list)
