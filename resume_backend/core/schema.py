from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field

PerformanceLabel = Literal["Low Performance", "Medium Performance", "High Performance"]

SubScore = float | None


def label_for_score(score: float) -> PerformanceLabel:
    if score >= 70:
        return "High Performance"
    if score >= 40:
        return "Medium Performance"
    return "Low Performance"


class Breakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    keyword_coverage: SubScore = Field(default=None, ge=0, le=10)
    ats_compliance: SubScore = Field(default=None, ge=0, le=10)
    job_match: SubScore = Field(default=None, ge=0, le=10)
    structure: SubScore = Field(default=None, ge=0, le=10)
    ranking: SubScore = Field(default=None, ge=0, le=10)
    readability: SubScore = Field(default=None, ge=0, le=10)
    ghosted_risk_subscore_0_to_10: SubScore = Field(default=None, ge=0, le=10)


class Overall(BaseModel):
    model_config = ConfigDict(frozen=True)

    score_0_to_100: float = Field(ge=0, le=100)
    summary: str | None = None

    # Any label sent by the service is ignored; it always follows the score.
    @computed_field
    @property
    def label(self) -> PerformanceLabel:
        return label_for_score(self.score_0_to_100)


class Recommendation(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    description: str = ""
    priority: Literal["high", "medium", "low"] = "medium"


class AnalysisResult(BaseModel):
    """Structured resume assessment returned to the caller."""

    model_config = ConfigDict(frozen=True)

    schema_version: str = "3.0.0"
    generated_at: str | None = None
    overall: Overall
    breakdown: Breakdown
    recommendations: list[Recommendation] = Field(default_factory=list)
    what_this_means: str | None = None
