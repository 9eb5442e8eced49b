"""Structured output contracts for the three delegated insight tasks."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field, RootModel, StrictInt


class AuditOutput(BaseModel):
    """Strategic audit of a campaign sample."""

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        str_strip_whitespace=True,
    )

    summary: str = Field(min_length=1)
    strengths: List[str]
    weaknesses: List[str]
    strategy: str = Field(min_length=1)
    insights: List[str]
    recommendations: List[str]


class RevenuePrediction(BaseModel):
    """Single predicted revenue figure for a hypothetical campaign."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    revenue: float = Field(allow_inf_nan=False)


class SearchRanking(RootModel[List[StrictInt]]):
    """Sample indices ordered from most to least relevant."""
