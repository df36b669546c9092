"""Presentation evaluation data models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .users import UserRef, new_id

MAX_RATING = 5.0


class EvaluationScores(BaseModel):
    """Ratings for the four evaluation areas plus extra credit."""

    model_config = {"frozen": True, "populate_by_name": True}

    area1: float = Field(..., ge=0, le=MAX_RATING, description="Rating for area 1")
    area2: float = Field(..., ge=0, le=MAX_RATING, description="Rating for area 2")
    area3: float = Field(..., ge=0, le=MAX_RATING, description="Rating for area 3")
    area4: float = Field(..., ge=0, le=MAX_RATING, description="Rating for area 4")
    extra_credit: float = Field(
        ...,
        ge=0,
        le=MAX_RATING,
        alias="extraCredit",
        description="Rating for 'did you learn something new?'",
    )

    def values(self) -> tuple[float, float, float, float, float]:
        return (self.area1, self.area2, self.area3, self.area4, self.extra_credit)


class Evaluation(BaseModel):
    """One evaluator's rating of one presenter."""

    model_config = {"frozen": True}

    id: str = Field(default_factory=new_id, description="Evaluation ID")
    presenter: UserRef = Field(..., description="Student being evaluated")
    evaluator: UserRef = Field(..., description="User submitting the evaluation")
    scores: EvaluationScores = Field(..., description="Area ratings")
    comments: str = Field(default="", description="Free-form comments")
    type: str = Field(..., description="Evaluator role at submission time")
    course_id: Optional[str] = Field(default=None, description="Course the evaluation counts toward")
    cohort_id: Optional[str] = Field(default=None, description="Cohort of the presenter")
    created_at: datetime = Field(
        default_factory=datetime.utcnow, description="When the evaluation was submitted"
    )
