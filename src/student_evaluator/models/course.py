"""Course, assessment reference and grade ledger models."""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from .users import new_id


class QuizRef(BaseModel):
    """Reference to a graded quiz."""

    kind: Literal["quiz"] = "quiz"
    id: str = Field(..., description="Quiz ID")


class AssignmentRef(BaseModel):
    """Reference to a graded assignment."""

    kind: Literal["assignment"] = "assignment"
    id: str = Field(..., description="Assignment ID")


class EvaluationRef(BaseModel):
    """Reference to a graded evaluation."""

    kind: Literal["evaluation"] = "evaluation"
    id: str = Field(..., description="Evaluation ID")


AssessmentRef = Annotated[
    Union[QuizRef, AssignmentRef, EvaluationRef], Field(discriminator="kind")
]

ASSESSMENT_KINDS = ("quiz", "assignment", "evaluation")


class WeightingFactors(BaseModel):
    """Relative weights of each assessment category within a course."""

    quiz: float = Field(default=1.0, ge=0, description="Weight of the quiz category")
    assignment: float = Field(default=1.0, ge=0, description="Weight of the assignment category")
    evaluation: float = Field(default=1.0, ge=0, description="Weight of the evaluation category")

    def weight_for(self, kind: str) -> float:
        return getattr(self, kind)


class Course(BaseModel):
    """A course taught to a cohort."""

    id: str = Field(default_factory=new_id, description="Course ID")
    title: str = Field(..., description="Course title")
    description: str = Field(default="", description="Course description")
    cohort_id: Optional[str] = Field(default=None, description="Cohort taking the course")
    assessments: list[AssessmentRef] = Field(
        default_factory=list, description="Assessments attached to the course"
    )
    weighting_factors: WeightingFactors = Field(
        default_factory=WeightingFactors, description="Per-category weights"
    )


class Grade(BaseModel):
    """Ledger entry recording the score of one graded artifact."""

    id: str = Field(default_factory=new_id, description="Grade ID")
    student_id: str = Field(..., description="Graded student")
    assessment: AssessmentRef = Field(..., description="What was graded")
    score: float = Field(..., ge=0, le=100, description="Score as a percentage")
    course_id: Optional[str] = Field(default=None, description="Course the grade counts toward")
