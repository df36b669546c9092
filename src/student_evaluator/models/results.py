"""Aggregated score result models."""

from typing import Optional
from datetime import datetime
from pathlib import Path
import json
from statistics import mean, median, stdev

from pydantic import BaseModel, Field


class PresenterScore(BaseModel):
    """Final evaluation score for one presenter."""

    presenter_id: str = Field(..., description="ID of the evaluated student")
    peer_average: float = Field(..., description="Mean normalised peer evaluation score")
    instructor_average: float = Field(
        ..., description="Mean normalised instructor evaluation score"
    )
    peer_count: int = Field(..., description="Number of peer evaluations")
    instructor_count: int = Field(..., description="Number of instructor evaluations")
    final_score: float = Field(..., description="Weighted peer/instructor score (0-100)")


class CategoryScores(BaseModel):
    """Raw per-category scores for one student in one course; None means no record."""

    quiz: Optional[float] = Field(default=None, description="Quiz category score")
    assignment: Optional[float] = Field(default=None, description="Assignment category score")
    evaluation: Optional[float] = Field(default=None, description="Evaluation category score")

    def present(self) -> dict[str, float]:
        """Categories that have a recorded score."""
        return {kind: score for kind, score in self.model_dump().items() if score is not None}


class CourseScore(BaseModel):
    """Weighted score of one student in one course."""

    course_id: str = Field(..., description="Course ID")
    course_title: str = Field(default="", description="Course title")
    categories: CategoryScores = Field(
        default_factory=CategoryScores, description="Per-category scores"
    )
    weights_used: dict[str, float] = Field(
        default_factory=dict, description="Weights of the categories that contributed"
    )
    score: float = Field(..., description="Weighted course score (0-100)")
    graded: bool = Field(default=True, description="False when no category has a score")


class StudentProgress(BaseModel):
    """Per-course scores and overall progress for a student."""

    student_id: str = Field(..., description="Student ID")
    student_name: str = Field(default="", description="Display name")
    courses: list[CourseScore] = Field(default_factory=list, description="Per-course scores")
    overall_progress: float = Field(..., description="Mean of course scores")


class OverallGrade(BaseModel):
    """Ledger-wide overall grade of one student across all courses."""

    student_id: str = Field(..., description="Student ID")
    student_name: str = Field(default="", description="Display name")
    grade_count: int = Field(..., description="Number of grades included")
    overall_score: float = Field(..., description="Weighted mean of all grades (0-100)")


class MissedQuestion(BaseModel):
    """How often a question was answered incorrectly."""

    question_id: str = Field(..., description="Question ID")
    question_text: str = Field(default="", description="Question text")
    correct_answer: Optional[str] = Field(default=None, description="The correct option")
    missed_count: int = Field(..., description="Number of incorrect answers")
    incorrect_answers: dict[str, int] = Field(
        default_factory=dict, description="Count of each incorrect answer given"
    )


class GradebookSummary(BaseModel):
    """Progress of every student plus distribution statistics."""

    created_at: datetime = Field(
        default_factory=datetime.utcnow, description="When the gradebook was computed"
    )
    total_students: int = Field(..., description="Number of students included")
    average_progress: float = Field(..., description="Average overall progress")
    median_progress: float = Field(..., description="Median overall progress")
    std_deviation: Optional[float] = Field(default=None, description="Standard deviation")
    students: list[StudentProgress] = Field(
        default_factory=list, description="Per-student progress"
    )

    @classmethod
    def from_progress(
        cls, students: list[StudentProgress], decimals: int = 2
    ) -> "GradebookSummary":
        """Create a gradebook summary from per-student progress."""
        if not students:
            return cls(
                total_students=0,
                average_progress=0,
                median_progress=0,
                std_deviation=None,
                students=[],
            )

        overall = [s.overall_progress for s in students]
        std_dev = stdev(overall) if len(overall) > 1 else None

        return cls(
            total_students=len(students),
            average_progress=round(mean(overall), decimals),
            median_progress=round(median(overall), decimals),
            std_deviation=round(std_dev, decimals) if std_dev is not None else None,
            students=students,
        )

    def to_json(self, path: Path) -> None:
        """Save gradebook summary to JSON file."""
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2, ensure_ascii=False)
