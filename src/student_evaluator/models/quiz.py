"""Quiz, question and submission data models."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from .users import new_id


class QuestionType(str, Enum):
    """How a question is answered."""

    MULTIPLE_CHOICE = "multiple-choice"
    OPEN_ENDED = "open-ended"


def _as_utc(value: datetime) -> datetime:
    """Aware UTC datetime; naive values are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Question(BaseModel):
    """A single quiz question."""

    id: str = Field(default_factory=new_id, description="Question ID")
    text: str = Field(..., description="Question text")
    options: list[str] = Field(default_factory=list, description="Answer options")
    correct_answer: Optional[str] = Field(default=None, description="The correct option")
    question_type: QuestionType = Field(
        default=QuestionType.MULTIPLE_CHOICE, description="Question type"
    )


class Quiz(BaseModel):
    """An ordered set of questions."""

    id: str = Field(default_factory=new_id, description="Quiz ID")
    title: str = Field(..., description="Quiz title")
    questions: list[Question] = Field(default_factory=list, description="Ordered questions")
    allow_multiple_submissions: bool = Field(
        default=False, description="Whether a student may submit more than once"
    )
    course_id: Optional[str] = Field(default=None, description="Course the quiz counts toward")
    due_date: Optional[datetime] = Field(default=None, description="Submission deadline")
    allow_late_submissions: bool = Field(
        default=True, description="Whether submissions after the due date are accepted"
    )

    def is_closed(self, now: Optional[datetime] = None) -> bool:
        """True when the due date has passed and late submissions are refused."""
        if self.due_date is None or self.allow_late_submissions:
            return False
        now = now or datetime.now(timezone.utc)
        return _as_utc(now) > _as_utc(self.due_date)


class AnswerRecord(BaseModel):
    """A student's answer to one question, graded at submission time."""

    question_id: str = Field(..., description="ID of the answered question")
    selected_answer: Optional[str] = Field(default=None, description="Answer given")
    is_correct: bool = Field(..., description="Correctness computed at submission")


class QuizSubmission(BaseModel):
    """One attempt at a quiz."""

    id: str = Field(default_factory=new_id, description="Submission ID")
    student_id: str = Field(..., description="Submitting student")
    quiz_id: str = Field(..., description="Quiz attempted")
    score: float = Field(..., ge=0, le=100, description="Percentage of correct answers")
    answers: list[AnswerRecord] = Field(default_factory=list, description="Per-question answers")
    submitted_at: datetime = Field(
        default_factory=datetime.utcnow, description="When the quiz was submitted"
    )

    @property
    def correct_count(self) -> int:
        return sum(1 for answer in self.answers if answer.is_correct)
