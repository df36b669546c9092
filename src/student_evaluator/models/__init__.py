"""Data models for Student Evaluator."""

from .users import Role, Cohort, User, UserRef
from .evaluation import EvaluationScores, Evaluation
from .quiz import QuestionType, Question, Quiz, AnswerRecord, QuizSubmission
from .course import (
    QuizRef,
    AssignmentRef,
    EvaluationRef,
    AssessmentRef,
    WeightingFactors,
    Course,
    Grade,
)
from .results import (
    PresenterScore,
    CategoryScores,
    CourseScore,
    StudentProgress,
    OverallGrade,
    MissedQuestion,
    GradebookSummary,
)

__all__ = [
    "Role",
    "Cohort",
    "User",
    "UserRef",
    "EvaluationScores",
    "Evaluation",
    "QuestionType",
    "Question",
    "Quiz",
    "AnswerRecord",
    "QuizSubmission",
    "QuizRef",
    "AssignmentRef",
    "EvaluationRef",
    "AssessmentRef",
    "WeightingFactors",
    "Course",
    "Grade",
    "PresenterScore",
    "CategoryScores",
    "CourseScore",
    "StudentProgress",
    "OverallGrade",
    "MissedQuestion",
    "GradebookSummary",
]
