"""Scoring module: normalisation, partitioning, aggregation and quiz grading."""

from .normalizer import normalize_scores
from .partition import RolePartition, partition_by_role, find_role_discrepancies
from .aggregator import ScoreAggregator
from .quiz import QuizScorer, grade_answers, missed_questions
from .progress import roll_up

__all__ = [
    "normalize_scores",
    "RolePartition",
    "partition_by_role",
    "find_role_discrepancies",
    "ScoreAggregator",
    "QuizScorer",
    "grade_answers",
    "missed_questions",
    "roll_up",
]
