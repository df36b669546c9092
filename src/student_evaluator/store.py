"""In-process document store for users, courses, quizzes and grades."""

import json
import logging
import threading
from collections import Counter
from pathlib import Path
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from .errors import DuplicateSubmissionError, NotFoundError
from .models.course import Course, EvaluationRef, Grade, WeightingFactors
from .models.evaluation import Evaluation
from .models.quiz import Quiz, QuizSubmission
from .models.users import Cohort, User
from .scoring.normalizer import normalize_scores
from .utils.jsonl import stream_jsonl, write_jsonl

logger = logging.getLogger(__name__)


class StoreSnapshot(BaseModel):
    """Serialisable contents of a GradebookStore."""

    version: str = Field(default="1.0", description="Schema version")
    users: list[User] = Field(default_factory=list)
    cohorts: list[Cohort] = Field(default_factory=list)
    courses: list[Course] = Field(default_factory=list)
    quizzes: list[Quiz] = Field(default_factory=list)
    evaluations: list[Evaluation] = Field(default_factory=list)
    submissions: list[QuizSubmission] = Field(default_factory=list)
    grades: list[Grade] = Field(default_factory=list)


class GradebookStore:
    """Document store backing the scoring services.

    Documents are held in insertion order. Every read and write holds the
    store lock, so the store may be shared between threads. Quiz submissions
    carry a (student, quiz) index so that single-submission quizzes are
    enforced atomically on insert.
    """

    def __init__(self):
        self._users: dict[str, User] = {}
        self._cohorts: dict[str, Cohort] = {}
        self._courses: dict[str, Course] = {}
        self._quizzes: dict[str, Quiz] = {}
        self._evaluations: dict[str, Evaluation] = {}
        self._submissions: dict[str, QuizSubmission] = {}
        self._grades: dict[str, Grade] = {}
        self._submission_counts: Counter[tuple[str, str]] = Counter()
        self._lock = threading.RLock()

    # Users and cohorts

    def add_user(self, user: User) -> User:
        with self._lock:
            existing = self.find_user_by_username(user.username)
            if existing is not None and existing.id != user.id:
                raise ValueError(f"Username already taken: {user.username}")
            self._users[user.id] = user
        return user

    def get_user(self, user_id: str) -> User:
        user = self._users.get(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    def find_user_by_username(self, username: str) -> Optional[User]:
        with self._lock:
            for user in self._users.values():
                if user.username == username:
                    return user
        return None

    def list_users(self, role: Optional[str] = None) -> list[User]:
        with self._lock:
            return [u for u in self._users.values() if role is None or u.role == role]

    def update_user_role(self, user_id: str, role: str) -> User:
        """Change a user's role; past evaluations keep their submitted type."""
        with self._lock:
            user = self.get_user(user_id).model_copy(update={"role": role})
            self._users[user_id] = user
        logger.info(f"Changed role of user {user_id} to '{role}'")
        return user

    def add_cohort(self, cohort: Cohort) -> Cohort:
        with self._lock:
            self._cohorts[cohort.id] = cohort
        return cohort

    # Courses

    def add_course(self, course: Course) -> Course:
        with self._lock:
            self._courses[course.id] = course
        return course

    def get_course(self, course_id: str) -> Course:
        course = self._courses.get(course_id)
        if course is None:
            raise NotFoundError("Course", course_id)
        return course

    def get_course_weights(self, course_id: str) -> WeightingFactors:
        return self.get_course(course_id).weighting_factors

    def update_weighting_factors(self, course_id: str, **weights: float) -> Course:
        """Merge new weighting factors into a course's existing ones."""
        with self._lock:
            course = self.get_course(course_id)
            merged = course.weighting_factors.model_dump()
            merged.update({k: v for k, v in weights.items() if v is not None})
            course = course.model_copy(
                update={"weighting_factors": WeightingFactors.model_validate(merged)}
            )
            self._courses[course_id] = course
        logger.info(f"Updated weighting factors for course {course_id}: {merged}")
        return course

    # Quizzes and submissions

    def add_quiz(self, quiz: Quiz) -> Quiz:
        with self._lock:
            self._quizzes[quiz.id] = quiz
        return quiz

    def get_quiz(self, quiz_id: str) -> Quiz:
        quiz = self._quizzes.get(quiz_id)
        if quiz is None:
            raise NotFoundError("Quiz", quiz_id)
        return quiz

    def list_quizzes(self) -> list[Quiz]:
        with self._lock:
            return list(self._quizzes.values())

    def has_submission(self, student_id: str, quiz_id: str) -> bool:
        with self._lock:
            return self._submission_counts[(student_id, quiz_id)] > 0

    def save_quiz_submission(self, submission: QuizSubmission, unique: bool = False) -> str:
        """Insert a quiz submission.

        Args:
            submission: The graded submission.
            unique: Enforce at most one submission per (student, quiz).

        Returns:
            ID of the stored submission.

        Raises:
            DuplicateSubmissionError: unique is set and the pair already exists.
        """
        key = (submission.student_id, submission.quiz_id)
        with self._lock:
            if unique and self._submission_counts[key] > 0:
                raise DuplicateSubmissionError(*key)
            self._submissions[submission.id] = submission
            self._submission_counts[key] += 1
        return submission.id

    def list_quiz_submissions_for_student(self, student_id: str) -> list[QuizSubmission]:
        with self._lock:
            return [s for s in self._submissions.values() if s.student_id == student_id]

    def list_quiz_submissions(self, quiz_id: Optional[str] = None) -> list[QuizSubmission]:
        with self._lock:
            return [
                s for s in self._submissions.values() if quiz_id is None or s.quiz_id == quiz_id
            ]

    # Evaluations

    def add_evaluation(self, evaluation: Evaluation) -> Evaluation:
        """Store an evaluation and record its normalised score as a grade."""
        with self._lock:
            self._evaluations[evaluation.id] = evaluation
            self.add_grade(
                Grade(
                    student_id=evaluation.presenter.id,
                    assessment=EvaluationRef(id=evaluation.id),
                    score=normalize_scores(evaluation.scores),
                    course_id=evaluation.course_id,
                )
            )
        return evaluation

    def _populate(self, evaluation: Evaluation) -> Evaluation:
        """Refresh the evaluator and presenter refs with the users' current roles."""
        update = {}
        for field_name in ("presenter", "evaluator"):
            ref = getattr(evaluation, field_name)
            user = self._users.get(ref.id)
            if user is not None and user.role != ref.role:
                update[field_name] = user.ref()
        return evaluation.model_copy(update=update) if update else evaluation

    def list_evaluations(self, course_id: Optional[str] = None) -> list[Evaluation]:
        with self._lock:
            return [
                self._populate(e)
                for e in self._evaluations.values()
                if course_id is None or e.course_id == course_id
            ]

    def list_evaluations_for_presenter(self, presenter_id: str) -> list[Evaluation]:
        with self._lock:
            return [
                self._populate(e)
                for e in self._evaluations.values()
                if e.presenter.id == presenter_id
            ]

    def delete_evaluation(self, evaluation_id: str) -> None:
        """Delete an evaluation together with its grade."""
        with self._lock:
            if self._evaluations.pop(evaluation_id, None) is None:
                raise NotFoundError("Evaluation", evaluation_id)
            for grade in list(self._grades.values()):
                if grade.assessment.kind == "evaluation" and grade.assessment.id == evaluation_id:
                    del self._grades[grade.id]

    # Grades

    def add_grade(self, grade: Grade) -> Grade:
        with self._lock:
            self._grades[grade.id] = grade
        return grade

    def list_grades(
        self,
        student_id: Optional[str] = None,
        course_id: Optional[str] = None,
    ) -> list[Grade]:
        with self._lock:
            return [
                g
                for g in self._grades.values()
                if (student_id is None or g.student_id == student_id)
                and (course_id is None or g.course_id == course_id)
            ]

    def delete_grade(self, grade_id: str) -> None:
        with self._lock:
            if self._grades.pop(grade_id, None) is None:
                raise NotFoundError("Grade", grade_id)

    # Persistence

    def snapshot(self) -> StoreSnapshot:
        with self._lock:
            return StoreSnapshot(
                users=list(self._users.values()),
                cohorts=list(self._cohorts.values()),
                courses=list(self._courses.values()),
                quizzes=list(self._quizzes.values()),
                evaluations=list(self._evaluations.values()),
                submissions=list(self._submissions.values()),
                grades=list(self._grades.values()),
            )

    def save(self, path: Path) -> None:
        """Save the store to a JSON file."""
        snapshot = self.snapshot()
        with open(path, "w", encoding="utf-8") as f:
            json.dump(snapshot.model_dump(mode="json"), f, indent=2, ensure_ascii=False)
        logger.info(
            f"Saved store to {path}: {len(snapshot.users)} users, "
            f"{len(snapshot.evaluations)} evaluations, {len(snapshot.grades)} grades"
        )

    @classmethod
    def load(cls, path: Path) -> "GradebookStore":
        """Load a store from a JSON file written by save()."""
        with open(path, "r", encoding="utf-8") as f:
            snapshot = StoreSnapshot.model_validate(json.load(f))

        store = cls()
        for user in snapshot.users:
            store._users[user.id] = user
        for cohort in snapshot.cohorts:
            store._cohorts[cohort.id] = cohort
        for course in snapshot.courses:
            store._courses[course.id] = course
        for quiz in snapshot.quizzes:
            store._quizzes[quiz.id] = quiz
        for evaluation in snapshot.evaluations:
            store._evaluations[evaluation.id] = evaluation
        for submission in snapshot.submissions:
            store._submissions[submission.id] = submission
            store._submission_counts[(submission.student_id, submission.quiz_id)] += 1
        for grade in snapshot.grades:
            store._grades[grade.id] = grade

        logger.debug(f"Loaded store from {path}")
        return store

    def import_evaluations(self, path: Path) -> int:
        """Import evaluations from a JSONL file, one evaluation per line.

        Each line needs presenter_id, evaluator_id and scores; type defaults
        to the evaluator's current role.

        Returns:
            Number of evaluations imported.
        """
        count = 0
        for record in stream_jsonl(path, skip_malformed=False):
            evaluator = self.get_user(record["evaluator_id"])
            presenter = self.get_user(record["presenter_id"])
            self.add_evaluation(
                Evaluation(
                    presenter=presenter.ref(),
                    evaluator=evaluator.ref(),
                    scores=record["scores"],
                    comments=record.get("comments", ""),
                    type=record.get("type", evaluator.role),
                    course_id=record.get("course_id"),
                    cohort_id=record.get("cohort_id", presenter.cohort_id),
                )
            )
            count += 1
        logger.info(f"Imported {count} evaluations from {path}")
        return count

    def export_grades(self, path: Path, grades: Optional[Iterable[Grade]] = None) -> int:
        """Write the grade ledger to a JSONL file."""
        return write_jsonl(path, self.list_grades() if grades is None else grades)
