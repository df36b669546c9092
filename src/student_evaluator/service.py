"""Gradebook service: the read and write operations exposed to callers."""

import logging
from typing import Any, Mapping, Optional

from .config import ScoringConfig
from .models.course import Course, Grade
from .models.evaluation import Evaluation, EvaluationScores
from .models.quiz import QuizSubmission
from .models.results import (
    CourseScore,
    GradebookSummary,
    MissedQuestion,
    OverallGrade,
    PresenterScore,
    StudentProgress,
)
from .models.users import Role
from .scoring.aggregator import ScoreAggregator
from .scoring.partition import find_role_discrepancies
from .scoring.progress import roll_up
from .scoring.quiz import QuizScorer, missed_questions
from .session import Session, require_role
from .store import GradebookStore

logger = logging.getLogger(__name__)


class GradebookService:
    """Compute scores and record submissions against a GradebookStore."""

    def __init__(self, store: GradebookStore, config: Optional[ScoringConfig] = None):
        """Initialize gradebook service.

        Args:
            store: Persistence collaborator.
            config: Scoring configuration.
        """
        self.store = store
        self.config = config or ScoringConfig()
        self._aggregator = ScoreAggregator(self.config)
        self._quiz_scorer = QuizScorer(store)

    def presenter_final_score(self, presenter_id: str) -> Optional[PresenterScore]:
        """Weighted peer/instructor score of a presenter.

        Returns:
            PresenterScore, or None if the presenter has no peer or instructor
            evaluations.
        """
        self.store.get_user(presenter_id)
        evaluations = self.store.list_evaluations_for_presenter(presenter_id)
        result = self._aggregator.aggregate_presenter(presenter_id, evaluations)
        if result.peer_count + result.instructor_count == 0:
            return None
        return result

    def course_score(self, student_id: str, course_id: str) -> CourseScore:
        """Weighted score of a student in one course."""
        self.store.get_user(student_id)
        course = self.store.get_course(course_id)
        return self._course_score(student_id, course)

    def _course_score(self, student_id: str, course: Course) -> CourseScore:
        grades = self.store.list_grades(student_id=student_id, course_id=course.id)
        evaluations = [
            e
            for e in self.store.list_evaluations_for_presenter(student_id)
            if e.course_id == course.id
        ]
        categories = self._aggregator.category_scores(grades, evaluations)
        return self._aggregator.aggregate_course(
            course.id,
            categories,
            course.weighting_factors,
            course_title=course.title,
        )

    def student_progress(self, student_id: str) -> StudentProgress:
        """Per-course scores and overall progress of a student.

        Courses are those the student is enrolled in, followed by any other
        course in which the student has grades.
        """
        student = self.store.get_user(student_id)

        course_ids = list(student.courses)
        for grade in self.store.list_grades(student_id=student_id):
            if grade.course_id is not None and grade.course_id not in course_ids:
                course_ids.append(grade.course_id)

        course_scores = [
            self._course_score(student_id, self.store.get_course(course_id))
            for course_id in course_ids
        ]
        return roll_up(
            student_id,
            course_scores,
            student_name=student.display_name,
            decimals=self.config.decimals,
        )

    def all_students_progress(self) -> GradebookSummary:
        """Progress of every student, for the instructor gradebook."""
        students = self.store.list_users(role=Role.STUDENT.value)
        progress = [self.student_progress(s.id) for s in students]
        logger.info(f"Computed progress for {len(progress)} students")
        return GradebookSummary.from_progress(progress, decimals=self.config.decimals)

    def overall_grades(self) -> list[OverallGrade]:
        """Overall grade of every student with grades, over the whole ledger.

        Uses the fixed per-kind weights of ScoringConfig.overall_weights
        rather than course weighting factors.
        """
        by_student: dict[str, list[Grade]] = {}
        for grade in self.store.list_grades():
            by_student.setdefault(grade.student_id, []).append(grade)

        results = []
        for student_id, grades in by_student.items():
            student = self.store.get_user(student_id)
            score = self._aggregator.overall_grade(grades, self.config.overall_weights)
            results.append(
                OverallGrade(
                    student_id=student_id,
                    student_name=student.display_name,
                    grade_count=len(grades),
                    overall_score=round(score, self.config.decimals),
                )
            )
        return results

    def score_and_record_submission(
        self,
        quiz_id: str,
        answers: Mapping[str, Optional[str]],
        student_id: str,
    ) -> QuizSubmission:
        """Grade a quiz attempt and record it."""
        self.store.get_user(student_id)
        quiz = self.store.get_quiz(quiz_id)
        return self._quiz_scorer.score_and_record_submission(quiz, answers, student_id)

    def missed_questions(self, quiz_id: Optional[str] = None) -> list[MissedQuestion]:
        """Incorrect-answer counts per question, for one quiz or all quizzes."""
        if quiz_id is not None:
            quizzes = [self.store.get_quiz(quiz_id)]
        else:
            quizzes = self.store.list_quizzes()
        return missed_questions(quizzes, self.store.list_quiz_submissions(quiz_id))

    def role_discrepancies(self, course_id: Optional[str] = None) -> list[Evaluation]:
        """Evaluations whose submitted type differs from the evaluator's current role."""
        if course_id is not None:
            self.store.get_course(course_id)
        return find_role_discrepancies(self.store.list_evaluations(course_id))

    def submit_evaluation(
        self,
        session: Session,
        presenter_id: str,
        scores: EvaluationScores | Mapping[str, Any],
        comments: str = "",
        course_id: Optional[str] = None,
    ) -> Evaluation:
        """Record an evaluation authored by the session's user.

        The evaluation's type is the evaluator's role at submission time.

        Raises:
            AuthorizationError: The session role may not evaluate.
            NotFoundError: The presenter, evaluator or course does not exist.
            pydantic.ValidationError: A rating is outside [0, 5].
        """
        require_role(session, Role.STUDENT, Role.INSTRUCTOR)
        evaluator = self.store.get_user(session.user_id)
        presenter = self.store.get_user(presenter_id)
        if course_id is not None:
            self.store.get_course(course_id)

        evaluation = Evaluation(
            presenter=presenter.ref(),
            evaluator=evaluator.ref(),
            scores=scores,
            comments=comments,
            type=evaluator.role,
            course_id=course_id,
            cohort_id=presenter.cohort_id,
        )
        self.store.add_evaluation(evaluation)
        logger.info(f"{session.role} {evaluator.id} evaluated presenter {presenter_id}")
        return evaluation

    def delete_evaluation(self, session: Session, evaluation_id: str) -> None:
        """Delete an evaluation and its grade. Instructors only."""
        require_role(session, Role.INSTRUCTOR)
        self.store.delete_evaluation(evaluation_id)
        logger.info(f"Deleted evaluation {evaluation_id}")

    def update_weighting_factors(
        self, session: Session, course_id: str, **weights: float
    ) -> Course:
        """Change a course's category weights. Instructors only."""
        require_role(session, Role.INSTRUCTOR)
        return self.store.update_weighting_factors(course_id, **weights)
