"""Quiz scoring, submission recording and missed-question reports."""

import logging
from datetime import datetime
from typing import Iterable, Mapping, Optional, TYPE_CHECKING

from ..errors import DuplicateSubmissionError, SubmissionClosedError
from ..models.course import Grade, QuizRef
from ..models.quiz import AnswerRecord, Question, QuestionType, Quiz, QuizSubmission
from ..models.results import MissedQuestion

if TYPE_CHECKING:
    from ..store import GradebookStore

logger = logging.getLogger(__name__)


def is_answer_correct(question: Question, selected_answer: Optional[str]) -> bool:
    """Exact, case-sensitive comparison against the correct answer.

    Open-ended questions are never marked correct automatically.
    """
    if question.question_type != QuestionType.MULTIPLE_CHOICE:
        return False
    if selected_answer is None or question.correct_answer is None:
        return False
    return selected_answer == question.correct_answer


def grade_answers(
    quiz: Quiz,
    answers: Mapping[str, Optional[str]],
) -> tuple[float, list[AnswerRecord]]:
    """Grade a set of answers against a quiz.

    Args:
        quiz: Quiz with its ordered questions.
        answers: Mapping of question ID to the selected answer.

    Returns:
        Tuple of (score 0-100, per-question answer records in quiz order).
    """
    records = []
    for question in quiz.questions:
        selected = answers.get(question.id)
        records.append(
            AnswerRecord(
                question_id=question.id,
                selected_answer=selected,
                is_correct=is_answer_correct(question, selected),
            )
        )

    if not records:
        return 0.0, records

    correct = sum(1 for r in records if r.is_correct)
    return correct / len(records) * 100, records


class QuizScorer:
    """Score quiz attempts and record them in the store."""

    def __init__(self, store: "GradebookStore"):
        """Initialize quiz scorer.

        Args:
            store: Store that submissions and grades are written to.
        """
        self.store = store

    def score_and_record_submission(
        self,
        quiz: Quiz,
        answers: Mapping[str, Optional[str]],
        student_id: str,
        now: Optional[datetime] = None,
    ) -> QuizSubmission:
        """Grade a submission and persist it.

        Args:
            quiz: The quiz being attempted.
            answers: Mapping of question ID to the selected answer.
            student_id: The submitting student.
            now: Submission time, defaults to the current UTC time.

        Returns:
            The recorded QuizSubmission.

        Raises:
            SubmissionClosedError: The quiz is past due and refuses late work.
            DuplicateSubmissionError: The quiz allows one submission and the
                student already has one.
        """
        now = now or datetime.utcnow()
        if quiz.is_closed(now):
            raise SubmissionClosedError(f"Quiz {quiz.id} is closed for submissions")

        unique = not quiz.allow_multiple_submissions
        if unique and self.store.has_submission(student_id, quiz.id):
            raise DuplicateSubmissionError(student_id, quiz.id)

        score, records = grade_answers(quiz, answers)
        submission = QuizSubmission(
            student_id=student_id,
            quiz_id=quiz.id,
            score=score,
            answers=records,
            submitted_at=now,
        )

        # The store's unique index is authoritative if two attempts race past the check above.
        self.store.save_quiz_submission(submission, unique=unique)

        if quiz.course_id is not None:
            self.store.add_grade(
                Grade(
                    student_id=student_id,
                    assessment=QuizRef(id=quiz.id),
                    score=score,
                    course_id=quiz.course_id,
                )
            )

        logger.info(
            f"Recorded submission {submission.id} for quiz {quiz.id} by {student_id}: "
            f"{submission.correct_count}/{len(records)} correct ({score:.2f}%)"
        )
        return submission


def missed_questions(
    quizzes: Iterable[Quiz],
    submissions: Iterable[QuizSubmission],
) -> list[MissedQuestion]:
    """Count incorrect answers per question across submissions.

    Args:
        quizzes: Quizzes whose question text and answers are looked up.
        submissions: Recorded submissions; their stored correctness is used as-is.

    Returns:
        MissedQuestion entries, most-missed first.
    """
    questions: dict[str, Question] = {}
    for quiz in quizzes:
        for question in quiz.questions:
            questions[question.id] = question

    missed: dict[str, MissedQuestion] = {}
    for submission in submissions:
        for answer in submission.answers:
            if answer.is_correct:
                continue
            entry = missed.get(answer.question_id)
            if entry is None:
                question = questions.get(answer.question_id)
                entry = MissedQuestion(
                    question_id=answer.question_id,
                    question_text=question.text if question else "",
                    correct_answer=question.correct_answer if question else None,
                    missed_count=0,
                )
                missed[answer.question_id] = entry
            entry.missed_count += 1
            given = answer.selected_answer if answer.selected_answer is not None else ""
            entry.incorrect_answers[given] = entry.incorrect_answers.get(given, 0) + 1

    return sorted(missed.values(), key=lambda m: m.missed_count, reverse=True)
