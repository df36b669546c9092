"""Shared pytest fixtures for student-evaluator tests."""

import json
from pathlib import Path

import pytest

from student_evaluator.models.course import Course, WeightingFactors
from student_evaluator.models.evaluation import Evaluation, EvaluationScores
from student_evaluator.models.quiz import Question, QuestionType, Quiz
from student_evaluator.models.users import User
from student_evaluator.service import GradebookService
from student_evaluator.session import SessionManager, hash_password
from student_evaluator.store import GradebookStore

# Hashing is slow, so every account shares one precomputed hash of "secret".
PASSWORD = "secret"
PASSWORD_HASH = hash_password(PASSWORD)


def make_scores(value: float) -> EvaluationScores:
    """Ratings with every field set to value; normalises to value * 20."""
    return EvaluationScores(area1=value, area2=value, area3=value, area4=value, extra_credit=value)


def make_evaluation(
    presenter: User,
    evaluator: User,
    value: float,
    course_id: str | None = None,
) -> Evaluation:
    return Evaluation(
        presenter=presenter.ref(),
        evaluator=evaluator.ref(),
        scores=make_scores(value),
        type=evaluator.role,
        course_id=course_id,
    )


@pytest.fixture
def presenter() -> User:
    return User(
        id="stu-alice",
        username="alice",
        role="student",
        first_name="Alice",
        last_name="Adams",
        courses=["course-1"],
        password_hash=PASSWORD_HASH,
    )


@pytest.fixture
def peer() -> User:
    return User(
        id="stu-bob",
        username="bob",
        role="student",
        first_name="Bob",
        last_name="Baker",
        password_hash=PASSWORD_HASH,
    )


@pytest.fixture
def instructor() -> User:
    return User(
        id="ins-dana",
        username="dana",
        role="instructor",
        first_name="Dana",
        last_name="Diaz",
        password_hash=PASSWORD_HASH,
    )


@pytest.fixture
def course() -> Course:
    return Course(
        id="course-1",
        title="Welding Fundamentals",
        weighting_factors=WeightingFactors(quiz=1, assignment=1, evaluation=2),
    )


@pytest.fixture
def quiz() -> Quiz:
    """Four multiple-choice questions worth one point each."""
    return Quiz(
        id="quiz-1",
        title="Shop Safety",
        course_id="course-1",
        questions=[
            Question(id="q1", text="Eye protection?", options=["A", "B"], correct_answer="A"),
            Question(id="q2", text="Fire extinguisher class?", options=["A", "B"], correct_answer="B"),
            Question(id="q3", text="Cutting tool?", options=["Torch", "Saw"], correct_answer="Torch"),
            Question(id="q4", text="Gas cylinder storage?", options=["C", "D"], correct_answer="D"),
        ],
    )


@pytest.fixture
def open_ended_question() -> Question:
    return Question(
        id="q5",
        text="Describe your welding setup.",
        correct_answer="anything",
        question_type=QuestionType.OPEN_ENDED,
    )


@pytest.fixture
def store(presenter: User, peer: User, instructor: User, course: Course, quiz: Quiz) -> GradebookStore:
    """Store with three users, one course and one quiz."""
    store = GradebookStore()
    for user in (presenter, peer, instructor):
        store.add_user(user)
    store.add_course(course)
    store.add_quiz(quiz)
    return store


@pytest.fixture
def service(store: GradebookStore) -> GradebookService:
    return GradebookService(store)


@pytest.fixture
def sessions(store: GradebookStore) -> SessionManager:
    return SessionManager(store)


@pytest.fixture
def data_file(tmp_path: Path, store: GradebookStore) -> Path:
    """The fixture store saved to a JSON data file."""
    path = tmp_path / "gradebook.json"
    store.save(path)
    return path


@pytest.fixture
def answers_file(tmp_path: Path) -> Path:
    """Answers with three of four questions correct."""
    path = tmp_path / "answers.json"
    path.write_text(json.dumps({"q1": "A", "q2": "B", "q3": "torch", "q4": "D"}))
    return path


@pytest.fixture
def scores_factory():
    """Factory for uniform EvaluationScores."""
    return make_scores


@pytest.fixture
def evaluation_factory():
    """Factory for evaluations stamped with the evaluator's current role."""
    return make_evaluation
