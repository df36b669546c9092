"""Exception types raised by Student Evaluator."""


class StudentEvaluatorError(Exception):
    """Base class for all Student Evaluator errors."""


class NotFoundError(StudentEvaluatorError):
    """A referenced entity (user, course, quiz, evaluation, grade) does not exist."""

    def __init__(self, kind: str, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} not found: {entity_id}")


class DuplicateSubmissionError(StudentEvaluatorError):
    """A student tried to resubmit a quiz that only allows one submission."""

    def __init__(self, student_id: str, quiz_id: str):
        self.student_id = student_id
        self.quiz_id = quiz_id
        super().__init__(
            f"Resubmission not allowed: student {student_id} already submitted quiz {quiz_id}"
        )


class SubmissionClosedError(StudentEvaluatorError):
    """The quiz is past its due date and does not accept late submissions."""


class AuthenticationError(StudentEvaluatorError):
    """Invalid credentials or an unknown session token."""


class AuthorizationError(StudentEvaluatorError):
    """The session's role is not allowed to perform the operation."""
