"""Domain error types."""


class DomainError(Exception):
    """Base domain error."""
    code = "domain_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(DomainError):
    """Resource not found."""
    code = "not_found"

    def __init__(self, resource: str, identifier: str = None, message: str = None):
        self.resource = resource
        self.identifier = identifier
        if message is None:
            message = (
                f"{resource} with id {identifier} not found"
                if identifier is not None
                else f"{resource} not found"
            )
        super().__init__(message)


class ValidationError(DomainError):
    """Validation error."""
    code = "validation_error"


class InvalidResponseError(ValidationError):
    """Learner response is structurally wrong for its question."""
    code = "invalid_response"


class UnsupportedQuestionTypeError(ValidationError):
    """Question type tag is not one of the supported kinds."""
    code = "unsupported_question_type"

    def __init__(self, question_type: str):
        self.question_type = question_type
        super().__init__("unsupported question type for this release")


class UnauthorizedError(DomainError):
    """Caller credential missing or rejected."""
    code = "unauthorized"

    def __init__(self, message: str = "Missing access token"):
        super().__init__(message)


class ConflictError(DomainError):
    """Resource conflict error."""
    code = "conflict"


class StaleAttemptError(ConflictError):
    """Conditional attempt write lost a race; caller should refresh and retry."""
    code = "stale_attempt"

    def __init__(self, message: str = "Quiz answer is stale. Refresh and try again."):
        super().__init__(message)


class InvalidQuestionDefinitionError(DomainError):
    """Authored question data is corrupt."""
    code = "invalid_question_definition"


class GraderNotConfiguredError(DomainError):
    """Supported question type has no registered grader."""
    code = "grader_not_configured"

    def __init__(self, question_type: str):
        self.question_type = question_type
        super().__init__(f"Question grader is not configured for type: {question_type}")
