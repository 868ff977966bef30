"""Error taxonomy for the survey.

None of these are fatal to a page session: validation errors block a single
submission, remote failures are recovered locally.
"""


class SurveyError(Exception):
    """Base class for all survey errors."""
    pass


class ValidationError(SurveyError):
    """Raised when a ballot's selections are not acceptable.

    Attributes:
        kind: A ValidationErrorKind describing what is wrong
        message: User-facing explanation, suitable for a notice
    """

    def __init__(self, kind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


class TransportError(SurveyError):
    """Raised when a submission reached the network layer but failed.

    Attributes:
        status_code: HTTP status of the failed response, or None when no
            response was received (connection error, timeout)
        message: Description of the failure
    """

    def __init__(self, status_code: int | None, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"HTTP {self.status_code}: {self.message}"


class ParseError(SurveyError):
    """Raised when a remote reply or a stored value cannot be interpreted."""
    pass


class SubmissionError(SurveyError):
    """Raised when a submission is driven incorrectly (e.g. run twice)."""
    pass


class ConfigurationError(SurveyError):
    """Raised for an unknown strategy or a missing endpoint URL."""
    pass
