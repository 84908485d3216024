# ndasurvey/errors.py
from typing import Dict, Optional


class SurveyError(Exception):
    """Base error; ``status_code`` is the HTTP status the API answers with."""

    status_code = 500

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or {}


class ValidationError(SurveyError):
    """Required data missing or malformed. ``errors`` maps field -> reason."""

    status_code = 400


class ConsentRequired(ValidationError):
    pass


class InvalidArgument(SurveyError):
    status_code = 400


class NotFound(SurveyError):
    status_code = 404


class WizardStateError(SurveyError):
    """A wizard transition was requested from the wrong step."""

    status_code = 409


class TransportError(SurveyError):
    """Network failure or timeout talking to the survey API."""

    status_code = 503


class ApiError(SurveyError):
    """The survey API answered with an unexpected error status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code
