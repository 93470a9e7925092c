"""
Error taxonomy for tenant verification submissions
"""

from typing import List, Optional


class PoliceFormError(Exception):
    """Base class for every failure a submission can end with"""

    error_kind = "submission_error"
    status_code = 500

    def __init__(self, message: str, details: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or []


class ValidationError(PoliceFormError):
    """Malformed input detected before any browser work"""

    error_kind = "validation_error"
    status_code = 400


class BrowserUnavailable(PoliceFormError):
    """Browser could not be launched after exhausting retries"""

    error_kind = "browser_unavailable"
    status_code = 503


class FileFetchError(PoliceFormError):
    """An attachment reference could not be retrieved"""

    error_kind = "file_fetch_error"


class SubmissionError(PoliceFormError):
    """Failure while filling or submitting the remote form"""


class RemoteValidationError(SubmissionError):
    """The target site rejected the submitted data"""

    error_kind = "remote_validation_error"


class ReferenceNotFoundError(SubmissionError):
    """Submission probably went through but no reference number could be parsed"""

    error_kind = "reference_not_found"


class SubmissionTimeout(SubmissionError):
    error_kind = "timeout"
