# core/errors.py
"""
Exception hierarchy for the contact relay pipeline
"""

from typing import List, Optional

from core.models import FieldError


class ContactRelayError(Exception):
    """Base exception for contact relay operations"""
    status_code = 500


class OriginRejectedError(ContactRelayError):
    """Request came from an origin outside the allow-list"""
    status_code = 403

    def __init__(self, origin: str):
        super().__init__(f"Origin not allowed: {origin}")
        self.origin = origin


class ValidationFailedError(ContactRelayError):
    """Submission failed field validation"""
    status_code = 400

    def __init__(self, errors: List[FieldError]):
        super().__init__(', '.join(f"{e.field}: {e.message}" for e in errors))
        self.errors = errors

    @property
    def fields(self) -> List[str]:
        return [e.field for e in self.errors]

    def to_dict(self):
        return {'errors': [e.to_dict() for e in self.errors]}


class TransportFailedError(ContactRelayError):
    """
    Mail transport could not verify or deliver

    smtp_code is set when the server answered with a reply code; 4xx replies
    are temporary conditions, 5xx are permanent (RFC 5321 section 4.2.1).
    """

    def __init__(self, message: str, smtp_code: Optional[int] = None):
        super().__init__(message)
        self.smtp_code = smtp_code

    @property
    def category(self) -> str:
        if self.smtp_code is None:
            return 'connection'
        if 400 <= self.smtp_code < 500:
            return 'temporary'
        if 500 <= self.smtp_code < 600:
            return 'permanent'
        return 'unknown'
