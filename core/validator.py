# core/validator.py
"""
Input validation and sanitization for contact form submissions

Every field is sanitized before it is checked: HTML is stripped with bleach,
entities are decoded back to plain text and control characters are removed.
Line breaks are folded out of single-line fields so they can never end up
as extra headers in the outbound message.
"""

import html
import logging
import re
from typing import Any, List, Mapping, Optional

import bleach
from email_validator import validate_email, EmailNotValidError

from core.errors import ValidationFailedError
from core.models import FieldError, Submission

logger = logging.getLogger(__name__)

CONTACT_FIELDS = ('name', 'email', 'message')

FIELD_MESSAGES = {
    'name': 'Name is required.',
    'email': 'A valid email is required.',
    'message': 'Message is required.',
}

# C0/C1 control characters, minus tab and newline which multi-line fields keep
_CONTROL_CHARS = re.compile(r'[\x00-\x08\x0b-\x1f\x7f-\x9f]')
_LINE_BREAKS = re.compile(r'[\r\n\t\u2028\u2029]+')


def sanitize_field(value: Any, multiline: bool = False) -> str:
    """
    Strip markup and control characters from a raw field value

    Args:
        value: Raw value from the request body; non-strings become empty
        multiline: Keep newlines and tabs (message body) instead of folding them

    Returns:
        Plain text with surrounding whitespace trimmed
    """
    if not isinstance(value, str):
        return ''

    cleaned = value.replace('\r\n', '\n').replace('\r', '\n')
    cleaned = _CONTROL_CHARS.sub('', cleaned)

    cleaned = bleach.clean(cleaned, tags=set(), attributes={}, strip=True, strip_comments=True)
    # Entities such as &#13; decode to control characters, so filter again
    cleaned = _CONTROL_CHARS.sub('', html.unescape(cleaned))

    if not multiline:
        cleaned = _LINE_BREAKS.sub(' ', cleaned)

    return cleaned.strip()


def normalize_email(value: str) -> Optional[str]:
    """Validate an address against the RFC grammar, returning it lower-cased or None"""
    if not value:
        return None
    try:
        # Mail goes out without SMTPUTF8, so the address must be ASCII
        result = validate_email(value, check_deliverability=False, allow_smtputf8=False)
    except EmailNotValidError as e:
        logger.debug(f"Rejected email address: {e}")
        return None
    return result.normalized.lower()


class InputValidator:
    """Turns a raw JSON payload into a Submission or raises ValidationFailedError"""

    def validate(self, payload: Optional[Mapping[str, Any]]) -> Submission:
        if not isinstance(payload, Mapping):
            payload = {}

        name = sanitize_field(payload.get('name'))
        email = sanitize_field(payload.get('email'))
        message = sanitize_field(payload.get('message'), multiline=True)

        errors: List[FieldError] = []
        if not name:
            errors.append(FieldError('name', FIELD_MESSAGES['name']))

        normalized_email = normalize_email(email)
        if normalized_email is None:
            errors.append(FieldError('email', FIELD_MESSAGES['email']))

        if not message:
            errors.append(FieldError('message', FIELD_MESSAGES['message']))

        if errors:
            raise ValidationFailedError(errors)

        return Submission(name=name, email=normalized_email, message=message)
