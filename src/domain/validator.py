"""
Validation and normalization of incoming contact form payloads.
"""

import re
from email.utils import getaddresses
from typing import Any, Mapping

from .models import ContactSubmission, ValidationResult

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

REQUIRED_FIELDS = ('name', 'email', 'subject', 'message')

MISSING_FIELDS_ERROR = 'All fields (name, email, subject, message) are required.'
INVALID_EMAIL_ERROR = 'Please provide a valid email address.'


def is_valid_email(value: str) -> bool:
    """
    Check value has the shape local@domain.tld with no whitespace and
    parses as exactly one mailbox.

    Example:
        >>> is_valid_email("victim,attacker@evil.co")
        False
    """
    if not EMAIL_PATTERN.match(value or ''):
        return False

    addresses = getaddresses([value])
    return len(addresses) == 1 and addresses[0][1] == value


class ContactRequestValidator:
    """
    Validates a raw contact payload and returns a normalized submission.

    Checks run in order and the first failure wins: presence, email
    format, then length limits. No HTML sanitization happens here; values
    must be escaped wherever they are embedded into HTML.
    """

    def __init__(self, max_name_length: int = 100, max_subject_length: int = 200, max_message_length: int = 5000):
        self.max_name_length = max_name_length
        self.max_subject_length = max_subject_length
        self.max_message_length = max_message_length

    def validate(self, raw: Any) -> ValidationResult:
        """
        Validate a raw payload.

        Args:
            raw: Parsed request body; expected to be a mapping with string
                name, email, subject and message fields

        Returns:
            ValidationResult with a ContactSubmission, or the rejection reason
        """
        if not isinstance(raw, Mapping):
            return ValidationResult(error=MISSING_FIELDS_ERROR)

        values = {}
        for name in REQUIRED_FIELDS:
            value = raw.get(name)
            if not isinstance(value, str) or not value.strip():
                return ValidationResult(error=MISSING_FIELDS_ERROR)
            values[name] = value.strip()

        if not is_valid_email(values['email']):
            return ValidationResult(error=INVALID_EMAIL_ERROR)

        limits = (
            ('name', 'Name', self.max_name_length),
            ('subject', 'Subject', self.max_subject_length),
            ('message', 'Message', self.max_message_length),
        )
        for name, label, limit in limits:
            if len(values[name]) > limit:
                return ValidationResult(error=f'{label} must be {limit} characters or fewer.')

        return ValidationResult(submission=ContactSubmission(
            name=values['name'],
            email=values['email'].lower(),
            subject=values['subject'],
            message=values['message'],
        ))
