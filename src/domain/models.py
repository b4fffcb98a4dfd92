"""
Data models for the contact submission domain.

These type-safe data structures define clear contracts between components.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Any, Optional


def iso_timestamp() -> str:
    """Current UTC time as ISO 8601 with millisecond precision, e.g. 2025-01-01T12:00:00.000Z."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


@dataclass(frozen=True)
class ContactSubmission:
    """
    A validated contact form submission.

    Created per request by the validator and discarded after the response.
    All fields are trimmed; email is lower-cased.

    Attributes:
        name: Submitter name
        email: Submitter email address
        subject: Submission subject
        message: Message body
    """
    name: str
    email: str
    subject: str
    message: str

    def as_dict(self) -> Dict[str, str]:
        return {
            'name': self.name,
            'email': self.email,
            'subject': self.subject,
            'message': self.message,
        }


@dataclass(frozen=True)
class OutboundMessage:
    """
    An email ready to be handed to a transport.

    Attributes:
        sender: From address, optionally with display name
        recipient: Single recipient address
        subject_line: Subject header value
        body_text: Plain text body
        body_html: HTML body
        reply_to: Optional Reply-To address
    """
    sender: str
    recipient: str
    subject_line: str
    body_text: str
    body_html: str
    reply_to: Optional[str] = None


@dataclass
class SendResult:
    """
    Result of a transport send operation.

    Transports return this instead of raising, so a timeout and a provider
    rejection look the same to callers.

    Attributes:
        success: Whether the provider accepted the message
        message_id: Provider message identifier (if accepted)
        error_message: Failure cause (if not accepted), for server-side logs only
    """
    success: bool
    message_id: Optional[str] = None
    error_message: Optional[str] = None

    @classmethod
    def ok(cls, message_id: Optional[str] = None) -> 'SendResult':
        return cls(success=True, message_id=message_id)

    @classmethod
    def failed(cls, cause: str) -> 'SendResult':
        return cls(success=False, error_message=cause)

    def __repr__(self) -> str:
        if self.success:
            return f"SendResult(success=True, message_id={self.message_id})"
        return f"SendResult(success=False, error={self.error_message})"


@dataclass(frozen=True)
class RateLimitDecision:
    """
    Outcome of a rate limiter admission check.

    Attributes:
        admitted: Whether the request may proceed
        retry_after_seconds: Seconds until the client's window resets (0 when admitted)
        remaining: Requests left in the current window after this one
    """
    admitted: bool
    retry_after_seconds: int = 0
    remaining: int = 0


@dataclass(frozen=True)
class ValidationResult:
    """Either a normalized submission or the reason it was rejected."""
    submission: Optional[ContactSubmission] = None
    error: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.submission is not None and self.error is None


class PipelineState(Enum):
    """States a single contact request moves through."""
    RECEIVED = 'received'
    RATE_CHECKED = 'rate_checked'
    VALIDATED = 'validated'
    OWNER_NOTIFIED = 'owner_notified'
    AUTO_REPLY_ATTEMPTED = 'auto_reply_attempted'
    COMPLETED = 'completed'
    RATE_LIMITED = 'rate_limited'
    REJECTED = 'rejected'
    DISPATCH_FAILED = 'dispatch_failed'


@dataclass
class ContactResponse:
    """
    HTTP-style response produced by the contact pipeline.

    Attributes:
        status_code: HTTP status code
        body: JSON-serializable response body
        state: Terminal pipeline state
        headers: Extra response headers (e.g. Retry-After)
    """
    status_code: int
    body: Dict[str, Any]
    state: PipelineState
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.state is PipelineState.COMPLETED
