"""
Tests for domain models (data structures).
"""

import re
import pytest
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

from domain.models import (
    ContactResponse, ContactSubmission, OutboundMessage, PipelineState,
    SendResult, ValidationResult, iso_timestamp
)


class TestContactSubmission:
    """Test ContactSubmission dataclass."""

    def test_as_dict(self):
        submission = ContactSubmission(
            name="Ada",
            email="ada@example.com",
            subject="Hi",
            message="Hello there"
        )

        assert submission.as_dict() == {
            'name': 'Ada',
            'email': 'ada@example.com',
            'subject': 'Hi',
            'message': 'Hello there',
        }

    def test_is_immutable(self):
        submission = ContactSubmission(name="Ada", email="ada@example.com", subject="Hi", message="Hello")

        with pytest.raises(AttributeError):
            submission.name = "Eve"


class TestOutboundMessage:
    """Test OutboundMessage dataclass."""

    def test_reply_to_is_optional(self):
        message = OutboundMessage(
            sender="noreply@example.com",
            recipient="ada@example.com",
            subject_line="Thanks",
            body_text="text",
            body_html="<p>html</p>"
        )

        assert message.reply_to is None


class TestSendResult:
    """Test SendResult dataclass."""

    def test_ok(self):
        result = SendResult.ok("msg-123")

        assert result.success is True
        assert result.message_id == "msg-123"
        assert result.error_message is None

    def test_failed(self):
        result = SendResult.failed("Throttling: Maximum sending rate exceeded")

        assert result.success is False
        assert result.message_id is None
        assert result.error_message == "Throttling: Maximum sending rate exceeded"

    def test_repr_success(self):
        repr_str = repr(SendResult.ok("msg-123"))
        assert "success=True" in repr_str
        assert "msg-123" in repr_str

    def test_repr_failure(self):
        repr_str = repr(SendResult.failed("Test error"))
        assert "success=False" in repr_str
        assert "Test error" in repr_str


class TestValidationResult:
    """Test ValidationResult dataclass."""

    def test_valid(self):
        submission = ContactSubmission(name="Ada", email="ada@example.com", subject="Hi", message="Hello")
        assert ValidationResult(submission=submission).is_valid is True

    def test_invalid(self):
        result = ValidationResult(error="Please provide a valid email address.")
        assert result.is_valid is False
        assert result.submission is None


class TestContactResponse:
    """Test ContactResponse dataclass."""

    def test_success_only_when_completed(self):
        completed = ContactResponse(status_code=200, body={}, state=PipelineState.COMPLETED)
        rejected = ContactResponse(status_code=400, body={}, state=PipelineState.REJECTED)

        assert completed.success is True
        assert rejected.success is False
        assert completed.headers == {}


class TestIsoTimestamp:
    """Test timestamp formatting."""

    def test_format(self):
        assert re.match(r'^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$', iso_timestamp())


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
