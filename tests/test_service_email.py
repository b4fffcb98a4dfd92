"""
Tests for email composition and dispatch.
"""

import pytest
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

from conftest import FakeTransport
from domain.models import ContactSubmission, OutboundMessage, SendResult
from services.email import EmailDispatcher, sanitize_header_value, single_address, to_mime_message


@pytest.fixture
def submission():
    return ContactSubmission(
        name="Ada",
        email="ada@example.com",
        subject="Hi",
        message="Hello there\nSecond line"
    )


@pytest.fixture
def dispatcher(contact_config, fake_transport):
    return EmailDispatcher.from_config(contact_config, fake_transport)


class TestOwnerNotification:
    """Test the owner notification message."""

    def test_addressing(self, dispatcher, submission):
        message = dispatcher.build_owner_notification(submission)

        assert message.recipient == 'owner@example.com'
        assert message.reply_to == 'ada@example.com'
        assert message.sender == 'Portfolio Contact <noreply@example.com>'
        assert message.subject_line == 'Portfolio Contact: Hi'

    def test_body_contains_all_fields(self, dispatcher, submission):
        message = dispatcher.build_owner_notification(submission, timestamp='2025-01-01T00:00:00.000Z')

        for body in (message.body_text, message.body_html):
            assert 'Ada' in body
            assert 'ada@example.com' in body
            assert 'Hi' in body
            assert 'Hello there' in body
            assert '2025-01-01T00:00:00.000Z' in body

    def test_html_body_escapes_user_input(self, dispatcher):
        hostile = ContactSubmission(
            name='<img src=x onerror=alert(1)>',
            email='eve@example.com',
            subject='<b>subject</b>',
            message='<script>steal()</script>'
        )

        message = dispatcher.build_owner_notification(hostile)

        assert '<script>' not in message.body_html
        assert '<img' not in message.body_html
        assert '<b>subject</b>' not in message.body_html
        assert '&lt;script&gt;steal()&lt;/script&gt;' in message.body_html
        # Plain text is left as-is
        assert '<script>steal()</script>' in message.body_text

    def test_subject_header_injection_stripped(self, dispatcher):
        hostile = ContactSubmission(
            name='Eve',
            email='eve@example.com',
            subject='Hi\r\nBcc: victim@example.com',
            message='Hello'
        )

        message = dispatcher.build_owner_notification(hostile)

        assert '\r' not in message.subject_line
        assert '\n' not in message.subject_line

    def test_notify_owner_sends_once(self, dispatcher, fake_transport, submission):
        result = dispatcher.notify_owner(submission)

        assert result.success is True
        assert len(fake_transport.sent) == 1
        assert fake_transport.sent[0].recipient == 'owner@example.com'

    def test_notify_owner_returns_failure(self, contact_config, submission):
        transport = FakeTransport(SendResult.failed("MessageRejected: Email address is not verified"))
        dispatcher = EmailDispatcher.from_config(contact_config, transport)

        result = dispatcher.notify_owner(submission)

        assert result.success is False
        assert 'MessageRejected' in result.error_message


class TestAutoReply:
    """Test the auto-reply message."""

    def test_addressing(self, dispatcher, submission):
        message = dispatcher.build_auto_reply(submission)

        assert message.recipient == 'ada@example.com'
        assert message.reply_to is None
        assert message.sender == 'Sam Owner <noreply@example.com>'
        assert message.subject_line == 'Thanks for your message: Hi'

    def test_body_references_subject(self, dispatcher, submission):
        message = dispatcher.build_auto_reply(submission)

        assert 'Hello Ada,' in message.body_text
        assert '"Hi"' in message.body_text
        assert '24-48 hours' in message.body_text
        assert 'Sam Owner' in message.body_html

    def test_auto_reply_does_not_echo_message(self, dispatcher, submission):
        message = dispatcher.build_auto_reply(submission)

        assert 'Hello there' not in message.body_text
        assert 'Hello there' not in message.body_html

    def test_auto_reply_failure_returned(self, contact_config, submission):
        transport = FakeTransport(SendResult.failed("Throttling"))
        dispatcher = EmailDispatcher.from_config(contact_config, transport)

        assert dispatcher.auto_reply(submission).success is False

    def test_address_list_never_reaches_transport(self, dispatcher, fake_transport):
        smuggled = ContactSubmission(
            name='Eve',
            email='victim,attacker@evil.co',
            subject='Hi',
            message='Hello'
        )

        assert dispatcher.auto_reply(smuggled).success is False
        assert dispatcher.notify_owner(smuggled).success is False
        assert fake_transport.sent == []


class TestSanitizeHeaderValue:
    """Test header value sanitization."""

    def test_strips_line_breaks(self):
        assert sanitize_header_value('Hi\r\nBcc: victim@example.com') == 'Hi Bcc: victim@example.com'

    def test_plain_value_unchanged(self):
        assert sanitize_header_value('Hello World') == 'Hello World'

    def test_none(self):
        assert sanitize_header_value(None) == ''


class TestSingleAddress:
    """Test single-mailbox enforcement for submitter addresses."""

    def test_plain_address(self):
        assert single_address(' ada@example.com ') == 'ada@example.com'

    @pytest.mark.parametrize('value', [
        'victim,attacker@evil.co',
        'a@example.com, b@example.com',
        'Eve <eve@example.com>',
        '',
        None,
    ])
    def test_rejects_anything_but_one_mailbox(self, value):
        with pytest.raises(ValueError):
            single_address(value)


class TestToMimeMessage:
    """Test MIME rendering for SMTP delivery."""

    def test_multipart_alternative(self):
        message = OutboundMessage(
            sender='Portfolio Contact <noreply@example.com>',
            recipient='owner@example.com',
            reply_to='ada@example.com',
            subject_line='Portfolio Contact: Hi',
            body_text='plain body',
            body_html='<p>html body</p>'
        )

        mime = to_mime_message(message)

        assert mime['To'] == 'owner@example.com'
        assert mime['Reply-To'] == 'ada@example.com'
        assert mime['Subject'] == 'Portfolio Contact: Hi'
        assert mime['Message-ID']
        assert mime.get_content_type() == 'multipart/alternative'
        assert 'plain body' in mime.get_body(preferencelist=('plain',)).get_content()
        assert '<p>html body</p>' in mime.get_body(preferencelist=('html',)).get_content()

    def test_no_reply_to_header_when_absent(self):
        message = OutboundMessage(
            sender='noreply@example.com',
            recipient='ada@example.com',
            subject_line='Thanks',
            body_text='text',
            body_html='<p>html</p>'
        )

        assert to_mime_message(message)['Reply-To'] is None


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
