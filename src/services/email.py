"""
Email composition and dispatch for contact submissions.

This module builds the owner notification and the submitter auto-reply
and hands them to an injected transport. It never talks to an email
provider directly.
"""

import logging
from email.message import EmailMessage
from email.utils import formataddr, getaddresses, make_msgid
from typing import Optional

from domain.models import ContactSubmission, OutboundMessage, SendResult, iso_timestamp
from services import templates as template_service

logger = logging.getLogger(__name__)

OWNER_SUBJECT_PREFIX = 'Portfolio Contact: '
AUTO_REPLY_SUBJECT_PREFIX = 'Thanks for your message: '


def sanitize_header_value(value: str) -> str:
    """
    Strip CR/LF from a value destined for an email header.

    Example:
        >>> sanitize_header_value("Hi\\r\\nBcc: victim@example.com")
        'Hi Bcc: victim@example.com'
    """
    return ' '.join((value or '').splitlines()).strip()


def single_address(value: str) -> str:
    """
    Return value if it parses as exactly one bare mailbox.

    Raises:
        ValueError: If value is empty, holds several addresses, or does not
            round-trip through the address parser unchanged
    """
    value = (value or '').strip()
    addresses = getaddresses([value])

    if not value or len(addresses) != 1 or addresses[0][1] != value:
        raise ValueError(f"Not a single email address: {value!r}")

    return value


def to_mime_message(message: OutboundMessage) -> EmailMessage:
    """
    Render an OutboundMessage as a multipart/alternative MIME message.

    Args:
        message: Message to render

    Returns:
        EmailMessage with text/plain and text/html parts
    """
    msg = EmailMessage()
    msg['From'] = message.sender
    msg['To'] = message.recipient
    msg['Subject'] = sanitize_header_value(message.subject_line)
    msg['Message-ID'] = make_msgid()
    if message.reply_to:
        msg['Reply-To'] = message.reply_to

    msg.set_content(message.body_text)
    msg.add_alternative(message.body_html, subtype='html')
    return msg


class EmailDispatcher:
    """
    Sends contact emails through an email transport.

    The transport is any object with send(OutboundMessage) -> SendResult.
    """

    def __init__(
        self,
        transport,
        owner_email: str,
        sender_email: str,
        sender_name: str = 'Portfolio Contact',
        owner_name: str = 'Portfolio Owner'
    ):
        self.transport = transport
        self.owner_email = owner_email
        self.sender_email = sender_email
        self.sender_name = sender_name
        self.owner_name = owner_name

    @classmethod
    def from_config(cls, config, transport) -> 'EmailDispatcher':
        return cls(
            transport=transport,
            owner_email=config.owner_email,
            sender_email=config.sender_email,
            sender_name=config.sender_name,
            owner_name=config.owner_name,
        )

    def build_owner_notification(self, submission: ContactSubmission, timestamp: Optional[str] = None) -> OutboundMessage:
        """
        Build the message that tells the site owner about a submission.

        Replies go straight to the submitter via Reply-To.
        """
        values = dict(submission.as_dict(), timestamp=timestamp or iso_timestamp())

        return OutboundMessage(
            sender=formataddr((self.sender_name, self.sender_email)),
            recipient=self.owner_email,
            reply_to=single_address(submission.email),
            subject_line=sanitize_header_value(OWNER_SUBJECT_PREFIX + submission.subject),
            body_text=template_service.render_template('owner_notification.txt', **values),
            body_html=template_service.render_template('owner_notification.html', **values),
        )

    def build_auto_reply(self, submission: ContactSubmission) -> OutboundMessage:
        """Build the acknowledgment sent back to the submitter."""
        values = {
            'name': submission.name,
            'subject': submission.subject,
            'owner_name': self.owner_name,
        }

        return OutboundMessage(
            sender=formataddr((self.owner_name, self.sender_email)),
            recipient=single_address(submission.email),
            subject_line=sanitize_header_value(AUTO_REPLY_SUBJECT_PREFIX + submission.subject),
            body_text=template_service.render_template('auto_reply.txt', **values),
            body_html=template_service.render_template('auto_reply.html', **values),
        )

    def notify_owner(self, submission: ContactSubmission) -> SendResult:
        """
        Send the owner notification.

        Returns:
            SendResult from the transport; a failure here fails the request
        """
        try:
            message = self.build_owner_notification(submission)
        except ValueError as e:
            logger.error(f"Owner notification not built: {e}")
            return SendResult.failed(str(e))

        result = self.transport.send(message)

        if result.success:
            logger.info(f"Owner notification sent: message_id={result.message_id}")
        else:
            logger.error(f"Owner notification failed: {result.error_message}")

        return result

    def auto_reply(self, submission: ContactSubmission) -> SendResult:
        """
        Send the auto-reply to the submitter.

        Returns:
            SendResult from the transport; callers treat failure as non-fatal
        """
        try:
            message = self.build_auto_reply(submission)
        except ValueError as e:
            logger.warning(f"Auto-reply not built: {e}")
            return SendResult.failed(str(e))

        result = self.transport.send(message)

        if result.success:
            logger.info(f"Auto-reply sent to {submission.email}")
        else:
            logger.warning(f"Could not send auto-reply to {submission.email}: {result.error_message}")

        return result
