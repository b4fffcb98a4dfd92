"""
SMTP email transport (e.g. the SendGrid SMTP relay).

Port 465 uses implicit TLS; any other port upgrades with STARTTLS.
"""

import logging
import smtplib
import ssl
from typing import Optional

from domain.models import OutboundMessage, SendResult
from services.email import to_mime_message

logger = logging.getLogger(__name__)

IMPLICIT_TLS_PORT = 465


class SmtpTransport:
    """Email transport that relays through an SMTP server."""

    def __init__(
        self,
        host: str,
        port: int = IMPLICIT_TLS_PORT,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout_seconds: int = 20
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_config(cls, config) -> 'SmtpTransport':
        return cls(
            host=config.smtp_host,
            port=config.smtp_port,
            username=config.smtp_username,
            password=config.smtp_password,
            timeout_seconds=config.send_timeout_seconds,
        )

    def _connect(self) -> smtplib.SMTP:
        context = ssl.create_default_context()

        if self.port == IMPLICIT_TLS_PORT:
            server = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout_seconds, context=context)
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=self.timeout_seconds)

        # Any handshake or login failure must not leave the socket open
        try:
            if self.port != IMPLICIT_TLS_PORT:
                server.ehlo()
                server.starttls(context=context)
                server.ehlo()

            if self.username and self.password:
                server.login(self.username, self.password)
        except BaseException:
            server.close()
            raise

        return server

    def send(self, message: OutboundMessage) -> SendResult:
        """
        Send a message over SMTP.

        Args:
            message: Message to deliver

        Returns:
            SendResult with the Message-ID header, or the failure cause
        """
        mime = to_mime_message(message)

        try:
            with self._connect() as server:
                server.send_message(mime, to_addrs=[message.recipient])
        except smtplib.SMTPException as e:
            logger.error(f"SMTP send via {self.host}:{self.port} failed: {e.__class__.__name__}: {e}")
            return SendResult.failed(f"{e.__class__.__name__}: {e}")
        except OSError as e:
            # Connection refused, DNS failure, socket timeout
            logger.error(f"SMTP connection to {self.host}:{self.port} failed: {e}")
            return SendResult.failed(f"{e.__class__.__name__}: {e}")

        logger.info(f"SMTP relay accepted message for {message.recipient}")
        return SendResult.ok(mime.get('Message-ID'))

    def verify(self) -> bool:
        """Check that the SMTP server accepts a connection and the credentials."""
        try:
            with self._connect() as server:
                server.noop()
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Email configuration error: {e}")
            return False

        logger.info("Email server is ready to send messages")
        return True
