"""
Amazon SES email transport.

Sends OutboundMessage objects through the SES v2 SendEmail API. Provider
errors and timeouts are returned as failed SendResults rather than raised.

Usage:
    from integrations.ses_transport import SesTransport

    transport = SesTransport(region='us-east-1')
    result = transport.send(message)
    if not result.success:
        print(result.error_message)
"""

import logging
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from domain.models import OutboundMessage, SendResult

logger = logging.getLogger(__name__)

CHARSET = 'UTF-8'


def _create_ses_client(region: str, timeout_seconds: int):
    """
    Create an SES v2 client with timeouts and no retries.

    A send that hangs must come back as a failure, not block the request.
    """
    client_config = Config(
        retries={
            'max_attempts': 1,  # 1 attempt total (no retries)
            'mode': 'standard'
        },
        connect_timeout=min(10, timeout_seconds),
        read_timeout=timeout_seconds
    )

    client = boto3.client('sesv2', region_name=region, config=client_config)
    logger.info(
        f"SES client initialized: region={region}, "
        f"read_timeout={timeout_seconds}s, max_attempts=1"
    )
    return client


class SesTransport:
    """Email transport backed by Amazon SES."""

    def __init__(
        self,
        region: str = 'us-east-1',
        timeout_seconds: int = 20,
        configuration_set: Optional[str] = None,
        client=None
    ):
        self.region = region
        self.configuration_set = configuration_set
        self.client = client or _create_ses_client(region, timeout_seconds)

    @classmethod
    def from_config(cls, config) -> 'SesTransport':
        return cls(
            region=config.ses_region,
            timeout_seconds=config.send_timeout_seconds,
            configuration_set=config.ses_configuration_set,
        )

    def send(self, message: OutboundMessage) -> SendResult:
        """
        Send a message through SES.

        Args:
            message: Message to deliver

        Returns:
            SendResult with the SES MessageId, or the failure cause
        """
        request = {
            'FromEmailAddress': message.sender,
            'Destination': {'ToAddresses': [message.recipient]},
            'Content': {
                'Simple': {
                    'Subject': {'Data': message.subject_line, 'Charset': CHARSET},
                    'Body': {
                        'Text': {'Data': message.body_text, 'Charset': CHARSET},
                        'Html': {'Data': message.body_html, 'Charset': CHARSET},
                    },
                }
            },
        }
        if message.reply_to:
            request['ReplyToAddresses'] = [message.reply_to]
        if self.configuration_set:
            request['ConfigurationSetName'] = self.configuration_set

        try:
            response = self.client.send_email(**request)
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code', 'Unknown')
            error_message = e.response.get('Error', {}).get('Message', str(e))
            logger.error(f"SES send failed: error_code={error_code}, error_message={error_message}")
            return SendResult.failed(f"{error_code}: {error_message}")
        except BotoCoreError as e:
            # Connection errors and read timeouts
            logger.error(f"SES send failed: {e.__class__.__name__}: {e}")
            return SendResult.failed(f"{e.__class__.__name__}: {e}")

        message_id = response.get('MessageId')
        logger.info(f"SES accepted message: message_id={message_id}")
        return SendResult.ok(message_id)

    def verify(self) -> bool:
        """Check that SES is reachable and the account can send."""
        try:
            account = self.client.get_account()
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Email configuration error: {e}")
            return False

        if not account.get('SendingEnabled', False):
            logger.error("Email configuration error: SES sending is disabled for this account")
            return False

        logger.info("Email service is ready to send messages")
        return True
