"""
Outbound email provider integrations.

Every transport exposes the same capability, send(OutboundMessage) ->
SendResult, so the provider can be swapped without touching the pipeline.
"""

from typing import Protocol

from domain.models import OutboundMessage, SendResult


class EmailTransport(Protocol):
    """Capability implemented by every email provider integration."""

    def send(self, message: OutboundMessage) -> SendResult:
        ...

    def verify(self) -> bool:
        ...


def create_transport(config) -> EmailTransport:
    """
    Create the transport selected by config.transport.

    Raises:
        ValueError: If the transport name is unknown
    """
    if config.transport == 'ses':
        from .ses_transport import SesTransport
        return SesTransport.from_config(config)
    if config.transport == 'smtp':
        from .smtp_transport import SmtpTransport
        return SmtpTransport.from_config(config)
    raise ValueError(f"Unknown email transport: {config.transport}")
