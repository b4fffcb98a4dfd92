"""
Configuration for the portfolio contact API.

All settings are read from environment variables exactly once, at process
start, into a ContactConfig instance. Components receive the config (or the
values they need from it) through their constructors.
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

APP_NAME = 'portfolio-contact-api'
VERSION = '1.0.0'

ENVIRONMENTS = ('development', 'production', 'test')
TRANSPORTS = ('ses', 'smtp')

# LOG_LEVEL values -> logging levels
LOG_LEVELS = {
    'error': logging.ERROR,
    'warn': logging.WARNING,
    'info': logging.INFO,
    'debug': logging.DEBUG,
}

_TRUE_VALUES = ('true', '1', 'yes', 'on')
_FALSE_VALUES = ('false', '0', 'no', 'off')


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing."""
    pass


def _read_required(env: Mapping[str, str], name: str) -> str:
    value = (env.get(name) or '').strip()
    if not value:
        raise ConfigurationError(
            f"{name} environment variable is required but not set."
        )
    return value


def _read_optional(env: Mapping[str, str], name: str, default: Optional[str] = None) -> Optional[str]:
    value = (env.get(name) or '').strip()
    return value or default


def _read_choice(env: Mapping[str, str], name: str, choices, default: str) -> str:
    value = (env.get(name) or default).strip().lower()
    if value not in choices:
        raise ConfigurationError(
            f"{name} must be one of {', '.join(choices)}, got: '{value}'"
        )
    return value


def _read_positive_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = (env.get(name) or '').strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got: '{raw}'")
    if value <= 0:
        raise ConfigurationError(f"{name} must be greater than zero, got: {value}")
    return value


def _read_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = (env.get(name) or '').strip().lower()
    if not raw:
        return default
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean (true/false), got: '{raw}'")


@dataclass(frozen=True)
class ContactConfig:
    """
    Settings consumed by the contact pipeline and its collaborators.

    Attributes:
        owner_email: Recipient of owner notifications
        allowed_origin: Origin allowed by CORS
        sender_email: "From" address of outgoing mail
        sender_name: Display name on owner notifications
        owner_name: Display name and signature on auto-replies
        environment: development, production or test
        log_level: error, warn, info or debug
        auto_reply_enabled: Send the acknowledgment email to the submitter
        transport: Outbound email provider, "ses" or "smtp"
    """
    owner_email: str
    allowed_origin: str
    sender_email: str
    sender_name: str = 'Portfolio Contact'
    owner_name: str = 'Portfolio Owner'
    environment: str = 'development'
    log_level: str = 'info'
    auto_reply_enabled: bool = True
    max_name_length: int = 100
    max_subject_length: int = 200
    max_message_length: int = 5000
    rate_limit_window_ms: int = 15 * 60 * 1000
    rate_limit_max_requests: int = 10
    rate_limit_max_clients: int = 10000
    transport: str = 'ses'
    ses_region: str = 'us-east-1'
    ses_configuration_set: Optional[str] = None
    smtp_host: str = 'smtp.sendgrid.net'
    smtp_port: int = 465
    smtp_username: Optional[str] = 'apikey'
    smtp_password: Optional[str] = None
    send_timeout_seconds: int = 20

    @property
    def is_production(self) -> bool:
        return self.environment == 'production'

    @property
    def is_development(self) -> bool:
        return self.environment == 'development'

    @property
    def python_log_level(self) -> int:
        return LOG_LEVELS[self.log_level]

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> 'ContactConfig':
        """
        Build configuration from environment variables.

        Args:
            env: Mapping to read from (defaults to os.environ)

        Returns:
            ContactConfig: Validated configuration

        Raises:
            ConfigurationError: If a required variable is missing or a value
                cannot be parsed
        """
        if env is None:
            env = os.environ

        owner_email = _read_required(env, 'OWNER_EMAIL')
        transport = _read_choice(env, 'EMAIL_TRANSPORT', TRANSPORTS, 'ses')

        smtp_password = _read_optional(env, 'SMTP_PASSWORD')
        if transport == 'smtp' and not smtp_password:
            raise ConfigurationError(
                "SMTP_PASSWORD environment variable is required when EMAIL_TRANSPORT=smtp."
            )

        region = (
            _read_optional(env, 'SES_REGION')
            or _read_optional(env, 'AWS_REGION')
            or _read_optional(env, 'AWS_DEFAULT_REGION', 'us-east-1')
        )

        return cls(
            owner_email=owner_email,
            allowed_origin=_read_required(env, 'ALLOWED_ORIGIN'),
            sender_email=_read_optional(env, 'SENDER_EMAIL', owner_email),
            sender_name=_read_optional(env, 'SENDER_NAME', 'Portfolio Contact'),
            owner_name=_read_optional(env, 'OWNER_NAME', 'Portfolio Owner'),
            environment=_read_choice(env, 'ENVIRONMENT', ENVIRONMENTS, 'development'),
            log_level=_read_choice(env, 'LOG_LEVEL', tuple(LOG_LEVELS), 'info'),
            auto_reply_enabled=_read_bool(env, 'ENABLE_AUTO_REPLY', True),
            max_name_length=_read_positive_int(env, 'MAX_NAME_LENGTH', 100),
            max_subject_length=_read_positive_int(env, 'MAX_SUBJECT_LENGTH', 200),
            max_message_length=_read_positive_int(env, 'MAX_MESSAGE_LENGTH', 5000),
            rate_limit_window_ms=_read_positive_int(env, 'RATE_LIMIT_WINDOW_MS', 15 * 60 * 1000),
            rate_limit_max_requests=_read_positive_int(env, 'RATE_LIMIT_MAX_REQUESTS', 10),
            rate_limit_max_clients=_read_positive_int(env, 'RATE_LIMIT_MAX_CLIENTS', 10000),
            transport=transport,
            ses_region=region,
            ses_configuration_set=_read_optional(env, 'SES_CONFIGURATION_SET'),
            smtp_host=_read_optional(env, 'SMTP_HOST', 'smtp.sendgrid.net'),
            smtp_port=_read_positive_int(env, 'SMTP_PORT', 465),
            smtp_username=_read_optional(env, 'SMTP_USERNAME', 'apikey'),
            smtp_password=smtp_password,
            send_timeout_seconds=_read_positive_int(env, 'EMAIL_TIMEOUT_SECONDS', 20),
        )

    def summary(self) -> dict:
        """Configuration summary that is safe to return to clients (no credentials)."""
        return {
            'environment': self.environment,
            'allowedOrigin': self.allowed_origin,
            'ownerEmail': 'configured' if self.owner_email else 'not configured',
            'transport': self.transport,
            'enableAutoReply': self.auto_reply_enabled,
            'logLevel': self.log_level,
            'rateLimit': {
                'windowMs': self.rate_limit_window_ms,
                'maxRequests': self.rate_limit_max_requests,
            },
        }
