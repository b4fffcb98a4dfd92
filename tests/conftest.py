"""
Pytest configuration and fixtures for all tests.
"""

import os
import sys
import pytest

# Add src and hooks to Python path before any imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../hooks'))

# Set up test environment variables before importing any modules
os.environ.setdefault('OWNER_EMAIL', 'owner@example.com')
os.environ.setdefault('SENDER_EMAIL', 'noreply@example.com')
os.environ.setdefault('ALLOWED_ORIGIN', 'https://portfolio.example.com')
os.environ.setdefault('ENVIRONMENT', 'test')
os.environ.setdefault('LOG_LEVEL', 'info')
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-west-2')

from config import ContactConfig  # noqa: E402
from domain.models import SendResult  # noqa: E402


class FakeTransport:
    """Transport double that records messages and returns queued results."""

    def __init__(self, *results):
        self.results = list(results)
        self.sent = []

    def send(self, message):
        self.sent.append(message)
        if self.results:
            result = self.results.pop(0)
            if isinstance(result, Exception):
                raise result
            return result
        return SendResult.ok(f"msg-{len(self.sent)}")

    def verify(self):
        return True


@pytest.fixture
def contact_config():
    """Configuration with default limits and test addresses."""
    return ContactConfig(
        owner_email='owner@example.com',
        allowed_origin='https://portfolio.example.com',
        sender_email='noreply@example.com',
        owner_name='Sam Owner',
        environment='test',
    )


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def valid_payload():
    return {
        'name': 'Ada',
        'email': 'ada@example.com',
        'subject': 'Hi',
        'message': 'Hello there'
    }
