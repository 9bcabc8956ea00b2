"""
Pytest configuration and fixtures for all tests.
"""

import os
import sys

import pytest

# Project root on the path so app/config/core import without installation
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from app import create_app
from core.errors import TransportFailedError
from core.transport import MailTransport

ALLOWED_ORIGIN = 'https://portfolio.example.com'


class FakeTransport(MailTransport):
    """In-memory transport recording every message it is asked to send."""

    def __init__(self, fail_with=None, verify_error=None):
        self.sent = []
        self.verify_calls = 0
        self.fail_with = fail_with
        self.verify_error = verify_error

    async def verify(self):
        self.verify_calls += 1
        if self.verify_error:
            raise TransportFailedError(self.verify_error)

    async def send(self, message):
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append(message)
        return message.message_id


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def app(transport):
    return create_app('testing', transport=transport)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def valid_payload():
    return {'name': 'Alice', 'email': 'alice@example.com', 'message': 'Hello'}
