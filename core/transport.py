# core/transport.py
"""
Mail transport abstraction and SMTP implementation

The relay only depends on the MailTransport capability (verify + send), so
tests can swap in an in-memory transport without touching the network.
SMTPTransport talks to the provider with aiosmtplib: implicit TLS on port
465, STARTTLS on anything else.
"""

import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional

import aiosmtplib

from core.errors import TransportFailedError
from core.models import OutboundMessage

logger = logging.getLogger(__name__)


class MailTransport(ABC):
    """Capability interface for anything that can deliver an OutboundMessage"""

    @abstractmethod
    async def verify(self) -> None:
        """Check connectivity and credentials; raise TransportFailedError on failure"""

    @abstractmethod
    async def send(self, message: OutboundMessage) -> str:
        """Deliver the message and return its identifier; raise TransportFailedError on failure"""


class SMTPTransport(MailTransport):
    """
    aiosmtplib-backed transport for SMTP providers (Gmail app passwords by default)

    Each call opens its own connection, so there is no shared socket between
    concurrent requests.
    """

    def __init__(self, host: str, port: int, username: str, password: str,
                 timeout: float = 30.0, validate_certs: bool = True):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.timeout = timeout
        self.validate_certs = validate_certs

    @classmethod
    def from_config(cls, config) -> 'SMTPTransport':
        return cls(
            host=config['EMAIL_HOST'],
            port=config['EMAIL_PORT'],
            username=config['EMAIL_USER'],
            password=config['EMAIL_PASS'],
            timeout=config['EMAIL_TIMEOUT'],
        )

    def _client(self) -> aiosmtplib.SMTP:
        implicit_tls = self.port == 465
        return aiosmtplib.SMTP(
            hostname=self.host,
            port=self.port,
            username=self.username or None,
            password=self.password or None,
            use_tls=implicit_tls,
            start_tls=not implicit_tls,
            timeout=self.timeout,
            validate_certs=self.validate_certs,
        )

    async def verify(self) -> None:
        if not self.username or not self.password:
            raise TransportFailedError("EMAIL_USER and EMAIL_PASS must be configured")
        try:
            async with self._client() as smtp:
                await smtp.noop()
        except aiosmtplib.SMTPResponseException as e:
            raise TransportFailedError(
                f"SMTP verification failed for {self.host}:{self.port}: {e.code} {e.message}",
                smtp_code=e.code,
            ) from e
        except (aiosmtplib.SMTPException, OSError, asyncio.TimeoutError) as e:
            raise TransportFailedError(f"SMTP verification failed for {self.host}:{self.port}: {e}") from e

    async def send(self, message: OutboundMessage) -> str:
        email_message = message.to_email_message()
        try:
            async with self._client() as smtp:
                errors, response = await smtp.send_message(email_message)
        except aiosmtplib.SMTPResponseException as e:
            raise TransportFailedError(f"SMTP {e.code} {e.message}", smtp_code=e.code) from e
        except (aiosmtplib.SMTPException, OSError, asyncio.TimeoutError) as e:
            raise TransportFailedError(f"SMTP delivery failed: {e}") from e

        if errors:
            rejected = ', '.join(f"{addr} ({code} {text})" for addr, (code, text) in errors.items())
            first_code = next(iter(errors.values()))[0]
            raise TransportFailedError(f"Recipients refused: {rejected}", smtp_code=first_code)

        logger.debug(f"SMTP server response: {response}")
        message_id = email_message['Message-ID']
        return str(message_id) if message_id else response


class TransportProbe:
    """
    One-time, non-blocking connectivity check run at process start

    The probe never raises: a failed verification is logged and recorded, and
    the service keeps accepting requests (each dispatch reports its own error).
    """

    PENDING = 'pending'
    READY = 'ready'
    FAILED = 'failed'
    SKIPPED = 'skipped'

    def __init__(self, transport: MailTransport):
        self.transport = transport
        self.state = self.PENDING
        self.error: Optional[str] = None
        self.checked_at: Optional[datetime] = None
        self._thread: Optional[threading.Thread] = None

    def run(self) -> bool:
        """Verify the transport synchronously, returning True when it is usable"""
        try:
            asyncio.run(self.transport.verify())
        except Exception as e:
            self.state = self.FAILED
            self.error = str(e)
            logger.error(f"Mail transport verification failed: {e}")
            return False
        finally:
            self.checked_at = datetime.now(timezone.utc)

        self.state = self.READY
        self.error = None
        logger.info("Mail transport is ready to send emails")
        return True

    def start(self) -> threading.Thread:
        """Run the probe on a daemon thread so startup never waits on the network"""
        self._thread = threading.Thread(target=self.run, name='mail-transport-probe', daemon=True)
        self._thread.start()
        return self._thread

    def skip(self) -> None:
        self.state = self.SKIPPED
        logger.info("Mail transport verification skipped")

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)
