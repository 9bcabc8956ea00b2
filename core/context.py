# core/context.py
"""
Process-scoped state shared by the request handlers

Built once by the application factory and attached to the Flask app, so each
app instance (and each test) gets its own allow-list, transport and relay.
"""

from dataclasses import dataclass, field
from typing import Tuple

from core.mail_relay import MailRelay
from core.transport import MailTransport, TransportProbe
from core.validator import InputValidator


@dataclass
class ContactContext:
    allowed_origins: Tuple[str, ...]
    transport: MailTransport
    relay: MailRelay
    probe: TransportProbe
    validator: InputValidator = field(default_factory=InputValidator)

    def origin_allowed(self, origin) -> bool:
        """Absent origins (curl, server-to-server) are always allowed"""
        return not origin or origin in self.allowed_origins
