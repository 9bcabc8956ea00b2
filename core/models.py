# core/models.py
"""
Request-scoped data structures for the contact relay

Nothing here is persisted: a Submission lives for one request and the
OutboundMessage derived from it is discarded once the transport returns.
"""

from dataclasses import dataclass, field
from email.message import EmailMessage
from typing import Dict, Optional


@dataclass(frozen=True)
class FieldError:
    """A single field validation failure"""
    field: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {'field': self.field, 'message': self.message}


@dataclass(frozen=True)
class Submission:
    """
    Validated contact form submission

    Attributes:
        name: Submitter's display name, sanitized and trimmed
        email: Normalized submitter address
        message: Sanitized message body
    """
    name: str
    email: str
    message: str


@dataclass
class OutboundMessage:
    """
    Email built from a Submission, ready for the transport

    Attributes:
        sender: Formatted From header (operator address, submitter display name)
        reply_to: Submitter's address
        to: Fixed recipient
        subject: Subject line
        text_body: Plain text part
        html_body: Escaped HTML alternative
        message_id: RFC 5322 Message-ID
    """
    sender: str
    reply_to: str
    to: str
    subject: str
    text_body: str
    html_body: Optional[str] = None
    message_id: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)

    def to_email_message(self) -> EmailMessage:
        """Render as an RFC 5322 message (multipart/alternative when HTML is present)"""
        msg = EmailMessage()
        msg['From'] = self.sender
        msg['To'] = self.to
        msg['Reply-To'] = self.reply_to
        msg['Subject'] = self.subject
        if self.message_id:
            msg['Message-ID'] = self.message_id
        for name, value in self.headers.items():
            msg[name] = value

        msg.set_content(self.text_body)
        if self.html_body:
            msg.add_alternative(self.html_body, subtype='html')
        return msg


@dataclass
class RelayResult:
    """Outcome of a single dispatch attempt"""
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None
