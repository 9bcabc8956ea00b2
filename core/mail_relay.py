# core/mail_relay.py
"""
Mail Relay: turns a validated Submission into an email and dispatches it

Exactly one dispatch attempt is made per call. There is no retry, queue or
deduplication; the HTTP caller sees the outcome synchronously and may
resubmit.
"""

import logging
from email.utils import formataddr, formatdate, make_msgid
from typing import Optional

from markupsafe import Markup, escape

from core.errors import TransportFailedError
from core.models import OutboundMessage, RelayResult, Submission
from core.transport import MailTransport

logger = logging.getLogger(__name__)

SUBJECT_TEMPLATE = 'New Contact Form Submission from {name}'

TEXT_TEMPLATE = """Name: {name}
Email: {email}

Message:
{message}
"""

HTML_TEMPLATE = Markup(
    '<p><strong>Name:</strong> {name}</p>\n'
    '<p><strong>Email:</strong> {email}</p>\n'
    '<p><strong>Message:</strong><br>{message}</p>\n'
)


def _html_message(text: str) -> Markup:
    """Escape a multi-line message and keep its line breaks"""
    return Markup('<br>\n').join(escape(line) for line in text.split('\n'))


class MailRelay:
    """
    Builds outbound messages from submissions and hands them to the transport

    Args:
        transport: Anything implementing MailTransport
        operator_address: Account the mail is sent from (EMAIL_USER)
        recipient: Fixed destination address (EMAIL_TO)
    """

    def __init__(self, transport: MailTransport, operator_address: str, recipient: str):
        self.transport = transport
        self.operator_address = operator_address
        self.recipient = recipient

    @property
    def message_domain(self) -> Optional[str]:
        if '@' in self.operator_address:
            return self.operator_address.rsplit('@', 1)[1]
        return None

    def build_message(self, submission: Submission) -> OutboundMessage:
        html_body = HTML_TEMPLATE.format(
            name=submission.name,
            email=submission.email,
            message=_html_message(submission.message),
        )

        return OutboundMessage(
            sender=formataddr((submission.name, self.operator_address)),
            reply_to=submission.email,
            to=self.recipient,
            subject=SUBJECT_TEMPLATE.format(name=submission.name),
            text_body=TEXT_TEMPLATE.format(
                name=submission.name,
                email=submission.email,
                message=submission.message,
            ),
            html_body=str(html_body),
            message_id=make_msgid(domain=self.message_domain),
            headers={'Date': formatdate(localtime=True)},
        )

    async def relay(self, submission: Submission) -> RelayResult:
        """Dispatch one submission, logging the cause of any failure"""
        message = self.build_message(submission)

        try:
            message_id = await self.transport.send(message)
        except TransportFailedError as e:
            logger.error(f"Error sending email for {submission.email} ({e.category} failure): {e}", exc_info=True)
            return RelayResult(success=False, error=str(e))
        except Exception as e:
            logger.error(f"Unexpected transport error for {submission.email}: {e}", exc_info=True)
            return RelayResult(success=False, error=str(e))

        logger.info(f"Email sent successfully! Message ID: {message_id}")
        return RelayResult(success=True, message_id=message_id)
