# middleware/security.py
"""
Security Middleware for Request Processing
"""

import logging

from flask import current_app, request

from core.errors import OriginRejectedError

logger = logging.getLogger(__name__)


def get_contact_context():
    return current_app.contact_context


def security_headers(response):
    """Add security headers to all responses"""
    for header, value in current_app.config.get('SECURITY_HEADERS', {}).items():
        response.headers.setdefault(header, value)
    return response


def enforce_allowed_origin():
    """
    Reject browser requests whose Origin is not on the allow-list

    Registered as a before_request hook ahead of the rate limiter, so a
    rejected origin never consumes a rate limit slot or reaches a view.
    """
    origin = request.headers.get('Origin')
    if get_contact_context().origin_allowed(origin):
        return None

    logger.warning(f"Origin rejected: {origin} ({request.method} {request.path} from {request.remote_addr})")
    raise OriginRejectedError(origin)
