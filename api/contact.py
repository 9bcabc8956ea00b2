# api/contact.py
"""
Contact form submission API
"""

import logging

from flask import Blueprint, request, jsonify

from core.errors import ValidationFailedError
from middleware.security import get_contact_context

contact_bp = Blueprint('contact', __name__)
logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = 'Message sent successfully!'
FAILURE_MESSAGE = 'Internal server error. Please try again later.'


@contact_bp.route('/connect', methods=['POST'])
async def connect():
    """
    Validate a contact form submission and relay it by email

    Origin and rate limit checks have already run as before_request hooks by
    the time this view executes.
    """
    context = get_contact_context()
    data = request.get_json(silent=True)

    try:
        submission = context.validator.validate(data)
    except ValidationFailedError as e:
        logger.info(f"Contact submission rejected from {request.remote_addr}: invalid {', '.join(e.fields)}")
        return jsonify(e.to_dict()), 400

    result = await context.relay.relay(submission)
    if not result.success:
        return jsonify({'message': FAILURE_MESSAGE}), 500

    return jsonify({'message': SUCCESS_MESSAGE}), 200
