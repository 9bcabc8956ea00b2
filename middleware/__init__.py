from middleware.security import enforce_allowed_origin, get_contact_context, security_headers

__all__ = ['enforce_allowed_origin', 'get_contact_context', 'security_headers']
