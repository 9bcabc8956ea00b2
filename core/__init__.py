"""
Contact relay core: validation, message building and mail transport.
"""

__all__ = ['context', 'errors', 'mail_relay', 'models', 'transport', 'validator']
