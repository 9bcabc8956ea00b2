from api.contact import contact_bp

__all__ = ['contact_bp']
