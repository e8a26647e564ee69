from .ses import SESEmailService, get_email_service

__all__ = ["SESEmailService", "get_email_service"]
