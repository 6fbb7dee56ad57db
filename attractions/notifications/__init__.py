from .email import EmailService

__all__ = ["EmailService"]
