# app/models/auth/__init__.py

from .user import User
from .audit_log import AuditLog
from .password_reset_token import PasswordResetToken

__all__ = [
    "User",
    "AuditLog",
    "PasswordResetToken",
]
