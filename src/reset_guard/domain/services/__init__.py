"""Domain services that compose the limiters and the event log into the
password reset flow."""

from .password_reset import GuardDecision, PasswordResetGuard

__all__ = [
    "GuardDecision",
    "PasswordResetGuard",
]
