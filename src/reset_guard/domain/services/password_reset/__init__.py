from .reset_guard_service import GuardDecision, PasswordResetGuard

__all__ = [
    "GuardDecision",
    "PasswordResetGuard",
]
