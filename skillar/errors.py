"""
Error taxonomy
==============
Every failure the app surfaces to a user derives from SkillARError.

  AuthError          invalid credential / email in use / unknown: shown inline, never retried
  FetchError         catalog or session read failed: empty state or inline message
  WriteError         enrollment or session save failed: logged, session saves go to the outbox
  PermissionDenied   camera refused: blocking message, verify disabled
  AuthoringError     skill form rejected
  InvalidTransition  training action not allowed in the current state
"""

from enum import Enum


class SkillARError(Exception):
    """Base class for all application errors."""


class AuthErrorKind(str, Enum):
    INVALID_CREDENTIAL = "InvalidCredential"
    EMAIL_ALREADY_IN_USE = "EmailAlreadyInUse"
    UNKNOWN = "Unknown"


AUTH_MESSAGES = {
    AuthErrorKind.INVALID_CREDENTIAL: "Invalid email or password.",
    AuthErrorKind.EMAIL_ALREADY_IN_USE: "This email is already registered.",
    AuthErrorKind.UNKNOWN: "An error occurred. Please try again.",
}


class AuthError(SkillARError):
    def __init__(self, kind: AuthErrorKind, message: str = None):
        self.kind = kind
        self.message = message or AUTH_MESSAGES[kind]
        super().__init__(self.message)


class FetchError(SkillARError):
    pass


class WriteError(SkillARError):
    pass


class PermissionDenied(SkillARError):
    pass


class AuthoringError(SkillARError):
    pass


class InvalidTransition(SkillARError):
    pass
