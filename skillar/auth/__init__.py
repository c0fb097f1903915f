from .service import AuthService, Identity, SignUpForm
from .client import IdentityClient
from .gate import AuthContext, resolve_context, enroll

__all__ = [
    "AuthService", "Identity", "SignUpForm",
    "IdentityClient",
    "AuthContext", "resolve_context", "enroll",
]
