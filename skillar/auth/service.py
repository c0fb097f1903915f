"""
Identity Service
================
Accounts, password checks and bearer tokens.

  sign_up   → Account + UserProfile(role=user), returns (identity, token)
  sign_in   → (identity, token)
  sign_out  → revokes the token id
  resolve   → identity behind a token, or None

Tokens are HS256 JWTs carrying the user id, email and a random jti.
"""

import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

import jwt
from pydantic import BaseModel, field_validator

from ..config import settings
from ..database import SessionLocal
from ..errors import AuthError, AuthErrorKind, FetchError, WriteError
from ..models import Account, RevokedToken
from ..schemas import Role
from ..stores.base import db_scope
from .passwords import hash_password, verify_password

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}$", re.IGNORECASE)
MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True)
class Identity:
    uid: str
    email: str


class SignUpForm(BaseModel):
    email: str
    password: str
    display_name: str

    @field_validator("email")
    @classmethod
    def _email(cls, value: str) -> str:
        value = value.strip()
        if not EMAIL_RE.match(value):
            raise ValueError("Invalid email address")
        return value.lower()

    @field_validator("password")
    @classmethod
    def _password(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return value

    @field_validator("display_name")
    @classmethod
    def _display_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Full Name is required")
        return value.strip()


class AuthService:
    def __init__(self, catalog, session_factory=SessionLocal, secret: str = None, ttl_minutes: int = None):
        self.catalog = catalog
        self._session_factory = session_factory
        self._secret = secret or settings.JWT_SECRET
        self._ttl = timedelta(minutes=ttl_minutes or settings.JWT_TTL_MINUTES)

    def _issue_token(self, identity: Identity) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": identity.uid,
            "email": identity.email,
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": now + self._ttl,
        }
        return jwt.encode(payload, self._secret, algorithm="HS256")

    def sign_up(self, email: str, password: str, display_name: str, role: Role = Role.USER) -> Tuple[Identity, str]:
        """Raises pydantic.ValidationError for bad form input, AuthError otherwise."""
        form = SignUpForm(email=email, password=password, display_name=display_name)
        uid = str(uuid.uuid4())
        try:
            # Account and profile commit together or not at all
            with db_scope(self._session_factory, write=True) as db:
                if db.query(Account).filter(Account.email == form.email).first():
                    raise AuthError(AuthErrorKind.EMAIL_ALREADY_IN_USE)
                db.add(Account(id=uid, email=form.email, password_hash=hash_password(form.password)))
                db.flush()
                self.catalog.create_profile(uid, form.email, form.display_name, role=role, db=db)
        except (FetchError, WriteError) as e:
            logger.error("sign-up failed for %s: %s", form.email, e)
            raise AuthError(AuthErrorKind.UNKNOWN) from e

        identity = Identity(uid=uid, email=form.email)
        logger.info("signed up %s as %s", form.email, Role(role).value)
        return identity, self._issue_token(identity)

    def sign_in(self, email: str, password: str) -> Tuple[Identity, str]:
        try:
            with db_scope(self._session_factory) as db:
                account = db.query(Account).filter(Account.email == email.strip().lower()).first()
                found = (account.id, account.email, account.password_hash) if account else None
        except FetchError as e:
            raise AuthError(AuthErrorKind.UNKNOWN) from e

        if found is None or not verify_password(password, found[2]):
            raise AuthError(AuthErrorKind.INVALID_CREDENTIAL)
        identity = Identity(uid=found[0], email=found[1])
        return identity, self._issue_token(identity)

    def _decode(self, token: str) -> Optional[dict]:
        try:
            return jwt.decode(token, self._secret, algorithms=["HS256"])
        except jwt.ExpiredSignatureError:
            logger.info("rejected expired token")
        except jwt.InvalidTokenError:
            logger.info("rejected invalid token")
        return None

    def sign_out(self, token: str):
        payload = self._decode(token)
        if payload is None:
            return
        try:
            with db_scope(self._session_factory, write=True) as db:
                if db.get(RevokedToken, payload["jti"]) is None:
                    db.add(RevokedToken(jti=payload["jti"]))
        except WriteError as e:
            raise AuthError(AuthErrorKind.UNKNOWN) from e

    def resolve(self, token: str) -> Optional[Identity]:
        payload = self._decode(token) if token else None
        if payload is None:
            return None
        try:
            with db_scope(self._session_factory) as db:
                if db.get(RevokedToken, payload["jti"]) is not None:
                    return None
        except FetchError as e:
            raise AuthError(AuthErrorKind.UNKNOWN) from e
        return Identity(uid=payload["sub"], email=payload["email"])
