"""
Profile & Auth Gate
===================
Turns an identity into an AuthContext (identity + profile + role) that callers
pass explicitly to whatever needs "the current user".

Enrollment patches the context's enrolled set in place as soon as the store
write succeeds, then re-reads the profile in the background to pick up
anything else that changed.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Optional

from ..errors import FetchError
from ..schemas import UserProfile
from .service import Identity

logger = logging.getLogger(__name__)


@dataclass
class AuthContext:
    identity: Identity
    profile: Optional[UserProfile]

    @property
    def user_id(self) -> str:
        return self.identity.uid

    @property
    def is_admin(self) -> bool:
        return self.profile is not None and self.profile.is_admin

    def is_enrolled(self, skill_id: str) -> bool:
        return self.profile is not None and skill_id in self.profile.enrolled_skills


def resolve_context(identity: Identity, catalog) -> AuthContext:
    """Load the profile behind an identity. A missing or unreadable profile resolves to None."""
    try:
        profile = catalog.get_profile(identity.uid)
    except FetchError as e:
        logger.error("could not load profile for %s: %s", identity.uid, e)
        profile = None
    if profile is None:
        logger.warning("identity %s has no profile", identity.uid)
    return AuthContext(identity=identity, profile=profile)


def reconcile(ctx: AuthContext, catalog):
    """Replace the in-memory profile with the stored one."""
    try:
        stored = catalog.get_profile(ctx.user_id)
    except FetchError as e:
        logger.warning("profile reconciliation for %s failed: %s", ctx.user_id, e)
        return
    if stored is not None:
        ctx.profile = stored


def enroll(ctx: AuthContext, catalog, skill_id: str, run_async: bool = True) -> AuthContext:
    """Enroll the current user. Raises WriteError if the store write fails."""
    catalog.enroll(ctx.user_id, skill_id)

    if ctx.profile is not None and skill_id not in ctx.profile.enrolled_skills:
        ctx.profile.enrolled_skills.append(skill_id)

    if run_async:
        threading.Thread(target=reconcile, args=(ctx, catalog), daemon=True).start()
    else:
        reconcile(ctx, catalog)
    return ctx
