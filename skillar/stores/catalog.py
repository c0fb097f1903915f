"""
Skill Catalog Store
===================
Skill modules and user profiles (incl. the enrolled-skills set) in the document store.

Skills are written once by the authoring flow and never updated. Steps are embedded
in the skill document; each gets a fresh id and its 1-based position as `order`.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from ..database import SessionLocal
from ..errors import WriteError
from ..models import Skill as SkillRow
from ..models import UserProfile as ProfileRow
from ..schemas import Role, Skill, SkillDraft, SkillStep, UserProfile
from .base import db_scope
from .blob import LocalBlobStore

logger = logging.getLogger(__name__)


def _to_skill(row: SkillRow) -> Skill:
    return Skill(
        id=row.id,
        title=row.title,
        description=row.description or "",
        difficulty=row.difficulty,
        category=row.category or "",
        image_url=row.image_url or "",
        steps=[SkillStep(**s) for s in sorted(row.steps or [], key=lambda s: s["order"])],
        created_at=row.created_at,
    )


def _to_profile(row: ProfileRow) -> UserProfile:
    return UserProfile(
        id=row.id,
        email=row.email,
        display_name=row.display_name or "",
        role=row.role or Role.USER,
        enrolled_skills=list(row.enrolled_skills or []),
    )


def number_steps(steps) -> List[dict]:
    """Give each step a unique id and a dense 1-based order matching its position."""
    return [
        {
            "id": str(uuid.uuid4()),
            "title": step.title,
            "instruction": step.instruction,
            "order": position,
        }
        for position, step in enumerate(steps, start=1)
    ]


class CatalogStore:
    def __init__(self, session_factory=SessionLocal, blobs: LocalBlobStore = None):
        self._session_factory = session_factory
        self.blobs = blobs or LocalBlobStore()

    # ── Skills ─────────────────────────────────────────────────────────────

    def list_skills(self) -> List[Skill]:
        with db_scope(self._session_factory) as db:
            rows = db.query(SkillRow).order_by(SkillRow.created_at).all()
            return [_to_skill(r) for r in rows]

    def get_skill(self, skill_id: str) -> Optional[Skill]:
        with db_scope(self._session_factory) as db:
            row = db.get(SkillRow, skill_id)
            return _to_skill(row) if row else None

    def skills_by_ids(self, skill_ids: Iterable[str]) -> List[Skill]:
        wanted = list(dict.fromkeys(skill_ids))
        if not wanted:
            return []
        with db_scope(self._session_factory) as db:
            rows = db.query(SkillRow).filter(SkillRow.id.in_(wanted)).all()
            by_id = {r.id: _to_skill(r) for r in rows}
        return [by_id[i] for i in wanted if i in by_id]

    def create_skill(self, draft: SkillDraft, cover_image: bytes, filename: str = "cover") -> str:
        """Upload the cover, then write the skill document. Returns the new skill id."""
        blob_id = self.blobs.upload(f"skills/{uuid.uuid4()}-{filename}", cover_image)
        image_url = self.blobs.get_public_url(blob_id)

        skill_id = str(uuid.uuid4())
        try:
            with db_scope(self._session_factory, write=True) as db:
                db.add(SkillRow(
                    id=skill_id,
                    title=draft.title,
                    description=draft.description,
                    difficulty=draft.difficulty.value,
                    category=draft.category,
                    image_url=image_url,
                    steps=number_steps(draft.steps),
                    created_at=datetime.now(timezone.utc),
                ))
        except WriteError:
            self.blobs.delete(blob_id)
            raise
        logger.info("created skill %s '%s' with %d steps", skill_id, draft.title, len(draft.steps))
        return skill_id

    # ── Profiles & enrollment ──────────────────────────────────────────────

    def create_profile(self, user_id: str, email: str, display_name: str, role: Role = Role.USER, db=None) -> UserProfile:
        """Write a fresh profile. Pass `db` to join a transaction the caller commits."""
        if db is not None:
            return self._add_profile(db, user_id, email, display_name, role)
        with db_scope(self._session_factory, write=True) as db:
            return self._add_profile(db, user_id, email, display_name, role)

    def _add_profile(self, db, user_id, email, display_name, role) -> UserProfile:
        row = ProfileRow(
            id=user_id,
            email=email,
            display_name=display_name,
            role=Role(role).value,
            enrolled_skills=[],
        )
        db.add(row)
        db.flush()
        return _to_profile(row)

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        with db_scope(self._session_factory) as db:
            row = db.get(ProfileRow, user_id)
            return _to_profile(row) if row else None

    def enroll(self, user_id: str, skill_id: str) -> List[str]:
        """Add skill_id to the user's enrolled set. Already enrolled is a no-op."""
        with db_scope(self._session_factory, write=True) as db:
            row = db.get(ProfileRow, user_id)
            if row is None:
                raise WriteError(f"No profile for user {user_id}")
            enrolled = list(row.enrolled_skills or [])
            if skill_id not in enrolled:
                # Reassign so SQLAlchemy sees the JSON column change
                row.enrolled_skills = enrolled + [skill_id]
                logger.info("user %s enrolled in %s", user_id, skill_id)
            return list(row.enrolled_skills)
