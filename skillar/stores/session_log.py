"""Append-only log of completed training sessions."""

import logging
import uuid
from typing import List, Optional

from ..database import SessionLocal
from ..models import TrainingSession as SessionRow
from ..schemas import TrainingSession
from .base import db_scope

logger = logging.getLogger(__name__)


def _to_session(row: SessionRow) -> TrainingSession:
    return TrainingSession(
        id=row.id,
        user_id=row.user_id,
        skill_id=row.skill_id,
        completed_at=row.completed_at,
        accuracy_score=row.accuracy_score,
        feedback=row.feedback or "",
        completed=bool(row.completed),
    )


class SessionLogStore:
    def __init__(self, session_factory=SessionLocal):
        self._session_factory = session_factory

    def append(self, session: TrainingSession) -> str:
        """Write one record. Raises WriteError if the store fails; no retry here."""
        session_id = session.id or str(uuid.uuid4())
        with db_scope(self._session_factory, write=True) as db:
            db.add(SessionRow(
                id=session_id,
                user_id=session.user_id,
                skill_id=session.skill_id,
                completed_at=session.completed_at,
                accuracy_score=session.accuracy_score,
                feedback=session.feedback,
                completed=session.completed,
            ))
        logger.info("saved session %s (user %s, skill %s, score %d)",
                    session_id, session.user_id, session.skill_id, session.accuracy_score)
        return session_id

    def get(self, session_id: str) -> Optional[TrainingSession]:
        with db_scope(self._session_factory) as db:
            row = db.get(SessionRow, session_id)
            return _to_session(row) if row else None

    def recent_sessions_for_user(self, user_id: str, limit: int = 5) -> List[TrainingSession]:
        with db_scope(self._session_factory) as db:
            rows = (
                db.query(SessionRow)
                .filter(SessionRow.user_id == user_id)
                .order_by(SessionRow.completed_at.desc())
                .limit(limit)
                .all()
            )
            return [_to_session(r) for r in rows]

    def sessions_for_user(self, user_id: str) -> List[TrainingSession]:
        with db_scope(self._session_factory) as db:
            rows = (
                db.query(SessionRow)
                .filter(SessionRow.user_id == user_id)
                .order_by(SessionRow.completed_at.desc())
                .all()
            )
            return [_to_session(r) for r in rows]
