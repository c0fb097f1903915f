from sqlalchemy import Column, String, Integer, Text, DateTime, Boolean
from datetime import datetime, timezone
from ..database import Base


class TrainingSession(Base):
    __tablename__ = "training_sessions"

    id = Column(String(36), primary_key=True, index=True)
    user_id = Column(String(36), index=True)
    skill_id = Column(String(36), index=True)
    completed_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), index=True)
    accuracy_score = Column(Integer)     # 0-100, rounded mean of step scores
    feedback = Column(Text)
    completed = Column(Boolean, default=True)
