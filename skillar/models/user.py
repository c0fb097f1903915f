from sqlalchemy import Column, String, DateTime, JSON
from datetime import datetime, timezone
from ..database import Base


class UserProfile(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, index=True)  # same id as the Account
    email = Column(String(255), index=True)
    display_name = Column(String(200))
    role = Column(String(20), default="user")         # user | admin
    enrolled_skills = Column(JSON, default=list)      # [skill_id, ...] with set semantics
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
