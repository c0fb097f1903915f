from sqlalchemy import Column, String, Text, DateTime, JSON
from datetime import datetime, timezone
from ..database import Base


class Skill(Base):
    __tablename__ = "skills"

    id = Column(String(36), primary_key=True, index=True)
    title = Column(String(200))
    description = Column(Text)
    difficulty = Column(String(20))      # Beginner, Intermediate, Advanced
    category = Column(String(100))
    image_url = Column(String(500))
    steps = Column(JSON, default=list)   # [{id, title, instruction, order}]
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
