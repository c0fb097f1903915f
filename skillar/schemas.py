"""Domain records passed between the stores, the engine and the front ends."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class Difficulty(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


class UserProfile(BaseModel):
    id: str
    email: str
    display_name: str
    role: Role = Role.USER
    enrolled_skills: List[str] = []

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class SkillStep(BaseModel):
    id: str
    title: str
    instruction: str
    order: int  # 1-based, equals position + 1


class Skill(BaseModel):
    id: str
    title: str
    description: str
    difficulty: Difficulty
    category: str
    image_url: str
    steps: List[SkillStep]
    created_at: datetime


class TrainingSession(BaseModel):
    id: Optional[str] = None
    user_id: str
    skill_id: str
    completed_at: datetime
    accuracy_score: int = Field(ge=0, le=100)
    feedback: str
    completed: bool = True


# ── Authoring drafts ───────────────────────────────────────────────────────

class StepDraft(BaseModel):
    title: str
    instruction: str

    @field_validator("title", "instruction")
    @classmethod
    def _required(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Step title and instruction are required")
        return value.strip()


class SkillDraft(BaseModel):
    """What the admin form submits, before ids, order and cover URL are assigned."""

    title: str
    description: str
    difficulty: Difficulty = Difficulty.BEGINNER
    category: str = "General"
    steps: List[StepDraft]

    @field_validator("title")
    @classmethod
    def _title_required(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Title is required")
        return value.strip()

    @field_validator("description")
    @classmethod
    def _description_required(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Description is required")
        return value.strip()

    @field_validator("category")
    @classmethod
    def _category_required(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Category is required")
        return value.strip()

    @field_validator("steps")
    @classmethod
    def _at_least_one_step(cls, value: List[StepDraft]) -> List[StepDraft]:
        if not value:
            raise ValueError("A skill needs at least one step")
        return value
