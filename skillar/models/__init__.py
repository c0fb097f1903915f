from .account import Account, RevokedToken
from .user import UserProfile
from .skill import Skill
from .session import TrainingSession

__all__ = ["Account", "RevokedToken", "UserProfile", "Skill", "TrainingSession"]
