"""Database models.

Importing this package registers every table with ``Base.metadata``.
"""

from .base import Base
from .institution import InstitutionModel
from .contact_request import ContactRequestModel
from .user import UserModel
from .challenge import ChallengeModel
from .user_challenge import UserChallengeModel
from .log import LogModel
from .lesson import LessonModel

__all__ = [
    "Base",
    "InstitutionModel",
    "ContactRequestModel",
    "UserModel",
    "ChallengeModel",
    "UserChallengeModel",
    "LogModel",
    "LessonModel",
]
