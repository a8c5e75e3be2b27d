"""User schema definitions.

This module defines the public User model, the Role enum and the request and
response bodies of the authentication and user administration endpoints.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field

from schemas.common import APIModel, InstitutionSummary


class Role(str, Enum):
    """Closed set of account roles. Precedence: admin > teacher > student."""

    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"

    @property
    def is_staff(self) -> bool:
        return self in (Role.TEACHER, Role.ADMIN)


class User(APIModel):
    """Account as returned to clients. Never carries password or token."""

    id: int
    name: str
    alias: Optional[str] = None
    email: str
    role: Role
    is_admin: bool = Field(alias="isAdmin")
    is_teacher: bool = Field(alias="isTeacher")
    is_email_verified: bool = Field(alias="isEmailVerified")
    institution_id: Optional[int] = None
    institution: Optional[InstitutionSummary] = None
    points: int = 0
    solved_challenges: int = Field(default=0, alias="solvedChallenges")
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None


class RegisterRequest(APIModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(APIModel):
    email: Optional[str] = None
    password: Optional[str] = None


class LoginResponse(APIModel):
    user: User
    token: str
    token_type: str = "bearer"
    message: str = "Login successful"


class VerifyEmailRequest(APIModel):
    token: Optional[str] = None


class CreateUserRequest(APIModel):
    name: Optional[str] = None
    alias: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    role: Role = Role.STUDENT
    institution_id: Optional[int] = None


class UpdateUserRequest(APIModel):
    """Partial update; only fields present in the body are applied."""

    name: Optional[str] = None
    alias: Optional[str] = None
    role: Optional[Role] = None
    institution_id: Optional[int] = None


class Pagination(APIModel):
    page: int
    limit: int
    total_users: int = Field(alias="totalUsers")
    total_pages: int = Field(alias="totalPages")
    has_next_page: bool = Field(alias="hasNextPage")
    has_prev_page: bool = Field(alias="hasPrevPage")


class UserListResponse(APIModel):
    users: List[User]
    pagination: Pagination


class BulkDeleteUsersRequest(APIModel):
    user_ids: Optional[List[int]] = Field(default=None, alias="userIds")


class ImportedUserRow(APIModel):
    """One row of a user import file."""

    name: str
    alias: Optional[str] = None
    email: Optional[str] = None
    role: Role = Role.STUDENT


class ParseImportResponse(APIModel):
    users: List[ImportedUserRow]


class BulkImportRequest(APIModel):
    users: Optional[List[ImportedUserRow]] = None
    institution_id: Optional[int] = None


class BulkImportResponse(APIModel):
    message: str
    imported_count: int = Field(alias="importedCount")
    total_users: int = Field(alias="totalUsers")
