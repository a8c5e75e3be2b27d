"""User management utilities.

This module provides account provisioning (self-service registration gated by
the institution email domains), email verification, password authentication
and the user administration operations used by admins.
"""

import csv
import io
import logging
import math
import secrets
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

import bcrypt
import pytz
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import (
    IMPORT_DEFAULT_PASSWORD,
    USERS_PAGE_SIZE,
    VERIFICATION_TOKEN_TTL_HOURS,
)
from core.exceptions import (
    DuplicateEmailError,
    EmailNotVerifiedError,
    InstitutionNotFoundError,
    InvalidCredentialsError,
    InvalidVerificationTokenError,
    MissingFieldsError,
    UnrecognizedDomainError,
    UserNotFoundError,
    ValidationError,
)
from models.institution import InstitutionModel
from models.lesson import LessonModel
from models.log import LogModel
from models.user import UserModel
from models.user_challenge import UserChallengeModel
from schemas.user import ImportedUserRow, Pagination, Role
from utils.email_domain import analyze_email_domain, validate_email_domain
from utils.mailer import Mailer, get_mailer

logger = logging.getLogger(__name__)

# Bcrypt rounds for password hashing (higher = more secure but slower)
BCRYPT_ROUNDS = 12

IMPORT_FILE_TYPES = ("csv", "xlsx", "xls")

_TRUTHY = {"1", "true", "yes", "y"}


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


class UserManager:
    """Manages user data persistence and operations using SQLAlchemy."""

    def __init__(self, db: Session, mailer: Optional[Mailer] = None):
        """Initialize UserManager.

        Args:
            db: SQLAlchemy Session.
            mailer: Verification email sender. Defaults to the configured one.
        """
        self.db = db
        self.mailer = mailer or get_mailer()

    # --- Passwords ---

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain text password.

        Returns:
            Hashed password (bcrypt hash string).
        """
        password_bytes = password.encode("utf-8")
        # bcrypt only looks at the first 72 bytes
        if len(password_bytes) > 72:
            logger.warning("Password exceeds 72 bytes, truncating")
            password_bytes = password_bytes[:72]
        salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
        return bcrypt.hashpw(password_bytes, salt).decode("utf-8")

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against a bcrypt hash.

        Args:
            plain_password: Plain text password to verify.
            hashed_password: Bcrypt hash string to verify against.

        Returns:
            True if password matches, False otherwise.
        """
        password_bytes = plain_password.encode("utf-8")[:72]
        try:
            return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))
        except ValueError as e:
            logger.error("Password verification error: %s", e)
            return False

    # --- Lookups ---

    def get_user(self, user_id: int) -> UserModel:
        """Get a user by ID.

        Raises:
            UserNotFoundError: If no user has this ID.
        """
        model = self.db.query(UserModel).filter(UserModel.id == user_id).first()
        if not model:
            raise UserNotFoundError(user_id)
        return model

    def get_user_by_email(self, email: str) -> Optional[UserModel]:
        return (
            self.db.query(UserModel)
            .filter(UserModel.email == normalize_email(email))
            .first()
        )

    def _ensure_email_free(self, email: str) -> None:
        if self.get_user_by_email(email) is not None:
            raise DuplicateEmailError(email)

    def _save_new_user(self, model: UserModel) -> UserModel:
        # The unique constraint still catches a concurrent registration that
        # passed the existence check
        try:
            self.db.add(model)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if "email" in str(e).lower() or "unique" in str(e).lower():
                raise DuplicateEmailError(model.email) from e
            raise
        self.db.refresh(model)
        return model

    # --- Self-service registration ---

    def register(self, name: str, email: str, password: str) -> UserModel:
        """Register a new account from the public sign-up form.

        Institution and role come from the email domain. The account starts
        unverified and a verification link is sent; a delivery failure is
        logged and the account is kept.

        Args:
            name: Display name.
            email: Email address; must match a registered institution.
            password: Plain text password.

        Returns:
            The created UserModel.

        Raises:
            MissingFieldsError: If name, email or password is blank.
            UnrecognizedDomainError: If no institution recognizes the email.
            DuplicateEmailError: If the email is already registered.
        """
        if _blank(name) or _blank(email) or _blank(password):
            raise MissingFieldsError("Name, email and password are required")

        validation = validate_email_domain(self.db, email)
        if not validation.is_valid:
            raise UnrecognizedDomainError(validation.message)

        self._ensure_email_free(email)

        token = secrets.token_hex(32)
        model = UserModel(
            name=name.strip(),
            email=normalize_email(email),
            password_hash=self.hash_password(password),
            role=validation.role.value,
            institution_id=validation.institution.id,
            points=0,
            solved_challenges=0,
            is_email_verified=False,
            verification_token=token,
            verification_sent_at=datetime.now(pytz.utc),
        )
        model = self._save_new_user(model)
        logger.info(
            "Registered user %s as %s of institution %s",
            model.email,
            model.role,
            model.institution_id,
        )

        try:
            self.mailer.send_verification_email(model.email, model.name, token)
        except Exception:
            logger.error(
                "Failed to send verification email to %s", model.email, exc_info=True
            )
        return model

    def verify_email(self, token: str) -> UserModel:
        """Mark the account owning this token as verified.

        Raises:
            MissingFieldsError: If the token is blank.
            InvalidVerificationTokenError: If the token is unknown or expired.
        """
        if _blank(token):
            raise MissingFieldsError("Verification token is required")

        model = (
            self.db.query(UserModel)
            .filter(UserModel.verification_token == token)
            .first()
        )
        if not model:
            raise InvalidVerificationTokenError()

        sent_at = model.verification_sent_at
        if sent_at is not None:
            if sent_at.tzinfo is None:
                sent_at = pytz.utc.localize(sent_at)
            expires_at = sent_at + timedelta(hours=VERIFICATION_TOKEN_TTL_HOURS)
            if datetime.now(pytz.utc) > expires_at:
                raise InvalidVerificationTokenError()

        model.is_email_verified = True
        model.verification_token = None
        model.verification_sent_at = None
        self.db.commit()
        self.db.refresh(model)
        logger.info("Verified email of user %s", model.id)
        return model

    # --- Authentication ---

    def authenticate(self, email: str, password: str) -> UserModel:
        """Check credentials and record the login time.

        Raises:
            MissingFieldsError: If email or password is blank.
            InvalidCredentialsError: If no account matches or the password is wrong.
            EmailNotVerifiedError: If the credentials are right but the
                account is not verified yet.
        """
        if _blank(email) or _blank(password):
            raise MissingFieldsError("Email and password are required")

        model = self.get_user_by_email(email)
        if model is None or not self.verify_password(password, model.password_hash):
            raise InvalidCredentialsError()
        if not model.is_email_verified:
            raise EmailNotVerifiedError()

        model.last_login = datetime.now(pytz.utc)
        self.db.commit()
        self.db.refresh(model)
        logger.info("User %s logged in", model.id)
        return model

    # --- Administration ---

    def _check_institution(self, institution_id: Optional[int]) -> None:
        if institution_id is None:
            return
        exists = (
            self.db.query(InstitutionModel.id)
            .filter(InstitutionModel.id == institution_id)
            .first()
        )
        if not exists:
            raise InstitutionNotFoundError(institution_id)

    def list_users(
        self,
        page: int = 1,
        limit: int = USERS_PAGE_SIZE,
        search: str = "",
        role: str = "",
        institution: str = "",
    ) -> Tuple[List[UserModel], Pagination]:
        """List users with filtering and pagination.

        Args:
            page: 1-based page number.
            limit: Page size.
            search: Substring matched against name and email.
            role: 'admin', 'teacher' or 'student'; anything else is ignored.
            institution: Institution ID, or '' / 'all' for every institution.

        Returns:
            Tuple of the page of users and its pagination info.
        """
        page = max(page, 1)
        limit = max(limit, 1)

        query = self.db.query(UserModel)
        if search:
            query = query.filter(
                or_(
                    UserModel.name.contains(search, autoescape=True),
                    UserModel.email.contains(search, autoescape=True),
                )
            )
        if role in {r.value for r in Role}:
            query = query.filter(UserModel.role == role)
        if institution and institution != "all":
            try:
                institution_id = int(institution)
            except ValueError:
                raise ValidationError(f"Invalid institution filter: {institution}")
            query = query.filter(UserModel.institution_id == institution_id)

        total_users = query.count()
        users = (
            query.order_by(UserModel.name.asc(), UserModel.id.asc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        total_pages = math.ceil(total_users / limit)
        pagination = Pagination(
            page=page,
            limit=limit,
            total_users=total_users,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )
        return users, pagination

    def create_user(
        self,
        name: str,
        email: str,
        password: str,
        role: Role = Role.STUDENT,
        institution_id: Optional[int] = None,
        alias: Optional[str] = None,
    ) -> UserModel:
        """Create an account on behalf of an admin.

        Admin-created accounts skip email verification.

        Raises:
            MissingFieldsError: If name, email or password is blank.
            DuplicateEmailError: If the email is already registered.
            InstitutionNotFoundError: If the institution does not exist.
        """
        if _blank(name) or _blank(email) or _blank(password):
            raise MissingFieldsError("Name, email and password are required")
        self._ensure_email_free(email)
        self._check_institution(institution_id)

        model = UserModel(
            name=name.strip(),
            alias=alias or None,
            email=normalize_email(email),
            password_hash=self.hash_password(password),
            role=Role(role).value,
            institution_id=institution_id,
            is_email_verified=True,
        )
        model = self._save_new_user(model)
        logger.info("Created user %s (%s)", model.email, model.role)
        return model

    def update_user(self, user_id: int, changes: Dict[str, object]) -> UserModel:
        """Apply a partial update.

        Args:
            user_id: User to update.
            changes: Field name to new value, limited to name, alias, role
                and institution_id.

        Raises:
            UserNotFoundError: If the user does not exist.
            InstitutionNotFoundError: If the new institution does not exist.
        """
        model = self.get_user(user_id)
        if "name" in changes and not _blank(changes["name"]):
            model.name = str(changes["name"]).strip()
        if "alias" in changes:
            model.alias = changes["alias"] or None
        if "role" in changes and changes["role"] is not None:
            model.role = Role(changes["role"]).value
        if "institution_id" in changes:
            self._check_institution(changes["institution_id"])
            model.institution_id = changes["institution_id"]
        self.db.commit()
        self.db.refresh(model)
        logger.info("Updated user %s", user_id)
        return model

    def _delete_users(self, user_ids: List[int]) -> None:
        self.db.query(LogModel).filter(LogModel.user_id.in_(user_ids)).delete(
            synchronize_session=False
        )
        self.db.query(UserChallengeModel).filter(
            UserChallengeModel.user_id.in_(user_ids)
        ).delete(synchronize_session=False)
        # Lessons outlive their author
        self.db.query(LessonModel).filter(LessonModel.creator_id.in_(user_ids)).update(
            {LessonModel.creator_id: None}, synchronize_session=False
        )
        self.db.query(UserModel).filter(UserModel.id.in_(user_ids)).delete(
            synchronize_session=False
        )

    def delete_user(self, user_id: int) -> None:
        """Delete a user with their logs and solved-challenge records.

        Raises:
            UserNotFoundError: If the user does not exist.
        """
        self.get_user(user_id)
        try:
            self._delete_users([user_id])
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info("Deleted user %s", user_id)

    def bulk_delete_users(self, user_ids: Optional[List[int]]) -> int:
        """Delete several users; either all exist and are deleted or none is.

        Returns:
            Number of deleted users.

        Raises:
            MissingFieldsError: If the ID list is missing or empty.
            UserNotFoundError: If any of the IDs does not exist.
        """
        if not user_ids:
            raise MissingFieldsError("User IDs array is required")
        ids = list(set(user_ids))
        found = self.db.query(UserModel.id).filter(UserModel.id.in_(ids)).count()
        if found != len(ids):
            raise UserNotFoundError()
        try:
            self._delete_users(ids)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info("Bulk deleted %d users", len(ids))
        return len(ids)

    # --- Import ---

    def parse_import_file(self, filename: str, content: bytes) -> List[ImportedUserRow]:
        """Parse an uploaded user list.

        CSV files need a header row; recognized columns are name, alias,
        email, role, isadmin and isteacher (case-insensitive). Rows without a
        name are dropped. Excel files are accepted but not parsed yet.

        Raises:
            ValidationError: If the file type is not supported.
        """
        file_type = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
        if file_type not in IMPORT_FILE_TYPES:
            raise ValidationError("Unsupported file type")
        if file_type != "csv":
            logger.warning("Excel import is not supported, returning no rows")
            return []

        text = content.decode("utf-8-sig")
        reader = csv.DictReader(io.StringIO(text))
        rows = []
        for raw in reader:
            # Cells beyond the header land under the None key
            record = {
                k.strip().lower(): (v or "").strip()
                for k, v in raw.items()
                if k is not None
            }
            name = record.get("name")
            if not name:
                continue
            rows.append(
                ImportedUserRow(
                    name=name,
                    alias=record.get("alias") or None,
                    email=record.get("email") or None,
                    role=self._row_role(record),
                )
            )
        return rows

    @staticmethod
    def _row_role(record: Dict[str, str]) -> Role:
        role = record.get("role", "").lower()
        if role in {r.value for r in Role}:
            return Role(role)
        if record.get("isadmin", "").lower() in _TRUTHY:
            return Role.ADMIN
        if record.get("isteacher", "").lower() in _TRUTHY:
            return Role.TEACHER
        return Role.STUDENT

    def bulk_import(
        self,
        rows: Optional[List[ImportedUserRow]],
        institution_id: Optional[int] = None,
    ) -> int:
        """Create accounts from parsed import rows.

        Rows without an email, or whose email is already registered (or
        repeated in the batch), are skipped. Imported accounts get
        IMPORT_DEFAULT_PASSWORD and are pre-verified. Without an explicit
        institution, each row's institution is resolved from its email.

        Returns:
            Number of imported accounts.

        Raises:
            MissingFieldsError: If no rows are given.
            InstitutionNotFoundError: If the institution does not exist.
        """
        if not rows:
            raise MissingFieldsError("No users provided")
        self._check_institution(institution_id)

        password_hash = self.hash_password(IMPORT_DEFAULT_PASSWORD)
        seen = set()
        imported = 0
        for row in rows:
            if _blank(row.email):
                continue
            email = normalize_email(row.email)
            if email in seen or self.get_user_by_email(email) is not None:
                continue
            seen.add(email)

            row_institution_id = institution_id
            if row_institution_id is None:
                match = analyze_email_domain(self.db, email)
                row_institution_id = match.institution.id if match.matched else None

            self.db.add(
                UserModel(
                    name=row.name.strip(),
                    alias=row.alias or None,
                    email=email,
                    password_hash=password_hash,
                    role=row.role.value,
                    institution_id=row_institution_id,
                    is_email_verified=True,
                )
            )
            imported += 1
        self.db.commit()
        logger.info("Imported %d of %d users", imported, len(rows))
        return imported
