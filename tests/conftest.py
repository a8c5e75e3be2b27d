"""Shared fixtures: in-memory database, fake mailer and fake chat provider."""

import os

# Must be set before config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["EMAIL_BACKEND"] = "mock"
os.environ["OPENAI_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from api.routes.auth import create_access_token
from app import app
from core.database import enable_sqlite_foreign_keys, get_db
from core.dependencies import get_chat_completer, get_mailer
from models.base import Base
from models.challenge import ChallengeModel
from models.institution import InstitutionModel
from models.lesson import LessonModel
from models.user import UserModel
from utils import user_manager as user_manager_module
from utils.chat_assistant import ChatCompleter
from utils.mailer import Mailer
from utils.user_manager import UserManager

DEFAULT_PASSWORD = "pw123"


class RecordingMailer(Mailer):
    """Keeps sent verification emails in memory; can be told to fail."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def send_verification_email(self, email, name, token):
        if self.fail:
            raise ConnectionError("SMTP server unavailable")
        self.sent.append({"email": email, "name": name, "token": token})


class FakeCompleter(ChatCompleter):
    """Returns a canned reply or raises the configured error."""

    def __init__(self):
        self.reply = "Try a LEFT JOIN."
        self.error = None
        self.calls = []

    def complete(self, system_prompt, history, user_message):
        self.calls.append(
            {"system_prompt": system_prompt, "history": list(history), "message": user_message}
        )
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    monkeypatch.setattr(user_manager_module, "BCRYPT_ROUNDS", 4)


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def completer():
    return FakeCompleter()


@pytest.fixture
def client(db, mailer, completer):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_chat_completer] = lambda: completer
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def users(db, mailer):
    return UserManager(db, mailer=mailer)


@pytest.fixture
def acme(db):
    institution = InstitutionModel(
        name="Acme U",
        address="1 Acme Way",
        student_email_suffix="@stu.acme.edu",
        teacher_email_suffix="@acme.edu",
    )
    db.add(institution)
    db.commit()
    db.refresh(institution)
    return institution


@pytest.fixture
def globex(db):
    institution = InstitutionModel(
        name="Globex College",
        student_email_suffix="@students.globex.org",
        teacher_email_suffix="@globex.org",
    )
    db.add(institution)
    db.commit()
    db.refresh(institution)
    return institution


@pytest.fixture
def make_user(db, users):
    """Create a verified account directly in the database."""

    def _make_user(
        email,
        role="student",
        institution=None,
        name=None,
        password=DEFAULT_PASSWORD,
        verified=True,
    ):
        model = UserModel(
            name=name or email.split("@")[0].title(),
            email=email.lower(),
            password_hash=users.hash_password(password),
            role=role,
            institution_id=institution.id if institution is not None else None,
            is_email_verified=verified,
        )
        db.add(model)
        db.commit()
        db.refresh(model)
        return model

    return _make_user


@pytest.fixture
def make_challenge(db):
    def _make_challenge(institution=None, statement="List all customers", **fields):
        values = dict(
            statement=statement,
            solution="SELECT * FROM customers;",
            level=1,
            score=10,
            score_base=10,
            score_min=5,
            solves=0,
        )
        values.update(fields)
        model = ChallengeModel(
            institution_id=institution.id if institution is not None else None,
            **values,
        )
        db.add(model)
        db.commit()
        db.refresh(model)
        return model

    return _make_challenge


@pytest.fixture
def make_lesson(db):
    def _make_lesson(institution, creator=None, title="SELECT basics", **fields):
        values = dict(content="# SELECT", order=0, is_published=False)
        values.update(fields)
        model = LessonModel(
            title=title,
            institution_id=institution.id if institution is not None else None,
            creator_id=creator.id if creator is not None else None,
            **values,
        )
        db.add(model)
        db.commit()
        db.refresh(model)
        return model

    return _make_lesson


def auth_headers(user):
    token = create_access_token({"sub": str(user.id), "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def student(make_user, acme):
    return make_user("jane@stu.acme.edu", institution=acme)


@pytest.fixture
def teacher(make_user, acme):
    return make_user("prof@acme.edu", role="teacher", institution=acme)


@pytest.fixture
def admin(make_user):
    return make_user("root@queryquest.io", role="admin")


@pytest.fixture
def auth():
    return auth_headers
