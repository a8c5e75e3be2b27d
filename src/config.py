"""Configuration module for the Query Quest backend.

This module provides centralized configuration management, including directory
paths, API server settings, authentication, email delivery and chat assistant
settings. All configuration values can be overridden via environment variables.
"""

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- Directory Configuration ---

# Root directory of the project
ROOT_DIR = Path(__file__).parent.parent.resolve()

DATA_DIR_NAME = "data"
DATA_DIR = ROOT_DIR / DATA_DIR_NAME

# --- Database Configuration ---

# Falls back to a local SQLite file when DATABASE_URL is not set
DATABASE_URL: str = (
    os.getenv("DATABASE_URL", "").strip() or f"sqlite:///{DATA_DIR}/query_quest.db"
)

# --- API Server Configuration ---

API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "8000"))

# CORS allowed origins (comma-separated list)
_CORS_ALLOWED_ORIGINS_STR: str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173",
)
CORS_ALLOWED_ORIGINS: List[str] = [
    origin.strip()
    for origin in _CORS_ALLOWED_ORIGINS_STR.split(",")
    if origin.strip()
]

# Public base URL of the web client, used to build verification links
APP_URL: str = os.getenv("APP_URL", "http://localhost:3000").rstrip("/")

# --- Logging Configuration ---

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# --- Authentication Configuration ---

JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "your-secret-key-change-in-production")
JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES: int = int(
    os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7))
)

# Verification links older than this are rejected
VERIFICATION_TOKEN_TTL_HOURS: int = int(os.getenv("VERIFICATION_TOKEN_TTL_HOURS", "24"))

# --- Email Configuration ---

# "mock" only logs the verification link, "smtp" sends it
EMAIL_BACKEND: str = os.getenv("EMAIL_BACKEND", "mock").lower()
EMAIL_HOST: str = os.getenv("EMAIL_HOST", "smtp.gmail.com")
EMAIL_PORT: int = int(os.getenv("EMAIL_PORT", "587"))
EMAIL_USER: str = os.getenv("EMAIL_USER", "")
EMAIL_PASS: str = os.getenv("EMAIL_PASS", "")

# --- User Administration ---

USERS_PAGE_SIZE: int = int(os.getenv("USERS_PAGE_SIZE", "25"))

# Password assigned to accounts created by bulk import
IMPORT_DEFAULT_PASSWORD: str = os.getenv("IMPORT_DEFAULT_PASSWORD", "defaultpassword123")

# --- Chat Assistant Configuration ---

OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
OPENAI_BASE_URL: str = os.getenv("OPENAI_BASE_URL", "")
OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4-turbo-preview")
OPENAI_MAX_TOKENS: int = int(os.getenv("OPENAI_MAX_TOKENS", "1000"))
OPENAI_TEMPERATURE: float = float(os.getenv("OPENAI_TEMPERATURE", "0.7"))

# Number of most recent conversation turns forwarded to the model
CHAT_MAX_HISTORY_LENGTH: int = int(os.getenv("CHAT_MAX_HISTORY_LENGTH", "10"))

_DEFAULT_CHAT_SYSTEM_PROMPT = """
You are Query Quest Assistant, an AI assistant for a SQL learning platform called Query Quest.

Your role is to help users with:
- SQL query writing and optimization
- Database concepts and theory
- Understanding SQL challenges and exercises
- Platform features and navigation
- Learning SQL best practices
- Debugging SQL problems

Be helpful, patient, and encouraging. Explain concepts clearly and provide examples when helpful. If a user asks about something outside of SQL/database topics, gently redirect them back to SQL learning topics.

Always maintain a supportive and educational tone. Encourage users to practice and learn through the platform's challenges.
""".strip()

CHAT_SYSTEM_PROMPT: str = os.getenv("CHAT_SYSTEM_PROMPT", _DEFAULT_CHAT_SYSTEM_PROMPT)
