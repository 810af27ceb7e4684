"""Shared helpers: SQLite in-memory store standing in for PostgreSQL, and settings copies."""

from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import Settings, get_settings
from app.core.security import hash_password
from app.models import Base, Role, User

# Large budgets so tests that are not about rate limiting never hit 429.
UNLIMITED = {
    "RATE_LIMIT_ADMIN": 10_000,
    "RATE_LIMIT_USER": 10_000,
    "RATE_LIMIT_GUEST": 10_000,
}


def make_session_factory() -> sessionmaker:
    """Fresh in-memory database with the users table, shared across threads."""
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


def settings_with(**overrides: Any) -> Settings:
    return get_settings().model_copy(update=overrides)


def insert_user(
    session: Session,
    email: str,
    password: str = "secret1",
    role: Role = Role.USER,
) -> User:
    user = User(email=email, password_hash=hash_password(password), role=role.value)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user
