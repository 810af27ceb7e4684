"""ORM model for application users (auth and RBAC)."""

from enum import Enum

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, func

from app.models.base import Base


class Role(str, Enum):
    """Closed set of roles. Policy tables keyed by Role must cover every member."""

    ADMIN = "admin"
    USER = "user"
    GUEST = "guest"


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    email is stored stripped and lower-cased; uniqueness is enforced by the
    unique index. role holds a Role value.
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "role IN ('admin', 'user', 'guest')",
            name="role",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default=Role.USER.value)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
