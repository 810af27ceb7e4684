"""Credential store: single-row reads and writes of User records over a SQLAlchemy session."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, ServiceUnavailableError
from app.models.user import User

logger = logging.getLogger(__name__)


class UserStore:
    """
    Owns all persistence of User rows.

    Uniqueness of email is left to the database's unique index; a violation
    surfaces as ConflictError. Connection-level failures surface as
    ServiceUnavailableError. Each write commits on its own.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    @contextmanager
    def _translate_errors(self, operation: str) -> Iterator[None]:
        try:
            yield
        except IntegrityError as e:
            self.session.rollback()
            logger.info("User store constraint violation", extra={"operation": operation})
            raise ConflictError("Email is already registered.") from e
        except (OperationalError, InterfaceError) as e:
            self.session.rollback()
            logger.error(
                "User store unavailable",
                extra={"operation": operation, "error_type": type(e).__name__},
            )
            raise ServiceUnavailableError("User store is unavailable.") from e

    def get_by_id(self, user_id: int) -> User | None:
        with self._translate_errors("get_by_id"):
            return self.session.get(User, user_id)

    def get_by_email(self, email: str) -> User | None:
        with self._translate_errors("get_by_email"):
            return self.session.query(User).filter(User.email == email).first()

    def list_users(self, offset: int = 0, limit: int = 50) -> list[User]:
        with self._translate_errors("list_users"):
            return (
                self.session.query(User)
                .order_by(User.id)
                .offset(offset)
                .limit(limit)
                .all()
            )

    def add(self, user: User) -> User:
        with self._translate_errors("add"):
            self.session.add(user)
            self.session.commit()
            self.session.refresh(user)
        return user

    def save(self, user: User) -> User:
        with self._translate_errors("save"):
            self.session.commit()
            self.session.refresh(user)
        return user

    def delete(self, user: User) -> None:
        with self._translate_errors("delete"):
            self.session.delete(user)
            self.session.commit()
