"""Identity collaborator: token verification and admin user management.

Two backends:
- LocalIdentityProvider:  identities table + werkzeug password hashes + HS256 JWTs
- GoTrueIdentityProvider: hosted auth service (see gotrue.py)

Both raise IdentityError on failure.
"""
import logging
from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash, generate_password_hash

from common.models import Identity
from modules.tracking.models import Identity as IdentityRow

from .jwt import InvalidTokenError, create_access_token, verify_token

logger = logging.getLogger(__name__)


class IdentityError(Exception):
    """The identity service rejected or failed a request."""


class IdentityProvider(Protocol):
    """Identity backend protocol."""

    def get_user(self, token: str) -> Identity:
        """Resolve an access token to its identity."""
        ...

    def sign_in(self, email: str, password: str) -> str:
        """Password login, returns an access token."""
        ...

    def create_user(
        self,
        email: str,
        password: str,
        email_confirm: bool = True,
        user_metadata: Optional[dict] = None,
    ) -> Identity:
        """Admin: create an identity."""
        ...

    def delete_user(self, user_id: str) -> None:
        """Admin: delete an identity."""
        ...

    def list_users(self) -> list[Identity]:
        ...

    def find_user_by_email(self, email: str) -> Optional[Identity]:
        ...


def _to_identity(row) -> Identity:
    return Identity(
        id=row.id,
        email=row.email,
        email_confirmed=bool(row.email_confirmed),
        user_metadata=dict(row.user_metadata or {}),
    )


class LocalIdentityProvider:
    """Identities stored next to the portal tables."""

    def __init__(self, session: Session):
        self.session = session

    def _row(self, **criteria):
        stmt = select(IdentityRow)
        for name, value in criteria.items():
            stmt = stmt.where(getattr(IdentityRow, name) == value)
        return self.session.scalars(stmt).first()

    def get_user(self, token: str) -> Identity:
        try:
            data = verify_token(token)
        except InvalidTokenError as e:
            raise IdentityError(f"Invalid token: {e}") from e
        row = self._row(id=data.sub)
        if row is None:
            raise IdentityError("User not found")
        return _to_identity(row)

    def sign_in(self, email: str, password: str) -> str:
        """Check credentials and return an access token."""
        row = self._row(email=email.strip().lower())
        if row is None or not check_password_hash(row.password_hash, password):
            raise IdentityError("Invalid login credentials")
        if not row.email_confirmed:
            raise IdentityError("Email not confirmed")
        return create_access_token({"sub": row.id, "email": row.email})

    def create_user(
        self,
        email: str,
        password: str,
        email_confirm: bool = True,
        user_metadata: Optional[dict] = None,
    ) -> Identity:
        email = email.strip().lower()
        if self._row(email=email) is not None:
            raise IdentityError("A user with this email address has already been registered")
        row = IdentityRow(
            email=email,
            password_hash=generate_password_hash(password),
            email_confirmed=email_confirm,
            user_metadata=user_metadata or {},
        )
        try:
            self.session.add(row)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise IdentityError(str(e)) from e
        logger.info(f"Created identity {row.id} ({email})")
        return _to_identity(row)

    def delete_user(self, user_id: str) -> None:
        row = self._row(id=user_id)
        if row is None:
            raise IdentityError(f"User {user_id} not found")
        try:
            self.session.delete(row)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise IdentityError(str(e)) from e
        logger.info(f"Deleted identity {user_id}")

    def list_users(self) -> list[Identity]:
        return [_to_identity(r) for r in self.session.scalars(select(IdentityRow)).all()]

    def find_user_by_email(self, email: str) -> Optional[Identity]:
        row = self._row(email=email.strip().lower())
        return _to_identity(row) if row else None
