# Overview: Staff users; reps are the recipients of issue orders.

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, ValidationError
from ..models import User, ROLES, ROLE_REP
from ..validation import clean_text
from .concurrency import _session, is_unique_violation, run_with_retry


def list_users(*, role: str | None = None, session=None) -> list[User]:
    query = _session(session).query(User)
    if role:
        if role not in ROLES:
            raise ValidationError(f"role must be one of: {', '.join(ROLES)}")
        query = query.filter(User.role == role)
    return query.order_by(User.name.asc(), User.id.asc()).all()


def create_user(*, name: str, email: str, role: str = ROLE_REP, session=None) -> User:
    """
    Raises:
        ValidationError: blank name/email or unknown role
        ConflictError: email already registered
    """
    session = _session(session)
    name = clean_text(name, "name", max_length=255)
    email = clean_text(email, "email", max_length=255).lower()
    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")

    def _op():
        user = User(name=name, email=email, role=role)
        session.add(user)
        try:
            session.flush()
        except IntegrityError as exc:
            if is_unique_violation(exc, table="users", column="email", constraint="uq_users_email"):
                raise ConflictError(f"User {email} already exists", details={"email": email}) from exc
            raise
        session.commit()
        return user

    return run_with_retry(_op, session=session)
