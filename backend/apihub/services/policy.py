from __future__ import annotations
from typing import Set
from flask_jwt_extended import get_jwt
from sqlalchemy import select
from apihub.models.authz import User
from apihub import get_db


def current_permissions() -> Set[str]:
    claims = get_jwt()
    return set(claims.get('perms', []))


def build_claims(user: User) -> dict:
    """JWT additional claims for a user: role + effective permission codes."""
    return {
        'role': user.role,
        'perms': user.effective_permissions(),
    }


def authenticate(email: str, password: str):
    """Return the active user matching the credentials, else None."""
    session = get_db()
    user = session.execute(select(User).where(User.email==email)).scalar_one_or_none()
    if not user or not user.is_active or not user.verify_password(password):
        return None
    return user
