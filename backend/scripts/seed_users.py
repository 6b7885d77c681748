#!/usr/bin/env python
"""Idempotent seed script for hub users.

Usage:
    python backend/scripts/seed_users.py                       # ensure the initial admin exists
    python backend/scripts/seed_users.py --email a@b.c --role Editor --password s3cret
    python backend/scripts/seed_users.py --show-users          # print users and their roles
    python backend/scripts/seed_users.py --dry-run             # run logic then rollback

Environment:
    DATABASE_URL, ADMIN_EMAIL, ADMIN_PASSWORD
"""
from __future__ import annotations
import os, sys, argparse
from sqlalchemy import select

# Allow running from repo root
sys.path.append(os.path.abspath('backend'))

from apihub import create_app, get_db  # type: ignore
from apihub.models.authz import Base, User
from apihub.constants.permissions import ROLE_ADMIN, ROLE_PRESETS


def ensure_user(session, email: str, password: str, role: str, name: str | None = None):
    """Create the user if missing; returns (user, created)."""
    user = session.execute(select(User).where(User.email==email)).scalar_one_or_none()
    if user:
        return user, False
    user = User(name=name or email.split('@')[0], email=email, password_hash='', role=role)
    user.set_password(password)
    session.add(user)
    session.flush()
    return user, True


def main(argv: list[str]) -> int:
    p = argparse.ArgumentParser(description='Seed hub users')
    p.add_argument('--email', default=os.getenv('ADMIN_EMAIL', 'admin@example.com'))
    p.add_argument('--password', default=os.getenv('ADMIN_PASSWORD', 'admin'))
    p.add_argument('--role', default=ROLE_ADMIN, choices=sorted(ROLE_PRESETS))
    p.add_argument('--show-users', action='store_true', help='Print users after seeding')
    p.add_argument('--dry-run', action='store_true', help='Rollback instead of commit')
    args = p.parse_args(argv)

    app = create_app()
    with app.app_context():
        session = get_db()
        Base.metadata.create_all(bind=session.get_bind(), checkfirst=True)
        user, created = ensure_user(session, args.email, args.password, args.role)
        print(f"{'Created' if created else 'Exists'}: {user.email} ({user.role})")
        if args.show_users:
            for u in session.execute(select(User).order_by(User.id)).scalars():
                print(f"  {u.id:>4} {u.email:<40} {u.role}")
        if args.dry_run:
            session.rollback()
            print('Dry run: changes rolled back')
        else:
            session.commit()
    return 0


if __name__ == '__main__':  # pragma: no cover
    sys.exit(main(sys.argv[1:]))
