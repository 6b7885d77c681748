"""Alembic environment for the hub schema.

Run from backend/: ``alembic upgrade head`` (DATABASE_URL selects the target).
"""
from __future__ import annotations
from logging.config import fileConfig
import os, sys

from alembic import context
from sqlalchemy import engine_from_config, pool

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from apihub import DEFAULTS  # noqa: E402
from apihub.models.authz import Base  # noqa: E402
import apihub.models.audit  # noqa: E402,F401
import apihub.models.project  # noqa: E402,F401
import apihub.models.api_spec  # noqa: E402,F401
import apihub.models.version  # noqa: E402,F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)
config.set_main_option('sqlalchemy.url', os.getenv('DATABASE_URL', DEFAULTS['DATABASE_URL']))

target_metadata = Base.metadata


def _configure(**kwargs):
    # batch mode keeps ALTERs working on SQLite
    context.configure(target_metadata=target_metadata, render_as_batch=True, compare_type=True, **kwargs)
    with context.begin_transaction():
        context.run_migrations()


def run_offline():
    _configure(url=config.get_main_option('sqlalchemy.url'), literal_binds=True)


def run_online():
    engine = engine_from_config(config.get_section(config.config_ini_section) or {}, prefix='sqlalchemy.', poolclass=pool.NullPool)
    with engine.connect() as connection:
        _configure(connection=connection)


if context.is_offline_mode():
    run_offline()
else:
    run_online()
