from flask import Flask
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker, scoped_session
from dotenv import load_dotenv
from typing import Optional, Dict, Any
import logging
import os

load_dotenv()

db_engine = None
SessionLocal = None
jwt = JWTManager()

DEFAULTS = {
    'JWT_SECRET_KEY': 'dev-secret',
    'DATABASE_URL': 'sqlite:///dev.db',
    'LOG_LEVEL': 'INFO',
    # spec uploads carry whole YAML documents
    'MAX_CONTENT_LENGTH': 10 * 1024 * 1024,
}


def _load_config(app: Flask, overrides: Optional[Dict[str, Any]]):
    for key, default in DEFAULTS.items():
        raw = os.getenv(key)
        if raw is None:
            app.config[key] = default
        else:
            app.config[key] = type(default)(raw)
    if overrides:
        app.config.update(overrides)
    level = str(app.config['LOG_LEVEL']).upper()
    app.logger.setLevel(getattr(logging, level, logging.INFO))


def _init_database(url: str):
    global db_engine, SessionLocal
    if url.endswith(':memory:'):
        # one shared connection, otherwise every session sees an empty database
        db_engine = create_engine(
            url,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        db_engine = create_engine(url, future=True)
    SessionLocal = scoped_session(sessionmaker(bind=db_engine, expire_on_commit=False, autoflush=False))


def _error_body(status: int, title: str, detail: Any):
    return {'error': {'status': status, 'title': title, 'detail': detail}}, status


def _register_error_handlers(app: Flask):
    @app.errorhandler(Exception)
    def handle_errors(e):  # type: ignore
        if isinstance(e, HTTPException):
            if e.code >= 500:
                app.logger.error('%s %s: %s', e.code, e.name, e.description)
            return _error_body(e.code, e.name, e.description)
        app.logger.exception('Unhandled exception')
        return _error_body(500, 'Internal Server Error', 'Unexpected error')


def _register_meta_routes(app: Flask):
    from .openapi_builder import build_openapi_spec

    @app.route('/healthz')
    def health():
        return {'status': 'ok'}

    @app.route('/openapi.json')
    def openapi_spec():
        return build_openapi_spec()

    @app.route('/api-docs')
    def api_docs_index():
        return (
            "<!DOCTYPE html><html><head><title>API Hub</title>"
            "<link rel=\"stylesheet\" href=\"https://cdn.jsdelivr.net/npm/redoc@next/bundles/redoc.standalone.css\" />"
            "</head><body><redoc spec-url='/openapi.json'></redoc>"
            "<script src='https://cdn.jsdelivr.net/npm/redoc@next/bundles/redoc.standalone.js'></script>"
            "</body></html>"
        )


def create_app(config: Optional[Dict[str, Any]] = None):
    """Application factory; ``config`` overrides environment values (tests use it for the database URL)."""
    app = Flask(__name__)
    _load_config(app, config)
    _init_database(app.config['DATABASE_URL'])
    jwt.init_app(app)

    from .routes.auth import auth_bp
    from .routes.projects import projects_bp
    from .routes.specs import specs_bp
    from .routes.versions import versions_bp
    from .routes.audit import audit_bp
    from .routes.docs import docs_bp
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    for bp in (projects_bp, specs_bp, versions_bp):
        app.register_blueprint(bp, url_prefix='/api')
    app.register_blueprint(audit_bp, url_prefix='/api/audit')
    app.register_blueprint(docs_bp, url_prefix='/docs')

    _register_error_handlers(app)
    _register_meta_routes(app)

    app.logger.info('API hub ready (database=%s)', db_engine.url.render_as_string(hide_password=True))
    return app


def get_db():
    return SessionLocal()
