from flask import Flask
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker, scoped_session
from dotenv import load_dotenv
from typing import Optional, Dict, Any
import logging
from uuid import uuid4

from .config.settings import load_settings
from .errors import OrderboardError
from .services.feed import ChangeFeed
from .services.toasts import ToastBoard

load_dotenv()

db_engine = None
SessionLocal = None
jwt = JWTManager()
feed = ChangeFeed()
toasts = ToastBoard()


def create_app(config: Optional[Dict[str, Any]] = None):
    global db_engine, SessionLocal, feed, toasts
    app = Flask(__name__)

    app.config.update(load_settings())

    if config:
        # allow tests or callers to override default config values
        app.config.update(config)

    # feed versions restart with the process; tags from an earlier boot must not match
    app.config.setdefault('BOOT_ID', uuid4().hex)

    logging.getLogger('orderboard').setLevel(app.config['LOG_LEVEL'])
    app.logger.setLevel(app.config['LOG_LEVEL'])

    # Database
    db_url = app.config['DATABASE_URL']
    if db_url.endswith(':memory:'):
        # Ensure a single shared in-memory SQLite database across all sessions
        db_engine = create_engine(
            db_url,
            echo=False,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        db_engine = create_engine(db_url, echo=False, future=True)
    session_factory = sessionmaker(bind=db_engine, expire_on_commit=False, autoflush=False)
    SessionLocal = scoped_session(session_factory)

    # Server-side status trigger (notification channel A) rides on every flush
    from .services.mail_trigger import install_status_trigger
    install_status_trigger(session_factory)

    feed = ChangeFeed()
    toasts = ToastBoard(ttl=float(app.config['TOAST_TTL_SECONDS']))

    jwt.init_app(app)

    from .routes.auth import auth_bp
    from .routes.table import table_bp
    from .routes.accounts import accounts_bp
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(table_bp, url_prefix='/table')
    app.register_blueprint(accounts_bp, url_prefix='/accounts')

    @app.teardown_appcontext
    def remove_session(exc=None):
        if exc is not None and SessionLocal is not None:
            SessionLocal.rollback()

    @app.route('/healthz')
    def health():
        return {'status': 'ok'}

    # Unified error handler producing standardized JSON shape
    @app.errorhandler(Exception)
    def handle_errors(e):  # type: ignore
        if isinstance(e, HTTPException):
            payload = {
                'error': {
                    'status': e.code,
                    'title': e.name,
                    'detail': e.description,
                }
            }
            return payload, e.code
        if isinstance(e, OrderboardError):
            return {
                'error': {
                    'status': e.status,
                    'title': e.title,
                    'detail': e.detail,
                }
            }, e.status
        # Unhandled exception
        app.logger.exception('Unhandled exception')
        return {
            'error': {
                'status': 500,
                'title': 'Internal Server Error',
                'detail': 'Unexpected error'
            }
        }, 500

    return app


def get_db():
    return SessionLocal()


def get_feed() -> ChangeFeed:
    return feed


def get_toasts() -> ToastBoard:
    return toasts
