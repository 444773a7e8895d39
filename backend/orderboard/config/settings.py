"""Environment-driven settings.

Every key has a default so the app boots with nothing configured; `.env` files are
picked up by `load_dotenv()` in the package root before these are read.
E-mail (channel B) stays disabled until all three EMAILJS ids are present.
"""
from __future__ import annotations
import os
from typing import Any, Dict

DEFAULT_EMAILJS_ENDPOINT = 'https://api.emailjs.com/api/v1.0/email/send'


def _flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


def load_settings() -> Dict[str, Any]:
    return {
        'JWT_SECRET_KEY': os.getenv('JWT_SECRET_KEY', 'dev-secret'),
        'DATABASE_URL': os.getenv('DATABASE_URL', 'sqlite:///orderboard.db'),
        'LOG_LEVEL': os.getenv('LOG_LEVEL', 'INFO').upper(),
        'EMAILJS_SERVICE_ID': os.getenv('EMAILJS_SERVICE_ID', ''),
        'EMAILJS_TEMPLATE_ID': os.getenv('EMAILJS_TEMPLATE_ID', ''),
        'EMAILJS_PUBLIC_KEY': os.getenv('EMAILJS_PUBLIC_KEY', ''),
        'EMAILJS_ENDPOINT': os.getenv('EMAILJS_ENDPOINT', DEFAULT_EMAILJS_ENDPOINT),
        'EMAILJS_TIMEOUT': float(os.getenv('EMAILJS_TIMEOUT', '10')),
        # Run channel B inline instead of on the background executor (tests, scripts)
        'NOTIFY_SYNC': _flag('NOTIFY_SYNC', False),
        'TOAST_TTL_SECONDS': float(os.getenv('TOAST_TTL_SECONDS', '3.5')),
        'SCHEMA_AUTO_MIGRATE': _flag('SCHEMA_AUTO_MIGRATE', True),
        'MASTER_CAN_EDIT_STATUS': _flag('MASTER_CAN_EDIT_STATUS', False),
        'SEED_DEMO_USERS_ON_LOGIN': _flag('SEED_DEMO_USERS_ON_LOGIN', False),
    }


__all__ = ['load_settings', 'DEFAULT_EMAILJS_ENDPOINT']
