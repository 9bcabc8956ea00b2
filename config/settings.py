# config/settings.py
"""
Configuration for the Contact Relay service

Values are read once at process start from the environment (optionally
seeded from a .env file) and layered on top of the per-environment classes
below.
"""

import os
from typing import Any, Dict, Optional, Tuple


def parse_origins(raw: Optional[str]) -> Tuple[str, ...]:
    """Split a comma separated origin list, keeping order and dropping blanks/duplicates"""
    origins = []
    for origin in (raw or '').split(','):
        origin = origin.strip()
        if origin and origin not in origins:
            origins.append(origin)
    return tuple(origins)


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class BaseConfig:
    """Settings shared by every environment"""

    ENV_NAME = 'base'
    DEBUG = False
    TESTING = False
    VERSION = '1.0.0'

    # HTTP listener
    HOST = '0.0.0.0'
    PORT = 5000
    PROXY_FIX_COUNT = 0

    # Request limits
    MAX_CONTENT_LENGTH = 16 * 1024  # 16KB
    SLOW_REQUEST_THRESHOLD = 5000  # ms

    # Origin allow-list
    CORS_ORIGINS: Tuple[str, ...] = ()

    # Rate limiting
    CONTACT_RATE_LIMIT = '10 per 15 minutes'
    CONTACT_RATE_LIMIT_MESSAGE = 'Too many requests, please try again after 15 minutes.'
    RATELIMIT_STORAGE_URI = 'memory://'
    RATELIMIT_STRATEGY = 'fixed-window'
    RATELIMIT_HEADERS_ENABLED = True

    # Mail transport
    EMAIL_HOST = 'smtp.gmail.com'
    EMAIL_PORT = 465
    EMAIL_USER = ''
    EMAIL_PASS = ''
    EMAIL_TO = ''
    EMAIL_TIMEOUT = 30.0
    EMAIL_VERIFY_ON_STARTUP = True

    # Logging
    LOG_LEVEL = 'INFO'
    LOG_FILE = None

    # Security headers
    SECURITY_HEADERS = {
        'X-Content-Type-Options': 'nosniff',
        'X-Frame-Options': 'DENY',
        'Referrer-Policy': 'strict-origin-when-cross-origin',
        'Permissions-Policy': 'camera=(), microphone=(), geolocation=()',
    }


class DevelopmentConfig(BaseConfig):
    ENV_NAME = 'development'
    DEBUG = True
    LOG_LEVEL = 'DEBUG'


class TestingConfig(BaseConfig):
    ENV_NAME = 'testing'
    TESTING = True
    EMAIL_USER = 'relay@example.com'
    EMAIL_PASS = 'app-password'
    EMAIL_TO = 'inbox@example.com'
    EMAIL_VERIFY_ON_STARTUP = False
    CORS_ORIGINS = ('https://portfolio.example.com',)
    LOG_LEVEL = 'WARNING'


class ProductionConfig(BaseConfig):
    """Production configuration, also used when APP_ENV is unset"""
    ENV_NAME = 'production'
    SECURITY_HEADERS = dict(
        BaseConfig.SECURITY_HEADERS,
        **{'Strict-Transport-Security': 'max-age=31536000; includeSubDomains'}
    )


CONFIGS = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
}


def get_config_class(config_name: Optional[str] = None):
    """Resolve a configuration class from its name, falling back to production"""
    config_name = config_name or os.environ.get('APP_ENV', 'production')
    return CONFIGS.get(config_name.lower(), ProductionConfig)


def load_environment(environ=None) -> Dict[str, Any]:
    """
    Read configuration overrides from the environment

    Only variables that are actually set are returned, so class defaults stay
    in effect for everything else.

    Raises:
        ValueError: If a numeric variable cannot be parsed
    """
    environ = os.environ if environ is None else environ
    overrides: Dict[str, Any] = {}

    if 'CORS' in environ:
        overrides['CORS_ORIGINS'] = parse_origins(environ['CORS'])

    for key in ('EMAIL_USER', 'EMAIL_PASS', 'EMAIL_TO', 'EMAIL_HOST', 'HOST',
                'LOG_LEVEL', 'LOG_FILE', 'CONTACT_RATE_LIMIT', 'RATELIMIT_STORAGE_URI'):
        value = environ.get(key)
        if value:
            overrides[key] = value.strip()

    integer_keys = ('PORT', 'EMAIL_PORT', 'PROXY_FIX_COUNT')
    for key in integer_keys:
        value = environ.get(key)
        if value:
            try:
                overrides[key] = int(value)
            except ValueError:
                raise ValueError(f"Environment variable {key} must be an integer, got {value!r}")

    if environ.get('EMAIL_TIMEOUT'):
        try:
            overrides['EMAIL_TIMEOUT'] = float(environ['EMAIL_TIMEOUT'])
        except ValueError:
            raise ValueError(f"Environment variable EMAIL_TIMEOUT must be a number, got {environ['EMAIL_TIMEOUT']!r}")

    if environ.get('EMAIL_VERIFY_ON_STARTUP'):
        overrides['EMAIL_VERIFY_ON_STARTUP'] = _as_bool(environ['EMAIL_VERIFY_ON_STARTUP'])

    if environ.get('APP_VERSION'):
        overrides['VERSION'] = environ['APP_VERSION']

    return overrides
