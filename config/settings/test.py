"""Test settings for the van rental backend.

Runs against an in-memory SQLite database with fast password hashing.
Application loggers propagate to the root logger so tests can capture
them; only warnings and above reach the console.
"""

from .base import *  # noqa: F401,F403

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

RENTAL_LOCK_TIMEOUT = 5

LOGGING['handlers']['console']['level'] = 'WARNING'  # noqa: F405
for _name in ('apps', 'shared', 'apps.bookings.audit'):
    LOGGING['loggers'][_name] = {'handlers': [], 'level': 'INFO', 'propagate': True}  # noqa: F405
