"""
Flask extension instances shared by ``server.py`` and the route blueprints.
"""

import os

from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Redis in production, in-memory for a single process
_storage_uri = os.environ.get("REDIS_URL") or "memory://"

# Per-route limits (booking submit, login, send-email) are declared on the
# views; everything else shares the default.
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=_storage_uri,
    default_limits=[os.environ.get("RATELIMIT_DEFAULT", "200 per minute")],
)
