"""
Rate limiting for the public authentication endpoints (slowapi).

The limiter is module level so routes can be decorated at import time; it is
also attached to ``app.state.limiter`` where slowapi looks it up.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from portal.src.config import get_settings

_settings = get_settings()

limiter = Limiter(
    key_func=get_remote_address,
    enabled=_settings.rate_limit_enabled,
    storage_uri=_settings.rate_limit_storage_url or "memory://",
)

# Limit string for signup and login, e.g. "10/minute"
AUTH_RATE_LIMIT = _settings.rate_limit_auth
