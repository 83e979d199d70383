"""
HTTP request throttle shared across the application.

Uses slowapi (built on top of limits) to throttle per client IP. This is
transport-level protection for the auth and trade endpoints; the per-creator
anti-bot policy on curve trades lives in launchpad.services.rate_limiter.

The limiter is attached to `app.state.limiter` in main.py and disabled in
tests (see conftest.py).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address, enabled=True)
