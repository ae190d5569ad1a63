"""Rate limiting configuration using slowapi.

The module-level Limiter is imported by routers that need a tighter budget
(login) and wired into the FastAPI app in main.py.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Default budget per client IP; routes override with @limiter.limit("N/period").
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["120/minute"],
)
