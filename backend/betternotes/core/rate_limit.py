"""
Rate limiting configuration.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from betternotes.core.config import settings

# Create limiter instance
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

# Format: "count/period", e.g. "30/minute"
COMPILE_LIMIT = settings.COMPILE_RATE_LIMIT
