"""
Rate limiter configuration for the API server.

This module provides a global rate limiter instance that routers import
to throttle the gold-spending and AI endpoints.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Global rate limiter instance using client IP as the key
limiter = Limiter(key_func=get_remote_address)

PULL_RATE_LIMIT = "30/minute"
AI_RATE_LIMIT = "10/minute"
