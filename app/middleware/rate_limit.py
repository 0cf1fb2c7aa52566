"""
Rate Limiting Middleware
Keeps public search endpoints from being scraped or hammered
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

# Create limiter instance
# Uses client IP address as key for rate limiting
limiter = Limiter(key_func=get_remote_address)

# Shared limit string for the read endpoints
search_rate_limit = settings.rate_limit_search
