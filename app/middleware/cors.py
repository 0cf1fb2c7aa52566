"""
CORS Configuration
Which browser origins may call the directory API

Search is public and read-only; writes carry X-API-Key rather than
cookies, so credentials are never allowed cross-origin and "null"
origins (file://) are never listed.
"""
from fastapi.middleware.cors import CORSMiddleware as FastAPICORSMiddleware
from app.core.config import settings

DIRECTORY_FRONTEND = "https://handles.vercel.app"

LOCAL_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://localhost:8080",
]


def get_cors_middleware():
    """Returns (middleware class, options) for app.add_middleware."""
    origins = [DIRECTORY_FRONTEND]
    if settings.environment != "production":
        origins += LOCAL_ORIGINS

    return FastAPICORSMiddleware, {
        "allow_origins": origins,
        "allow_credentials": False,
        "allow_methods": ["GET", "POST", "DELETE", "OPTIONS"],
        "allow_headers": ["Content-Type", "X-API-Key", "X-Request-ID"],
        "expose_headers": ["X-Request-ID", "Retry-After"],
        "max_age": 600,
    }
