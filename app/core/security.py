"""
API Key Check
Guards submissions, bulk import and the verify/delete admin endpoints

Search and parse stay public. Anything that writes to the directory must
send the shared key in X-API-Key.
"""
import logging
import hmac
from typing import Optional
from fastapi import Depends, HTTPException
from fastapi.security import APIKeyHeader

from app.core.config import settings

logger = logging.getLogger(__name__)

api_key_scheme = APIKeyHeader(name="X-API-Key", auto_error=False)


async def verify_api_key(api_key: Optional[str] = Depends(api_key_scheme)) -> str:
    """
    Require HANDLES_API_KEY on write endpoints.

    Without a configured key, production refuses every write (500) and
    other environments let writes through with a warning.

    Args:
        api_key: Value of the X-API-Key header, None if absent

    Returns:
        The accepted key ("" when running keyless outside production)

    Raises:
        HTTPException: 401 for a missing or wrong key, 500 if production has no key set
    """
    expected = settings.handles_api_key

    if not expected:
        if settings.environment == "production":
            logger.error("HANDLES_API_KEY is not set in production, refusing directory writes")
            raise HTTPException(status_code=500, detail="Directory writes are not configured")
        logger.warning(f"HANDLES_API_KEY not set ({settings.environment}), accepting unauthenticated write")
        return api_key or ""

    if not api_key:
        raise HTTPException(status_code=401, detail="X-API-Key header required for directory writes")

    # Constant-time comparison
    if not hmac.compare_digest(api_key.encode(), expected.encode()):
        logger.warning("Rejected directory write with wrong X-API-Key")
        raise HTTPException(status_code=401, detail="Invalid API key")

    return api_key
