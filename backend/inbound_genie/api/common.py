from fastapi import HTTPException
import logging

from ..errors import ProviderError, ProviderNotConfigured

logger = logging.getLogger(__name__)


def provider_failure(e: Exception, fallback: str) -> HTTPException:
    """Map an upstream failure to the 500 response the frontend shows as-is."""
    if isinstance(e, (ProviderNotConfigured, ProviderError)):
        return HTTPException(status_code=500, detail=str(e))
    logger.error(f"{fallback}: {type(e).__name__}: {e}")
    return HTTPException(status_code=500, detail=str(e) or fallback)


def blank(value) -> bool:
    return not isinstance(value, str) or not value.strip()
