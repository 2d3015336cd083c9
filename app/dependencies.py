import functools
from fastapi import HTTPException, status
from typing import Optional

from app.config import settings
from app.playstore import GooglePlayClient, CredentialError
from app.utils.logger import get_logger

logger = get_logger(__name__)


@functools.lru_cache(maxsize=1)
def _build_play_client() -> GooglePlayClient:
    return GooglePlayClient.from_service_account_file(settings.GOOGLE_PLAY_SERVICE_ACCOUNT_JSON)


def get_play_client() -> GooglePlayClient:
    """
    FastAPI dependency returning the shared Google Play API client.

    The client is built on first use from GOOGLE_PLAY_SERVICE_ACCOUNT_JSON.
    A failed build is not cached, so fixing the credentials file does not
    need a restart.

    Raises:
        HTTPException: 503 when the credentials cannot be loaded
    """
    try:
        return _build_play_client()
    except CredentialError as e:
        logger.error(f"Google Play API client unavailable: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Google Play API client is not configured"
        )


def get_package_name(package_name: Optional[str] = None) -> str:
    """
    FastAPI dependency resolving the target package name.

    Uses the ``package_name`` query parameter when given, otherwise
    GOOGLE_PLAY_PACKAGE_NAME.
    """
    resolved = package_name or settings.GOOGLE_PLAY_PACKAGE_NAME
    if not resolved:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="package_name is required"
        )
    return resolved
